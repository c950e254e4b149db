"""
Shared fixtures for the Switchboard test suite
"""
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
import pytest_asyncio

from switchboard.config import Settings
from switchboard.main import create_app
from switchboard.services.agent_bridge import (
    AgentBridge,
    AgentOutput,
    AgentRunResult,
    AgentSlot,
    AgentTurnParams,
)
from switchboard.services.container import Services, create_services

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


# ==================== FAKE COLLABORATORS ====================

class FakeAgentBridge(AgentBridge):
    """In-memory agent runtime: replays scripted outputs, then returns ``result``"""

    def __init__(self):
        self.outputs: List[AgentOutput] = []
        self.result = AgentRunResult(status="success")
        self.calls: List[Tuple[AgentSlot, AgentTurnParams]] = []
        self.progress: List[str] = []

    async def run_turn(self, slot, params, on_progress, on_output) -> AgentRunResult:
        self.calls.append((slot, params))
        on_progress("fake-agent")
        for output in self.outputs:
            await on_output(output)
        return self.result


class UpstreamStub:
    """Request handler for ``httpx.MockTransport`` keyed by method and URL"""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, status_code: int = 200,
            json: Any = None, text: Optional[str] = None) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json)
        self.routes[(method, url)] = respond

    def add_handler(self, method: str, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, url)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.method} {request.url}")
        return route(request)


def provider_payload(**overrides: Any) -> Dict[str, Any]:
    """A valid http-compatible provider record in wire form"""
    payload = {
        "id": "deepseek",
        "name": "DeepSeek",
        "type": "openai-compatible",
        "baseUrl": "https://api.deepseek.test",
        "apiKey": "sk-deepseek",
        "models": ["deepseek-chat"],
    }
    payload.update(overrides)
    return payload


def agent_payload(**overrides: Any) -> Dict[str, Any]:
    """A valid agent-backend provider record in wire form"""
    payload = {
        "id": "claude",
        "name": "Claude",
        "type": "claude",
        "baseUrl": "https://api.anthropic.test",
        "apiKey": "sk-ant",
    }
    payload.update(overrides)
    return payload


# ==================== CORE FIXTURES ====================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings rooted in a temporary data directory"""
    return Settings(
        _env_file=None,
        data_dir=tmp_path / "data",
        container_runtime="docker",
        anthropic_api_key="",
        deepseek_api_key="",
        kimi_api_key="",
        glm_api_key="",
        log_level="WARNING",
    )


@pytest.fixture
def bridge() -> FakeAgentBridge:
    return FakeAgentBridge()


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest_asyncio.fixture
async def services(settings, bridge, upstream) -> AsyncGenerator[Services, None]:
    """Fully wired services with a fake agent runtime and mocked provider APIs"""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    services = await create_services(settings, bridge=bridge, http_client=http_client)
    yield services
    await services.close()


@pytest_asyncio.fixture
async def client(services) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client bound to the app in-process"""
    app = create_app(services=services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
