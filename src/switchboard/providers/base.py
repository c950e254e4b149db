"""
Base Provider Interface

Capability interface implemented once per provider variant. The dispatcher
and the catalog refresh only talk to providers through ``list_models`` and
``send_chat``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
import structlog

from switchboard.errors import UpstreamError, excerpt
from switchboard.models.provider import ProviderConfig, ProviderType

logger = structlog.get_logger()

MODELS_PATH = "/v1/models"


def parse_model_listing(data: Any) -> List[str]:
    """Extract a sorted, de-duplicated list of model ids from a listing body

    Anthropic-style and OpenAI-style APIs disagree on the top-level field
    (``data`` vs ``models``); entries use ``id`` or fall back to ``name``.
    """
    if not isinstance(data, dict):
        return []
    entries = data.get("data")
    if not isinstance(entries, list):
        entries = data.get("models")
    if not isinstance(entries, list):
        return []

    found = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        model_id = entry.get("id") or entry.get("name") or ""
        if isinstance(model_id, str) and model_id:
            found.add(model_id)
    return sorted(found)


class BaseProvider(ABC):
    """Abstract base class for provider variants"""

    provider_type: ProviderType

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient):
        self.config = config
        self.client = client

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    @abstractmethod
    def auth_headers(self) -> Dict[str, str]:
        """Headers carrying the provider secret"""
        pass

    @abstractmethod
    async def send_chat(
        self,
        message: str,
        model: Optional[str] = None,
        assistant_name: Optional[str] = None,
    ) -> str:
        """Run one chat turn and return the complete reply text"""
        pass

    def build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", **self.auth_headers()}
        headers.update(self.config.headers or {})
        return headers

    async def request(self, method: str, path: str, code: str, **kwargs: Any) -> httpx.Response:
        """Issue a request and translate transport failures into upstream errors

        A non-success status raises ``<code>:<status>:<body excerpt>``.
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(method, url, headers=self.build_headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Provider request timed out", provider=self.name, url=url, error=str(e))
            raise UpstreamError("upstream_timeout", provider=self.name) from e
        except httpx.TransportError as e:
            logger.warning("Provider unreachable", provider=self.name, url=url, error=str(e))
            raise UpstreamError("upstream_unreachable", provider=self.name) from e

        if not response.is_success:
            body = excerpt(response.text)
            logger.warning("Provider returned error status",
                           provider=self.name, url=url, status_code=response.status_code)
            raise UpstreamError(code, status_code=response.status_code, excerpt=body, provider=self.name)
        return response

    def parse_json(self, response: httpx.Response, code: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(code, detail=f"{code}:invalid_json", provider=self.name) from e

    async def list_models(self) -> List[str]:
        """Query the remote API for available model identifiers"""
        response = await self.request("GET", MODELS_PATH, "model_fetch_failed")
        models = parse_model_listing(self.parse_json(response, "model_fetch_failed"))
        logger.info("Fetched provider models", provider=self.name, count=len(models))
        return models
