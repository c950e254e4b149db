"""
Agent Backend Provider Implementation

Routes chat turns through the sandboxed agent runtime. The runtime keeps
conversational state between turns through a session identifier stored per
conversation slot; model listing goes straight to the vendor API.
"""

import json
import re
from typing import Any, Dict, List, Optional

import httpx
import structlog

from switchboard.errors import BackendError
from switchboard.models.provider import ProviderConfig, ProviderType
from switchboard.services.agent_bridge import (
    AgentBridge,
    AgentOutput,
    AgentSlot,
    AgentTurnParams,
)
from switchboard.services.ledger import SessionRegistry
from switchboard.utils.time import now_iso

from .base import BaseProvider

logger = structlog.get_logger()

ANTHROPIC_VERSION = "2023-06-01"
WEB_GROUP_FOLDER = "web"
WEB_CHAT_JID = "web:local"
NO_OUTPUT_PLACEHOLDER = "(No user-visible output)"

_INTERNAL_RE = re.compile(r"<internal>[\s\S]*?</internal>")


def strip_internal(text: str) -> str:
    """Remove ``<internal>...</internal>`` regions and trim the remainder"""
    return _INTERNAL_RE.sub("", text).strip()


def _result_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result)


class AgentBackendProvider(BaseProvider):
    """Sandboxed agent runtime with session continuity"""

    provider_type = ProviderType.AGENT_BACKEND

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient,
        bridge: AgentBridge,
        sessions: SessionRegistry,
    ):
        super().__init__(config, client)
        self.bridge = bridge
        self.sessions = sessions

    def auth_headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def send_chat(
        self,
        message: str,
        model: Optional[str] = None,
        assistant_name: Optional[str] = None,
    ) -> str:
        slot = AgentSlot(
            name="WebUI",
            folder=WEB_GROUP_FOLDER,
            trigger="@Web",
            added_at=now_iso(),
            requires_trigger=False,
        )
        params = AgentTurnParams(
            prompt=message,
            session_id=await self.sessions.get_session(WEB_GROUP_FOLDER),
            group_folder=WEB_GROUP_FOLDER,
            chat_jid=WEB_CHAT_JID,
            is_main=True,
            assistant_name=assistant_name or "Assistant",
            secrets={"ANTHROPIC_API_KEY": self.config.api_key},
            model=model or self.config.default_model,
        )

        chunks: List[str] = []

        async def on_output(output: AgentOutput) -> None:
            # Persisted as soon as it is seen, even if the turn later fails.
            if output.new_session_id:
                await self.sessions.set_session(WEB_GROUP_FOLDER, output.new_session_id)
            if not output.result:
                return
            cleaned = strip_internal(_result_text(output.result))
            if cleaned:
                chunks.append(cleaned)

        result = await self.bridge.run_turn(slot, params, lambda _name: None, on_output)

        if not result.ok:
            logger.error("Agent turn failed", provider=self.name, error=result.error)
            raise BackendError(
                "container_error",
                detail=result.error or "container_error",
                provider=self.name,
            )

        reply = "\n\n".join(chunks).strip()
        return reply or NO_OUTPUT_PLACEHOLDER
