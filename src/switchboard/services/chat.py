"""Chat orchestration: provider resolution, dispatch and history"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog

from switchboard.errors import ValidationError
from switchboard.providers.agent import WEB_CHAT_JID
from switchboard.providers.store import ProviderStore
from switchboard.services.dispatcher import ChatDispatcher
from switchboard.services.ledger import ConversationLedger, MessageRecord
from switchboard.utils.time import now_iso, random_id

logger = structlog.get_logger()

CHAT_NAME = "Local Web Chat"
CHAT_CHANNEL = "web"


@dataclass
class ChatReply:
    reply: str
    provider: str


class ChatService:
    """Records every prompt, dispatches it, and records successful replies"""

    def __init__(
        self,
        store: ProviderStore,
        dispatcher: ChatDispatcher,
        ledger: ConversationLedger,
        default_assistant_name: str = "Assistant",
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.ledger = ledger
        self.default_assistant_name = default_assistant_name

    async def chat(
        self,
        message: Any,
        provider_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> ChatReply:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("message_required")

        config = await self.store.read()
        provider = self.store.resolve_default(config, provider_id) or (
            config.providers[0] if config.providers else None
        )
        if provider is None:
            raise ValidationError("no_provider_configured")
        if not provider.is_ready:
            raise ValidationError("provider_not_ready", provider=provider.name)

        text = message.strip()
        await self._record(
            MessageRecord(
                id=random_id("web-user"),
                chat_jid=WEB_CHAT_JID,
                sender="web-user",
                sender_name="You",
                content=f"[{provider.name}] {text}",
                timestamp=now_iso(),
            )
        )

        reply = await self.dispatcher.dispatch(
            text,
            provider,
            model=model or None,
            assistant_name=config.assistant_name or self.default_assistant_name,
        )

        await self._record(
            MessageRecord(
                id=random_id("web-bot"),
                chat_jid=WEB_CHAT_JID,
                sender="web-assistant",
                sender_name="Assistant",
                content=f"[{provider.name}] {reply}",
                timestamp=now_iso(),
                is_from_me=True,
                is_bot_message=True,
            )
        )
        return ChatReply(reply=reply, provider=provider.name)

    async def _record(self, record: MessageRecord) -> None:
        await self.ledger.store_chat_metadata(record.chat_jid, record.timestamp, CHAT_NAME, CHAT_CHANNEL)
        await self.ledger.append_message(record)

    async def history(self, limit: int) -> List[Dict[str, Any]]:
        rows = await self.ledger.list_recent(WEB_CHAT_JID, limit)
        return [
            {
                "role": "assistant" if row.is_bot_message else "user",
                "content": row.content,
                "timestamp": row.timestamp,
            }
            for row in rows
        ]
