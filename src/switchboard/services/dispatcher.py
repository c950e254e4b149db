"""Chat dispatch across provider variants"""
from typing import Optional

import structlog

from switchboard.errors import GatewayError
from switchboard.models.provider import ProviderConfig
from switchboard.providers.factory import ProviderFactory

logger = structlog.get_logger()


class ChatDispatcher:
    """Sends a message to the backend matching the provider's type

    Either a complete reply string is returned or an error is raised; the
    agent runtime's incremental output never leaks through this boundary.
    """

    def __init__(self, factory: ProviderFactory):
        self.factory = factory

    async def dispatch(
        self,
        message: str,
        provider: ProviderConfig,
        model: Optional[str] = None,
        assistant_name: Optional[str] = None,
    ) -> str:
        backend = self.factory.create(provider)
        log = logger.bind(provider=provider.name, provider_type=provider.type.value)
        log.info("Dispatching chat", requested_model=model)
        try:
            reply = await backend.send_chat(message, model=model, assistant_name=assistant_name)
        except GatewayError as e:
            log.warning("Chat dispatch failed", **e.to_dict())
            raise
        log.info("Chat dispatch completed", reply_length=len(reply))
        return reply
