"""
Provider Factory

Maps each provider variant to its implementation and builds instances with
the shared HTTP client and agent runtime collaborators injected.
"""

from typing import Dict, Type

import httpx
import structlog

from switchboard.models.provider import ProviderConfig, ProviderType
from switchboard.services.agent_bridge import AgentBridge
from switchboard.services.ledger import SessionRegistry

from .agent import AgentBackendProvider
from .base import BaseProvider
from .openai_compat import OpenAICompatibleProvider

logger = structlog.get_logger()

PROVIDER_REGISTRY: Dict[ProviderType, Type[BaseProvider]] = {
    ProviderType.AGENT_BACKEND: AgentBackendProvider,
    ProviderType.HTTP_COMPATIBLE: OpenAICompatibleProvider,
}


class ProviderFactory:
    """Builds provider instances for stored configurations"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        bridge: AgentBridge,
        sessions: SessionRegistry,
    ):
        self.client = client
        self.bridge = bridge
        self.sessions = sessions

    def create(self, config: ProviderConfig) -> BaseProvider:
        provider_class = PROVIDER_REGISTRY[config.type]
        if provider_class is AgentBackendProvider:
            return AgentBackendProvider(config, self.client, self.bridge, self.sessions)
        return provider_class(config, self.client)
