"""Service wiring shared by the HTTP app and the CLI"""
from dataclasses import dataclass, field
from typing import Optional

import httpx
import structlog

from switchboard.config import Settings
from switchboard.providers.catalog import ModelCatalogFetcher
from switchboard.providers.factory import ProviderFactory
from switchboard.providers.store import ProviderStore
from switchboard.services.agent_bridge import AgentBridge, ContainerAgentBridge
from switchboard.services.chat import ChatService
from switchboard.services.database import Database
from switchboard.services.dispatcher import ChatDispatcher
from switchboard.services.ledger import ConversationLedger, SessionRegistry
from switchboard.services.provider_admin import ProviderAdmin

logger = structlog.get_logger()


@dataclass
class RuntimeState:
    """Whether the agent container runtime was usable at startup"""
    ready: bool = False
    error: Optional[str] = None


@dataclass
class Services:
    settings: Settings
    database: Database
    store: ProviderStore
    ledger: ConversationLedger
    sessions: SessionRegistry
    bridge: AgentBridge
    http_client: httpx.AsyncClient
    factory: ProviderFactory
    dispatcher: ChatDispatcher
    catalog: ModelCatalogFetcher
    chat: ChatService
    admin: ProviderAdmin
    runtime: RuntimeState = field(default_factory=RuntimeState)

    async def close(self) -> None:
        await self.http_client.aclose()
        await self.database.close()


async def create_services(
    settings: Settings,
    bridge: Optional[AgentBridge] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Services:
    """Initialize storage and build every service; raises if the database is unusable"""
    database = Database(settings.database_url, echo=settings.debug)
    await database.init()

    store = ProviderStore(settings.config_path, strict=settings.strict_store_writes)
    ledger = ConversationLedger(database)
    sessions = SessionRegistry(database)
    bridge = bridge or ContainerAgentBridge(settings.agent_command, settings.agent_timeout_seconds)
    http_client = http_client or httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
    )
    factory = ProviderFactory(http_client, bridge, sessions)
    dispatcher = ChatDispatcher(factory)

    services = Services(
        settings=settings,
        database=database,
        store=store,
        ledger=ledger,
        sessions=sessions,
        bridge=bridge,
        http_client=http_client,
        factory=factory,
        dispatcher=dispatcher,
        catalog=ModelCatalogFetcher(factory),
        chat=ChatService(store, dispatcher, ledger, settings.default_assistant_name),
        admin=ProviderAdmin(store, settings),
    )
    logger.info("Services initialized", data_dir=str(settings.data_dir),
                strict_store_writes=settings.strict_store_writes)
    return services
