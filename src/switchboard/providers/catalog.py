"""Model catalog refresh"""

from typing import List, Optional

import structlog

from switchboard.errors import NotFoundError, ValidationError
from switchboard.models.provider import ProviderConfig, WebUiConfig

from .factory import ProviderFactory
from .store import ProviderStore

logger = structlog.get_logger()


class ModelCatalogFetcher:
    """Queries provider APIs for their model lists and stores the result"""

    def __init__(self, factory: ProviderFactory):
        self.factory = factory

    async def fetch_models(self, provider: ProviderConfig) -> List[str]:
        """Sorted, de-duplicated model ids; raises UpstreamError on failure"""
        return await self.factory.create(provider).list_models()

    async def refresh(self, store: ProviderStore, provider_id: Optional[str]) -> List[str]:
        """Fetch the catalog for a stored provider and persist it"""
        config = await store.read()
        provider = store.resolve_default(config, provider_id)
        if provider is None:
            raise NotFoundError("provider_not_found")
        if not provider.is_ready:
            raise ValidationError("provider_not_ready", provider=provider.name)

        models = await self.fetch_models(provider)

        def apply(current: WebUiConfig) -> WebUiConfig:
            idx = current.index_of(provider.id)
            if idx >= 0:
                target = current.providers[idx]
                target.models = models
                if not target.default_model and models:
                    target.default_model = models[0]
            return current

        await store.update(apply)
        logger.info("Model catalog refreshed", provider=provider.name, count=len(models))
        return models
