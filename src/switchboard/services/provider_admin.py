"""Provider administration operations behind the providers endpoints"""
from typing import Any, Dict, Mapping, Optional

import structlog

from switchboard.config import Settings
from switchboard.errors import NotFoundError, ValidationError
from switchboard.models.provider import WebUiConfig
from switchboard.providers.sanitizer import create_preset_providers, prepare_provider
from switchboard.providers.store import ProviderStore

logger = structlog.get_logger()

PRESET_DEFAULT_ID = "anthropic-default"

# Left untouched on an existing provider when the request omits them.
_KEPT_WHEN_ABSENT = {
    "models": ("models",),
    "default_model": ("defaultModel", "default_model"),
    "headers": ("headers",),
}


def _require_id(payload: Mapping[str, Any]) -> str:
    provider_id = payload.get("id")
    if not isinstance(provider_id, str) or not provider_id:
        raise ValidationError("id_required")
    return provider_id


class ProviderAdmin:
    """Create, edit, remove and select providers"""

    def __init__(self, store: ProviderStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def list_masked(self) -> Dict[str, Any]:
        config = await self.store.read()
        return {
            "defaultProviderId": config.default_provider_id,
            "providers": [p.masked() for p in config.providers],
        }

    async def ensure_presets(self) -> None:
        """Seed the preset providers into an empty store"""
        config = await self.store.read()
        if config.providers:
            return
        presets = create_preset_providers(self.settings)
        written = await self.store.write({
            **config.to_json_dict(),
            "providers": presets,
            "defaultProviderId": PRESET_DEFAULT_ID,
        })
        logger.info("Preset providers seeded", count=len(written.providers))

    async def bootstrap(self) -> int:
        """Merge presets whose ids are not stored yet; returns the provider count"""
        presets = create_preset_providers(self.settings)

        def merge(current: WebUiConfig) -> Dict[str, Any]:
            data = current.to_json_dict()
            existing = {p.id for p in current.providers}
            data["providers"] = data.get("providers", []) + [
                p for p in presets if p["id"] not in existing
            ]
            data["defaultProviderId"] = current.default_provider_id or PRESET_DEFAULT_ID
            return data

        written = await self.store.update(merge)
        logger.info("Preset providers merged", count=len(written.providers))
        return len(written.providers)

    async def upsert(self, payload: Mapping[str, Any]) -> Optional[str]:
        """Create or update a provider; a missing secret keeps the stored one"""
        provider = prepare_provider(payload)
        config = await self.store.read()
        existing = config.find(provider.id)

        if not provider.name or not provider.base_url or (
            not provider.api_key and not (existing and existing.api_key)
        ):
            raise ValidationError("name_baseurl_apikey_required")

        def apply(current: WebUiConfig) -> WebUiConfig:
            idx = current.index_of(provider.id)
            if idx < 0:
                current.providers.append(provider)
            else:
                prev = current.providers[idx]
                changes = provider.model_dump()
                changes["created_at"] = prev.created_at
                if not provider.api_key:
                    changes["api_key"] = prev.api_key
                for field, keys in _KEPT_WHEN_ABSENT.items():
                    if not any(k in payload for k in keys):
                        changes[field] = getattr(prev, field)
                current.providers[idx] = prev.model_copy(update=changes)
            if not current.default_provider_id:
                current.default_provider_id = provider.id
            return current

        written = await self.store.update(apply)
        logger.info("Provider saved", provider_id=provider.id, created=existing is None)
        return written.default_provider_id

    async def delete(self, payload: Mapping[str, Any]) -> Optional[str]:
        provider_id = _require_id(payload)

        def apply(current: WebUiConfig) -> WebUiConfig:
            current.providers = [p for p in current.providers if p.id != provider_id]
            if current.find(current.default_provider_id) is None:
                current.default_provider_id = current.providers[0].id if current.providers else None
            return current

        written = await self.store.update(apply)
        logger.info("Provider deleted", provider_id=provider_id)
        return written.default_provider_id

    async def set_default(self, payload: Mapping[str, Any]) -> Optional[str]:
        provider_id = _require_id(payload)

        def apply(current: WebUiConfig) -> WebUiConfig:
            if current.find(provider_id) is None:
                raise NotFoundError("provider_not_found")
            current.default_provider_id = provider_id
            return current

        written = await self.store.update(apply)
        return written.default_provider_id

    async def summary(self) -> Dict[str, Any]:
        config = await self.store.read()
        return {
            "assistantName": config.assistant_name,
            "defaultProviderId": config.default_provider_id,
            "providerCount": len(config.providers),
        }
