"""
Switchboard Provider System

Provider configuration sanitization and storage, plus one implementation
per provider variant behind a common capability interface.
"""

from .agent import AgentBackendProvider, strip_internal
from .base import BaseProvider, parse_model_listing
from .catalog import ModelCatalogFetcher
from .factory import PROVIDER_REGISTRY, ProviderFactory
from .openai_compat import OpenAICompatibleProvider, resolve_model
from .sanitizer import create_preset_providers, normalize_config, prepare_provider, sanitize_provider
from .store import ProviderStore

__all__ = [
    "AgentBackendProvider",
    "BaseProvider",
    "ModelCatalogFetcher",
    "OpenAICompatibleProvider",
    "PROVIDER_REGISTRY",
    "ProviderFactory",
    "ProviderStore",
    "create_preset_providers",
    "normalize_config",
    "parse_model_listing",
    "prepare_provider",
    "resolve_model",
    "sanitize_provider",
    "strip_internal",
]
