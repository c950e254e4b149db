"""
Provider Record Sanitization

Pure validation and normalization of provider records and of the
configuration aggregate. Input is untrusted: it comes from the HTTP surface
or from a hand-edited config file.
"""

from typing import Any, Dict, List, Mapping, Optional

from switchboard.config import Settings
from switchboard.models.provider import ProviderConfig, ProviderType, WebUiConfig
from switchboard.utils.time import now_iso, random_id

DEFAULT_ANTHROPIC_BASE = "https://api.anthropic.com"
DEFAULT_DEEPSEEK_BASE = "https://api.deepseek.com"
DEFAULT_KIMI_BASE = "https://api.moonshot.cn"
DEFAULT_GLM_BASE = "https://open.bigmodel.cn"


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, ProviderConfig):
        return raw.to_json_dict()
    if isinstance(raw, Mapping):
        return raw
    return {}


def _pick(data: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake)


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_base_url(value: Any) -> str:
    return _clean_str(value).rstrip("/")


def _clean_models(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [m.strip() for m in value if isinstance(m, str) and m.strip()]


def _clean_headers(value: Any) -> Optional[Dict[str, str]]:
    if not isinstance(value, Mapping):
        return None
    return {str(k): str(v) for k, v in value.items() if isinstance(v, (str, int, float))}


def prepare_provider(raw: Any) -> ProviderConfig:
    """Coerce an untrusted record into a provider without rejecting it

    Missing required fields come back as empty strings so the caller can
    decide how to report them (or fill the secret from a stored record).
    """
    data = _as_mapping(raw)
    stamp = now_iso()

    provider_id = data.get("id")
    if not isinstance(provider_id, str) or not provider_id.strip():
        provider_id = random_id("provider")

    provider_type = ProviderType.parse(data.get("type"))

    base_url = _clean_base_url(_pick(data, "baseUrl", "base_url"))
    if not base_url and provider_type is ProviderType.AGENT_BACKEND:
        base_url = DEFAULT_ANTHROPIC_BASE

    models = _clean_models(data.get("models"))
    default_model = _clean_str(_pick(data, "defaultModel", "default_model")) or (
        models[0] if models else None
    )

    created_at = _pick(data, "createdAt", "created_at")

    return ProviderConfig(
        id=provider_id.strip(),
        name=_clean_str(data.get("name")),
        type=provider_type,
        base_url=base_url,
        api_key=_clean_str(_pick(data, "apiKey", "api_key")),
        enabled=data.get("enabled") is not False,
        models=models,
        default_model=default_model,
        headers=_clean_headers(data.get("headers")),
        created_at=created_at if isinstance(created_at, str) else stamp,
        updated_at=stamp,
    )


def sanitize_provider(raw: Any) -> Optional[ProviderConfig]:
    """Return a valid provider, or None when name, base URL or secret is empty"""
    provider = prepare_provider(raw)
    if not provider.name or not provider.base_url or not provider.api_key:
        return None
    return provider


def normalize_config(raw: Any) -> WebUiConfig:
    """Sanitize every provider and repair the default provider reference"""
    if isinstance(raw, WebUiConfig):
        data: Mapping[str, Any] = raw.to_json_dict()
    elif isinstance(raw, Mapping):
        data = raw
    else:
        data = {}

    assistant_name = _clean_str(_pick(data, "assistantName", "assistant_name")) or None

    providers: List[ProviderConfig] = []
    seen = set()
    raw_providers = data.get("providers")
    for item in raw_providers if isinstance(raw_providers, list) else []:
        provider = sanitize_provider(item)
        if provider is None or provider.id in seen:
            continue
        seen.add(provider.id)
        providers.append(provider)

    default_id = _pick(data, "defaultProviderId", "default_provider_id")
    if not isinstance(default_id, str) or default_id not in seen:
        default_id = providers[0].id if providers else None

    return WebUiConfig(
        assistant_name=assistant_name,
        default_provider_id=default_id,
        providers=providers,
        updated_at=now_iso(),
    )


def create_preset_providers(settings: Settings) -> List[Dict[str, Any]]:
    """The fixed preset provider set merged in by the bootstrap operation"""
    stamp = now_iso()
    presets = [
        ("anthropic-default", "Anthropic Claude", ProviderType.AGENT_BACKEND,
         DEFAULT_ANTHROPIC_BASE, settings.anthropic_api_key, True),
        ("deepseek-default", "DeepSeek", ProviderType.HTTP_COMPATIBLE,
         DEFAULT_DEEPSEEK_BASE, settings.deepseek_api_key, False),
        ("kimi-default", "Kimi (Moonshot)", ProviderType.HTTP_COMPATIBLE,
         DEFAULT_KIMI_BASE, settings.kimi_api_key, False),
        ("glm-default", "GLM", ProviderType.HTTP_COMPATIBLE,
         DEFAULT_GLM_BASE, settings.glm_api_key, False),
    ]
    return [
        {
            "id": provider_id,
            "name": name,
            "type": provider_type.value,
            "baseUrl": base_url,
            "apiKey": api_key,
            "enabled": enabled,
            "models": [],
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        for provider_id, name, provider_type, base_url, api_key, enabled in presets
    ]
