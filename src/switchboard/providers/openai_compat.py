"""
OpenAI-Compatible Provider Implementation

Stateless single-call chat completions against any endpoint that speaks the
OpenAI ``/v1/chat/completions`` dialect (DeepSeek, Kimi, GLM, ...).
"""

from typing import Dict, Optional

import structlog

from switchboard.errors import UpstreamError, ValidationError
from switchboard.models.provider import ProviderConfig, ProviderType

from .base import BaseProvider

logger = structlog.get_logger()

COMPLETIONS_PATH = "/v1/chat/completions"


def resolve_model(provider: ProviderConfig, requested: Optional[str] = None) -> str:
    """Pick the model: request value, then provider default, then first listed"""
    selected = requested or provider.default_model or (provider.models[0] if provider.models else None)
    if not selected:
        raise ValidationError("model_required_for_provider", provider=provider.name)
    return selected


class OpenAICompatibleProvider(BaseProvider):
    """Bearer-authenticated REST completion provider"""

    provider_type = ProviderType.HTTP_COMPATIBLE

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    async def send_chat(
        self,
        message: str,
        model: Optional[str] = None,
        assistant_name: Optional[str] = None,
    ) -> str:
        selected = resolve_model(self.config, model)
        payload = {
            "model": selected,
            "messages": [{"role": "user", "content": message}],
        }

        logger.info("Sending chat completion", provider=self.name, model=selected)
        response = await self.request("POST", COMPLETIONS_PATH, "chat_failed", json=payload)
        data = self.parse_json(response, "chat_failed")

        text = ""
        choices = data.get("choices") if isinstance(data, dict) else None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            reply = choices[0].get("message")
            content = reply.get("content") if isinstance(reply, dict) else None
            if isinstance(content, str):
                text = content.strip()

        if not text:
            raise UpstreamError("empty_response", provider=self.name)
        return text
