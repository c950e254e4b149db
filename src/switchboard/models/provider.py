"""Provider configuration models"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProviderType(str, Enum):
    """Provider variants

    The wire values match the persisted configuration format.
    """
    AGENT_BACKEND = "claude"
    HTTP_COMPATIBLE = "openai-compatible"

    @classmethod
    def parse(cls, value: Any) -> "ProviderType":
        """Anything other than an explicit http-compatible value is the agent backend"""
        if value in (cls.HTTP_COMPATIBLE, cls.HTTP_COMPATIBLE.value, "http-compatible"):
            return cls.HTTP_COMPATIBLE
        return cls.AGENT_BACKEND


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProviderConfig(_CamelModel):
    """One configured backend"""

    id: str
    name: str
    type: ProviderType = ProviderType.AGENT_BACKEND
    base_url: str
    api_key: str
    enabled: bool = True
    models: List[str] = Field(default_factory=list)
    default_model: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    created_at: str
    updated_at: str

    @property
    def is_ready(self) -> bool:
        return bool(self.api_key and self.base_url)

    def masked(self) -> Dict[str, Any]:
        """JSON form with the secret hidden"""
        data = self.to_json_dict()
        data["apiKey"] = "***" if self.api_key else ""
        return data


class WebUiConfig(_CamelModel):
    """The persisted configuration aggregate"""

    assistant_name: Optional[str] = None
    default_provider_id: Optional[str] = None
    providers: List[ProviderConfig] = Field(default_factory=list)
    updated_at: Optional[str] = None

    def find(self, provider_id: Optional[str]) -> Optional[ProviderConfig]:
        if not provider_id:
            return None
        for provider in self.providers:
            if provider.id == provider_id:
                return provider
        return None

    def index_of(self, provider_id: str) -> int:
        for idx, provider in enumerate(self.providers):
            if provider.id == provider_id:
                return idx
        return -1
