"""Configuration management for Switchboard"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="SWITCHBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Switchboard", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")

    # API Settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(
        default=3000,
        validation_alias=AliasChoices("SWITCHBOARD_API_PORT", "WEBUI_PORT"),
        description="API port",
    )
    max_body_bytes: int = Field(default=1024 * 1024, description="Maximum request body size")

    # Storage
    data_dir: Path = Field(default=Path("data"), description="Directory holding config and message store")
    config_file_name: str = Field(default="webui-config.json", description="Provider config file name")
    database_file_name: str = Field(default="messages.db", description="SQLite message store file name")
    strict_store_writes: bool = Field(
        default=True,
        description="Serialize config writes so concurrent updates are never lost",
    )

    @property
    def config_path(self) -> Path:
        """Location of the persisted provider configuration"""
        return self.data_dir / self.config_file_name

    @property
    def database_url(self) -> str:
        """Construct SQLite connection URL"""
        return f"sqlite+aiosqlite:///{self.data_dir / self.database_file_name}"

    # Conversation
    history_limit: int = Field(default=60, description="Messages returned by the history endpoint")
    default_assistant_name: str = Field(default="Assistant", description="Fallback assistant name")

    # Outbound calls
    http_timeout_seconds: float = Field(default=60.0, description="Timeout for provider HTTP calls")
    agent_timeout_seconds: float = Field(default=600.0, description="Timeout for an agent turn")

    # Agent runtime
    agent_command: str = Field(
        default="container-agent",
        description="Command line that runs one sandboxed agent turn",
    )
    container_runtime: str = Field(
        default="auto",
        description="Container runtime to probe at startup (auto, docker, container)",
    )

    # Preset provider secrets
    anthropic_api_key: str = Field(default="", description="Secret for the anthropic-default preset")
    deepseek_api_key: str = Field(default="", description="Secret for the deepseek-default preset")
    kimi_api_key: str = Field(default="", description="Secret for the kimi-default preset")
    glm_api_key: str = Field(default="", description="Secret for the glm-default preset")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format (json or console)")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
