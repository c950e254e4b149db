"""Data models for Switchboard"""

from .message import Base, Chat, Message, SessionRecord
from .provider import ProviderConfig, ProviderType, WebUiConfig

__all__ = [
    "Base",
    "Chat",
    "Message",
    "SessionRecord",
    "ProviderConfig",
    "ProviderType",
    "WebUiConfig",
]
