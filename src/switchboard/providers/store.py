"""File-backed provider configuration store

This module owns the persisted ``WebUiConfig`` aggregate:
- Lazy load with an in-memory cached copy
- Normalization on every read and write
- Full rewrite with owner-only permissions (atomic rename)
- Serialized read-modify-write in strict mode
"""

import asyncio
import inspect
import json
import os
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

import aiofiles
import structlog

from switchboard.models.provider import ProviderConfig, WebUiConfig
from switchboard.providers.sanitizer import normalize_config
from switchboard.utils.time import now_iso

logger = structlog.get_logger()

ConfigLike = Union[WebUiConfig, dict]
Mutator = Callable[[WebUiConfig], Union[ConfigLike, Awaitable[ConfigLike]]]

FILE_MODE = 0o600


def _owner_only_opener(path: str, flags: int) -> int:
    return os.open(path, flags, FILE_MODE)


class ProviderStore:
    """Single writer of the provider configuration file

    In strict mode ``write`` and ``update`` share one lock so concurrent
    updates are applied one after the other. With ``strict=False`` the lock
    is skipped and two overlapping updates race: both start from the same
    state and the later write replaces the earlier one.
    """

    def __init__(self, path: Path, strict: bool = True):
        self.path = Path(path)
        self.strict = strict
        self._cache: Optional[WebUiConfig] = None
        self._lock = asyncio.Lock()
        self._version = 0

    @property
    def version(self) -> int:
        """Number of writes persisted by this store"""
        return self._version

    async def _load(self) -> WebUiConfig:
        if not self.path.exists():
            return WebUiConfig(providers=[], updated_at=now_iso())
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                content = await f.read()
            return normalize_config(json.loads(content))
        except (OSError, ValueError) as e:
            logger.warning("Config file unreadable, using empty config",
                           path=str(self.path), error=str(e))
            return WebUiConfig(providers=[], updated_at=now_iso())

    async def _persist(self, config: WebUiConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(config.to_json_dict(), indent=2, ensure_ascii=False) + "\n"
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8", opener=_owner_only_opener) as f:
            await f.write(payload)
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, self.path)
        self._cache = config
        self._version += 1
        logger.debug("Config persisted", path=str(self.path), version=self._version,
                     providers=len(config.providers))

    async def read(self) -> WebUiConfig:
        """Return the normalized aggregate; never raises on a bad or missing file"""
        if self._cache is None:
            self._cache = await self._load()
        return self._cache.model_copy(deep=True)

    async def reload(self) -> WebUiConfig:
        """Drop the cached copy and read the file again"""
        self._cache = None
        return await self.read()

    async def write(self, config: ConfigLike) -> WebUiConfig:
        """Normalize and persist a whole aggregate"""
        if not self.strict:
            return await self._write_unlocked(config)
        async with self._lock:
            return await self._write_unlocked(config)

    async def _write_unlocked(self, config: ConfigLike) -> WebUiConfig:
        sanitized = normalize_config(config)
        await self._persist(sanitized)
        return sanitized.model_copy(deep=True)

    async def update(self, mutator: Mutator) -> WebUiConfig:
        """Read-modify-write; the mutator may raise to abort without writing"""
        if not self.strict:
            return await self._update_unlocked(mutator)
        async with self._lock:
            return await self._update_unlocked(mutator)

    async def _update_unlocked(self, mutator: Mutator) -> WebUiConfig:
        current = await self.read()
        result = mutator(current)
        if inspect.isawaitable(result):
            result = await result
        return await self._write_unlocked(result)

    @staticmethod
    def resolve_default(
        config: WebUiConfig, explicit_id: Optional[str] = None
    ) -> Optional[ProviderConfig]:
        """Provider matching ``explicit_id``, else the configured default"""
        return config.find(explicit_id or config.default_provider_id)
