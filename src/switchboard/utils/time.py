"""Timestamp and identifier helpers"""
import secrets
import time
from datetime import datetime, timezone


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def random_id(prefix: str) -> str:
    """Identifier of the form ``<prefix>-<epoch ms>-<6 hex chars>``"""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3)}"
