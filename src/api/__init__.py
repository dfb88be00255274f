"""HTTP surface of the alert graphing service."""

from .app import create_app
from .schemas import AlertPayload, HookMessage

__all__ = ["AlertPayload", "HookMessage", "create_app"]
