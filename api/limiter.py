"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in route modules (to
apply per-route limits with @limiter.limit()). A single shared instance means
all routes share the same in-memory counter store.

configure_limiter() is called once by create_app() with the process Settings.
The login limit is resolved through a callable so the decorator can be
applied at import time while the value still comes from configuration.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import Settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")

_login_limit = "30/15 minutes"


def configure_limiter(settings: Settings) -> None:
    global _login_limit
    _login_limit = settings.login_rate_limit
    limiter.enabled = settings.rate_limit_enabled


def login_limit() -> str:
    return _login_limit
