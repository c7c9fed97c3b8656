"""Decorators for error handling and monitoring."""

import functools
from typing import Awaitable, Callable, TypeVar

import sentry_sdk

from doh_responder.core.config import get_settings

F = TypeVar("F", bound=Callable[..., Awaitable])


def sentry_exception_catcher(func: F) -> F:
    """
    Report exceptions escaping an async route handler to Sentry, then re-raise.

    Only reports if Sentry is configured (SENTRY_DSN is set).
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if get_settings().use_sentry:
                sentry_sdk.capture_exception(e)
            raise

    return wrapper  # type: ignore


def init_sentry() -> bool:
    """Initialize Sentry SDK if configured. Returns True when enabled."""
    settings = get_settings()

    if not settings.use_sentry:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        # Client IPs stay in our own logs only
        send_default_pii=False,
    )

    return True
