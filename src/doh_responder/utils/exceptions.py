"""Custom exceptions and error handling utilities."""

import logging
from typing import Optional

import sentry_sdk

from doh_responder.core.config import get_settings

logger = logging.getLogger(__name__)


class DoHResponderError(Exception):
    """Base exception for responder errors."""


class BadRequestError(DoHResponderError):
    """The caller sent a malformed request.

    The reason describes the caller's own input and is safe to return in
    the response body.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ServerError(DoHResponderError):
    """The request could not be served for reasons on our side."""


class ResponseEncodingError(ServerError):
    """A synthesized DNS response could not be serialized."""


def capture_exception(
    exception: Exception,
    context: Optional[dict] = None,
    level: str = "error",
) -> None:
    """
    Capture exception to Sentry if configured, otherwise log it.

    Args:
        exception: The exception to capture
        context: Additional context to include
        level: Log level ('error', 'warning', 'info')
    """
    settings = get_settings()

    # Log locally
    log_func = getattr(logger, level, logger.error)
    log_func(
        "%s: %s %s",
        type(exception).__name__,
        exception,
        context or {},
        exc_info=exception,
    )

    # Send to Sentry if configured
    if settings.use_sentry:
        if context:
            with sentry_sdk.new_scope() as scope:
                for key, value in context.items():
                    scope.set_extra(key, value)
                sentry_sdk.capture_exception(exception)
        else:
            sentry_sdk.capture_exception(exception)
