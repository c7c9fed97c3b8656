"""FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from doh_responder.api.healthcheck import router as healthcheck_router
from doh_responder.api.routes import (
    RouteDependencies,
    doh_http_exception_handler,
    router,
    set_dependencies,
)
from doh_responder.core.config import get_settings
from doh_responder.core.denylist import get_denylist
from doh_responder.dns.resolver import get_resolver_client
from doh_responder.utils.decorators import init_sentry

# Configure logging for the application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("doh_responder").setLevel(get_settings().log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler."""
    # Startup: load the denylist and resolver once, before the first request
    sentry_enabled = init_sentry()
    settings = get_settings()
    denylist = get_denylist()
    resolver = get_resolver_client()

    set_dependencies(
        RouteDependencies(settings=settings, denylist=denylist, resolver=resolver)
    )

    logger.info("DoH responder starting...")
    logger.info(f"Denylist: {len(denylist)} domains from {denylist.source or '-'}")
    logger.info(f"Resolver timeout: {resolver.timeout}s")
    logger.info(f"Sentry: {'enabled' if sentry_enabled else 'disabled'}")

    yield

    logger.info("DoH responder shutting down...")


app = FastAPI(
    title="DoH Responder",
    description="DNS-over-HTTPS responder with a static denylist",
    version="1.0.0",
    lifespan=lifespan,
)

# Include API routes
app.include_router(router)
app.include_router(healthcheck_router)

# Unsupported methods on the DoH paths get an empty 405
app.add_exception_handler(StarletteHTTPException, doh_http_exception_handler)
