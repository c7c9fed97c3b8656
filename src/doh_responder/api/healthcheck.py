"""Health check API endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from doh_responder.api.routes import RouteDependencies, get_dependencies

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    denylist_loaded: bool
    denylist_size: int
    resolver_timeout: float


@router.get("/healthcheck", response_model=HealthResponse)
async def health_check(
    deps: RouteDependencies = Depends(get_dependencies),
) -> HealthResponse:
    """
    Health check endpoint (no auth required).

    Reports the denylist state without doing any DNS work.
    """
    return HealthResponse(
        status="ok",
        denylist_loaded=deps.denylist.source is not None,
        denylist_size=len(deps.denylist),
        resolver_timeout=deps.settings.resolver_timeout,
    )
