"""DoH endpoint: decode, filter, resolve, synthesize."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

import dns.name
import dns.rcode
import dns.rdatatype
from fastapi import APIRouter, Depends, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from doh_responder.api.decoder import decode_request
from doh_responder.core.config import Settings, get_settings
from doh_responder.core.denylist import Denylist, get_denylist, strip_root
from doh_responder.dns.codec import DNS_MESSAGE_CONTENT_TYPE, encode_response
from doh_responder.dns.resolver import (
    Answered,
    MalformedName,
    NotFound,
    ResolutionOutcome,
    TransientFailure,
    get_resolver_client,
)
from doh_responder.dns.synthesizer import Blocked, synthesize_response
from doh_responder.utils.decorators import sentry_exception_catcher
from doh_responder.utils.exceptions import (
    BadRequestError,
    ServerError,
    capture_exception,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["doh"])

SUPPORTED_METHODS = ("GET", "POST")

DOH_PATHS = ("/dns-query", "/resolve")


class Resolver(Protocol):
    """Protocol for upstream resolution."""

    async def lookup(
        self,
        domain: Union[str, dns.name.Name],
        rdtype: Union[int, str],
        rdclass: Union[int, str] = ...,
    ) -> ResolutionOutcome: ...


@dataclass
class RouteDependencies:
    """Dependencies for route handlers."""

    settings: Settings = field(default_factory=get_settings)
    denylist: Denylist = field(default_factory=get_denylist)
    resolver: Resolver = field(default_factory=get_resolver_client)


# Global dependencies instance (can be overridden for testing)
_dependencies: Optional[RouteDependencies] = None


def get_dependencies() -> RouteDependencies:
    """Get the current route dependencies."""
    global _dependencies  # pylint: disable=global-statement
    if _dependencies is None:
        _dependencies = RouteDependencies()
    return _dependencies


def set_dependencies(deps: RouteDependencies) -> None:
    """Set custom dependencies (useful for testing)."""
    global _dependencies  # pylint: disable=global-statement
    _dependencies = deps


def reset_dependencies() -> None:
    """Reset dependencies to default (useful for testing)."""
    global _dependencies  # pylint: disable=global-statement
    _dependencies = None


def client_ip(request: Request, settings: Settings) -> str:
    """Best-effort client address, for logging only."""
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",", 1)[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host

    return "Unknown"


def _internal_error() -> Response:
    return Response(status_code=500)


async def doh_http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    """
    Answer unsupported methods on the DoH paths with an empty 405.

    Any other HTTP error keeps FastAPI's default JSON handling.
    """
    if exc.status_code == 405 and request.url.path in DOH_PATHS:
        ip = client_ip(request, get_settings())
        logger.info(f"Method {request.method} not allowed, Client IP: {ip}")
        return Response(
            status_code=405, headers={"Allow": ", ".join(SUPPORTED_METHODS)}
        )

    return await http_exception_handler(request, exc)


@router.api_route(DOH_PATHS[0], methods=list(SUPPORTED_METHODS))
@router.api_route(DOH_PATHS[1], methods=list(SUPPORTED_METHODS))
@sentry_exception_catcher
async def resolve(
    request: Request,
    deps: RouteDependencies = Depends(get_dependencies),
) -> Response:
    """RFC 8484 DNS-over-HTTPS endpoint."""
    ip = client_ip(request, deps.settings)
    logger.info(f"Received {request.method} request from Client IP: {ip}")

    try:
        query = await decode_request(request)
    except BadRequestError as e:
        logger.info(f"Bad request: {e.reason}")
        return PlainTextResponse(f"Bad request: {e.reason}", status_code=400)

    # Multiple questions are legal on the wire but nobody answers them
    question = query.question[0]
    domain = question.name.to_text()
    qtype = dns.rdatatype.to_text(question.rdtype)

    outcome: Union[Blocked, ResolutionOutcome]

    if deps.denylist.contains(strip_root(domain)):
        logger.info(f"Domain '{domain}' matches denylist, returning NXDomain")
        outcome = Blocked()
    else:
        logger.info(
            f"Domain '{domain}' ({qtype}) does not match denylist, proxying query..."
        )
        outcome = await deps.resolver.lookup(domain, question.rdtype, question.rdclass)

        if isinstance(outcome, TransientFailure):
            capture_exception(
                outcome.error,
                {"domain": domain, "qtype": qtype, "client_ip": ip},
            )
            return _internal_error()

        if isinstance(outcome, NotFound):
            logger.info(f"No records for '{domain}' ({qtype}), returning NXDomain")
        elif isinstance(outcome, MalformedName):
            logger.info(f"Invalid domain '{domain}', returning NXDomain")

    try:
        response = synthesize_response(query, outcome)
        body = encode_response(response)
    except ServerError as e:
        capture_exception(e, {"domain": domain, "qtype": qtype, "client_ip": ip})
        return _internal_error()

    answers = len(outcome.records) if isinstance(outcome, Answered) else 0
    logger.info(
        f"Done: '{domain}' ({qtype}) -> {dns.rcode.to_text(response.rcode())}, "
        f"{answers} answer RRsets"
    )

    return Response(content=body, media_type=DNS_MESSAGE_CONTENT_TYPE)
