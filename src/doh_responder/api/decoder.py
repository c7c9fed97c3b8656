"""Extract the DNS query carried by a DoH request (RFC 8484 GET and POST)."""

import logging

import dns.message
from fastapi import Request

from doh_responder.dns.codec import (
    InvalidMessageError,
    b64url_decode,
    b64url_encode,
    parse_query,
)
from doh_responder.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

DNS_QUERY_PARAM = "dns"

# Payloads a proxy or gateway would deliver as text rather than raw bytes
_TEXTUAL_SUBTYPES = frozenset(
    {"json", "xml", "x-www-form-urlencoded", "javascript", "x-yaml", "yaml"}
)


def is_textual_content_type(content_type: str) -> bool:
    """Check whether a Content-Type header denotes a text payload."""
    media_type = content_type.split(";", 1)[0].strip().lower()

    if not media_type or "/" not in media_type:
        return False

    main, sub = media_type.split("/", 1)

    if main == "text":
        return True

    return main == "application" and (
        sub in _TEXTUAL_SUBTYPES or sub.endswith(("+json", "+xml"))
    )


def message_from_get(request: Request) -> dns.message.Message:
    """Decode the base64url ``dns`` query string parameter."""
    logger.info(f"URI: {request.url}")

    encoded_payload = request.query_params.get(DNS_QUERY_PARAM)

    if encoded_payload is None:
        raise BadRequestError("Missing 'dns' query string parameter")

    try:
        payload = b64url_decode(encoded_payload)
    except InvalidMessageError as e:
        logger.info(f"Failed to base64 decode DNS message '{encoded_payload}': {e}")
        raise BadRequestError("Invalid DNS message") from e

    try:
        return parse_query(payload)
    except InvalidMessageError as e:
        logger.info(f"Failed to parse DNS message: {e}")
        raise BadRequestError("Invalid DNS message") from e


async def message_from_post(request: Request) -> dns.message.Message:
    """Decode the raw wire-format request body."""
    body = await request.body()

    if not body:
        raise BadRequestError("Empty body")

    if is_textual_content_type(request.headers.get("content-type", "")):
        raise BadRequestError("Text body")

    try:
        message = parse_query(body)
    except InvalidMessageError as e:
        logger.info(f"Failed to parse DNS message: {e}")
        raise BadRequestError("Invalid DNS message") from e

    # Lets a POSTed query be replayed as a GET
    logger.info(f"dns request message base64-URL encoded: {b64url_encode(body)}")

    return message


async def decode_request(request: Request) -> dns.message.Message:
    """
    Extract the DNS query from a GET or POST DoH request.

    Raises:
        BadRequestError: the request does not carry a usable DNS query
        ValueError: the method is neither GET nor POST
    """
    if request.method == "GET":
        return message_from_get(request)

    if request.method == "POST":
        return await message_from_post(request)

    raise ValueError(f"unsupported method: {request.method}")
