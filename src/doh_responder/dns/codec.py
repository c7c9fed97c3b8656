"""DNS wire-format and base64url helpers for DoH payloads."""

import base64
import binascii

import dns.exception
import dns.flags
import dns.message

from doh_responder.utils.exceptions import ResponseEncodingError

DNS_MESSAGE_CONTENT_TYPE = "application/dns-message"


class InvalidMessageError(ValueError):
    """Bytes that do not form a usable DNS query."""


def b64url_decode(data: str) -> bytes:
    """
    Decode base64url text as used by the RFC 8484 ``dns`` parameter.

    Padding is optional. Characters outside the URL-safe alphabet raise
    InvalidMessageError instead of being silently discarded.
    """
    data = data.rstrip("=")

    # altchars maps these away, so validate=True alone would accept them
    if "+" in data or "/" in data:
        raise InvalidMessageError("invalid base64url payload: standard alphabet")

    padding = "=" * (-len(data) % 4)

    try:
        return base64.b64decode(data + padding, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidMessageError(f"invalid base64url payload: {e}") from e


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def parse_query(wire: bytes) -> dns.message.Message:
    """
    Parse a wire-format DNS query.

    Only the first question is ever used, but a message with no question at
    all cannot be answered and is rejected.
    """
    try:
        message = dns.message.from_wire(wire)
    except (dns.exception.DNSException, ValueError) as e:
        raise InvalidMessageError(f"unparsable DNS message: {e}") from e

    if message.flags & dns.flags.QR:
        raise InvalidMessageError("DNS message is a response, not a query")

    if not message.question:
        raise InvalidMessageError("DNS message has no question")

    return message


def encode_response(message: dns.message.Message) -> bytes:
    """Serialize a response message, raising ResponseEncodingError on failure."""
    try:
        return message.to_wire()
    except (dns.exception.DNSException, ValueError) as e:
        raise ResponseEncodingError(f"failed to serialize DNS response: {e}") from e
