"""Build DoH response messages from the filter and resolver outcome."""

from dataclasses import dataclass
from typing import Union

import dns.message
import dns.rcode

from doh_responder.dns.resolver import (
    Answered,
    MalformedName,
    NotFound,
    TransientFailure,
)


@dataclass(frozen=True)
class Blocked:
    """The queried domain is on the denylist."""


SynthesisOutcome = Union[Blocked, Answered, NotFound, MalformedName]


def synthesize_response(
    query: dns.message.Message, outcome: SynthesisOutcome
) -> dns.message.Message:
    """
    Build the response to query for a filter or resolver outcome.

    The response carries the query id and first question, the response
    flag and recursion-available. Blocked, NotFound and MalformedName all
    produce the same NXDOMAIN with an empty answer section, so a client
    cannot tell a denylist hit from a name that does not exist.
    """
    if isinstance(outcome, TransientFailure):
        raise ValueError("transient resolver failures are not answered in DNS")

    response = dns.message.make_response(query, recursion_available=True)
    # Extra questions are ignored, not echoed
    response.question = response.question[:1]

    if isinstance(outcome, Answered):
        response.set_rcode(dns.rcode.NOERROR)
        for rrset in outcome.records:
            response.answer.append(rrset)
    elif isinstance(outcome, (Blocked, NotFound, MalformedName)):
        response.set_rcode(dns.rcode.NXDOMAIN)
    else:
        raise TypeError(f"unexpected outcome: {outcome!r}")

    return response
