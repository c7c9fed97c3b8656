"""Upstream DNS resolution against the host's configured recursive resolver."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol, Tuple, Union

import dns.asyncresolver
import dns.exception
import dns.name
import dns.rdataclass
import dns.resolver
import dns.rrset

from doh_responder.core.config import get_settings

logger = logging.getLogger(__name__)

# The name exists nowhere or has no data of the queried type
NOT_FOUND_ERRORS = (
    dns.resolver.NXDOMAIN,
    dns.resolver.NoAnswer,
)

# The question itself cannot be resolved as asked
MALFORMED_NAME_ERRORS = (
    dns.exception.SyntaxError,
    dns.name.NameTooLong,
    dns.resolver.YXDOMAIN,
    dns.resolver.NoMetaqueries,
)


@dataclass(frozen=True)
class Answered:
    """Upstream returned records; answer section in upstream order."""

    records: Tuple[dns.rrset.RRset, ...]


@dataclass(frozen=True)
class NotFound:
    """No records for this name and type."""


@dataclass(frozen=True)
class MalformedName:
    """The queried name (or type) is not resolvable as written."""


@dataclass(frozen=True)
class TransientFailure:
    """Timeout, unreachable resolver or any other unexpected error."""

    error: Exception


ResolutionOutcome = Union[Answered, NotFound, MalformedName, TransientFailure]


class AsyncResolver(Protocol):
    """The part of dns.asyncresolver.Resolver used here."""

    async def resolve(self, qname, rdtype, rdclass, **kwargs): ...


class ResolverClient:
    """
    Single-attempt upstream lookups with outcome classification.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(self, resolver: AsyncResolver, timeout: float):
        self._resolver = resolver
        self._timeout = timeout

    @classmethod
    def from_system_conf(cls, timeout: float) -> "ResolverClient":
        """Build a client for the resolvers in the system configuration."""
        resolver = dns.asyncresolver.Resolver(configure=True)
        # Caching is the upstream resolver's job
        resolver.cache = None
        resolver.retry_servfail = False
        nameservers = ", ".join(str(ns) for ns in resolver.nameservers)
        logger.info(f"Upstream nameservers: {nameservers}")

        return cls(resolver, timeout)

    @property
    def timeout(self) -> float:
        """Upper bound for a single lookup, in seconds."""
        return self._timeout

    async def lookup(
        self,
        domain: Union[str, dns.name.Name],
        rdtype: Union[int, str],
        rdclass: Union[int, str] = dns.rdataclass.IN,
    ) -> ResolutionOutcome:
        """
        Resolve domain/rdtype upstream exactly once.

        Never raises: every failure is folded into the returned outcome.
        """
        try:
            qname = dns.name.from_text(domain) if isinstance(domain, str) else domain
            answer = await self._resolver.resolve(
                qname,
                rdtype,
                rdclass,
                raise_on_no_answer=True,
                lifetime=self._timeout,
                search=False,
            )
        except NOT_FOUND_ERRORS:
            return NotFound()
        except MALFORMED_NAME_ERRORS as e:
            logger.info(f"Invalid domain {domain}: {e}")
            return MalformedName()
        except Exception as e:  # pylint: disable=broad-exception-caught
            return TransientFailure(e)

        return Answered(tuple(answer.response.answer))


@lru_cache
def get_resolver_client() -> ResolverClient:
    """Get the process-wide resolver client."""
    return ResolverClient.from_system_conf(get_settings().resolver_timeout)
