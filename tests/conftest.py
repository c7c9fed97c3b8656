"""Pytest configuration and fixtures."""

# pylint: disable=redefined-outer-name

import os
from dataclasses import dataclass, field
from typing import Optional

import dns.message
import dns.rdataclass
import dns.rdatatype
import pytest

from doh_responder.core.config import Settings, get_settings
from doh_responder.dns.resolver import NotFound, ResolutionOutcome

# Set test environment variables before importing application code
os.environ.setdefault("HOSTS_FILE", "tests/missing-hosts")
os.environ.setdefault("RESOLVER_TIMEOUT", "1.0")
os.environ.pop("SENTRY_DSN", None)


@dataclass
class FakeResolverClient:
    """Fake resolver client returning predefined outcomes per (name, type)."""

    outcomes: dict[tuple[str, str], ResolutionOutcome] = field(default_factory=dict)
    default: ResolutionOutcome = field(default_factory=NotFound)
    calls: list[tuple[str, str, str]] = field(default_factory=list)
    timeout: float = 1.0

    async def lookup(self, domain, rdtype, rdclass=dns.rdataclass.IN):
        rdtype_text = dns.rdatatype.to_text(dns.rdatatype.RdataType.make(rdtype))
        rdclass_text = dns.rdataclass.to_text(dns.rdataclass.RdataClass.make(rdclass))
        self.calls.append((str(domain), rdtype_text, rdclass_text))
        return self.outcomes.get((str(domain), rdtype_text), self.default)


def make_query(
    name: str = "example.com.",
    rdtype: str = "A",
    query_id: Optional[int] = None,
) -> dns.message.Message:
    """Build a wire-ready query with an optional fixed transaction id."""
    query = dns.message.make_query(name, rdtype)

    if query_id is not None:
        query.id = query_id

    return query


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are read from the environment per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings():
    """Provide test settings with predictable values."""
    return Settings(
        hosts_file="tests/missing-hosts",
        resolver_timeout=1.0,
        trust_forwarded_for=True,
        sentry_dsn=None,
        _env_file=None,
    )


@pytest.fixture
def fake_resolver():
    """Create a fake resolver client."""
    return FakeResolverClient()
