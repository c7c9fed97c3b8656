"""Static domain denylist loaded once from the bundled hosts file."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

from doh_responder.core.config import get_settings


logger = logging.getLogger(__name__)


def strip_root(name: str) -> str:
    """Remove a single trailing root-label dot from a wire-format name."""
    if name.endswith("."):
        return name[:-1]

    return name


def _normalize(name: str) -> str:
    return strip_root(name.strip()).lower()


class Denylist:
    """
    Immutable set of blocked domain names.

    Names are stored lower-cased and without the trailing root dot, so a
    lookup has to strip the root dot from wire-format names first (see
    strip_root). Subdomains of a listed name are not blocked.
    """

    __slots__ = ("_domains", "_source")

    def __init__(self, domains: Iterable[str] = (), source: Optional[str] = None):
        self._domains: FrozenSet[str] = frozenset(
            _normalize(d) for d in domains if d.strip()
        )
        self._source = source

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Denylist":
        """
        Build a denylist from a newline-delimited file of domain names.

        A missing file yields an empty denylist and a warning rather than an
        error, so the responder still starts and proxies everything.
        """
        path = Path(path)

        try:
            with path.open(encoding="utf-8") as f:
                denylist = cls(f, source=str(path))
        except FileNotFoundError:
            logger.warning(f"Denylist file {path} not found, blocking nothing")
            return cls(source=None)

        logger.info(f"Loaded {len(denylist)} denylisted domains from {path}")

        return denylist

    @property
    def domains(self) -> FrozenSet[str]:
        """Return the blocked domains."""
        return self._domains

    @property
    def source(self) -> Optional[str]:
        """Path the denylist was read from, None when nothing was loaded."""
        return self._source

    def contains(self, domain: str) -> bool:
        """Check whether a domain (without trailing root dot) is blocked."""
        return domain.lower() in self._domains

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and self.contains(domain)

    def __len__(self) -> int:
        return len(self._domains)

    def __repr__(self) -> str:
        return f"Denylist(size={len(self)}, source={self._source!r})"


@lru_cache
def get_denylist() -> Denylist:
    """Get the process-wide denylist, loading it on first use."""
    return Denylist.from_file(get_settings().hosts_file)
