"""
Per-request choice between the cache-backed and the direct usecase.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

U = TypeVar("U")

TRUTHY_VALUES = ("true", "1")


def parse_no_cache(value: Optional[str]) -> bool:
    """``no_cache`` is set only by the exact strings "true" or "1"."""
    return value in TRUTHY_VALUES


@dataclass(frozen=True)
class UsecasePair(Generic[U]):
    """The same usecase wired twice: through the cache and straight to the data source."""

    cached: U
    direct: U

    def select(self, no_cache: bool) -> U:
        """Usecase for a read. Writes must always use ``cached`` so invalidation runs."""
        return self.direct if no_cache else self.cached
