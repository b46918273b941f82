"""
Sort resolution.

Maps a requested sort onto an allow-listed ordering and appends tiebreakers
so the final ordering is total.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from scopedsearch.core.dsl import SortClause, SortDirection, SortKey
from scopedsearch.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DIRECTION = SortDirection.DESC


@dataclass(frozen=True)
class ResolvedSort:
    """
    A total ordering.

    ``primary`` is always allow-listed; ``keys`` starts with it and ends
    with the primary key.
    """

    primary: SortKey
    keys: tuple[SortKey, ...]
    substituted: bool = False

    @property
    def fields(self) -> list[str]:
        return [key.field for key in self.keys]


class SortResolver:
    def __init__(
        self,
        allowed: Iterable[str],
        default: SortClause,
        primary_key: str,
        tiebreakers: Sequence[str] = ("created_at",),
    ) -> None:
        self.allowed = frozenset(allowed)
        self.default = default
        self.primary_key = primary_key
        self.tiebreakers = tuple(tiebreakers)

    def resolve(self, requested: SortClause | None) -> ResolvedSort:
        """
        Resolve the requested clause.

        A missing or disallowed field falls back to the default silently.
        Tiebreakers follow the primary direction.
        """
        substituted = False
        if requested is not None and requested.field in self.allowed:
            primary = SortKey(requested.field, requested.direction or DEFAULT_DIRECTION)
        else:
            if requested is not None:
                substituted = True
                logger.debug(
                    "Sort field not allowed, using default",
                    requested_sort=requested.field,
                    default_sort=self.default.field,
                )
            primary = SortKey(self.default.field, self.default.direction or DEFAULT_DIRECTION)

        keys = [primary]
        # The primary key is unique, so nothing after it changes the order
        if primary.field != self.primary_key:
            seen = {primary.field, self.primary_key}
            for name in self.tiebreakers:
                if name not in seen:
                    seen.add(name)
                    keys.append(SortKey(name, primary.direction))
            keys.append(SortKey(self.primary_key, primary.direction))

        return ResolvedSort(primary=primary, keys=tuple(keys), substituted=substituted)
