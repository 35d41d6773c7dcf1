"""Queries for searching lobbies by their properties and metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar

from gamerpc.types import U32_MAX

DEFAULT_LIMIT = 25


class LobbySearchComparison(IntEnum):
    """How a lobby's value is compared against the filter value."""

    LESS_THAN_OR_EQUAL = -2
    LESS_THAN = -1
    EQUAL = 0
    GREATER_THAN = 1
    GREATER_THAN_OR_EQUAL = 2
    NOT_EQUAL = 3


class LobbySearchDistance(IntEnum):
    """How far from the current user's region to search."""

    LOCAL = 0
    DEFAULT = 1
    EXTENDED = 2
    GLOBAL = 3


class LobbySearchCast(IntEnum):
    """How the search value is cast before comparison."""

    STRING = 1
    NUMBER = 2


@dataclass(frozen=True)
class SearchKey:
    """A lobby property or metadata key to filter or sort on."""

    key: str

    OWNER_ID: ClassVar[SearchKey]
    CAPACITY: ClassVar[SearchKey]
    SLOTS: ClassVar[SearchKey]

    @classmethod
    def metadata(cls, name: str) -> SearchKey:
        return cls(f"metadata.{name}")

    def __str__(self) -> str:
        return self.key


SearchKey.OWNER_ID = SearchKey("owner_id")
SearchKey.CAPACITY = SearchKey("capacity")
SearchKey.SLOTS = SearchKey("slots")


@dataclass(frozen=True)
class SearchValue:
    """A value to compare against, together with how it is cast."""

    kind: LobbySearchCast
    value: str

    @classmethod
    def string(cls, value: str) -> SearchValue:
        return cls(LobbySearchCast.STRING, str(value))

    @classmethod
    def number(cls, value: int) -> SearchValue:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"expected an integer, got {type(value).__name__}")
        return cls(LobbySearchCast.NUMBER, str(value))

    def cast(self) -> LobbySearchCast:
        return self.kind

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class _Filter:
    key: str
    comparison: LobbySearchComparison
    cast: LobbySearchCast
    value: str


@dataclass(frozen=True)
class _Sort:
    key: str
    cast: LobbySearchCast
    near_value: str


def _key(key: SearchKey | str) -> str:
    if isinstance(key, SearchKey):
        return key.key
    return SearchKey.metadata(key).key


class SearchQuery:
    """A lobby search; by default up to 25 lobbies in nearby regions.

    The builder methods modify the query and return it for chaining.
    """

    def __init__(self) -> None:
        self._filters: list[_Filter] = []
        self._sorts: list[_Sort] = []
        self._limit = DEFAULT_LIMIT
        self._distance = LobbySearchDistance.DEFAULT

    @property
    def max_results(self) -> int:
        return self._limit

    @property
    def search_distance(self) -> LobbySearchDistance:
        return self._distance

    def add_filter(
        self,
        key: SearchKey | str,
        comparison: LobbySearchComparison,
        value: SearchValue,
    ) -> SearchQuery:
        """Keep only lobbies whose ``key`` compares to ``value`` as given."""
        self._filters.append(
            _Filter(_key(key), LobbySearchComparison(comparison), value.cast(), value.value)
        )
        return self

    def add_sort(self, key: SearchKey | str, value: SearchValue) -> SearchQuery:
        """Sort lobbies by how near ``key``'s value is to ``value``."""
        self._sorts.append(_Sort(_key(key), value.cast(), value.value))
        return self

    def limit(self, max_results: int | None) -> SearchQuery:
        """Set the maximum number of results; None keeps the current limit."""
        if max_results is not None:
            if (
                isinstance(max_results, bool)
                or not isinstance(max_results, int)
                or not 1 <= max_results <= U32_MAX
            ):
                raise ValueError(f"limit must be a positive 32-bit integer, got {max_results!r}")
            self._limit = max_results
        return self

    def distance(self, distance: LobbySearchDistance) -> SearchQuery:
        """Restrict results to regions within ``distance`` of the user."""
        self._distance = LobbySearchDistance(distance)
        return self

    def to_json(self) -> dict[str, Any]:
        return {
            "filter": [
                {
                    "key": f.key,
                    "comparison": int(f.comparison),
                    "cast": int(f.cast),
                    "value": f.value,
                }
                for f in self._filters
            ],
            "sort": [
                {"key": s.key, "cast": int(s.cast), "near_value": s.near_value}
                for s in self._sorts
            ],
            "limit": self._limit,
            "distance": int(self._distance),
        }