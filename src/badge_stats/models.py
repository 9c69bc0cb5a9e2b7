"""Data models for badge-stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    return value if isinstance(value, int) else 0


def as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


@dataclass
class PageInfo:
    has_next_page: bool = False
    end_cursor: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> PageInfo:
        data = as_dict(payload)
        return cls(
            has_next_page=data.get("hasNextPage") is True,
            end_cursor=as_str(data.get("endCursor")),
        )


@dataclass
class LanguageEdge:
    name: str
    size: int
    color: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> LanguageEdge:
        data = as_dict(payload)
        node = as_dict(data.get("node"))
        return cls(
            name=as_str(node.get("name")) or "Other",
            size=as_int(data.get("size")),
            color=as_str(node.get("color")),
        )


@dataclass
class Repository:
    name_with_owner: str
    stargazers: int = 0
    fork_count: int = 0
    languages: list[LanguageEdge] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> Repository | None:
        """Build a repository from a page node, or None when it has no name."""
        data = as_dict(payload)
        name = as_str(data.get("nameWithOwner"))
        if name is None:
            return None
        edges = as_dict(data.get("languages")).get("edges")
        return cls(
            name_with_owner=name,
            stargazers=as_int(as_dict(data.get("stargazers")).get("totalCount")),
            fork_count=as_int(data.get("forkCount")),
            languages=[
                LanguageEdge.from_payload(edge)
                for edge in (edges if isinstance(edges, list) else [])
                if isinstance(edge, dict)
            ],
        )


@dataclass
class RepositoryPage:
    page_info: PageInfo = field(default_factory=PageInfo)
    nodes: list[Repository] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> RepositoryPage:
        data = as_dict(payload)
        nodes = data.get("nodes")
        repos = [
            Repository.from_payload(node)
            for node in (nodes if isinstance(nodes, list) else [])
        ]
        return cls(
            page_info=PageInfo.from_payload(data.get("pageInfo")),
            nodes=[r for r in repos if r is not None],
        )


@dataclass
class LanguageStats:
    size: int
    occurrences: int
    color: str | None = None
    prop: float = 0.0


class FieldState(Enum):
    UNSET = "unset"
    SET = "set"


class Memo(Generic[T]):
    """Write-once cache slot with an explicit state tag.

    Keeps "computed to an empty value" apart from "not computed yet".
    """

    __slots__ = ("_state", "_value")

    def __init__(self) -> None:
        self._state = FieldState.UNSET
        self._value: T | None = None

    @property
    def state(self) -> FieldState:
        return self._state

    @property
    def is_set(self) -> bool:
        return self._state is FieldState.SET

    @property
    def value(self) -> T:
        if self._state is FieldState.UNSET:
            raise LookupError("value has not been computed")
        return self._value  # type: ignore[return-value]

    def set(self, value: T) -> T:
        self._value = value
        self._state = FieldState.SET
        return value


@dataclass
class StatsReport:
    name: str
    stargazers: int
    forks: int
    total_contributions: int
    repos: int
    additions: int
    deletions: int
    views: int
    languages: dict[str, LanguageStats] = field(default_factory=dict)

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions
