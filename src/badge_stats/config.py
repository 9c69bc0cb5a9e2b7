"""Configuration for a badge-stats run."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


class ConfigError(ValueError):
    """Raised when required settings are missing or invalid."""


def parse_name_list(raw: str | None) -> set[str]:
    """Split a comma-separated list, dropping blanks."""
    if not raw:
        return set()
    return {item.strip() for item in raw.split(",") if item.strip()}


def parse_flag(raw: str | None) -> bool:
    """Any non-empty value other than ``false`` turns the flag on."""
    if raw is None:
        return False
    value = raw.strip()
    return bool(value) and value.lower() != "false"


@dataclass
class StatsConfig:
    """Settings for collecting one user's statistics.

    Attributes:
        username: GitHub login whose statistics are collected.
        access_token: Personal access token used for both APIs.
        exclude_repos: Repository names (``owner/repo``) to leave out.
        exclude_langs: Language names to leave out, matched case-insensitively.
        ignore_forked_repos: Skip repositories only reached through contributions.
        max_connections: Maximum number of requests in flight.
    """

    username: str
    access_token: str
    exclude_repos: Iterable[str] = field(default_factory=set)
    exclude_langs: Iterable[str] = field(default_factory=set)
    ignore_forked_repos: bool = False
    max_connections: int = 10

    def __post_init__(self):
        if not self.access_token or not self.access_token.strip():
            raise ConfigError("An access token is required")
        if not self.username or not self.username.strip():
            raise ConfigError("A GitHub username is required")
        if self.max_connections < 1:
            raise ConfigError("max_connections must be at least 1")
        self.exclude_repos = set(self.exclude_repos or ())
        self.exclude_langs = set(self.exclude_langs or ())
