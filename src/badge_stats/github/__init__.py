"""GitHub API access."""

from badge_stats.github.client import GitHubClient

__all__ = ["GitHubClient"]
