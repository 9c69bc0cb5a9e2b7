"""Aggregated GitHub statistics for a single user.

Each accessor computes its value on first use and caches it for the lifetime
of the ``Stats`` instance.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from .github import queries
from .github.client import GitHubClient
from .models import LanguageStats, Memo, RepositoryPage, as_dict, as_int

logger = logging.getLogger(__name__)


class StatsUnavailableError(RuntimeError):
    """A required statistic is still missing after a full aggregation pass."""


class Stats:
    """Repository, language and contribution statistics for ``username``."""

    def __init__(
        self,
        username: str,
        client: GitHubClient,
        exclude_repos: Iterable[str] | None = None,
        exclude_langs: Iterable[str] | None = None,
        ignore_forked_repos: bool = False,
    ):
        self.username = username
        self.client = client
        self.exclude_repos = frozenset(exclude_repos or ())
        self.exclude_langs = frozenset(lang.lower() for lang in (exclude_langs or ()))
        self.ignore_forked_repos = ignore_forked_repos

        self._name: Memo[str] = Memo()
        self._stargazers: Memo[int] = Memo()
        self._forks: Memo[int] = Memo()
        self._total_contributions: Memo[int] = Memo()
        self._languages: Memo[dict[str, LanguageStats]] = Memo()
        self._repos: Memo[set[str]] = Memo()
        self._lines_changed: Memo[tuple[int, int]] = Memo()
        self._views: Memo[int] = Memo()

    async def to_str(self) -> str:
        languages = await self.get_languages_proportional()
        formatted_languages = "\n  - ".join(f"{k}: {v:0.4f}%" for k, v in languages.items())
        additions, deletions = await self.get_lines_changed()
        return f"""Name: {await self.get_name()}
Stargazers: {await self.get_stargazers():,}
Forks: {await self.get_forks():,}
All-time contributions: {await self.get_total_contributions():,}
Repositories with contributions: {len(await self.get_repos()):,}
Lines of code added: {additions:,}
Lines of code deleted: {deletions:,}
Lines of code changed: {additions + deletions:,}
Project page views: {await self.get_views():,}
Languages:
  - {formatted_languages}"""

    async def get_stats(self) -> None:
        """Page through owned and contributed-to repositories and total them up."""
        name: str | None = None
        stargazers = 0
        forks = 0
        languages: dict[str, LanguageStats] = {}
        repos: set[str] = set()

        include_contributed = not self.ignore_forked_repos
        next_owned: str | None = None
        next_contrib: str | None = None
        pages = 0

        while True:
            raw = await self.client.query(
                queries.repos_overview(next_owned, next_contrib, include_contributed)
            )
            pages += 1
            viewer = as_dict(as_dict(raw.get("data")).get("viewer"))
            name = viewer.get("name") or viewer.get("login") or name

            owned = RepositoryPage.from_payload(viewer.get("repositories"))
            contrib = RepositoryPage.from_payload(viewer.get("repositoriesContributedTo"))

            page_repos = list(owned.nodes)
            if include_contributed:
                page_repos.extend(contrib.nodes)

            for repo in page_repos:
                if repo.name_with_owner in repos or repo.name_with_owner in self.exclude_repos:
                    continue
                repos.add(repo.name_with_owner)
                stargazers += repo.stargazers
                forks += repo.fork_count

                for lang in repo.languages:
                    if lang.name.lower() in self.exclude_langs:
                        continue
                    if lang.name in languages:
                        languages[lang.name].size += lang.size
                        languages[lang.name].occurrences += 1
                    else:
                        languages[lang.name] = LanguageStats(
                            size=lang.size, occurrences=1, color=lang.color
                        )

            more_owned = owned.page_info.has_next_page
            more_contrib = include_contributed and contrib.page_info.has_next_page
            if not (more_owned or more_contrib):
                break
            next_owned = owned.page_info.end_cursor or next_owned
            next_contrib = contrib.page_info.end_cursor or next_contrib

        total_size = sum(v.size for v in languages.values())
        for v in languages.values():
            v.prop = 100 * (v.size / total_size) if total_size else 0.0

        logger.debug(
            "Aggregated %d repositories and %d languages over %d page(s)",
            len(repos),
            len(languages),
            pages,
        )
        if isinstance(name, str) and name:
            self._name.set(name)
        self._stargazers.set(stargazers)
        self._forks.set(forks)
        self._languages.set(languages)
        self._repos.set(repos)

    async def _from_stats(self, memo: Memo, label: str) -> Any:
        # The repo set is written by every completed pass.
        if not memo.is_set and not self._repos.is_set:
            await self.get_stats()
        if not memo.is_set:
            raise StatsUnavailableError(f"{label} is unavailable after collecting stats")
        return memo.value

    async def get_name(self) -> str:
        return await self._from_stats(self._name, "Name")

    async def get_stargazers(self) -> int:
        return await self._from_stats(self._stargazers, "Stargazers")

    async def get_forks(self) -> int:
        return await self._from_stats(self._forks, "Forks")

    async def get_languages(self) -> dict[str, LanguageStats]:
        return await self._from_stats(self._languages, "Languages")

    async def get_languages_proportional(self) -> dict[str, float]:
        languages = await self.get_languages()
        return {k: v.prop for k, v in languages.items()}

    async def get_repos(self) -> set[str]:
        return await self._from_stats(self._repos, "Repos")

    async def get_total_contributions(self) -> int:
        """Sum of contributions over every year the user has been active."""
        if self._total_contributions.is_set:
            return self._total_contributions.value

        years_response = await self.client.query(queries.contrib_years())
        collection = as_dict(
            as_dict(as_dict(years_response.get("data")).get("viewer")).get(
                "contributionsCollection"
            )
        )
        raw_years = collection.get("contributionYears")
        years = [
            y for y in (raw_years if isinstance(raw_years, list) else [])
            if isinstance(y, int) and not isinstance(y, bool)
        ]

        total = 0
        if years:
            by_year_response = await self.client.query(queries.all_contribs(years))
            by_year = as_dict(as_dict(by_year_response.get("data")).get("viewer"))
            for year in by_year.values():
                calendar = as_dict(as_dict(year).get("contributionCalendar"))
                total += as_int(calendar.get("totalContributions"))

        return self._total_contributions.set(total)

    async def _contributor_lines(self, repo: str) -> tuple[int, int]:
        response = await self.client.query_rest(f"/repos/{repo}/stats/contributors")
        contributors = response if isinstance(response, list) else [response]
        username = self.username.casefold()
        additions = 0
        deletions = 0
        for author_obj in contributors:
            # Malformed entries from the API are skipped
            if not isinstance(author_obj, dict) or not isinstance(author_obj.get("author"), dict):
                continue
            login = author_obj["author"].get("login")
            if not isinstance(login, str) or login.casefold() != username:
                continue
            weeks = author_obj.get("weeks")
            for week in weeks if isinstance(weeks, list) else []:
                week = as_dict(week)
                additions += as_int(week.get("a"))
                deletions += as_int(week.get("d"))
        return additions, deletions

    async def get_lines_changed(self) -> tuple[int, int]:
        """Total ``(additions, deletions)`` authored by the user across repositories."""
        if self._lines_changed.is_set:
            return self._lines_changed.value

        repos = sorted(await self.get_repos())
        results = await asyncio.gather(*(self._contributor_lines(repo) for repo in repos))
        additions = sum(a for a, _ in results)
        deletions = sum(d for _, d in results)
        return self._lines_changed.set((additions, deletions))

    async def _repo_views(self, repo: str) -> int:
        response = await self.client.query_rest(f"/repos/{repo}/traffic/views")
        if isinstance(response, list):
            response = response[0] if response else {}
        views = as_dict(response).get("views")
        return sum(
            as_int(as_dict(view).get("count"))
            for view in (views if isinstance(views, list) else [])
        )

    async def get_views(self) -> int:
        """Total page views over the last 14 days across repositories."""
        if self._views.is_set:
            return self._views.value

        repos = sorted(await self.get_repos())
        counts = await asyncio.gather(*(self._repo_views(repo) for repo in repos))
        return self._views.set(sum(counts))
