"""Glue between the CLI, the statistics aggregator and the renderers."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .config import StatsConfig
from .github.client import GitHubClient
from .models import StatsReport
from .renderer import generate_languages, generate_overview, render_json, render_report
from .stats import Stats

logger = logging.getLogger(__name__)


async def build_report(s: Stats) -> StatsReport:
    additions, deletions = await s.get_lines_changed()
    return StatsReport(
        name=await s.get_name(),
        stargazers=await s.get_stargazers(),
        forks=await s.get_forks(),
        total_contributions=await s.get_total_contributions(),
        repos=len(await s.get_repos()),
        additions=additions,
        deletions=deletions,
        views=await s.get_views(),
        languages=await s.get_languages(),
    )


async def run(
    config: StatsConfig,
    output_format: str = "svg",
    output_dir: Path = Path("generated"),
    template_dir: Path | None = None,
    output_file: str | None = None,
) -> None:
    """Collect statistics for ``config.username`` and render them."""
    logger.info(
        "Collecting stats for %s (excluded repos: %d, excluded languages: %d, ignore forks: %s)",
        config.username,
        len(config.exclude_repos),
        len(config.exclude_langs),
        config.ignore_forked_repos,
    )
    async with GitHubClient(
        config.username,
        config.access_token,
        max_connections=config.max_connections,
    ) as client:
        s = Stats(
            config.username,
            client,
            exclude_repos=config.exclude_repos,
            exclude_langs=config.exclude_langs,
            ignore_forked_repos=config.ignore_forked_repos,
        )

        if output_format == "svg":
            await asyncio.gather(
                generate_languages(s, template_dir=template_dir, output_dir=output_dir),
                generate_overview(s, template_dir=template_dir, output_dir=output_dir),
            )
            logger.info("Badges written to %s", output_dir)
            return

        report = await build_report(s)

    if output_format == "json":
        render_json(report, output_file=output_file)
    else:
        render_report(report, output_file=output_file)
