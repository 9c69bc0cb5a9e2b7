"""Command line entry point."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import ConfigError, StatsConfig, parse_flag, parse_name_list


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # Request lines from httpx are noise at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.command()
@click.version_option(version=__version__, prog_name="badge-stats")
@click.option("--token", envvar="ACCESS_TOKEN", default=None, help="GitHub personal access token (env: ACCESS_TOKEN).")
@click.option("--user", envvar="GITHUB_ACTOR", default=None, help="GitHub username (env: GITHUB_ACTOR).")
@click.option("--exclude-repos", envvar="EXCLUDED", default=None,
              help="Comma-separated owner/repo names to leave out (env: EXCLUDED).")
@click.option("--exclude-langs", envvar="EXCLUDED_LANGS", default=None,
              help="Comma-separated languages to leave out (env: EXCLUDED_LANGS).")
@click.option("--exclude-forked-repos", envvar="EXCLUDE_FORKED_REPOS", default=None,
              help="Any value except 'false' skips contributed-to repos (env: EXCLUDE_FORKED_REPOS).")
@click.option("--max-connections", default=10, show_default=True, type=click.IntRange(min=1),
              help="Maximum concurrent API requests.")
@click.option("--format", "output_format", default="svg", show_default=True,
              type=click.Choice(["svg", "table", "json"]), help="Output format.")
@click.option("--output-dir", default="generated", show_default=True,
              type=click.Path(file_okay=False, path_type=Path), help="Directory for SVG badges.")
@click.option("--template-dir", default=None,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Directory holding overview.svg and languages.svg.")
@click.option("--output", "-o", "output_file", default=None, help="Write table/JSON output to a file.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(
    token: str | None,
    user: str | None,
    exclude_repos: str | None,
    exclude_langs: str | None,
    exclude_forked_repos: str | None,
    max_connections: int,
    output_format: str,
    output_dir: Path,
    template_dir: Path | None,
    output_file: str | None,
    verbose: bool,
) -> None:
    """Generate GitHub statistics badges for a user."""
    try:
        config = StatsConfig(
            username=user or "",
            access_token=token or "",
            exclude_repos=parse_name_list(exclude_repos),
            exclude_langs=parse_name_list(exclude_langs),
            ignore_forked_repos=parse_flag(exclude_forked_repos),
            max_connections=max_connections,
        )
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc

    _setup_logging(verbose)

    from .orchestrator import run

    asyncio.run(run(
        config,
        output_format=output_format,
        output_dir=output_dir,
        template_dir=template_dir,
        output_file=output_file,
    ))


if __name__ == "__main__":
    main()
