"""SVG badge generation plus rich/JSON report rendering."""

from __future__ import annotations

import io
import json
from dataclasses import asdict
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import StatsReport
from .stats import Stats

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
_LANG_DELAY_MS = 150


def _format_number(n: int) -> str:
    return f"{n:,}"


def _make_bar(percentage: float, width: int = 20) -> str:
    filled = round(percentage / 100 * width)
    return "█" * filled + "░" * (width - filled)


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def _substitute(template: str, values: dict[str, str]) -> str:
    for key, value in values.items():
        template = template.replace(f"{{{{ {key} }}}}", value)
    return template


def _read_template(template_dir: Path | None, name: str) -> str:
    return ((template_dir or DEFAULT_TEMPLATE_DIR) / name).read_text(encoding="utf-8")


def _write_badge(output_dir: Path, name: str, content: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / name
    path.write_text(content, encoding="utf-8")
    return path


async def generate_overview(
    s: Stats,
    template_dir: Path | None = None,
    output_dir: Path = Path("generated"),
) -> Path:
    """Fill the overview badge with summary statistics."""
    output = _read_template(template_dir, "overview.svg")
    additions, deletions = await s.get_lines_changed()
    output = _substitute(
        output,
        {
            "name": await s.get_name(),
            "stars": _format_number(await s.get_stargazers()),
            "forks": _format_number(await s.get_forks()),
            "contributions": _format_number(await s.get_total_contributions()),
            "lines_changed": _format_number(additions + deletions),
            "views": _format_number(await s.get_views()),
            "repos": _format_number(len(await s.get_repos())),
        },
    )
    return _write_badge(Path(output_dir), "overview.svg", output)


async def generate_languages(
    s: Stats,
    template_dir: Path | None = None,
    output_dir: Path = Path("generated"),
) -> Path:
    """Fill the languages badge with a progress bar and a list of languages."""
    output = _read_template(template_dir, "languages.svg")
    languages = await s.get_languages()
    sorted_languages = sorted(languages.items(), key=lambda item: item[1].size, reverse=True)

    progress = ""
    lang_list = ""
    for i, (lang, data) in enumerate(sorted_languages):
        color = data.color or "#000000"
        progress += (
            f'<span style="background-color: {color};'
            f'width: {data.prop:0.3f}%;" class="progress-item"></span>'
        )
        lang_list += f"""
<li style="animation-delay: {i * _LANG_DELAY_MS}ms;">
<svg xmlns="http://www.w3.org/2000/svg" class="octicon" style="fill:{color};"
viewBox="0 0 16 16" version="1.1" width="16" height="16"><path
fill-rule="evenodd" d="M8 4a4 4 0 100 8 4 4 0 000-8z"></path></svg>
<span class="lang">{lang}</span>
<span class="percent">{data.prop:0.2f}%</span>
</li>

"""

    output = _substitute(output, {"progress": progress, "lang_list": lang_list})
    return _write_badge(Path(output_dir), "languages.svg", output)


def render_report(report: StatsReport, output_file: str | None = None) -> None:
    """Render a StatsReport to the terminal using rich."""
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()

    console.print(Panel(
        Text(f"badge-stats: {report.name}", justify="center"),
        style="bold cyan",
    ))
    console.print()

    console.print("[bold]Summary[/bold]")
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row("Stargazers", _format_number(report.stargazers))
    summary.add_row("Forks", _format_number(report.forks))
    summary.add_row("All-time contributions", _format_number(report.total_contributions))
    summary.add_row("Repositories with contributions", _format_number(report.repos))
    summary.add_row("Lines added", _format_number(report.additions))
    summary.add_row("Lines deleted", _format_number(report.deletions))
    summary.add_row("Lines changed", _format_number(report.lines_changed))
    summary.add_row("Project page views", _format_number(report.views))
    console.print(summary)
    console.print()

    if report.languages:
        console.print("[bold]Language Distribution[/bold]")
        lang_table = Table(show_header=True, header_style="bold")
        lang_table.add_column("Language")
        lang_table.add_column("Bar")
        lang_table.add_column("Percentage", justify="right")
        lang_table.add_column("Bytes", justify="right")

        ranked = sorted(report.languages.items(), key=lambda item: item[1].size, reverse=True)
        for name, lang in ranked[:15]:
            lang_table.add_row(
                name,
                _make_bar(lang.prop),
                f"{lang.prop:0.2f}%",
                _format_number(lang.size),
            )
        console.print(lang_table)
        console.print()

    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(report: StatsReport, output_file: str | None = None) -> None:
    """Render a StatsReport as JSON."""
    data = asdict(report)
    data["lines_changed"] = report.lines_changed
    content = json.dumps(data, indent=2, ensure_ascii=False)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)
