#!/usr/bin/env python3
"""
marktrace CLI - inspect recorded timelines
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import click
from rich.console import Console
from rich.table import Table

from marktrace._version import __version__
from marktrace.core.exceptions import ConfigurationError
from marktrace.core.settings import Settings

BAR_WIDTH = 30


def load_report(path: Path) -> Dict[str, Any]:
    """Reads a report written by TracePlugin.pre_report() as JSON."""
    try:
        report = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}")
    if not isinstance(report, dict):
        raise click.ClickException(f"{path} does not contain a report object")
    return report


def waterfall(entries: List[Dict[str, Any]], width: int = BAR_WIDTH) -> List[str]:
    """One bar per entry, positioned on the span covered by all entries."""
    if not entries:
        return []
    begin = min(e.get("startTime", 0.0) for e in entries)
    end = max(e.get("startTime", 0.0) + e.get("duration", 0.0) for e in entries)
    span = (end - begin) or 1.0

    bars = []
    for entry in entries:
        offset = int((entry.get("startTime", 0.0) - begin) / span * (width - 1))
        length = max(1, int(entry.get("duration", 0.0) / span * width))
        length = min(length, width - offset)
        bars.append(" " * offset + "█" * length + " " * (width - offset - length))
    return bars


@click.group()
@click.version_option(version=__version__, prog_name="marktrace")
def cli():
    """marktrace - marks, measures and traced calls."""
    pass


@cli.command()
@click.argument('report_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--measures-only', is_flag=True, help='Hide marks, show measures only')
@click.option('--records', is_flag=True, help='Also show captured call records')
def show(report_path: Path, measures_only: bool, records: bool):
    """Show the timeline stored in a report file"""
    console = Console()
    report = load_report(report_path)

    entries = sorted(
        report.get("performanceEntries", []), key=lambda e: e.get("startTime", 0.0)
    )
    if measures_only:
        entries = [e for e in entries if e.get("entryType") == "measure"]

    if not entries:
        console.print("[yellow]No performance entries in report[/yellow]")
    else:
        table = Table(title=f"Timeline ({len(entries)} entries)")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Type")
        table.add_column("Start (ms)", justify="right")
        table.add_column("Duration (ms)", justify="right")
        table.add_column("")
        measures = [e for e in entries if e.get("entryType") == "measure"]
        bars = dict(zip((id(e) for e in measures), waterfall(measures)))
        for entry in entries:
            table.add_row(
                entry.get("name", ""),
                entry.get("entryType", ""),
                f"{entry.get('startTime', 0.0):.3f}",
                f"{entry.get('duration', 0.0):.3f}",
                bars.get(id(entry), ""),
            )
        console.print(table)

    if records:
        trace_entries = report.get("traceEntries", {})
        table = Table(title=f"Captured records ({len(trace_entries)})")
        table.add_column("Correlation ID", style="dim")
        table.add_column("Integration")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Request")
        table.add_column("Outcome")
        for correlation_id, record in trace_entries.items():
            if "error" in record:
                outcome = f"[red]{record['error'].get('type', 'error')}[/red]"
            else:
                outcome = json.dumps(record.get("response", {}))
            table.add_row(
                correlation_id,
                record.get("integration", ""),
                record.get("name", ""),
                json.dumps(record.get("request", {})),
                outcome,
            )
        console.print(table)


@cli.command()
def config():
    """Print the effective tracing configuration"""
    settings = Settings()
    for key in ("auto_http.enabled", "auto_redis.enabled", "auto_measure", "logging.level"):
        click.echo(f"{key} = {settings.get(key)}")
    source = settings.config_path or "defaults"
    click.echo(click.style(f"source: {source}", fg="cyan"))


def main():
    """Main entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.")
        sys.exit(0)
    except ConfigurationError as e:
        click.echo(click.style(f"Configuration error: {e.message}", fg="red"))
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Error: {e}", fg="red"))
        if os.environ.get('MARKTRACE_DEBUG'):
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
