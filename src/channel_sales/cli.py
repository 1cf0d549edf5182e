"""CLI entry point for channel-sales-merge."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from channel_sales import DEFAULT_OUTPUT_NAME, __version__
from channel_sales.classify import classify as classify_file_name
from channel_sales.io import write_json
from channel_sales.models import BatchResult, RunManifest
from channel_sales.pipeline import run_batch
from channel_sales.qc import write_conversion_report
from channel_sales.report import write_aggregated_report
from channel_sales.resolver import select_strategy
from channel_sales.utils import sha256_bytes, utcnow_iso

app = typer.Typer(
    name="chmerge",
    help="channel-sales-merge — Merge per-channel sales exports into one aggregated sheet.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"channel-sales-merge v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _file_digests(files: list[Path], ok_indices: list[int]) -> dict[str, str]:
    digests: dict[str, str] = {}
    for index in ok_indices:
        path = files[index].resolve()
        try:
            digests[str(path)] = sha256_bytes(path.read_bytes())
        except OSError:
            continue
    return digests


def _write_manifest(
    out_dir: Path,
    files: list[Path],
    batch: BatchResult,
    created_at: str,
    output_path: Path | None,
) -> Path:
    manifest = RunManifest(
        version=__version__,
        created_at_utc=created_at,
        output_path=str(output_path.resolve()) if output_path else "",
        files_in=batch.files_in,
        files_ok=len(batch.files_ok),
        records_out=len(batch.records),
        sha256=_file_digests(files, batch.ok_indices),
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _summary_table(batch: BatchResult) -> RichTable:
    tbl = RichTable(title="Conversion Summary", show_lines=True)
    tbl.add_column("File", style="bold")
    tbl.add_column("Result")
    for name in batch.files_ok:
        tbl.add_row(escape(name), "[green]OK[/green]")
    for failure in batch.failures:
        tbl.add_row(escape(failure.file_name), f"[red]{failure.kind}[/red] {escape(failure.message)}")
    tbl.add_row("Records", str(len(batch.records)))
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """channel-sales-merge CLI."""


# ── convert command ──────────────────────────────────────────────


@app.command()
def convert(
    files: list[Path] = typer.Argument(
        ...,
        help="Channel export files (.xlsx), processed in the given order.",
        dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the aggregated workbook + reports.",
    ),
    output_name: str = typer.Option(
        DEFAULT_OUTPUT_NAME, "--output-name",
        help="File name of the aggregated workbook.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging from the parser and aggregator.",
    ),
) -> None:
    """Aggregate sales per product+option for each export file."""
    echo = _printer(quiet)
    _configure_logging(verbose)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]channel-sales-merge[/bold] v{__version__}\n"
            f"Files:  {len(files)}\nOutput: {out_dir}",
            title="Conversion Start", border_style="blue",
        ))

    def _progress(percent: float, file_name: str | None) -> None:
        if file_name is not None:
            echo(f"[blue]>[/blue] [{percent:3.0f}%] {escape(file_name)}")

    try:
        batch = run_batch(files, progress=_progress)

        for failure in batch.failures:
            _err(escape(f"[{failure.file_name}] {failure.message}"))

        report_path = write_conversion_report(out_dir, batch)
        echo(f"  Conversion report -> {report_path}")

        if not batch.has_data:
            _write_manifest(out_dir, files, batch, created_at, None)
            _err("No data to process.")
            raise typer.Exit(code=2)

        output_path = write_aggregated_report(out_dir / output_name, batch.records)
        manifest_path = _write_manifest(out_dir, files, batch, created_at, output_path)
        echo(f"  Workbook -> {output_path}")
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(_summary_table(batch))
        console.print(
            f"[green]Done[/green] — {len(batch.records)} items converted -> {output_path}"
        )
    except typer.Exit:
        raise
    except Exception as exc:
        _err(escape(f"Unexpected internal error: {exc}"))
        raise typer.Exit(code=1)


# ── classify command ─────────────────────────────────────────────


@app.command()
def classify(
    names: list[str] = typer.Argument(..., help="File names to classify."),
) -> None:
    """Show the date, channel code and column layout detected for file names."""
    tbl = RichTable(title="File Classification", show_lines=True)
    tbl.add_column("File", style="bold")
    tbl.add_column("Date")
    tbl.add_column("Channel")
    tbl.add_column("Layout")
    for name in names:
        result = classify_file_name(name)
        strategy = select_strategy(result.channel_code, name)
        tbl.add_row(escape(name), result.date, result.channel_code, strategy.name)
    console.print(tbl)
