"""
Sequential import runner for the configured historical export files.

Files are imported one by one in year order. A missing or unreadable file
is reported and the runner moves on to the next one.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from acncdata.database import Store
from .loader import BulkFileLoader, ImportResult

logger = logging.getLogger(__name__)


@dataclass
class FileTask:
    """Track state of one file import."""
    name: str
    year: int
    status: str = "pending"  # pending, success, missing, failed
    message: str = ""
    result: Optional[ImportResult] = None


def run_import(
    store: Store,
    files: dict[str, int],
    data_dir,
    years: Optional[list[int]] = None,
    replace: bool = False,
    show_progress: bool = False,
) -> list[FileTask]:
    """
    Import every configured file into the store.

    Args:
        store: Writable store; the schema is ensured first
        files: File name -> reporting year
        data_dir: Directory the file names are relative to
        years: Only import files for these years
        replace: Clear each year before importing it
        show_progress: Show a per-row progress bar

    Returns:
        One FileTask per file considered, in import order.
    """
    store.ensure_schema()
    loader = BulkFileLoader(store, show_progress=show_progress)
    data_dir = Path(data_dir)

    tasks = []
    for name, year in sorted(files.items(), key=lambda item: item[1]):
        if years and year not in years:
            continue

        task = FileTask(name=name, year=year)
        tasks.append(task)
        path = data_dir / name

        if not path.exists():
            task.status = "missing"
            task.message = f"File not found: {path}"
            logger.warning(task.message)
            continue

        try:
            task.result = loader.import_file(path, year, replace=replace)
        except Exception as e:
            task.status = "failed"
            task.message = str(e)
            logger.error("Error processing %s: %s", name, e)
            continue

        task.status = "success"
        task.message = (
            f"Imported {task.result.imported:,} records"
            f" ({task.result.errors:,} errors)"
        )

    return tasks


def print_summary(tasks: list[FileTask], console: Optional[Console] = None) -> None:
    """Render the outcome of run_import as a table."""
    console = console or Console()

    table = Table(title="Import Summary")
    table.add_column("File")
    table.add_column("Year", justify="right")
    table.add_column("Status")
    table.add_column("Imported", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Time", justify="right")

    status_style = {
        "success": "green",
        "failed": "red",
        "missing": "yellow",
    }

    for task in tasks:
        r = task.result
        table.add_row(
            task.name,
            str(task.year),
            f"[{status_style.get(task.status, 'white')}]{task.status}[/]",
            f"{r.imported:,}" if r else "-",
            f"{r.skipped:,}" if r else "-",
            f"{r.errors:,}" if r else "-",
            f"{r.elapsed:.1f}s" if r else "-",
        )

    console.print(table)

    for task in tasks:
        if task.status in ("missing", "failed"):
            console.print(f"[yellow]{task.name}:[/] {task.message}")
