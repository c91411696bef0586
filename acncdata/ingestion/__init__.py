"""Data ingestion module for acncdata."""

from .readers import read_rows, parse_csv_line, UnsupportedFileError
from .importer import RecordImporter
from .loader import BulkFileLoader, ImportResult
from .runner import run_import, print_summary, FileTask

__all__ = [
    "read_rows",
    "parse_csv_line",
    "UnsupportedFileError",
    "RecordImporter",
    "BulkFileLoader",
    "ImportResult",
    "run_import",
    "print_summary",
    "FileTask",
]
