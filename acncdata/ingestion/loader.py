"""Bulk import of one AIS export file."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from acncdata.database import Store
from .importer import RecordImporter
from .readers import read_rows

logger = logging.getLogger(__name__)

# Row errors reported in detail; the rest are only counted
MAX_REPORTED_ERRORS = 5


@dataclass
class ImportResult:
    """Outcome of importing one file."""
    path: Path
    year: int
    attempted: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)
    elapsed: float = 0.0


class BulkFileLoader:
    """
    Load a whole export file in one transaction.

    Each row is written inside its own SAVEPOINT: a row that raises is
    rolled back and counted, and the rest of the file carries on. The file
    is committed once at the end, so readers see all of it or none of it.
    """

    def __init__(self, store: Store, importer: Optional[RecordImporter] = None,
                 show_progress: bool = False):
        self.store = store
        self.importer = importer or RecordImporter()
        self.show_progress = show_progress

    def import_file(self, path, year: int, replace: bool = False) -> ImportResult:
        """
        Import every row of a file for a reporting year.

        Args:
            path: CSV or XLSX export
            year: Reporting year the file belongs to
            replace: Delete the year's existing reports first (same transaction)

        Returns:
            ImportResult with attempted/imported/skipped/error counts.

        Raises:
            FileNotFoundError, UnsupportedFileError: The file cannot be read.
            SQLAlchemyError: The transaction could not be committed; nothing
                from this file was kept.
        """
        path = Path(path)
        started = time.monotonic()
        logger.info("Importing %s for year %d", path, year)

        rows = read_rows(path)
        result = ImportResult(path=path, year=year)
        logger.info("Found %d records in %s", len(rows), path.name)

        with self.store.session() as session:
            if replace:
                self.importer.clear_year(session, year)

            for row in tqdm(rows, desc=f"Importing {year}", disable=not self.show_progress):
                result.attempted += 1
                try:
                    with session.begin_nested():
                        written = self.importer.import_record(session, row, year)
                except Exception as e:
                    result.errors += 1
                    if result.errors <= MAX_REPORTED_ERRORS:
                        message = f"row {result.attempted}: {e}"
                        result.error_messages.append(message)
                        logger.warning("Error importing record, %s", message)
                    continue

                if written:
                    result.imported += 1
                else:
                    result.skipped += 1

        result.elapsed = time.monotonic() - started
        logger.info(
            "Completed %s: %d imported, %d skipped, %d errors in %.1fs",
            path.name, result.imported, result.skipped, result.errors, result.elapsed,
        )
        return result
