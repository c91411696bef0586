"""Shared fixtures."""

import csv

import pytest

from acncdata.database import Store
from acncdata.ingestion import RecordImporter


@pytest.fixture
def store():
    """Empty in-memory database with the full schema."""
    store = Store.in_memory()
    store.ensure_schema()
    yield store
    store.dispose()


@pytest.fixture
def import_rows(store):
    """Import (year, row) pairs straight through the record importer."""

    def _import(*records):
        importer = RecordImporter()
        with store.session() as session:
            return [importer.import_record(session, row, year) for year, row in records]

    return _import


@pytest.fixture
def write_csv(tmp_path):
    """Write a list of row dicts to a CSV file under tmp_path."""

    def _write(name, rows, headers=None):
        headers = headers or list(rows[0])
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=headers, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return _write


def charity_row(abn, name, revenue, size="Medium", **extra):
    """Minimal row in the 2017+ export layout."""
    row = {
        "abn": abn,
        "charity name": name,
        "charity size": size,
        "total revenue": str(revenue),
        "total expenses": str(revenue // 2),
        "total assets": str(revenue * 2),
    }
    row.update(extra)
    return row


@pytest.fixture
def make_row():
    return charity_row
