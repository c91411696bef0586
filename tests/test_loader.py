"""Tests for file-level import and the import runner."""

import io

import pytest
from rich.console import Console
from sqlalchemy import func, select

from acncdata.database import Charity, AnnualReport
from acncdata.ingestion import (
    BulkFileLoader,
    RecordImporter,
    UnsupportedFileError,
    run_import,
    print_summary,
)
from acncdata.ingestion.loader import MAX_REPORTED_ERRORS


class FailingImporter(RecordImporter):
    """Raises after writing rows for the given ABNs."""

    def __init__(self, bad_abns):
        self.bad_abns = set(bad_abns)

    def import_record(self, session, row, year):
        written = super().import_record(session, row, year)
        if row.get("abn") in self.bad_abns:
            raise ValueError(f"bad row {row['abn']}")
        return written


def _count(store, model):
    with store.session() as session:
        return session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def ais_file(write_csv, make_row):
    return write_csv("ais21.csv", [
        make_row("111", "Alpha Trust", 100),
        make_row("", "Heading row", 0),
        make_row("222", "Beta Foundation", 200),
        make_row("333", "Gamma Association", 300),
    ])


class TestBulkFileLoader:

    def test_counts(self, store, ais_file):
        result = BulkFileLoader(store).import_file(ais_file, 2021)
        assert result.year == 2021
        assert result.attempted == 4
        assert result.imported == 3
        assert result.skipped == 1
        assert result.errors == 0
        assert _count(store, AnnualReport) == 3

    def test_failed_row_is_isolated(self, store, ais_file):
        loader = BulkFileLoader(store, importer=FailingImporter({"222"}))
        result = loader.import_file(ais_file, 2021)

        assert result.imported == 2
        assert result.errors == 1
        assert result.error_messages == ["row 3: bad row 222"]
        with store.session() as session:
            assert session.get(Charity, "222") is None
            assert session.get(Charity, "111") is not None
            assert session.get(Charity, "333") is not None

    def test_error_messages_are_capped(self, store, write_csv, make_row):
        rows = [make_row(str(100 + i), f"Charity {i}", i) for i in range(MAX_REPORTED_ERRORS + 3)]
        path = write_csv("bad.csv", rows)
        loader = BulkFileLoader(store, importer=FailingImporter({r["abn"] for r in rows}))

        result = loader.import_file(path, 2021)
        assert result.errors == MAX_REPORTED_ERRORS + 3
        assert len(result.error_messages) == MAX_REPORTED_ERRORS
        assert _count(store, Charity) == 0

    def test_reimport_is_idempotent(self, store, ais_file):
        loader = BulkFileLoader(store)
        loader.import_file(ais_file, 2021)
        loader.import_file(ais_file, 2021)
        assert _count(store, AnnualReport) == 3
        assert _count(store, Charity) == 3

    def test_replace_clears_year(self, store, ais_file, write_csv, make_row):
        loader = BulkFileLoader(store)
        loader.import_file(ais_file, 2021)
        loader.import_file(ais_file, 2020)

        smaller = write_csv("ais21b.csv", [make_row("111", "Alpha Trust", 150)])
        result = loader.import_file(smaller, 2021, replace=True)

        assert result.imported == 1
        with store.session() as session:
            years = session.execute(
                select(AnnualReport.report_year, func.count())
                .group_by(AnnualReport.report_year)
                .order_by(AnnualReport.report_year)
            ).all()
        assert [tuple(r) for r in years] == [(2020, 3), (2021, 1)]

    def test_unreadable_file(self, store, tmp_path):
        path = tmp_path / "ais.pdf"
        path.write_text("")
        with pytest.raises(UnsupportedFileError):
            BulkFileLoader(store).import_file(path, 2021)


class TestRunImport:

    def test_missing_files_do_not_stop_run(self, store, ais_file, tmp_path):
        files = {"ais21.csv": 2021, "ais19.csv": 2019, "ais22.xlsx": 2022}
        tasks = run_import(store, files, tmp_path)

        assert [(t.year, t.status) for t in tasks] == [
            (2019, "missing"),
            (2021, "success"),
            (2022, "missing"),
        ]
        assert tasks[1].result.imported == 3

    def test_year_filter(self, store, ais_file, tmp_path):
        tasks = run_import(store, {"ais21.csv": 2021, "ais19.csv": 2019}, tmp_path, years=[2021])
        assert [t.year for t in tasks] == [2021]

    def test_failed_file_is_reported(self, store, tmp_path):
        (tmp_path / "ais20.doc").write_text("x")
        tasks = run_import(store, {"ais20.doc": 2020}, tmp_path)
        assert tasks[0].status == "failed"
        assert "Unsupported" in tasks[0].message

    def test_print_summary(self, store, ais_file, tmp_path):
        tasks = run_import(store, {"ais21.csv": 2021, "ais19.csv": 2019}, tmp_path)
        out = io.StringIO()
        print_summary(tasks, console=Console(file=out, width=120))
        text = out.getvalue()
        assert "Import Summary" in text
        assert "ais21.csv" in text
        assert "File not found" in text
