"""Tests for the single-row importer."""

from sqlalchemy import func, select

from acncdata.database import (
    Charity,
    AnnualReport,
    FinancialData,
    StaffData,
    InternationalActivities,
    ExtendedData,
)
from acncdata.ingestion import RecordImporter

ROW = {
    "abn": "11005357522",
    "charity name": "Harbour City Food Relief Inc",
    "charity size": "large",
    "basic religious charity": "N",
    "charity website": "https://example.org",
    "how purposes were pursued": "Meals and groceries",
    "total revenue": "1,000,000",
    "total expenses": "(900,000)",
    "staff - full time": "12.0",
    "total full time equivalent staff": "14.5",
    "international activities details": "Pacific",
    "Number of beneficiaries": "2,000",
}


def _counts(session):
    return {
        model.__tablename__: session.scalar(select(func.count()).select_from(model))
        for model in (Charity, AnnualReport, FinancialData, StaffData,
                      InternationalActivities, ExtendedData)
    }


def test_import_writes_all_tables(store):
    with store.session() as session:
        assert RecordImporter().import_record(session, ROW, 2021) is True

    with store.session() as session:
        charity = session.get(Charity, "11005357522")
        assert charity.charity_name == "Harbour City Food Relief Inc"
        assert charity.charity_size == "Large"
        assert charity.basic_religious_charity is False

        report = charity.reports[0]
        assert report.report_year == 2021
        assert report.how_purposes_were_pursued == "Meals and groceries"
        assert report.financials.total_revenue == 1_000_000
        assert report.financials.total_expenses == -900_000
        assert report.financials.total_assets == 0
        assert report.staff.staff_full_time == 12
        assert report.staff.total_full_time_equivalent_staff == 14.5
        assert report.staff.staff_casual == 0
        assert report.international.international_activities_details == "Pacific"
        assert [(e.field_name, e.field_value, e.data_type) for e in report.extended_fields] == [
            ("number_of_beneficiaries", "2,000", "number"),
        ]


def test_import_is_idempotent(store):
    importer = RecordImporter()
    with store.session() as session:
        importer.import_record(session, ROW, 2021)
    with store.session() as session:
        first = _counts(session)

    with store.session() as session:
        importer.import_record(session, ROW, 2021)
    with store.session() as session:
        assert _counts(session) == first

    assert first == {
        "charities": 1,
        "ais_reports": 1,
        "financial_data": 1,
        "staff_data": 1,
        "international_activities": 1,
        "extended_data": 1,
    }


def test_reimport_overwrites_values(store):
    importer = RecordImporter()
    with store.session() as session:
        importer.import_record(session, ROW, 2021)

    changed = dict(ROW, **{"charity name": "Harbour City Food Relief Ltd", "total revenue": "5"})
    del changed["Number of beneficiaries"]
    with store.session() as session:
        importer.import_record(session, changed, 2021)

    with store.session() as session:
        charity = session.get(Charity, "11005357522")
        assert charity.charity_name == "Harbour City Food Relief Ltd"
        assert charity.reports[0].financials.total_revenue == 5
        assert charity.reports[0].extended_fields == []


def test_one_report_per_year(store):
    importer = RecordImporter()
    with store.session() as session:
        importer.import_record(session, ROW, 2020)
        importer.import_record(session, ROW, 2021)

    with store.session() as session:
        counts = _counts(session)
        charity = session.get(Charity, "11005357522")
        assert counts["charities"] == 1
        assert counts["ais_reports"] == 2
        assert [r.report_year for r in charity.reports] == [2021, 2020]


def test_row_without_abn_is_skipped(store):
    row = {"charity name": "Section heading", "total revenue": "10"}
    with store.session() as session:
        assert RecordImporter().import_record(session, row, 2021) is False
        assert _counts(session)["charities"] == 0


def test_pre_financial_year_stores_zeros(store):
    row = dict(ROW)
    with store.session() as session:
        RecordImporter().import_record(session, row, 2014)

    with store.session() as session:
        report = session.scalars(select(AnnualReport)).one()
        assert report.financials.total_revenue == 0
        assert report.financials.total_expenses == 0


def test_clear_year(store):
    importer = RecordImporter()
    other = dict(ROW, abn="22000000000")
    with store.session() as session:
        importer.import_record(session, ROW, 2020)
        importer.import_record(session, ROW, 2021)
        importer.import_record(session, other, 2021)

    with store.session() as session:
        assert importer.clear_year(session, 2021) == 2

    with store.session() as session:
        counts = _counts(session)
        assert counts["ais_reports"] == 1
        assert counts["financial_data"] == 1
        assert counts["extended_data"] == 1
        # charities are kept
        assert counts["charities"] == 2


def test_key_management_personnel_spellings(store):
    row = {
        "Charity ABN": "33000000000",
        "Charity Name": "Capital Letters Trust",
        "Number of Key Management Personnel": "3",
        "Total paid to Key Management Personnel": "250,000",
        "Date AIS Received": "2017-05-01",
    }
    with store.session() as session:
        assert RecordImporter().import_record(session, row, 2021) is True

    with store.session() as session:
        report = session.scalars(select(AnnualReport)).one()
        assert report.abn == "33000000000"
        assert report.charity.charity_name == "Capital Letters Trust"
        assert report.date_ais_received == "2017-05-01"
        assert report.staff.number_of_key_management_personnel == 3
        assert report.staff.total_paid_to_key_management_personnel == 250_000
        assert report.extended_fields == []
