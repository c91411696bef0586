"""Write one AIS source row into the normalized tables."""

import logging
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from acncdata.database import (
    Charity,
    AnnualReport,
    FinancialData,
    StaffData,
    InternationalActivities,
    ExtendedData,
)
from acncdata.normalization import (
    source_row,
    get_abn,
    get_text_field,
    get_number_field,
    get_integer_field,
    get_financial_fields,
    extended_fields,
    normalize_charity_size,
    parse_flag,
)

logger = logging.getLogger(__name__)

REPORT_TEXT_FIELDS = (
    "ais_due_date",
    "date_ais_received",
    "financial_report_date_received",
    "fin_report_from",
    "fin_report_to",
    "conducted_activities",
    "why_charity_did_not_conduct_activities",
    "how_purposes_were_pursued",
    "cash_or_accrual",
    "type_of_financial_statement",
    "report_consolidated",
    "charity_report_has_modification",
    "type_of_report_modification",
)

STAFF_INTEGER_FIELDS = (
    "staff_full_time",
    "staff_part_time",
    "staff_casual",
    "staff_volunteers",
    "number_of_key_management_personnel",
)

STAFF_NUMBER_FIELDS = (
    "total_full_time_equivalent_staff",
    "total_paid_to_key_management_personnel",
)

INTERNATIONAL_TEXT_FIELDS = (
    "international_activities_details",
    "transferring_goods_or_services_overseas",
    "operating_overseas_including_programs",
    "other_international_activities",
    "other_international_activities_description",
)


class RecordImporter:
    """
    Upserts one source row and its children.

    Every write is keyed on a natural identifier (ABN, or ABN + year), so
    importing the same row twice leaves the tables exactly as one import
    would. Transactions belong to the caller.
    """

    def import_record(self, session: Session, row: Mapping[str, Any], year: int) -> bool:
        """
        Import a single row for a reporting year.

        Returns:
            True if the row was written, False if it was skipped because it
            carries no ABN (section headers, blank lines).
        """
        row = source_row(row)
        abn = get_abn(row)
        if not abn:
            return False

        charity = self._upsert_charity(session, abn, row)
        report = self._upsert_report(session, charity, year, row)

        # Children need the surrogate id
        session.flush()
        if report.id is None:
            logger.warning("No report id after upsert for %s/%s, children not written", abn, year)
            return False

        self._write_financials(report, row, year)
        self._write_staff(report, row)
        self._write_international(report, row)
        self._write_extended(report, row)
        return True

    def _upsert_charity(self, session: Session, abn: str, row: Mapping[str, Any]) -> Charity:
        """Insert or overwrite the charity identity. Later rows win."""
        charity = session.get(Charity, abn)
        if charity is None:
            charity = Charity(abn=abn)
            session.add(charity)

        charity.charity_name = get_text_field(row, "charity_name")
        charity.registration_status = get_text_field(row, "registration_status") or None
        charity.charity_size = normalize_charity_size(get_text_field(row, "charity_size"))
        charity.basic_religious_charity = parse_flag(get_text_field(row, "basic_religious_charity"))
        charity.charity_website = get_text_field(row, "charity_website") or None
        charity.updated_at = datetime.now()
        return charity

    def _upsert_report(
        self, session: Session, charity: Charity, year: int, row: Mapping[str, Any]
    ) -> AnnualReport:
        report = session.scalars(
            select(AnnualReport).where(
                AnnualReport.abn == charity.abn,
                AnnualReport.report_year == year,
            )
        ).one_or_none()

        if report is None:
            report = AnnualReport(report_year=year)
            report.charity = charity
            session.add(report)

        for field in REPORT_TEXT_FIELDS:
            setattr(report, field, get_text_field(row, field))
        return report

    def _write_financials(self, report: AnnualReport, row: Mapping[str, Any], year: int) -> None:
        financials = report.financials
        if financials is None:
            financials = FinancialData()
            report.financials = financials

        for field, value in get_financial_fields(row, year).items():
            setattr(financials, field, value)

    def _write_staff(self, report: AnnualReport, row: Mapping[str, Any]) -> None:
        staff = report.staff
        if staff is None:
            staff = StaffData()
            report.staff = staff

        for field in STAFF_INTEGER_FIELDS:
            setattr(staff, field, get_integer_field(row, field))
        for field in STAFF_NUMBER_FIELDS:
            setattr(staff, field, get_number_field(row, field))
        staff.key_management_personnel = get_text_field(row, "key_management_personnel")

    def _write_international(self, report: AnnualReport, row: Mapping[str, Any]) -> None:
        international = report.international
        if international is None:
            international = InternationalActivities()
            report.international = international

        for field in INTERNATIONAL_TEXT_FIELDS:
            setattr(international, field, get_text_field(row, field))

    def _write_extended(self, report: AnnualReport, row: Mapping[str, Any]) -> None:
        """Replace the report's overflow fields with this row's."""
        report.extended_fields.clear()
        for name, value, data_type in extended_fields(row):
            report.extended_fields.append(
                ExtendedData(field_name=name, field_value=value, data_type=data_type)
            )

    def clear_year(self, session: Session, year: int) -> int:
        """
        Delete every report for a year, children first.

        Returns:
            Number of reports removed.
        """
        report_ids = select(AnnualReport.id).where(AnnualReport.report_year == year)
        for model in (ExtendedData, InternationalActivities, StaffData, FinancialData):
            session.execute(
                delete(model).where(model.ais_report_id.in_(report_ids)),
                execution_options={"synchronize_session": False},
            )
        result = session.execute(
            delete(AnnualReport).where(AnnualReport.report_year == year),
            execution_options={"synchronize_session": False},
        )
        # Loaded instances may refer to deleted rows
        session.expunge_all()
        logger.info("Cleared %d reports for %d", result.rowcount, year)
        return result.rowcount
