"""
Read-only queries over the normalized AIS tables.

Every method opens its own session, never writes, and returns plain
dicts and lists ready for JSON. An empty store gives empty lists and zero
aggregates; an unknown ABN gives None.
"""

from datetime import date, datetime
from typing import Any, Optional

from rapidfuzz import fuzz, process
from sqlalchemy import case, distinct, func, select
from sqlalchemy.orm import selectinload

from acncdata.database import (
    Store,
    Charity,
    AnnualReport,
    FinancialData,
    ExtendedData,
)
from acncdata.normalization import normalize_charity_size, normalize_charity_name

# Overflow fields that hold a charity's narrative description, best first
DESCRIPTION_FIELDS = (
    "how_purposes_were_pursued",
    "charity_activities_and_outcomes_helped_achieve_charity_purpose",
)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, text: str):
    """Case-insensitive substring match."""
    return column.ilike(f"%{_escape_like(text)}%", escape="\\")


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _as_dict(obj, exclude: tuple = ()) -> Optional[dict]:
    """Column values of a model instance."""
    if obj is None:
        return None
    return {
        column.key: _json_value(getattr(obj, column.key))
        for column in obj.__table__.columns
        if column.key not in exclude
    }


class CharityQueries:
    """Search and aggregation over an imported store."""

    def __init__(self, store: Store):
        self.store = store

    def search_charities(
        self,
        search: str = "",
        size: str = "",
        year: Optional[int] = None,
        min_revenue: float = 0,
        max_revenue: Optional[float] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict]:
        """
        Search charities with filters.

        Results are one row per (charity, report) unless a year is given,
        ordered by total revenue, highest first.
        """
        stmt = (
            select(
                Charity.abn,
                Charity.charity_name,
                Charity.charity_size,
                Charity.charity_website,
                AnnualReport.report_year,
                FinancialData.total_revenue,
                FinancialData.total_assets,
                FinancialData.net_surplus_deficit,
            )
            .distinct()
            .join(AnnualReport, AnnualReport.abn == Charity.abn)
            .join(FinancialData, FinancialData.ais_report_id == AnnualReport.id)
        )

        if search:
            stmt = stmt.where(_contains(Charity.charity_name, search))
        if size:
            stmt = stmt.where(Charity.charity_size == (normalize_charity_size(size) or size))
        if year is not None:
            stmt = stmt.where(AnnualReport.report_year == year)

        stmt = stmt.where(FinancialData.total_revenue >= min_revenue)
        if max_revenue is not None:
            stmt = stmt.where(FinancialData.total_revenue <= max_revenue)

        stmt = stmt.order_by(
            FinancialData.total_revenue.desc(),
            Charity.charity_name,
            AnnualReport.report_year.desc(),
        ).limit(limit).offset(offset)

        with self.store.session() as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def get_charity_details(self, abn: str) -> Optional[dict]:
        """
        Charity identity plus every report with its child records.

        Returns:
            {"charity": {..., "description"}, "reports": [...]} with reports
            newest first, or None if the ABN is unknown.
        """
        with self.store.session() as session:
            charity = session.get(Charity, abn)
            if charity is None:
                return None

            reports = session.scalars(
                select(AnnualReport)
                .where(AnnualReport.abn == abn)
                .order_by(AnnualReport.report_year.desc())
                .options(
                    selectinload(AnnualReport.financials),
                    selectinload(AnnualReport.staff),
                    selectinload(AnnualReport.international),
                )
            ).all()

            description = session.scalars(
                select(ExtendedData.field_value)
                .join(AnnualReport, ExtendedData.ais_report_id == AnnualReport.id)
                .where(
                    AnnualReport.abn == abn,
                    ExtendedData.field_name.in_(DESCRIPTION_FIELDS),
                    ExtendedData.field_value.isnot(None),
                    ExtendedData.field_value != "",
                )
                .order_by(AnnualReport.report_year.desc())
                .limit(1)
            ).first()
            if not description:
                description = next(
                    (r.how_purposes_were_pursued for r in reports if r.how_purposes_were_pursued),
                    None,
                )

            child_keys = ("id", "ais_report_id")
            return {
                "charity": {**_as_dict(charity), "description": description},
                "reports": [
                    {
                        **_as_dict(report),
                        "financials": _as_dict(report.financials, exclude=child_keys),
                        "staff": _as_dict(report.staff, exclude=child_keys),
                        "international": _as_dict(report.international, exclude=child_keys),
                    }
                    for report in reports
                ],
            }

    def get_financial_trends(self, abn: str) -> list[dict]:
        """Yearly headline figures for one charity, oldest year first."""
        stmt = (
            select(
                AnnualReport.report_year,
                FinancialData.total_revenue,
                FinancialData.total_expenses,
                FinancialData.net_surplus_deficit,
                FinancialData.total_assets,
                FinancialData.total_liabilities,
            )
            .join(FinancialData, FinancialData.ais_report_id == AnnualReport.id)
            .where(AnnualReport.abn == abn)
            .order_by(AnnualReport.report_year.asc())
        )
        with self.store.session() as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def get_yearly_stats(self, year: int) -> dict:
        """Counts by size and revenue/asset totals for one reporting year."""
        stmt = (
            select(
                func.count().label("total_charities"),
                func.count(case((Charity.charity_size == "Small", 1))).label("small_charities"),
                func.count(case((Charity.charity_size == "Medium", 1))).label("medium_charities"),
                func.count(case((Charity.charity_size == "Large", 1))).label("large_charities"),
                func.coalesce(func.sum(FinancialData.total_revenue), 0.0).label("total_revenue"),
                func.coalesce(func.avg(FinancialData.total_revenue), 0.0).label("avg_revenue"),
                func.coalesce(func.sum(FinancialData.total_assets), 0.0).label("total_assets"),
                func.count(case((FinancialData.total_revenue > 0, 1))).label("charities_with_revenue"),
            )
            .select_from(Charity)
            .join(AnnualReport, AnnualReport.abn == Charity.abn)
            .join(FinancialData, FinancialData.ais_report_id == AnnualReport.id)
            .where(AnnualReport.report_year == year)
        )
        with self.store.session() as session:
            row = session.execute(stmt).one()
            return {"year": year, **row._mapping}

    def get_top_charities(self, year: int, limit: int = 10) -> list[dict]:
        """Charities with revenue in a year, highest revenue first."""
        stmt = (
            select(
                Charity.charity_name,
                Charity.abn,
                Charity.charity_size,
                FinancialData.total_revenue,
                FinancialData.total_assets,
                FinancialData.net_surplus_deficit,
            )
            .join(AnnualReport, AnnualReport.abn == Charity.abn)
            .join(FinancialData, FinancialData.ais_report_id == AnnualReport.id)
            .where(AnnualReport.report_year == year, FinancialData.total_revenue > 0)
            .order_by(FinancialData.total_revenue.desc())
            .limit(limit)
        )
        with self.store.session() as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def get_sector_analysis(self, year: int) -> list[dict]:
        """Revenue and asset rollup by charity size for one year."""
        total_revenue = func.sum(FinancialData.total_revenue).label("total_revenue")
        stmt = (
            select(
                Charity.charity_size,
                func.count().label("count"),
                total_revenue,
                func.avg(FinancialData.total_revenue).label("avg_revenue"),
                func.sum(FinancialData.total_assets).label("total_assets"),
                func.avg(FinancialData.total_assets).label("avg_assets"),
            )
            .join(AnnualReport, AnnualReport.abn == Charity.abn)
            .join(FinancialData, FinancialData.ais_report_id == AnnualReport.id)
            .where(AnnualReport.report_year == year, Charity.charity_size.isnot(None))
            .group_by(Charity.charity_size)
            .order_by(total_revenue.desc())
        )
        with self.store.session() as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def get_autocomplete_suggestions(self, search: str, limit: int = 10) -> list[dict]:
        """Distinct (name, ABN) pairs whose name contains the text, A-Z."""
        stmt = (
            select(Charity.charity_name, Charity.abn)
            .distinct()
            .where(_contains(Charity.charity_name, search or ""))
            .order_by(Charity.charity_name)
            .limit(limit)
        )
        with self.store.session() as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def get_available_years(self) -> list[int]:
        """Reporting years present in the store, newest first."""
        stmt = select(distinct(AnnualReport.report_year)).order_by(
            AnnualReport.report_year.desc()
        )
        with self.store.session() as session:
            return list(session.scalars(stmt))

    def search_similar_names(self, name: str, limit: int = 10, min_score: int = 80) -> list[dict]:
        """
        Fuzzy name lookup for misspelled or differently styled names.

        Names are compared after normalization, so "St Vincent de Paul
        Society Inc" finds "Saint Vincent De Paul Society Incorporated".
        """
        target = normalize_charity_name(name)
        if not target:
            return []

        with self.store.session() as session:
            rows = session.execute(select(Charity.abn, Charity.charity_name)).all()

        names = {abn: charity_name for abn, charity_name in rows}
        choices = {abn: normalize_charity_name(charity_name) or "" for abn, charity_name in rows}

        matches = process.extract(
            target, choices,
            scorer=fuzz.token_sort_ratio,
            score_cutoff=min_score,
            limit=limit,
        )
        return [
            {"abn": abn, "charity_name": names[abn], "score": round(score, 1)}
            for _, score, abn in matches
        ]

    def get_database_summary(self) -> dict:
        """Row counts, year range and the largest reports by revenue."""
        with self.store.session() as session:
            charity_count = session.scalar(select(func.count()).select_from(Charity))
            report_count = session.scalar(select(func.count()).select_from(AnnualReport))
            min_year, max_year = session.execute(
                select(func.min(AnnualReport.report_year), func.max(AnnualReport.report_year))
            ).one()

            top = session.execute(
                select(
                    Charity.charity_name,
                    Charity.abn,
                    FinancialData.total_revenue,
                    AnnualReport.report_year,
                )
                .join(AnnualReport, AnnualReport.abn == Charity.abn)
                .join(FinancialData, FinancialData.ais_report_id == AnnualReport.id)
                .where(FinancialData.total_revenue > 0)
                .order_by(FinancialData.total_revenue.desc())
                .limit(5)
            )

            return {
                "charities": charity_count,
                "reports": report_count,
                "min_year": min_year,
                "max_year": max_year,
                "top_charities": [dict(row._mapping) for row in top],
            }
