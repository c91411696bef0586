"""SQLAlchemy models for the ACNC AIS database."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    Text,
    Integer,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Charity(Base):
    """Registered charity, keyed by ABN."""
    __tablename__ = "charities"

    abn: Mapped[str] = mapped_column(String(20), primary_key=True)
    charity_name: Mapped[str] = mapped_column(Text, default="")
    registration_status: Mapped[Optional[str]] = mapped_column(String(50))
    charity_size: Mapped[Optional[str]] = mapped_column(
        String(20), comment="Small, Medium, Large or NULL when unknown"
    )
    basic_religious_charity: Mapped[Optional[bool]] = mapped_column(Boolean)
    charity_website: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    reports: Mapped[list["AnnualReport"]] = relationship(
        back_populates="charity",
        cascade="all, delete-orphan",
        order_by="AnnualReport.report_year.desc()",
    )

    __table_args__ = (
        Index("idx_charities_name", "charity_name"),
        Index("idx_charities_size", "charity_size"),
    )

    def __repr__(self) -> str:
        return f"<Charity {self.abn}: {self.charity_name}>"


class AnnualReport(Base):
    """One charity's Annual Information Statement for one reporting year."""
    __tablename__ = "ais_reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    abn: Mapped[str] = mapped_column(
        ForeignKey("charities.abn", ondelete="CASCADE")
    )
    report_year: Mapped[int] = mapped_column(Integer)
    # Dates are kept as the source text; formats differ between exports
    ais_due_date: Mapped[Optional[str]] = mapped_column(String(50))
    date_ais_received: Mapped[Optional[str]] = mapped_column(String(50))
    financial_report_date_received: Mapped[Optional[str]] = mapped_column(String(50))
    fin_report_from: Mapped[Optional[str]] = mapped_column(String(50))
    fin_report_to: Mapped[Optional[str]] = mapped_column(String(50))
    conducted_activities: Mapped[Optional[str]] = mapped_column(Text)
    why_charity_did_not_conduct_activities: Mapped[Optional[str]] = mapped_column(Text)
    how_purposes_were_pursued: Mapped[Optional[str]] = mapped_column(Text)
    cash_or_accrual: Mapped[Optional[str]] = mapped_column(String(50))
    type_of_financial_statement: Mapped[Optional[str]] = mapped_column(String(100))
    report_consolidated: Mapped[Optional[str]] = mapped_column(String(20))
    charity_report_has_modification: Mapped[Optional[str]] = mapped_column(String(20))
    type_of_report_modification: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )

    # Relationships
    charity: Mapped["Charity"] = relationship(back_populates="reports")
    financials: Mapped[Optional["FinancialData"]] = relationship(
        back_populates="report", cascade="all, delete-orphan", uselist=False
    )
    staff: Mapped[Optional["StaffData"]] = relationship(
        back_populates="report", cascade="all, delete-orphan", uselist=False
    )
    international: Mapped[Optional["InternationalActivities"]] = relationship(
        back_populates="report", cascade="all, delete-orphan", uselist=False
    )
    extended_fields: Mapped[list["ExtendedData"]] = relationship(
        back_populates="report", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("abn", "report_year", name="uq_ais_reports_abn_year"),
        Index("idx_ais_reports_year", "report_year"),
        Index("idx_ais_reports_abn_year", "abn", "report_year"),
    )

    def __repr__(self) -> str:
        return f"<AnnualReport {self.abn} {self.report_year}>"


def _money() -> Mapped[float]:
    return mapped_column(Float, default=0, server_default="0")


class FinancialData(Base):
    """Income statement and balance sheet figures for one report."""
    __tablename__ = "financial_data"

    id: Mapped[int] = mapped_column(primary_key=True)
    ais_report_id: Mapped[int] = mapped_column(
        ForeignKey("ais_reports.id", ondelete="CASCADE"), unique=True
    )

    # Revenue
    revenue_from_government: Mapped[float] = _money()
    donations_and_bequests: Mapped[float] = _money()
    revenue_from_goods_and_services: Mapped[float] = _money()
    revenue_from_investments: Mapped[float] = _money()
    all_other_revenue: Mapped[float] = _money()
    total_revenue: Mapped[float] = _money()
    other_income: Mapped[float] = _money()
    total_gross_income: Mapped[float] = _money()

    # Expenses
    employee_expenses: Mapped[float] = _money()
    interest_expenses: Mapped[float] = _money()
    grants_and_donations_made_australia: Mapped[float] = _money()
    grants_and_donations_made_overseas: Mapped[float] = _money()
    all_other_expenses: Mapped[float] = _money()
    total_expenses: Mapped[float] = _money()
    net_surplus_deficit: Mapped[float] = _money()
    other_comprehensive_income: Mapped[float] = _money()
    total_comprehensive_income: Mapped[float] = _money()

    # Balance sheet
    total_current_assets: Mapped[float] = _money()
    non_current_loans_receivable: Mapped[float] = _money()
    other_non_current_assets: Mapped[float] = _money()
    total_non_current_assets: Mapped[float] = _money()
    total_assets: Mapped[float] = _money()
    total_current_liabilities: Mapped[float] = _money()
    non_current_loans_payable: Mapped[float] = _money()
    other_non_current_liabilities: Mapped[float] = _money()
    total_non_current_liabilities: Mapped[float] = _money()
    total_liabilities: Mapped[float] = _money()
    net_assets_liabilities: Mapped[float] = _money()

    report: Mapped["AnnualReport"] = relationship(back_populates="financials")

    __table_args__ = (
        Index("idx_financial_revenue", "total_revenue"),
        Index("idx_financial_assets", "total_assets"),
    )

    def __repr__(self) -> str:
        return f"<FinancialData report={self.ais_report_id} revenue={self.total_revenue}>"


class StaffData(Base):
    """Headcount and key management personnel figures for one report."""
    __tablename__ = "staff_data"

    id: Mapped[int] = mapped_column(primary_key=True)
    ais_report_id: Mapped[int] = mapped_column(
        ForeignKey("ais_reports.id", ondelete="CASCADE"), unique=True
    )
    staff_full_time: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    staff_part_time: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    staff_casual: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_full_time_equivalent_staff: Mapped[float] = _money()
    staff_volunteers: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    key_management_personnel: Mapped[Optional[str]] = mapped_column(Text)
    number_of_key_management_personnel: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0"
    )
    total_paid_to_key_management_personnel: Mapped[float] = _money()

    report: Mapped["AnnualReport"] = relationship(back_populates="staff")


class InternationalActivities(Base):
    """Overseas operations declared in one report."""
    __tablename__ = "international_activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    ais_report_id: Mapped[int] = mapped_column(
        ForeignKey("ais_reports.id", ondelete="CASCADE"), unique=True
    )
    international_activities_details: Mapped[Optional[str]] = mapped_column(Text)
    transferring_goods_or_services_overseas: Mapped[Optional[str]] = mapped_column(Text)
    operating_overseas_including_programs: Mapped[Optional[str]] = mapped_column(Text)
    other_international_activities: Mapped[Optional[str]] = mapped_column(Text)
    other_international_activities_description: Mapped[Optional[str]] = mapped_column(Text)

    report: Mapped["AnnualReport"] = relationship(back_populates="international")


class ExtendedData(Base):
    """Source column with no canonical home, kept as name/value/type."""
    __tablename__ = "extended_data"

    id: Mapped[int] = mapped_column(primary_key=True)
    ais_report_id: Mapped[int] = mapped_column(
        ForeignKey("ais_reports.id", ondelete="CASCADE"), index=True
    )
    field_name: Mapped[str] = mapped_column(String(255))
    field_value: Mapped[Optional[str]] = mapped_column(Text)
    data_type: Mapped[str] = mapped_column(
        String(20), default="text", server_default="text"
    )

    report: Mapped["AnnualReport"] = relationship(back_populates="extended_fields")

    __table_args__ = (
        Index("idx_extended_field", "field_name"),
    )

    def __repr__(self) -> str:
        return f"<ExtendedData {self.field_name}={self.field_value!r}>"
