"""Database package: models and store handle."""

from .models import (
    Base,
    Charity,
    AnnualReport,
    FinancialData,
    StaffData,
    InternationalActivities,
    ExtendedData,
)
from .connection import Store

__all__ = [
    "Base",
    "Charity",
    "AnnualReport",
    "FinancialData",
    "StaffData",
    "InternationalActivities",
    "ExtendedData",
    "Store",
]
