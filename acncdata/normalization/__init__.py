"""Data normalization module for acncdata."""

from .fields import (
    Era,
    era_for_year,
    normalize_column_name,
    to_number,
    to_integer,
    get_financial_field,
    get_financial_fields,
    get_text_field,
    get_number_field,
    get_integer_field,
    extended_fields,
    classify_column,
    source_row,
    SourceRow,
    normalize_abn,
    get_abn,
    normalize_charity_size,
    parse_flag,
    FINANCIAL_FIELDS,
)
from .names import normalize_charity_name

__all__ = [
    "Era",
    "era_for_year",
    "normalize_column_name",
    "to_number",
    "to_integer",
    "get_financial_field",
    "get_financial_fields",
    "get_text_field",
    "get_number_field",
    "get_integer_field",
    "extended_fields",
    "classify_column",
    "source_row",
    "SourceRow",
    "normalize_abn",
    "get_abn",
    "normalize_charity_size",
    "parse_flag",
    "FINANCIAL_FIELDS",
    "normalize_charity_name",
]
