"""Column reconciliation and value coercion for AIS exports.

The ACNC has published the AIS data in three column dialects:

- 2017 onwards: lowercase column names ("total revenue") with full
  financial detail. This is the canonical layout.
- 2016: Title Case names ("Total revenue") with a few irregular forms
  such as "Other Comprehensive Income (if applicable)".
- 2013-2015: no itemised financial columns at all. Every financial field
  is zero for these years whatever the file contains.

Everything here is best effort: unparsable numbers become 0, missing text
becomes "", and columns we do not recognise are handed back by
extended_fields() so they can be stored rather than dropped.
"""

import math
import re
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional

COMPREHENSIVE_FROM_YEAR = 2017
TITLE_CASE_YEAR = 2016


class Era(Enum):
    """Source column dialect of an AIS export."""
    COMPREHENSIVE = "comprehensive"
    TITLE_CASE = "title_case"
    PRE_FINANCIAL = "pre_financial"


def era_for_year(year: int) -> Era:
    """Get the column dialect used by the export for a reporting year."""
    if year >= COMPREHENSIVE_FROM_YEAR:
        return Era.COMPREHENSIVE
    if year == TITLE_CASE_YEAR:
        return Era.TITLE_CASE
    return Era.PRE_FINANCIAL


def normalize_column_name(name: Any) -> str:
    """
    Convert a source column name to snake_case.

    "Net surplus/deficit" -> "net_surplus_deficit"
    """
    if name is None:
        return ""
    return _snake_case(str(name))


@lru_cache(maxsize=4096)
def _snake_case(name: str) -> str:
    normalized = re.sub(r"[^a-z0-9]", "_", name.lower())
    normalized = re.sub(r"_+", "_", normalized)
    return normalized.strip("_")


def column_variants(label: str, *aliases: str) -> tuple[str, ...]:
    """All spellings of a logical column name, in lookup priority order."""
    variants = []
    for name in (label, *aliases):
        for candidate in (
            name,
            name.lower(),
            normalize_column_name(name),
            name.capitalize(),
            name.title(),
        ):
            if candidate and candidate not in variants:
                variants.append(candidate)
    return tuple(variants)


# =============================================================================
# Financial fields
# =============================================================================

# Column attribute -> logical label as it appears in the 2017+ exports
FINANCIAL_FIELDS = {
    "revenue_from_government": "revenue from government",
    "donations_and_bequests": "donations and bequests",
    "revenue_from_goods_and_services": "revenue from goods and services",
    "revenue_from_investments": "revenue from investments",
    "all_other_revenue": "all other revenue",
    "total_revenue": "total revenue",
    "other_income": "other income",
    "total_gross_income": "total gross income",
    "employee_expenses": "employee expenses",
    "interest_expenses": "interest expenses",
    "grants_and_donations_made_australia": "grants and donations made for use in Australia",
    "grants_and_donations_made_overseas": "grants and donations made for use outside Australia",
    "all_other_expenses": "all other expenses",
    "total_expenses": "total expenses",
    "net_surplus_deficit": "net surplus/deficit",
    "other_comprehensive_income": "other comprehensive income",
    "total_comprehensive_income": "total comprehensive income",
    "total_current_assets": "total current assets",
    "non_current_loans_receivable": "non-current loans receivable",
    "other_non_current_assets": "other non-current assets",
    "total_non_current_assets": "total non-current assets",
    "total_assets": "total assets",
    "total_current_liabilities": "total current liabilities",
    "non_current_loans_payable": "non-current loans payable",
    "other_non_current_liabilities": "other non-current liabilities",
    "total_non_current_liabilities": "total non-current liabilities",
    "total_liabilities": "total liabilities",
    "net_assets_liabilities": "net assets/liabilities",
}

# 2016 export headers
TITLE_CASE_ALIASES = {
    "revenue_from_government": ("Revenue from government",),
    "donations_and_bequests": ("Donations and bequests",),
    "revenue_from_goods_and_services": ("Revenue from goods and services",),
    "revenue_from_investments": ("Revenue from investments",),
    "all_other_revenue": ("All other revenue",),
    "total_revenue": ("Total revenue",),
    "other_income": ("Other income",),
    "total_gross_income": ("Total gross income",),
    "employee_expenses": ("Employee expenses",),
    "interest_expenses": ("Interest expenses",),
    "grants_and_donations_made_australia": (
        "Grants and donations made for use in Australia",
    ),
    "grants_and_donations_made_overseas": (
        "Grants and donations made for use outside Australia",
    ),
    "all_other_expenses": ("All other expenses",),
    "total_expenses": ("Total expenses",),
    "net_surplus_deficit": ("Net surplus/deficit", "Net surplus/(deficit)"),
    "other_comprehensive_income": (
        "Other Comprehensive Income (if applicable)",
        "Other comprehensive income",
    ),
    "total_comprehensive_income": ("Total Comprehensive Income",),
    "total_current_assets": ("Total current assets",),
    "non_current_loans_receivable": ("Non-current loans receivable",),
    "other_non_current_assets": ("Other non-current assets",),
    "total_non_current_assets": ("Total non-current assets",),
    "total_assets": ("Total assets",),
    "total_current_liabilities": ("Total current liabilities",),
    "non_current_loans_payable": ("Non-current loans payable",),
    "other_non_current_liabilities": ("Other non-current liabilities",),
    "total_non_current_liabilities": ("Total non-current liabilities",),
    "total_liabilities": ("Total liabilities",),
    "net_assets_liabilities": ("Net assets/liabilities", "Net assets/(liabilities)"),
}


def _comprehensive_candidates(attr: str, label: str) -> tuple[str, ...]:
    candidates = [label, label.lower(), normalize_column_name(label), attr]
    return tuple(dict.fromkeys(candidates))


# Era -> column attribute -> source columns to try, first match wins
FINANCIAL_COLUMNS: dict[Era, dict[str, tuple[str, ...]]] = {
    Era.COMPREHENSIVE: {
        attr: _comprehensive_candidates(attr, label)
        for attr, label in FINANCIAL_FIELDS.items()
    },
    Era.TITLE_CASE: dict(TITLE_CASE_ALIASES),
    Era.PRE_FINANCIAL: {},
}

# Accept either the logical label or the column attribute
_FINANCIAL_KEYS = {}
for _attr, _label in FINANCIAL_FIELDS.items():
    _FINANCIAL_KEYS[_attr] = _attr
    _FINANCIAL_KEYS[_label.lower()] = _attr
    _FINANCIAL_KEYS[normalize_column_name(_label)] = _attr


# =============================================================================
# Identity, report, staff and international fields (same in every era)
# =============================================================================

ABN_COLUMNS = ("abn", "ABN", "Abn", "charity abn", "Charity ABN", "Charity abn")

TEXT_COLUMNS = {
    # charities
    "charity_name": column_variants("charity name", "Charity_Name", "Charity Legal Name"),
    "registration_status": column_variants("registration status"),
    "charity_size": column_variants("charity size"),
    "basic_religious_charity": column_variants("basic religious charity"),
    "charity_website": column_variants("charity website", "Charity's website"),
    # ais_reports
    "ais_due_date": column_variants("ais due date", "AIS due date"),
    "date_ais_received": column_variants("date ais received", "Date AIS received"),
    "financial_report_date_received": column_variants("financial report date received"),
    "fin_report_from": column_variants("fin report from"),
    "fin_report_to": column_variants("fin report to"),
    "conducted_activities": column_variants("conducted activities"),
    "why_charity_did_not_conduct_activities": column_variants(
        "why charity did not conduct activities",
        "Why the charity did not conduct activities",
    ),
    "how_purposes_were_pursued": column_variants(
        "how purposes were pursued", "How the charity pursued its purposes",
    ),
    "cash_or_accrual": column_variants("cash or accrual"),
    "type_of_financial_statement": column_variants("type of financial statement"),
    "report_consolidated": column_variants(
        "report consolidated with more than one entity", "report consolidated",
    ),
    "charity_report_has_modification": column_variants(
        "charity report has a modification", "charity report has modification",
    ),
    "type_of_report_modification": column_variants("type of report modification"),
    # staff_data
    "key_management_personnel": column_variants("key management personnel"),
    # international_activities
    "international_activities_details": column_variants("international activities details"),
    "transferring_goods_or_services_overseas": column_variants(
        "international activities undertaken - transferring goods or services overseas",
        "transferring goods or services overseas",
    ),
    "operating_overseas_including_programs": column_variants(
        "international activities undertaken - operating overseas including programs",
        "operating overseas including programs",
    ),
    "other_international_activities": column_variants("other international activities"),
    "other_international_activities_description": column_variants(
        "other international activities description",
    ),
}

NUMBER_COLUMNS = {
    "staff_full_time": column_variants("staff - full time", "staff full time"),
    "staff_part_time": column_variants("staff - part time", "staff part time"),
    "staff_casual": column_variants("staff - casual", "staff casual"),
    "total_full_time_equivalent_staff": column_variants("total full time equivalent staff"),
    "staff_volunteers": column_variants("staff - volunteers", "staff volunteers"),
    "number_of_key_management_personnel": column_variants(
        "number of key management personnel",
    ),
    "total_paid_to_key_management_personnel": column_variants(
        "total paid to key management personnel",
    ),
}


def _known_columns() -> frozenset[str]:
    names: list[str] = list(ABN_COLUMNS)
    for columns in FINANCIAL_COLUMNS.values():
        for candidates in columns.values():
            names.extend(candidates)
    for table in (TEXT_COLUMNS, NUMBER_COLUMNS):
        for candidates in table.values():
            names.extend(candidates)
    return frozenset(normalize_column_name(n) for n in names)


KNOWN_COLUMNS = _known_columns()


# =============================================================================
# Value coercion
# =============================================================================

_CURRENCY_PREFIX = re.compile(r"^(AUD|A(?=\$))", re.IGNORECASE)
_NUMBER_NOISE = re.compile(r"[,\s$€£]")


def parse_number(value: Any) -> Optional[float]:
    """Parse a currency-like value, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip()
    if not text:
        return None

    # Accounting negatives: (1,234)
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    text = _CURRENCY_PREFIX.sub("", text.strip())
    text = _NUMBER_NOISE.sub("", text)
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return -number if negative else number


def to_number(value: Any) -> float:
    """Coerce to float. Blank or unparsable input is 0.0, never an error."""
    number = parse_number(value)
    return number if number is not None else 0.0


def to_integer(value: Any) -> int:
    """Coerce to int, truncating toward zero. Blank or unparsable input is 0."""
    return int(to_number(value))


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


class SourceRow(dict):
    """
    A raw row plus an index of its non-blank values by normalized column name.

    Build one per row with source_row() when many fields are read from it.
    """

    def __init__(self, row: Mapping[str, Any]):
        super().__init__(row)
        self.normalized: dict[str, Any] = {}
        for column, value in self.items():
            name = normalize_column_name(column)
            if name and name not in self.normalized and not is_blank(value):
                self.normalized[name] = value


def source_row(row: Mapping[str, Any]) -> SourceRow:
    return row if isinstance(row, SourceRow) else SourceRow(row)


def first_present(row: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """
    Value of the first candidate column that is present and non-blank.

    Exact spellings win. Failing those, any column with the same normalized
    name as a candidate matches, so "Number of Key Management Personnel"
    is found under "number of key management personnel".
    """
    candidates = tuple(candidates)
    for column in candidates:
        value = row.get(column)
        if not is_blank(value):
            return value

    normalized = source_row(row).normalized
    for column in candidates:
        value = normalized.get(normalize_column_name(column))
        if value is not None:
            return value
    return None


def get_financial_field(row: Mapping[str, Any], year: int, field: str) -> float:
    """
    Resolve one financial figure for a row from a given reporting year.

    Args:
        row: Raw source row, column name -> value
        year: Reporting year the row was exported for
        field: Logical label ("total revenue") or column attribute
            ("total_revenue")

    Returns:
        The figure as a float; 0.0 when the era has no such column,
        the column is missing, or the value does not parse.
    """
    attr = _FINANCIAL_KEYS.get(field.lower())
    if attr is None:
        attr = _FINANCIAL_KEYS.get(normalize_column_name(field))
    if attr is None:
        raise KeyError(f"Unknown financial field: {field}")

    candidates = FINANCIAL_COLUMNS[era_for_year(year)].get(attr, ())
    return to_number(first_present(row, candidates))


def get_financial_fields(row: Mapping[str, Any], year: int) -> dict[str, float]:
    """All financial figures for a row, keyed by column attribute."""
    return {attr: get_financial_field(row, year, attr) for attr in FINANCIAL_FIELDS}


def get_text_field(row: Mapping[str, Any], field: str) -> str:
    """Descriptive text field, trying each known spelling. "" when absent."""
    value = first_present(row, TEXT_COLUMNS[field])
    return "" if value is None else str(value).strip()


def get_number_field(row: Mapping[str, Any], field: str) -> float:
    return to_number(first_present(row, NUMBER_COLUMNS[field]))


def get_integer_field(row: Mapping[str, Any], field: str) -> int:
    return to_integer(first_present(row, NUMBER_COLUMNS[field]))


def extended_fields(row: Mapping[str, Any]) -> list[tuple[str, str, str]]:
    """
    Columns with no canonical home.

    Returns:
        (normalized field name, value as text, data type) for every
        non-blank column that no table above knows about. Data type is
        "number" when the value parses as one, else "text".
    """
    extras = []
    for column, value in row.items():
        name = normalize_column_name(column)
        if not name or name in KNOWN_COLUMNS or is_blank(value):
            continue
        text = str(value).strip()
        data_type = "number" if parse_number(text) is not None else "text"
        extras.append((name, text, data_type))
    return extras


# =============================================================================
# Identity values
# =============================================================================

CHARITY_SIZES = {"small": "Small", "medium": "Medium", "large": "Large"}

_TRUE_FLAGS = {"y", "yes", "true", "1"}
_FALSE_FLAGS = {"n", "no", "false", "0"}


def normalize_abn(value: Any) -> Optional[str]:
    """Canonical ABN text, or None when there is none."""
    if is_blank(value):
        return None
    abn = re.sub(r"\s+", "", str(value))
    # Spreadsheet numeric cells come through as "12345678901.0"
    if re.fullmatch(r"\d+\.0+", abn):
        abn = abn.split(".")[0]
    return abn or None


def get_abn(row: Mapping[str, Any]) -> Optional[str]:
    return normalize_abn(first_present(row, ABN_COLUMNS))


def normalize_charity_size(value: Any) -> Optional[str]:
    """Small/Medium/Large, or None when unknown."""
    if is_blank(value):
        return None
    return CHARITY_SIZES.get(str(value).strip().lower())


def parse_flag(value: Any) -> Optional[bool]:
    """Parse Y/N style flags. None when blank or unrecognised."""
    if is_blank(value):
        return None
    text = str(value).strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    return None


def classify_column(column: str, year: int) -> Optional[str]:
    """
    Where a source column ends up for a given reporting year.

    Returns:
        The canonical field it feeds ("abn", "total_revenue", ...),
        "ignored" for a financial column in a year without financial
        detail, or None when it will be kept as extended data.
    """
    name = normalize_column_name(column)
    if name in {normalize_column_name(c) for c in ABN_COLUMNS}:
        return "abn"
    tables = (FINANCIAL_COLUMNS[era_for_year(year)], TEXT_COLUMNS, NUMBER_COLUMNS)
    for table in tables:
        for field, candidates in table.items():
            if name in {normalize_column_name(c) for c in candidates}:
                return field
    if name in KNOWN_COLUMNS:
        return "ignored"
    return None
