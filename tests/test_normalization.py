"""Tests for column reconciliation and value coercion."""

import pytest

from acncdata.normalization import (
    Era,
    era_for_year,
    normalize_column_name,
    to_number,
    to_integer,
    get_financial_field,
    get_financial_fields,
    get_text_field,
    get_number_field,
    extended_fields,
    classify_column,
    normalize_abn,
    get_abn,
    normalize_charity_size,
    parse_flag,
    FINANCIAL_FIELDS,
)


class TestEras:

    @pytest.mark.parametrize("year,era", [
        (2013, Era.PRE_FINANCIAL),
        (2015, Era.PRE_FINANCIAL),
        (2016, Era.TITLE_CASE),
        (2017, Era.COMPREHENSIVE),
        (2023, Era.COMPREHENSIVE),
    ])
    def test_era_for_year(self, year, era):
        assert era_for_year(year) is era

    def test_normalize_column_name(self):
        assert normalize_column_name("Net surplus/deficit") == "net_surplus_deficit"
        assert normalize_column_name("  Staff - Full Time ") == "staff_full_time"
        assert normalize_column_name(None) == ""


class TestFinancialFields:

    def test_title_case_alias_for_2016(self):
        row = {"Other Comprehensive Income (if applicable)": "1000"}
        assert get_financial_field(row, 2016, "other comprehensive income") == 1000.0

    def test_total_revenue_alias_matches_canonical(self):
        assert get_financial_field({"Total revenue": "1000"}, 2016, "total revenue") == 1000.0
        assert get_financial_field({"total revenue": "1000"}, 2021, "total revenue") == 1000.0

    def test_canonical_name_for_2019(self):
        row = {"other comprehensive income": "1000"}
        assert get_financial_field(row, 2019, "other comprehensive income") == 1000.0

    def test_lookup_by_attribute_name(self):
        row = {"total revenue": "2,500"}
        assert get_financial_field(row, 2020, "total_revenue") == 2500.0

    def test_snake_case_source_column(self):
        row = {"total_assets": "99"}
        assert get_financial_field(row, 2018, "total assets") == 99.0

    def test_pre_financial_years_are_zero(self):
        row = {"total revenue": "5000", "Total revenue": "5000"}
        for year in (2013, 2014, 2015):
            assert get_financial_field(row, year, "total revenue") == 0.0

    def test_missing_column_is_zero(self):
        assert get_financial_field({}, 2020, "total revenue") == 0.0

    def test_unknown_field_raises(self):
        with pytest.raises(KeyError):
            get_financial_field({}, 2020, "profit before tax")

    def test_all_fields_present(self):
        figures = get_financial_fields({"total revenue": "10"}, 2021)
        assert set(figures) == set(FINANCIAL_FIELDS)
        assert figures["total_revenue"] == 10.0
        assert figures["total_assets"] == 0.0


class TestCoercion:

    @pytest.mark.parametrize("value", ["", None, "N/A", "$-", "-", "abc", "nan", "inf"])
    def test_unparsable_is_zero(self, value):
        assert to_number(value) == 0.0

    @pytest.mark.parametrize("value,expected", [
        ("1,234.50", 1234.5),
        ("$1,000", 1000.0),
        ("AUD 250", 250.0),
        ("(1,234)", -1234.0),
        (" 42 ", 42.0),
        (7, 7.0),
        (2.5, 2.5),
    ])
    def test_numbers(self, value, expected):
        assert to_number(value) == expected

    def test_to_integer_truncates(self):
        assert to_integer("12.9") == 12
        assert to_integer("-3.7") == -3
        assert to_integer("") == 0
        assert to_integer("lots") == 0


class TestTextFields:

    def test_variant_spellings(self):
        assert get_text_field({"charity name": " Red Cross "}, "charity_name") == "Red Cross"
        assert get_text_field({"Charity Name": "Red Cross"}, "charity_name") == "Red Cross"
        assert get_text_field({"charity_name": "Red Cross"}, "charity_name") == "Red Cross"

    def test_spelling_outside_variant_list(self):
        assert get_text_field({"Date AIS Received": "2017-05-01"}, "date_ais_received") == "2017-05-01"
        assert get_number_field({"Number of Key Management Personnel": "3"},
                                "number_of_key_management_personnel") == 3.0

    def test_missing_is_empty(self):
        assert get_text_field({}, "charity_website") == ""
        assert get_text_field({"charity website": "   "}, "charity_website") == ""

    def test_first_non_blank_wins(self):
        row = {"charity name": "", "Charity Legal Name": "Legal Name Ltd"}
        assert get_text_field(row, "charity_name") == "Legal Name Ltd"


class TestExtendedFields:

    def test_unknown_columns_returned(self):
        row = {
            "abn": "1",
            "charity name": "X",
            "total revenue": "5",
            "Operates in NSW": "Y",
            "Number of beneficiaries": "1,200",
            "Blank column": "",
        }
        extras = extended_fields(row)
        assert ("operates_in_nsw", "Y", "text") in extras
        assert ("number_of_beneficiaries", "1,200", "number") in extras
        assert len(extras) == 2

    def test_known_field_in_other_casing_is_not_extended(self):
        assert extended_fields({"Total paid to Key Management Personnel": "5"}) == []

    def test_title_case_financial_column_is_known(self):
        assert extended_fields({"Total revenue": "5"}) == []


class TestClassifyColumn:

    def test_canonical_columns(self):
        assert classify_column("abn", 2020) == "abn"
        assert classify_column("total revenue", 2020) == "total_revenue"
        assert classify_column("charity name", 2014) == "charity_name"

    def test_matched_by_normalized_name(self):
        assert classify_column("Charity ABN", 2020) == "abn"
        assert classify_column("Number of Key Management Personnel", 2020) == (
            "number_of_key_management_personnel"
        )

    def test_title_case_only_read_in_2016(self):
        assert classify_column("Total revenue", 2016) == "total_revenue"
        assert classify_column("total revenue", 2014) == "ignored"

    def test_extended_column(self):
        assert classify_column("Operates in NSW", 2020) is None


class TestIdentityValues:

    @pytest.mark.parametrize("value,expected", [
        ("11 005 357 522", "11005357522"),
        ("11005357522.0", "11005357522"),
        (11005357522, "11005357522"),
        ("", None),
        (None, None),
    ])
    def test_normalize_abn(self, value, expected):
        assert normalize_abn(value) == expected

    def test_get_abn_column_spellings(self):
        assert get_abn({"ABN": "123"}) == "123"
        assert get_abn({"Abn": "456"}) == "456"
        assert get_abn({"charity abn": "11005357522"}) == "11005357522"
        assert get_abn({"Charity ABN": "789"}) == "789"
        assert get_abn({"charity name": "No ABN"}) is None

    def test_charity_size(self):
        assert normalize_charity_size("large") == "Large"
        assert normalize_charity_size(" SMALL ") == "Small"
        assert normalize_charity_size("Huge") is None
        assert normalize_charity_size("") is None

    def test_parse_flag(self):
        assert parse_flag("Y") is True
        assert parse_flag("no") is False
        assert parse_flag("") is None
        assert parse_flag("maybe") is None
