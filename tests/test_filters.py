"""Tests for tuna_core.filters.normalize_filters."""

from tuna_core.filters import DashboardFilters, normalize_filters

YEARS = [2021, 2022, 2023, 2024, 2025]


def test_defaults_when_empty():
    f = normalize_filters({}, available_years=YEARS, default_headline_year=2024)

    assert f == DashboardFilters(headline_year=2024, outlier_year=2023)


def test_headline_falls_back_to_last_year_without_default():
    f = normalize_filters(None, available_years=YEARS)

    assert f.headline_year == 2025


def test_unknown_or_unparsable_years_fall_back():
    f = normalize_filters(
        {"headline_year": "abc", "outlier_year": 1999},
        available_years=YEARS,
        default_headline_year=2024,
    )

    assert f.headline_year == 2024
    assert f.outlier_year == 2023


def test_string_years_are_coerced():
    f = normalize_filters({"headline_year": "2023", "outlier_year": "2022"}, available_years=YEARS)

    assert f.headline_year == 2023
    assert f.outlier_year == 2022


def test_series_toggles():
    f = normalize_filters(
        {"show_global": "false", "show_mifco_price": 0, "show_revenue": None, "show_subsidy": "yes"},
        available_years=YEARS,
    )

    assert f.show_global is False
    assert f.show_mifco_price is False
    assert f.show_revenue is True
    assert f.show_subsidy is True
