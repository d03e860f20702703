"""Tests for the aggregate summary values computed over the full sequence."""

from tuna_core.data import (
    RawYearRecord,
    compute_growth_window,
    compute_rows,
    compute_summary,
    default_headline_year,
    prepare_context,
)


def test_default_headline_is_latest_published_revenue(rows):
    assert default_headline_year(rows) == 2024


def test_headline_yoy_values(rows):
    summary = compute_summary(rows)

    assert summary["headline_year"] == 2024
    assert summary["previous_year"] == 2023
    assert summary["price_collapse_pct"] == -39.1
    assert summary["revenue_yoy_pct"] == -46.5
    assert summary["subsidy_yoy_pct"] == 61.8
    assert summary["purchases_yoy_pct"] == -44.6
    assert summary["exports_yoy_pct"] == -50.8


def test_revenue_loss_in_billions(rows):
    summary = compute_summary(rows)

    assert summary["revenue_loss_mvr_m"] == 933.2
    assert summary["revenue_loss_mvr_bn"] == 0.93


def test_average_gap_excludes_outlier_year(rows):
    """Gaps 11.4, 11.2, 9.1 and 10.1 remain once 2023 is dropped."""

    summary = compute_summary(rows, outlier_year=2023)

    assert summary["avg_gap_ex_outlier"] == 10.5


def test_mifco_average_quay_price_up_to_headline(rows):
    summary = compute_summary(rows)

    assert summary["mifco_avg_price"] == 17.0
    assert summary["mifco_price_years"] == [2021, 2022, 2023, 2024]


def test_pre_shock_growth_window(rows):
    growth = compute_growth_window(rows, 2023)

    assert growth["start_year"] == 2021
    assert growth["end_year"] == 2023
    assert growth["avg_yoy_pct"] == 29.6
    assert growth["cagr_pct"] == 29.4
    assert growth["avg_annual_increase_mvr_m"] == 404.5


def test_growth_window_absent_when_revenue_missing():
    raw = (
        RawYearRecord(year=2000, revenue=1_000_000),
        RawYearRecord(year=2001, revenue=None),
        RawYearRecord(year=2002, revenue=3_000_000),
    )
    growth = compute_growth_window(compute_rows(raw), 2002)

    assert growth["avg_yoy_pct"] is None
    assert growth["cagr_pct"] is None
    assert growth["start_year"] == 2000


def test_summary_for_first_year_has_no_comparison(rows):
    summary = compute_summary(rows, headline_year=2021)

    assert summary["previous_year"] is None
    assert summary["revenue_yoy_pct"] is None
    assert summary["revenue_loss_mvr_bn"] is None


def test_prepare_context_honours_headline_override(data_ctx):
    ctx = prepare_context({"headline_year": 2023}, data_ctx)

    assert ctx["headline"].year == 2023
    assert ctx["previous"].year == 2022
    assert ctx["summary"]["revenue_loss_mvr_m"] == -374.3


def test_mifco_share_by_year(rows):
    shares = compute_summary(rows)["mifco_share_by_year"]

    assert shares[2023] == 38.8
    assert shares[2024] == 47.0
    assert shares[2025] is None
