"""Tests for the page payload builders."""

import json

import pytest

from tuna_core.data import load_dashboard_data, prepare_context, RawYearRecord
from tuna_core.metrics_overview import compute_overview
from tuna_core.metrics_prices import compute_price_timeline, price_domain
from tuna_core.metrics_table import compute_table, export_frame, table_frame
from tuna_core.metrics_volumes import compute_volumes
from tuna_core.narrative import SOURCES, compute_narrative


def _encodes(spec, field):
    return f'"field": "{field}"' in json.dumps(spec)


def test_overview_kpis(ctx):
    payload = compute_overview(ctx["filters"], ctx)
    local, global_, revenue, subsidy = payload["kpis"]

    assert local["title"] == "Local SKJ price (2024, MMA avg)"
    assert local["display"] == "14.0"
    assert local["badge"] == "YoY -39.1%"
    assert global_["badge"] == "Gap vs local 65.0%"
    assert revenue["display"] == "1075.6"
    assert revenue["badge"] == "YoY -46.5%"
    assert subsidy["badge"] == "YoY 61.8%"
    assert payload["mifco_price_kpi"]["display"] == "17.0"
    assert "2021–2024" in payload["mifco_price_kpi"]["title"]


def test_overview_pills_carry_direction(ctx):
    pills = {p["label"]: p for p in compute_overview(ctx["filters"], ctx)["hero"]["pills"]}

    assert pills["Revenue YoY"]["direction"] == "down"
    assert pills["Subsidy YoY"]["direction"] == "up"
    assert pills["Revenue loss"]["text"] == "Revenue loss vs 2023: 0.93 bn MVR loss"
    assert pills["Avg gap"]["direction"] is None


def test_overview_placeholders_for_absent_values(data_ctx):
    ctx = prepare_context({"headline_year": 2025}, data_ctx)
    payload = compute_overview(ctx["filters"], ctx)

    revenue = payload["kpis"][2]
    assert revenue["value"] is None
    assert revenue["display"] == "—"
    assert revenue["badge"] == "YoY —"


def test_price_domain_is_padded(ctx):
    assert price_domain(ctx["frame"]) == pytest.approx((12.0, 28.2))


def test_price_timeline_respects_toggles(data_ctx):
    ctx = prepare_context({}, data_ctx)
    full = compute_price_timeline(ctx["filters"], ctx)
    assert _encodes(full["chart"], "subsidy_mvr_m")
    assert "Global price (MVR/kg)" in json.dumps(full["chart"])

    ctx = prepare_context({"show_subsidy": False, "show_global": False}, data_ctx)
    trimmed = compute_price_timeline(ctx["filters"], ctx)
    assert not _encodes(trimmed["chart"], "subsidy_mvr_m")
    assert "Global price (MVR/kg)" not in json.dumps(trimmed["chart"])
    assert trimmed["filters"]["show_subsidy"] is False


def test_price_caption_mentions_profit_swing(ctx):
    caption = compute_price_timeline(ctx["filters"], ctx)["caption"]

    assert "+298 MVR m (2023)" in caption
    assert "-166 MVR m (2024)" in caption


def test_volumes_payload(data_ctx):
    ctx = prepare_context({}, data_ctx)
    payload = compute_volumes(ctx["filters"], ctx)

    assert [b["year"] for b in payload["catch"]["basis"]] == [2022, 2023, 2024]
    assert _encodes(payload["exports"]["chart"], "revenue_mvr_m")

    ctx = prepare_context({"show_revenue": False}, data_ctx)
    payload = compute_volumes(ctx["filters"], ctx)
    assert not _encodes(payload["exports"]["chart"], "revenue_mvr_m")
    assert _encodes(payload["exports"]["chart"], "exports_kt")


def test_table_formats_placeholders(ctx):
    payload = compute_table(ctx["filters"], ctx)
    headers = [c["header"] for c in payload["columns"]]
    table = {row[0]: dict(zip(headers, row)) for row in payload["rows"]}

    assert table["2021"]["Net profit (MVR m)"] == "—"
    assert table["2022"]["Subsidy YoY"] == "—"
    assert table["2024"]["MIFCO share of total catch"] == "47.0%"
    assert table["2024"]["Local YoY"] == "-39.1%"
    assert table["2021"]["Notes"] == ""
    assert len(payload["records"]) == 5


def test_table_frames(rows):
    display = table_frame(rows)
    export = export_frame(rows)

    assert display.columns.is_unique
    assert list(display["Year"]) == ["2021", "2022", "2023", "2024", "2025"]
    assert "year_label" not in export.columns
    assert "mifco_share_of_catch_pct" in export.columns


def test_narrative_interpolates_summary(ctx):
    payload = compute_narrative(ctx["filters"], ctx)
    text = json.dumps(payload["sections"], ensure_ascii=False)

    assert payload["title"] == "Analysis: 2023 decision → 2024 collapse"
    assert "0.93 bn MVR" in text
    assert "46.5%" in text
    assert "47.0%" in text
    assert payload["sources"] == SOURCES


def test_narrative_uses_placeholder_when_revenue_absent():
    raw = (
        RawYearRecord(year=2000, local_price=10.0, global_price=12.0),
        RawYearRecord(year=2001, local_price=11.0, global_price=12.5),
    )
    data_ctx = load_dashboard_data(raw)
    ctx = prepare_context({}, data_ctx)
    text = json.dumps(compute_narrative(ctx["filters"], ctx)["sections"], ensure_ascii=False)

    assert "bn MVR" not in text
    assert "—" in text


def test_narrative_wording_follows_sign_of_change(data_ctx):
    """Headline 2023 is a year of growth, so the text must not describe a loss."""

    ctx = prepare_context({"headline_year": 2023}, data_ctx)
    payload = compute_narrative(ctx["filters"], ctx)
    impact = next(s for s in payload["sections"] if s["title"].startswith("Industry impact"))["paragraphs"][0]

    assert "fell" not in impact
    assert "Revenue rose by about 22.9%" in impact
    assert "top-line gain of roughly 0.37 bn MVR (374.3 MVR m)" in impact
    assert "Purchases rose 18.6%" in impact
    assert "-0.37" not in impact
    assert "could not prevent a loss" not in impact
    assert not payload["title"].endswith("collapse")


def test_narrative_wording_for_default_headline(ctx):
    payload = compute_narrative(ctx["filters"], ctx)
    impact = next(s for s in payload["sections"] if s["title"].startswith("Industry impact"))["paragraphs"][0]

    assert "Revenue fell by about 46.5%" in impact
    assert "top-line loss of roughly 0.93 bn MVR (933.2 MVR m)" in impact
    assert "Purchases dropped 44.6%" in impact
    assert "Subsidy support rose 61.8% but could not prevent a loss" in impact


def test_overview_revenue_pill_reports_gain(data_ctx):
    ctx = prepare_context({"headline_year": 2023}, data_ctx)
    pills = {p["label"]: p for p in compute_overview(ctx["filters"], ctx)["hero"]["pills"]}

    assert pills["Revenue loss"]["text"] == "Revenue gain vs 2022: 0.37 bn MVR gain"


def test_narrative_includes_analysis_card_sections(ctx):
    payload = compute_narrative(ctx["filters"], ctx)
    titles = [s["title"] for s in payload["sections"]]

    for title in [
        "Market confidence & destination mix (2024) — action to verify",
        "Emergency actions (next 90 days)",
        "Stabilise cash & capacity",
        "Predictable support",
        "Protect the premium",
        "Subsidy became unavoidable after the 2023 change",
    ]:
        assert title in titles
    mix = next(s for s in payload["sections"] if s["title"].startswith("Market confidence"))
    assert len(mix["bullets"]) == 3
    assert "MMA Table 4.1 annual averages" in payload["methodology"]
    assert "gross margin" in payload["methodology"]


def test_myth_section_lists_gap_pct_outside_outlier(ctx):
    myth = next(s for s in compute_narrative(ctx["filters"], ctx)["sections"] if s["title"].startswith("Myth"))
    text = myth["paragraphs"][0]

    assert "2022: 74.7%" in text
    assert "2024: 65.0%" in text
    assert "2023:" not in text


def test_outlier_price_comes_from_outlier_row(data_ctx):
    ctx = prepare_context({"outlier_year": 2022}, data_ctx)
    caption = compute_price_timeline(ctx["filters"], ctx)["caption"]
    what = compute_narrative(ctx["filters"], ctx)["sections"][0]["paragraphs"][0]

    assert "Sep 2022 fixed price set at 15.0 MVR/kg" in caption
    assert "25" not in what
    assert "quay price at 15.0 MVR/kg" in what

    ctx = prepare_context({}, data_ctx)
    caption = compute_price_timeline(ctx["filters"], ctx)["caption"]
    assert "fixed price set at 25.0 MVR/kg (avg ~23.0)" in caption
