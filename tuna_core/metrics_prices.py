from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple

import altair as alt
import pandas as pd

from tuna_core.charts import shock_band, to_vega_spec
from tuna_core.data import PLACEHOLDER, direction, format_value, trend_word
from tuna_core.filters import DashboardFilters


DOMAIN_PADDING = 2.0

PRICE_SERIES = {
    "local_price": ("Local price (MVR/kg)", "#10b981"),
    "mifco_price": ("MIFCO price (MVR/kg)", "#16a34a"),
    "global_price": ("Global price (MVR/kg)", "#0ea5e9"),
}


def price_domain(frame: pd.DataFrame, padding: float = DOMAIN_PADDING) -> Optional[Tuple[float, float]]:
    """Left-axis range spanning local and global prices, padded on both ends."""
    cols = [c for c in ["local_price", "global_price"] if c in frame.columns]
    if frame.empty or not cols:
        return None
    values = pd.to_numeric(pd.concat([frame[c] for c in cols]), errors="coerce").dropna()
    if values.empty:
        return None
    return float(values.min()) - padding, float(values.max()) + padding


def _price_long(frame: pd.DataFrame, series: List[str]) -> pd.DataFrame:
    long = frame.melt(id_vars=["year_label"], value_vars=series, var_name="series_key", value_name="price")
    long["series"] = long["series_key"].map(lambda k: PRICE_SERIES[k][0])
    return long.dropna(subset=["price"])


def build_price_chart(frame: pd.DataFrame, filters: DashboardFilters, summary: Dict[str, Any]) -> Optional[alt.LayerChart]:
    if frame.empty:
        return None
    domain = price_domain(frame)
    y_scale = alt.Scale(domain=list(domain), clamp=True) if domain else alt.Undefined
    x = alt.X("year_label:O", title="Year")

    area = (
        alt.Chart(frame)
        .mark_area(opacity=0.18, color=PRICE_SERIES["local_price"][1], line={"color": PRICE_SERIES["local_price"][1], "strokeWidth": 3})
        .encode(
            x=x,
            y=alt.Y("local_price:Q", title="Price (MVR/kg)", scale=y_scale),
            tooltip=["year_label", alt.Tooltip("local_price:Q", title=PRICE_SERIES["local_price"][0])],
        )
    )

    dashed = [k for k, shown in [("mifco_price", filters.show_mifco_price), ("global_price", filters.show_global)] if shown]
    layers: List[alt.Chart] = []
    band = shock_band(summary.get("outlier_year"), summary.get("headline_year"))
    if band is not None:
        layers.append(band)
    layers.append(area)
    if dashed:
        long = _price_long(frame, dashed)
        layers.append(
            alt.Chart(long)
            .mark_line(point={"size": 40}, strokeWidth=3, strokeDash=[6, 3])
            .encode(
                x=x,
                y=alt.Y("price:Q", scale=y_scale),
                color=alt.Color(
                    "series:N",
                    title=None,
                    scale=alt.Scale(
                        domain=[PRICE_SERIES[k][0] for k in dashed],
                        range=[PRICE_SERIES[k][1] for k in dashed],
                    ),
                ),
                tooltip=["year_label", "series", alt.Tooltip("price:Q", format=".1f")],
            )
        )
    prices = alt.layer(*layers)

    if not filters.show_subsidy:
        return prices.properties(height=420)

    subsidy = (
        alt.Chart(frame)
        .mark_line(point={"size": 40}, strokeWidth=3, strokeDash=[5, 3], color="#f59e0b")
        .encode(
            x=x,
            y=alt.Y("subsidy_mvr_m:Q", title="MVR millions (Subsidy)", axis=alt.Axis(orient="right")),
            tooltip=["year_label", alt.Tooltip("subsidy_mvr_m:Q", title="Subsidy (MVR m)")],
        )
    )
    return alt.layer(prices, subsidy).resolve_scale(y="independent").properties(height=420)


def diagnosis_caption(summary: Dict[str, Any], rows: List[Any]) -> str:
    growth = summary.get("growth") or {}
    prev_year = summary.get("previous_year")
    year = summary.get("headline_year")
    profit = {r.year: r.net_profit_mvr_m for r in rows}
    prev_profit = profit.get(prev_year)
    cur_profit = profit.get(year)

    def _signed(value: Optional[float]) -> str:
        if value is None:
            return PLACEHOLDER
        return f"{value:+.0f}"

    revenue = summary.get("revenue_yoy_pct")
    revenue_text = f"{revenue:+.0f}%" if revenue is not None else PLACEHOLDER
    if direction(revenue) == "down":
        revenue_text += " YoY despite subsidies"
    else:
        revenue_text += " YoY"
    return (
        f"Diagnosis: {format_value(growth.get('start_year'))}–{format_value(growth.get('end_year'))} revenue "
        f"{trend_word(growth.get('avg_yoy_pct'), 'down', 'up')}; "
        f"Sep {summary.get('outlier_year')} fixed price set at {format_value(summary.get('outlier_mifco_price'), ' MVR/kg')} "
        f"(avg ~{format_value(summary.get('outlier_local_price'))}) over export parity -> "
        f"{year} revenue {revenue_text}; net profit moved from "
        f"{_signed(prev_profit)} MVR m ({prev_year}) to {_signed(cur_profit)} MVR m ({year}) (audited). "
        "All local prices shown are annual averages from MMA Table 4.1."
    )


def compute_price_timeline(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    frame: pd.DataFrame = ctx.get("frame", pd.DataFrame()).copy()
    summary: Dict[str, Any] = ctx.get("summary", {})
    rows = list(ctx.get("rows", ()))

    chart = build_price_chart(frame, filters, summary)
    domain = price_domain(frame)
    return {
        "filters": asdict(filters),
        "title": "Impact Timeline — Prices (MVR/kg) + Subsidy (MVR m)",
        "price_domain": list(domain) if domain else None,
        "chart": to_vega_spec(chart) if chart is not None else None,
        "caption": diagnosis_caption(summary, rows),
    }
