from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from tuna_core.charts import shock_band, to_vega_spec
from tuna_core.data import YearRecord
from tuna_core.filters import DashboardFilters


PROXY_CAPTION = (
    "MIFCO series is a proxy: the basis changes by year (see annotations). "
    "Share vs total catch is approximate."
)
EXPORTS_CAPTION = (
    "Dual-axis: exports (k t, left) vs MIFCO revenue (MVR m, right). "
    "Shows how the policy shock fed into the following year's volume and topline drop."
)


def build_catch_chart(frame: pd.DataFrame, summary: Dict[str, Any]) -> Optional[alt.LayerChart]:
    if frame.empty:
        return None
    long = frame.melt(
        id_vars=["year_label", "mifco_share_of_catch_pct"],
        value_vars=["mifco_purchases_kt", "total_catch_kt"],
        var_name="series_key",
        value_name="kt",
    )
    long["series"] = long["series_key"].map(
        {"mifco_purchases_kt": "MIFCO purchases (k t)", "total_catch_kt": "Total catch (k t)"}
    )
    bars = (
        alt.Chart(long)
        .mark_bar(size=22)
        .encode(
            x=alt.X("year_label:O", title="Year"),
            xOffset="series:N",
            y=alt.Y("kt:Q", title="k tonnes"),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(range=["#22c55e", "#06b6d4"]),
            ),
            tooltip=[
                "year_label",
                "series",
                alt.Tooltip("kt:Q", format=".1f"),
                alt.Tooltip("mifco_share_of_catch_pct:Q", title="MIFCO share of catch (%)"),
            ],
        )
    )
    band = shock_band(summary.get("outlier_year"), summary.get("headline_year"), color="rgba(255, 99, 132, 0.06)")
    layers = [band, bars] if band is not None else [bars]
    return alt.layer(*layers).properties(height=300)


def build_exports_chart(frame: pd.DataFrame, filters: DashboardFilters, summary: Dict[str, Any]) -> Optional[alt.LayerChart]:
    if frame.empty:
        return None
    x = alt.X("year_label:O", title="Year")
    bars = (
        alt.Chart(frame)
        .mark_bar(size=24, color="#06b6d4")
        .encode(
            x=x,
            y=alt.Y("exports_kt:Q", title="k tonnes"),
            tooltip=["year_label", alt.Tooltip("exports_kt:Q", title="Tuna exports (k t)")],
        )
    )
    band = shock_band(summary.get("outlier_year"), summary.get("headline_year"))
    left = alt.layer(band, bars) if band is not None else bars
    if not filters.show_revenue:
        return alt.layer(left).properties(height=300)
    revenue = (
        alt.Chart(frame)
        .mark_line(point=True, strokeWidth=3, color="#8b5cf6")
        .encode(
            x=x,
            y=alt.Y("revenue_mvr_m:Q", title="MVR millions (Revenue)", axis=alt.Axis(orient="right")),
            tooltip=["year_label", alt.Tooltip("revenue_mvr_m:Q", title="Revenue (MVR m)")],
        )
    )
    return alt.layer(left, revenue).resolve_scale(y="independent").properties(height=300)


def purchase_basis(rows: List[YearRecord]) -> List[Dict[str, Any]]:
    return [
        {"year": r.year, "basis": r.mifco_purchases_basis, "mifco_purchases_kt": r.mifco_purchases_kt}
        for r in rows
        if r.mifco_purchases_basis
    ]


def compute_volumes(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    frame: pd.DataFrame = ctx.get("frame", pd.DataFrame()).copy()
    summary: Dict[str, Any] = ctx.get("summary", {})
    rows: List[YearRecord] = list(ctx.get("rows", ()))

    catch_chart = build_catch_chart(frame, summary)
    exports_chart = build_exports_chart(frame, filters, summary)
    return {
        "filters": asdict(filters),
        "catch": {
            "title": "MIFCO purchases vs Total fish catch — k tonnes & share",
            "chart": to_vega_spec(catch_chart) if catch_chart is not None else None,
            "caption": PROXY_CAPTION,
            "basis": purchase_basis(rows),
        },
        "exports": {
            "title": "Revenue vs Tuna exports — MVR m & k tonnes",
            "chart": to_vega_spec(exports_chart) if exports_chart is not None else None,
            "caption": EXPORTS_CAPTION,
        },
    }
