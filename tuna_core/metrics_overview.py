from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from tuna_core.data import YearRecord, direction, format_abs_value, format_pct, format_value, trend_word
from tuna_core.filters import DashboardFilters


KEY_TAKEAWAYS = [
    "Gap % = GP%: the global-local gap is read as gross margin vs local cost.",
    "The outlier year is the exception; excluding it, the average gap favours global over local.",
    "Cash to boats swings with price x purchases; halts and late payments amplify pain.",
]


def _field(row: Optional[YearRecord], name: str) -> Optional[float]:
    return getattr(row, name) if row is not None else None


def _pill(label: str, value: Optional[float], *, signed: bool = True) -> Dict[str, Any]:
    return {
        "label": label,
        "value": value,
        "text": f"{label} {format_pct(value)}",
        "direction": direction(value) if signed else None,
    }


def _kpi(title: str, unit: str, value: Optional[float], badge: str, highlight: bool = False) -> Dict[str, Any]:
    return {
        "title": title,
        "unit": unit,
        "value": value,
        "display": format_value(value),
        "badge": badge,
        "highlight": highlight,
    }


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    summary: Dict[str, Any] = ctx.get("summary", {})
    latest: Optional[YearRecord] = ctx.get("headline")
    year = summary.get("headline_year")
    outlier = summary.get("outlier_year")

    loss_bn = summary.get("revenue_loss_mvr_bn")
    # a positive revenue loss is money lost
    outcome = trend_word(loss_bn, "gain", "loss")
    avg_gap = summary.get("avg_gap_ex_outlier")
    pills: List[Dict[str, Any]] = [
        {
            "label": "Revenue loss",
            "value": loss_bn,
            "text": f"Revenue {outcome} vs {summary.get('previous_year')}: "
            + (f"{format_abs_value(loss_bn)} bn MVR {outcome}" if loss_bn is not None else format_value(None)),
            "direction": None,
        },
        _pill("Revenue YoY", summary.get("revenue_yoy_pct")),
        _pill("Subsidy YoY", summary.get("subsidy_yoy_pct")),
        _pill("Purchases YoY", summary.get("purchases_yoy_pct")),
        _pill("Exports YoY", summary.get("exports_yoy_pct")),
        {
            "label": "Avg gap",
            "value": avg_gap,
            "text": f"Avg global–local gap ex-{outlier}: {format_value(avg_gap, ' MVR/kg')}",
            "direction": None,
        },
    ]

    price_years = summary.get("mifco_price_years") or []
    mifco_range = f"{price_years[0]}–{price_years[-1]}" if price_years else format_value(None)
    kpis = [
        _kpi(
            f"Local SKJ price ({year}, MMA avg)",
            "MVR per kg",
            _field(latest, "local_price"),
            f"YoY {format_pct(summary.get('price_collapse_pct'))}",
            highlight=True,
        ),
        _kpi(
            f"Global SKJ price ({year})",
            "MVR per kg",
            _field(latest, "global_price"),
            f"Gap vs local {format_pct(_field(latest, 'price_gap_pct'))}",
        ),
        _kpi(
            f"Revenue ({year})",
            "MVR millions",
            _field(latest, "revenue_mvr_m"),
            f"YoY {format_pct(_field(latest, 'yoy_revenue'))}",
        ),
        _kpi(
            f"Subsidy ({year})",
            "MVR millions",
            _field(latest, "subsidy_mvr_m"),
            f"YoY {format_pct(_field(latest, 'yoy_subsidy'))}",
        ),
    ]
    mifco_kpi = _kpi(
        f"MIFCO average quay price ({mifco_range})",
        "MVR per kg",
        summary.get("mifco_avg_price"),
        f"Includes policy shift in {outlier}",
        highlight=True,
    )

    return {
        "filters": asdict(filters),
        "hero": {
            "title": f"The {outlier} shock and its ripple effects",
            "pills": pills,
            "takeaways": KEY_TAKEAWAYS,
        },
        "kpis": kpis,
        "mifco_price_kpi": mifco_kpi,
        "summary": summary,
    }
