from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Sequence, Tuple

import pandas as pd

from tuna_core.data import YearRecord, format_pct, format_value, rows_frame
from tuna_core.filters import DashboardFilters


# (column header, row field, percent?)
TABLE_COLUMNS: List[Tuple[str, str, bool]] = [
    ("Year", "year", False),
    ("Local (MVR/kg)", "local_price", False),
    ("MIFCO price (MVR/kg)", "mifco_price", False),
    ("Local YoY", "yoy_local", True),
    ("Global (MVR/kg)", "global_price", False),
    ("Global YoY", "yoy_global", True),
    ("Gap (MVR/kg)", "price_gap", False),
    ("Gap (%)", "price_gap_pct", True),
    ("Revenue (MVR m)", "revenue_mvr_m", False),
    ("Revenue YoY", "yoy_revenue", True),
    ("Net profit (MVR m)", "net_profit_mvr_m", False),
    ("Net profit YoY", "yoy_net_profit", True),
    ("Subsidy (MVR m)", "subsidy_mvr_m", False),
    ("Subsidy YoY", "yoy_subsidy", True),
    ("MIFCO purchases (k t)", "mifco_purchases_kt", False),
    ("MIFCO share of total catch", "mifco_share_of_catch_pct", True),
    ("Notes", "notes", False),
]


def format_row(row: YearRecord) -> List[str]:
    cells: List[str] = []
    for _, field, is_pct in TABLE_COLUMNS:
        value = getattr(row, field)
        if field == "notes":
            cells.append(value or "")
        elif is_pct:
            cells.append(format_pct(value))
        else:
            cells.append(format_value(value))
    return cells


def table_frame(rows: Sequence[YearRecord]) -> pd.DataFrame:
    """Display frame with the table headers and placeholder-formatted cells."""
    headers = [header for header, _, _ in TABLE_COLUMNS]
    return pd.DataFrame([format_row(r) for r in rows], columns=headers)


def export_frame(rows: Sequence[YearRecord]) -> pd.DataFrame:
    df = rows_frame(rows)
    return df.drop(columns=["year_label"], errors="ignore")


def compute_table(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows: List[YearRecord] = list(ctx.get("rows", ()))
    return {
        "filters": asdict(filters),
        "title": "Yearly figures & deltas",
        "columns": [{"header": h, "field": f, "percent": p} for h, f, p in TABLE_COLUMNS],
        "rows": [format_row(r) for r in rows],
        "records": [asdict(r) for r in rows],
    }
