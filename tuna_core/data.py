from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from tuna_core.filters import OUTLIER_YEAR_DEFAULT, DashboardFilters, normalize_filters


logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
MILLION = 1_000_000
THOUSAND = 1_000


@dataclass(frozen=True)
class RawYearRecord:
    year: int
    local_price: Optional[float] = None
    global_price: Optional[float] = None
    mifco_price: Optional[float] = None
    revenue: Optional[float] = None
    net_profit: Optional[float] = None
    subsidy: Optional[float] = None
    purchases_tonnes: Optional[float] = None
    exports_tonnes: Optional[float] = None
    total_catch_tonnes: Optional[float] = None
    mifco_purchases_tonnes: Optional[float] = None
    notes: Optional[str] = None
    mifco_purchases_basis: Optional[str] = None


@dataclass(frozen=True)
class YearRecord:
    year: int
    local_price: Optional[float]
    global_price: Optional[float]
    mifco_price: Optional[float]
    revenue: Optional[float]
    net_profit: Optional[float]
    subsidy: Optional[float]
    purchases_tonnes: Optional[float]
    exports_tonnes: Optional[float]
    total_catch_tonnes: Optional[float]
    mifco_purchases_tonnes: Optional[float]
    notes: Optional[str]
    mifco_purchases_basis: Optional[str]
    price_gap: Optional[float]
    price_gap_pct: Optional[float]
    price_gap_mifco: Optional[float]
    price_gap_mifco_pct: Optional[float]
    revenue_mvr_m: Optional[float]
    net_profit_mvr_m: Optional[float]
    subsidy_mvr_m: Optional[float]
    purchases_kt: Optional[float]
    exports_kt: Optional[float]
    total_catch_kt: Optional[float]
    mifco_purchases_kt: Optional[float]
    cash_to_boats_mvr_m: Optional[float]
    mifco_share_of_catch_pct: Optional[float]
    yoy_local: Optional[float]
    yoy_global: Optional[float]
    yoy_mifco_price: Optional[float]
    yoy_revenue: Optional[float]
    yoy_net_profit: Optional[float]
    yoy_subsidy: Optional[float]
    yoy_purchases: Optional[float]
    yoy_exports: Optional[float]


# Prices in MVR/kg, money in MVR, volumes in metric tonnes.
# Sources: MMA Table 4.1 (prices, purchases, exports, catch), MIFCO audited
# statements (revenue, profit, subsidy treatment), MoF budget (2025 subsidy).
SOURCE_TABLE: Tuple[RawYearRecord, ...] = (
    RawYearRecord(
        year=2021,
        local_price=14.0,
        global_price=25.4,
        mifco_price=14.0,
        revenue=1_199_676_000,
        net_profit=None,
        subsidy=None,
        purchases_tonnes=88_313,
        exports_tonnes=66_480,
        total_catch_tonnes=144_993,
        mifco_purchases_tonnes=None,
    ),
    RawYearRecord(
        year=2022,
        local_price=15.0,
        global_price=26.2,
        mifco_price=15.0,
        revenue=1_634_520_000,
        net_profit=None,
        # 2022 support was a one-off loan write-off, not a subsidy line.
        subsidy=None,
        purchases_tonnes=81_033,
        exports_tonnes=65_580,
        total_catch_tonnes=155_205,
        mifco_purchases_tonnes=55_989,
        mifco_purchases_basis="MIFCO frozen export volume (proxy)",
    ),
    RawYearRecord(
        year=2023,
        local_price=23.0,
        global_price=22.4,
        mifco_price=25.0,
        revenue=2_008_805_560,
        net_profit=298_329_409,
        subsidy=250_000_000,
        purchases_tonnes=96_120,
        exports_tonnes=64_350,
        total_catch_tonnes=160_683,
        mifco_purchases_tonnes=62_352,
        notes="Grant recorded in Other Income; fixed price policy in effect (Sep)",
        mifco_purchases_basis="MIFCO frozen export volume (proxy)",
    ),
    RawYearRecord(
        year=2024,
        local_price=14.0,
        global_price=23.1,
        mifco_price=14.0,
        revenue=1_075_554_268,
        net_profit=-165_639_426,
        # Approved amount; 389,518,216 disbursed in-year.
        subsidy=404_356_780,
        purchases_tonnes=53_232,
        exports_tonnes=31_730,
        total_catch_tonnes=107_666,
        mifco_purchases_tonnes=50_588,
        notes="Subsidy recorded net against cost of sales (MVR 4/kg scheme)",
        mifco_purchases_basis="Reported purchases Nov 17, 2023 - Nov 15, 2024 (annual proxy)",
    ),
    RawYearRecord(
        year=2025,
        local_price=14.0,
        global_price=24.1,
        mifco_price=16.0,
        revenue=None,
        net_profit=None,
        subsidy=341_814_184,
        purchases_tonnes=None,
        exports_tonnes=None,
        total_catch_tonnes=None,
        mifco_purchases_tonnes=None,
        notes="2025 prices YTD; revenue not yet published; subsidy is budgeted",
    ),
)

# YoY field -> derived field it compares against the previous record.
YOY_FIELDS: Dict[str, str] = {
    "yoy_local": "local_price",
    "yoy_global": "global_price",
    "yoy_mifco_price": "mifco_price",
    "yoy_revenue": "revenue_mvr_m",
    "yoy_net_profit": "net_profit_mvr_m",
    "yoy_subsidy": "subsidy_mvr_m",
    "yoy_purchases": "purchases_kt",
    "yoy_exports": "exports_kt",
}


# ---------------- Arithmetic helpers ----------------
def is_absent(value: object) -> bool:
    return value is None or pd.isna(value)


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if is_absent(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def scale(value: Optional[float], divisor: float, ndigits: int = 1) -> Optional[float]:
    """Unit conversion, e.g. MVR -> MVR millions or tonnes -> kilotonnes."""
    if is_absent(value):
        return None
    return round_half_up(value / divisor, ndigits)


def difference(minuend: Optional[float], subtrahend: Optional[float], ndigits: int = 1) -> Optional[float]:
    if is_absent(minuend) or is_absent(subtrahend):
        return None
    return round_half_up(minuend - subtrahend, ndigits)


def ratio_pct(numerator: Optional[float], denominator: Optional[float], ndigits: int = 1) -> Optional[float]:
    if is_absent(numerator) or is_absent(denominator) or denominator == 0:
        return None
    return round_half_up(numerator / denominator * 100, ndigits)


def pct_change(curr: Optional[float], prev: Optional[float], ndigits: int = 1) -> Optional[float]:
    """Percent change from ``prev`` to ``curr``; absent when either side is absent or ``prev`` is 0."""
    if is_absent(curr) or is_absent(prev) or prev == 0:
        return None
    return round_half_up((curr - prev) / prev * 100, ndigits)


def mean(values: Iterable[Optional[float]], ndigits: int = 1) -> Optional[float]:
    present = [v for v in values if not is_absent(v)]
    if not present:
        return None
    return round_half_up(sum(present) / len(present), ndigits)


# ---------------- Derived metrics ----------------
def _derive(raw: RawYearRecord) -> Dict[str, Any]:
    row = asdict(raw)
    price_gap = difference(raw.global_price, raw.local_price)
    price_gap_mifco = difference(raw.global_price, raw.mifco_price)
    cash_to_boats = None
    if not is_absent(raw.local_price) and not is_absent(raw.purchases_tonnes):
        cash_to_boats = round_half_up(raw.local_price * raw.purchases_tonnes * THOUSAND / MILLION, 1)
    row.update(
        price_gap=price_gap,
        price_gap_pct=ratio_pct(price_gap, raw.local_price),
        price_gap_mifco=price_gap_mifco,
        price_gap_mifco_pct=ratio_pct(price_gap_mifco, raw.mifco_price),
        revenue_mvr_m=scale(raw.revenue, MILLION),
        net_profit_mvr_m=scale(raw.net_profit, MILLION),
        subsidy_mvr_m=scale(raw.subsidy, MILLION),
        purchases_kt=scale(raw.purchases_tonnes, THOUSAND),
        exports_kt=scale(raw.exports_tonnes, THOUSAND),
        total_catch_kt=scale(raw.total_catch_tonnes, THOUSAND),
        mifco_purchases_kt=scale(raw.mifco_purchases_tonnes, THOUSAND),
        cash_to_boats_mvr_m=cash_to_boats,
        mifco_share_of_catch_pct=ratio_pct(raw.mifco_purchases_tonnes, raw.total_catch_tonnes),
    )
    return row


def compute_rows(raw: Sequence[RawYearRecord]) -> Tuple[YearRecord, ...]:
    """Enrich the raw yearly records with unit-scaled, ratio and YoY metrics.

    Input order is preserved and YoY fields compare each record against the one
    immediately before it in that order.
    """
    derived = [_derive(r) for r in raw]
    rows: List[YearRecord] = []
    prev: Optional[Dict[str, Any]] = None
    for cur in derived:
        yoy = {
            name: (pct_change(cur[field], prev[field]) if prev is not None else None)
            for name, field in YOY_FIELDS.items()
        }
        rows.append(YearRecord(**cur, **yoy))
        prev = cur
    logger.debug("Computed %d yearly rows", len(rows))
    return tuple(rows)


def rows_frame(rows: Sequence[YearRecord]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(r) for r in rows])
    if not df.empty:
        df["year_label"] = df["year"].astype(str)
    return df


def find_row(rows: Sequence[YearRecord], year: Optional[int]) -> Optional[YearRecord]:
    for r in rows:
        if r.year == year:
            return r
    return None


def previous_row(rows: Sequence[YearRecord], year: Optional[int]) -> Optional[YearRecord]:
    for idx, r in enumerate(rows):
        if r.year == year:
            return rows[idx - 1] if idx > 0 else None
    return None


def default_headline_year(rows: Sequence[YearRecord]) -> Optional[int]:
    """Latest year with published revenue; the last year when none is published."""
    published = [r.year for r in rows if not is_absent(r.revenue)]
    if published:
        return max(published)
    return rows[-1].year if rows else None


# ---------------- Aggregate summary ----------------
def compute_growth_window(rows: Sequence[YearRecord], end_year: int) -> Dict[str, Optional[float]]:
    """Revenue growth from the first year through ``end_year`` (the pre-shock run-up)."""
    window = [r for r in rows if r.year <= end_year]
    empty = {"start_year": None, "end_year": None, "avg_yoy_pct": None, "cagr_pct": None, "avg_annual_increase_mvr_m": None}
    if len(window) < 2:
        return empty
    revenues = [r.revenue_mvr_m for r in window]
    if any(is_absent(v) for v in revenues) or any(v == 0 for v in revenues[:-1]):
        return {**empty, "start_year": window[0].year, "end_year": window[-1].year}

    periods = len(window) - 1
    growth = [(revenues[i + 1] - revenues[i]) / revenues[i] for i in range(periods)]
    start, end = revenues[0], revenues[-1]
    cagr = None
    if start > 0 and end > 0:
        cagr = round_half_up(((end / start) ** (1 / periods) - 1) * 100, 1)
    return {
        "start_year": window[0].year,
        "end_year": window[-1].year,
        "avg_yoy_pct": round_half_up(sum(growth) / periods * 100, 1),
        "cagr_pct": cagr,
        "avg_annual_increase_mvr_m": round_half_up((end - start) / periods, 1),
    }


def compute_summary(
    rows: Sequence[YearRecord],
    headline_year: Optional[int] = None,
    outlier_year: int = OUTLIER_YEAR_DEFAULT,
) -> Dict[str, Any]:
    """Aggregate values computed once over the full sequence."""
    if headline_year is None:
        headline_year = default_headline_year(rows)
    latest = find_row(rows, headline_year)
    prev = previous_row(rows, headline_year)

    def _pair(field: str) -> Tuple[Optional[float], Optional[float]]:
        cur_val = getattr(latest, field) if latest is not None else None
        prev_val = getattr(prev, field) if prev is not None else None
        return cur_val, prev_val

    rev_cur, rev_prev = _pair("revenue_mvr_m")
    revenue_loss_m = difference(rev_prev, rev_cur)
    revenue_loss_bn = round_half_up(revenue_loss_m / THOUSAND, 2) if revenue_loss_m is not None else None

    outlier = find_row(rows, outlier_year)
    gaps = [r.price_gap for r in rows if r.year != outlier_year]
    mifco_prices = [r.mifco_price for r in rows if headline_year is not None and r.year <= headline_year]

    return {
        "headline_year": headline_year,
        "previous_year": prev.year if prev is not None else None,
        "outlier_year": outlier_year,
        "price_collapse_pct": pct_change(*_pair("local_price")),
        "revenue_yoy_pct": pct_change(rev_cur, rev_prev),
        "subsidy_yoy_pct": pct_change(*_pair("subsidy_mvr_m")),
        "purchases_yoy_pct": pct_change(*_pair("purchases_kt")),
        "exports_yoy_pct": pct_change(*_pair("exports_kt")),
        "revenue_headline_mvr_m": rev_cur,
        "revenue_previous_mvr_m": rev_prev,
        "revenue_loss_mvr_m": revenue_loss_m,
        "revenue_loss_mvr_bn": revenue_loss_bn,
        "avg_gap_ex_outlier": mean(gaps),
        "gap_pct_ex_outlier": {r.year: r.price_gap_pct for r in rows if r.year != outlier_year},
        "outlier_local_price": outlier.local_price if outlier is not None else None,
        "outlier_mifco_price": outlier.mifco_price if outlier is not None else None,
        "net_profit_headline_mvr_m": _pair("net_profit_mvr_m")[0],
        "growth": compute_growth_window(rows, outlier_year),
        "mifco_avg_price": mean(mifco_prices),
        "mifco_price_years": [r.year for r in rows if headline_year is not None and r.year <= headline_year],
        "mifco_share_by_year": {r.year: r.mifco_share_of_catch_pct for r in rows},
    }


# ---------------- Formatting ----------------
def format_value(value: object, suffix: str = "") -> str:
    if is_absent(value):
        return PLACEHOLDER
    return f"{value}{suffix}"


def format_pct(value: object) -> str:
    return format_value(value, "%")


def format_abs_value(value: object, suffix: str = "") -> str:
    if is_absent(value):
        return PLACEHOLDER
    return f"{abs(value)}{suffix}"


def format_abs_pct(value: object) -> str:
    return format_abs_value(value, "%")


def direction(value: object) -> Optional[str]:
    if is_absent(value):
        return None
    return "up" if value >= 0 else "down"


def trend_word(value: object, down: str, up: str, absent: str = "changed") -> str:
    """Pick the verb matching the sign of a change; absent values get a neutral word."""
    return {"up": up, "down": down}.get(direction(value), absent)


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(raw: Tuple[RawYearRecord, ...]) -> Dict[str, object]:
    rows = compute_rows(raw)
    logger.info("Loaded dashboard data for years %s", [r.year for r in rows])
    return {
        "years": [r.year for r in rows],
        "rows": rows,
        "frame": rows_frame(rows),
        "default_headline_year": default_headline_year(rows),
    }


def load_dashboard_data(raw: Sequence[RawYearRecord] = SOURCE_TABLE) -> Dict[str, object]:
    return _load_dashboard_data_cached(tuple(raw))


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    rows: Tuple[YearRecord, ...] = data_ctx.get("rows", ())  # type: ignore[assignment]
    frame: pd.DataFrame = data_ctx.get("frame", pd.DataFrame())  # type: ignore[assignment]
    available_years = data_ctx.get("years") or [r.year for r in rows]
    filt = (
        filters
        if isinstance(filters, DashboardFilters)
        else normalize_filters(
            filters,
            available_years=available_years,
            default_headline_year=data_ctx.get("default_headline_year"),
        )
    )

    summary = compute_summary(rows, filt.headline_year, filt.outlier_year)
    return {
        "filters": filt,
        "rows": rows,
        "frame": frame.copy(),
        "summary": summary,
        "headline": find_row(rows, summary["headline_year"]),
        "previous": previous_row(rows, summary["headline_year"]),
    }
