from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional


OUTLIER_YEAR_DEFAULT = 2023


@dataclass(frozen=True)
class DashboardFilters:
    show_global: bool = True
    show_mifco_price: bool = True
    show_revenue: bool = True
    show_subsidy: bool = True
    headline_year: Optional[int] = None
    outlier_year: int = OUTLIER_YEAR_DEFAULT


def _as_bool(value: object, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"0", "false", "no", "off", ""}
    return bool(value)


def _as_year(value: object, available_years: List[int]) -> Optional[int]:
    if value is None:
        return None
    try:
        year = int(value)  # type: ignore[arg-type]
    except Exception:
        return None
    if available_years and year not in available_years:
        return None
    return year


def normalize_filters(
    raw: Optional[dict],
    *,
    available_years: Optional[Iterable[int]] = None,
    default_headline_year: Optional[int] = None,
) -> DashboardFilters:
    raw = raw or {}
    years = sorted(int(y) for y in (available_years or []))

    headline_year = _as_year(raw.get("headline_year"), years)
    if headline_year is None:
        headline_year = default_headline_year if default_headline_year is not None else (years[-1] if years else None)

    outlier_year = _as_year(raw.get("outlier_year"), years)
    if outlier_year is None:
        outlier_year = OUTLIER_YEAR_DEFAULT

    return DashboardFilters(
        show_global=_as_bool(raw.get("show_global")),
        show_mifco_price=_as_bool(raw.get("show_mifco_price")),
        show_revenue=_as_bool(raw.get("show_revenue")),
        show_subsidy=_as_bool(raw.get("show_subsidy")),
        headline_year=headline_year,
        outlier_year=outlier_year,
    )
