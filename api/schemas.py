from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class DashboardFiltersModel(BaseModel):
    show_global: bool = True
    show_mifco_price: bool = True
    show_revenue: bool = True
    show_subsidy: bool = True
    headline_year: Optional[int] = None
    outlier_year: Optional[int] = None


class MetaYearsResponse(BaseModel):
    years: List[int]
    default_headline_year: Optional[int] = None
