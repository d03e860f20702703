from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt

alt.data_transformers.disable_max_rows()

SHOCK_BAND_COLOR = "rgba(99, 102, 241, 0.06)"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def shock_band(start_year: Optional[int], end_year: Optional[int], color: str = SHOCK_BAND_COLOR) -> Optional[alt.Chart]:
    """Shaded x-range between two ordinal years; None when either end is unknown."""
    if start_year is None or end_year is None:
        return None
    band: List[Dict[str, str]] = [{"start": str(start_year), "end": str(end_year)}]
    return (
        alt.Chart(alt.Data(values=band))
        .mark_rect(color=color)
        .encode(x=alt.X("start:O", title="Year"), x2="end")
    )
