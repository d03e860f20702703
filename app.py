import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from tuna_core.config import load_settings
from tuna_core.data import load_dashboard_data, prepare_context
from tuna_core.filters import OUTLIER_YEAR_DEFAULT
from tuna_core.logging_config import configure_logging
from tuna_core.metrics_overview import compute_overview
from tuna_core.metrics_prices import compute_price_timeline
from tuna_core.metrics_table import compute_table, export_frame
from tuna_core.metrics_volumes import compute_volumes
from tuna_core.narrative import compute_narrative

alt.data_transformers.disable_max_rows()
settings = load_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

TONE_BACKGROUND = {
    "neutral": "#ffffff",
    "warning": "rgba(254, 226, 226, 0.6)",
    "positive": "rgba(209, 250, 229, 0.6)",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .subtitle {color: #6b7280;font-size: 0.8rem;margin-top: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 16px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 2px 10px;font-size: 0.8rem;color: #374151;}
        .chip.up {background: #dcfce7;color: #15803d;}
        .chip.down {background: #fee2e2;color: #b91c1c;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, background: Optional[str] = None):
    container = st.container()
    style = f" style='background:{background}'" if background else ""
    container.markdown(
        f"""
        <div class="card"{style}>
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_chips(pills: List[Dict[str, Any]]) -> str:
    chips = []
    for pill in pills:
        css = f"chip {pill['direction']}" if pill.get("direction") else "chip"
        chips.append(f"<span class='{css}'>{pill['text']}</span>")
    return f"<div class='chip-row'>{''.join(chips)}</div>"


def render_header():
    inject_base_styles()
    st.markdown(
        f"<div class='app-top-bar'><div class='page-title'>🐟 {settings.page_title}</div>"
        "<div class='subtitle'>Local vs global price • Subsidy & revenue • Purchases & exports</div></div>",
        unsafe_allow_html=True,
    )


def render_vega(spec: Optional[Dict[str, Any]]):
    if spec is None:
        st.info("Not enough data for this chart.")
        return
    st.vega_lite_chart(spec, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title=settings.page_title, layout="wide")
render_header()

data_ctx = load_dashboard_data()
years = data_ctx.get("years", [])
if not years:
    st.error("No yearly records configured.")
    st.stop()

default_headline = data_ctx.get("default_headline_year")
with st.sidebar:
    st.markdown("### Series")
    show_global = st.toggle("Global price", value=True)
    show_mifco_price = st.toggle("MIFCO price", value=True)
    show_revenue = st.toggle("Revenue", value=True)
    show_subsidy = st.toggle("Subsidy", value=True)

    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        headline_year = st.selectbox(
            "Headline year",
            options=years,
            index=years.index(default_headline) if default_headline in years else len(years) - 1,
            help="KPI cards compare this year against the one before it.",
        )
        outlier_year = st.selectbox(
            "Outlier (shock) year",
            options=years,
            index=years.index(OUTLIER_YEAR_DEFAULT) if OUTLIER_YEAR_DEFAULT in years else 0,
            help="Excluded from the average price gap; ends the pre-shock growth window.",
        )

filters = {
    "show_global": show_global,
    "show_mifco_price": show_mifco_price,
    "show_revenue": show_revenue,
    "show_subsidy": show_subsidy,
    "headline_year": headline_year,
    "outlier_year": outlier_year,
}

ctx = prepare_context(filters, data_ctx)
f = ctx["filters"]
rows = ctx["rows"]
logger.debug("Rendering dashboard for headline year %s (outlier %s)", f.headline_year, f.outlier_year)


# ----- Section renderers -----
def render_hero():
    overview = compute_overview(f, ctx)
    hero = overview["hero"]
    with card(hero["title"], background="linear-gradient(135deg, rgba(16,185,129,0.08), #ffffff)"):
        cols = st.columns([2, 1])
        with cols[0]:
            summary = overview["summary"]
            st.markdown(
                f"Revenue climbed into **{summary['outlier_year']}**, then the Sep {summary['outlier_year']} fixed-price "
                f"policy pushed procurement above export parity. The **{summary['headline_year']}** switch to a weekly "
                "market-linked price was the reset, not the cause."
            )
            st.markdown(render_chips(hero["pills"]), unsafe_allow_html=True)
        with cols[1]:
            st.markdown("**Key takeaways**")
            st.markdown("\n".join(f"- {t}" for t in hero["takeaways"]))

    kpi_cols = st.columns(len(overview["kpis"]))
    for col, kpi in zip(kpi_cols, overview["kpis"]):
        col.metric(kpi["title"], kpi["display"], delta=kpi["badge"], delta_color="off", help=kpi["unit"])
    mifco = overview["mifco_price_kpi"]
    st.metric(mifco["title"], mifco["display"], delta=mifco["badge"], delta_color="off", help=mifco["unit"])


def render_prices():
    payload = compute_price_timeline(f, ctx)
    with card(payload["title"]):
        render_vega(payload["chart"])
        st.caption(payload["caption"])


def render_volumes():
    payload = compute_volumes(f, ctx)
    cols = st.columns(2)
    with cols[0]:
        with card(payload["catch"]["title"]):
            render_vega(payload["catch"]["chart"])
            st.caption(payload["catch"]["caption"])
            for item in payload["catch"]["basis"]:
                st.caption(f"{item['year']}: {item['basis']}")
    with cols[1]:
        with card(payload["exports"]["title"]):
            render_vega(payload["exports"]["chart"])
            st.caption(payload["exports"]["caption"])


def render_table():
    payload = compute_table(f, ctx)
    with card(payload["title"]):
        headers = [c["header"] for c in payload["columns"]]
        st.dataframe(pd.DataFrame(payload["rows"], columns=headers), hide_index=True, use_container_width=True)
        export_df: pd.DataFrame = export_frame(rows)
        st.download_button(
            "Export CSV",
            data=export_df.to_csv(index=False).encode("utf-8"),
            file_name="tuna_yearly_figures.csv",
            mime="text/csv",
        )


def render_narrative():
    payload = compute_narrative(f, ctx)
    with card(payload["title"]):
        for section in payload["sections"]:
            with card(section["title"], background=TONE_BACKGROUND.get(section["tone"])):
                for paragraph in section["paragraphs"]:
                    st.markdown(paragraph)
                if section["bullets"]:
                    st.markdown("\n".join(f"- {b}" for b in section["bullets"]))

    st.caption(payload["methodology"])

    st.markdown("**Sources**")
    for source in payload["sources"]:
        links = " · ".join(f"[{link['label']}]({link['url']})" for link in source["links"])
        st.caption(f"{source['name']}: {source['description']} {links}")
    st.caption(payload["footnote"])


render_hero()
render_prices()
render_volumes()
render_table()
render_narrative()
