"""Analysis card text and the sources footer.

Numbers are interpolated from the aggregate summary; absent values render as
the placeholder rather than a guessed figure.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from tuna_core.data import (
    PLACEHOLDER,
    direction,
    format_abs_pct,
    format_abs_value,
    format_pct,
    format_value,
    trend_word,
)
from tuna_core.filters import DashboardFilters


SOURCES: List[Dict[str, Any]] = [
    {
        "name": "Maldives Monetary Authority (MMA)",
        "description": "Fish Prices & Production, Table 4.1 (2019–2025): local company purchase prices, "
        "sector purchases, total catch and tuna exports.",
        "links": [
            {"label": "database.mma.gov.mv", "url": "https://database.mma.gov.mv/monthly-statistics/real/fish-prices-and-production"},
        ],
    },
    {
        "name": "Maldives Industrial Fisheries Company (MIFCO)",
        "description": "Audited Financial Statements 2024 (with 2023 comparatives): revenue, "
        "subsidy accounting (grant vs. cost offset), loss figures.",
        "links": [
            {
                "label": "audit.gov.mv (PDF)",
                "url": "https://www.audit.gov.mv/Uploads/AuditReports/2025/08August/89._Maldives_Industrial_Fisheries_Company_Limited_Audit_Report_2024___Financial_Statement_Audit.pdf",
            },
        ],
    },
    {
        "name": "Ministry of Finance (MoF)",
        "description": "State Budget: Fisheries Subsidy (MIFCO) allocations and execution notes.",
        "links": [
            {"label": "2024 Approved Budget (PDF)", "url": "https://www.finance.gov.mv/public/attachments/QrLvIkBOd5yTjem7e1JFLzwiXjz5S51imQPXVblc.pdf"},
            {"label": "Budget Statement (subsidy note) (PDF)", "url": "https://www.finance.gov.mv/public/attachments/ofVUGdO2A7MBjk0nX3ttHFnelSNUg5IJk3O34ut1.pdf"},
        ],
    },
    {
        "name": "Weekly market-linked pricing (July 1, 2024)",
        "description": "Press coverage of the weekly purchase-rate regime.",
        "links": [
            {"label": "Sun.mv", "url": "https://en.sun.mv/90330"},
            {"label": "Atoll Times", "url": "https://atolltimes.mv/post/news/8917"},
            {"label": "Plus.mv", "url": "https://www.plus.mv/english/mifco-to-update-fish-purchasing-rates-weekly/"},
        ],
    },
    {
        "name": "Size threshold and MVR 16/kg minimum (Dec 2025)",
        "description": "Size threshold update (>=1.5kg -> >=1.0kg) and minimum price.",
        "links": [
            {"label": "Sun.mv", "url": "https://en.sun.mv/101564"},
            {"label": "MMTV", "url": "https://en.mmtv.mv/7297"},
            {"label": "MIFCO (homepage)", "url": "https://mifco.mv/"},
        ],
    },
    {
        "name": "Sep 16, 2023 dock-price hike to MVR 25/kg",
        "description": "Policy announcement and subsequent debate.",
        "links": [{"label": "Mihaaru/Edition", "url": "https://edition.mv/news/46615"}],
    },
]

FOOTNOTE = "Values for the latest year are indicative where noted; its revenue is not yet published."


def _section(title: str, paragraphs: List[str], bullets: Optional[List[str]] = None, tone: str = "neutral") -> Dict[str, Any]:
    return {"title": title, "paragraphs": paragraphs, "bullets": bullets or [], "tone": tone}


def _mvr_m(value: Optional[float]) -> str:
    return format_value(value, " MVR m")


def _gap_evidence(gaps: Dict[int, Optional[float]]) -> str:
    present = [f"{year}: {value}%" for year, value in gaps.items() if value is not None]
    return "; ".join(present) if present else PLACEHOLDER


def build_sections(summary: Dict[str, Any]) -> List[Dict[str, Any]]:
    year = summary.get("headline_year")
    prev_year = summary.get("previous_year")
    outlier = summary.get("outlier_year")
    growth = summary.get("growth") or {}
    shares = summary.get("mifco_share_by_year") or {}
    share_prev = format_pct(shares.get(prev_year))
    share_cur = format_pct(shares.get(year))
    avg_gap = format_value(summary.get("avg_gap_ex_outlier"), " MVR/kg")

    revenue_yoy = summary.get("revenue_yoy_pct")
    purchases_yoy = summary.get("purchases_yoy_pct")
    exports_yoy = summary.get("exports_yoy_pct")
    subsidy_yoy = summary.get("subsidy_yoy_pct")
    loss_bn = summary.get("revenue_loss_mvr_bn")
    # a positive revenue loss is money lost
    outcome = trend_word(loss_bn, "gain", "loss")
    loss_bn_text = format_abs_value(loss_bn, " bn MVR")
    net_profit = summary.get("net_profit_headline_mvr_m")
    subsidy_tail = " but could not prevent a loss" if direction(net_profit) == "down" else ""

    return [
        _section(
            "What happened",
            [
                f"In Sep {outlier} the state buyer fixed the quay price at "
                f"{format_value(summary.get('outlier_mifco_price'), ' MVR/kg')} (local average "
                f"{format_value(summary.get('outlier_local_price'), ' MVR/kg')}) while the international "
                "skipjack benchmark (Bangkok) sat lower, putting procurement above export parity. The next year "
                "the policy switched to a weekly market-linked formula and the local price reset.",
            ],
        ),
        _section(
            f"Industry impact ({year} vs {prev_year})",
            [
                f"Revenue {trend_word(revenue_yoy, 'fell', 'rose')} by about {format_abs_pct(revenue_yoy)}, from "
                f"{_mvr_m(summary.get('revenue_previous_mvr_m'))} ({prev_year}) to "
                f"{_mvr_m(summary.get('revenue_headline_mvr_m'))} ({year}), a top-line {outcome} of roughly "
                f"{loss_bn_text} ({format_abs_value(summary.get('revenue_loss_mvr_m'), ' MVR m')}). Purchases "
                f"{trend_word(purchases_yoy, 'dropped', 'rose')} {format_abs_pct(purchases_yoy)} and tuna export "
                f"volumes {trend_word(exports_yoy, 'fell', 'rose')} {format_abs_pct(exports_yoy)}. Subsidy support "
                f"{trend_word(subsidy_yoy, 'fell', 'rose')} {format_abs_pct(subsidy_yoy)}{subsidy_tail}.",
            ],
        ),
        _section(
            "Before the shock",
            [
                f"Average annual revenue growth over {format_value(growth.get('start_year'))}→{format_value(growth.get('end_year'))} was around "
                f"{format_pct(growth.get('avg_yoy_pct'))} (CAGR {format_pct(growth.get('cagr_pct'))}), about "
                f"{_mvr_m(growth.get('avg_annual_increase_mvr_m'))} per year.",
            ],
        ),
        _section(
            "Why it was brittle",
            [
                "Fresh landings are priced off a frozen export benchmark after processing, logistics and FX. "
                "A fixed quay price ignored that; when catch tightened and USD access was constrained, the loss "
                "transferred to MIFCO and boats.",
            ],
            tone="warning",
        ),
        _section(
            f"Subsidy became unavoidable after the {outlier} change",
            [
                "Once the quay price sat above export parity, the government had to introduce and expand a subsidy "
                "to absorb cashflow gaps, halted buying and widening losses. It cushioned boats but did not restore "
                "volumes or profitability.",
            ],
            tone="warning",
        ),
        _section(
            "Market structure shock",
            [
                f"MIFCO accounted for about {share_prev} of total catch in {prev_year} and {share_cur} in {year} "
                "by the purchases proxy, implying private processors' throughput shrank materially.",
                "Shares are derived from MIFCO purchases / total catch using proxies for MIFCO volume; "
                "validate with MMA/Customs once full-year figures are available.",
            ],
        ),
        _section(
            "Urgent: prevent an industry-wide collapse",
            [
                f"With MIFCO's share moving from {share_prev} to {share_cur} as private capacity shrank, the "
                "government should treat this as an emergency and intervene with a focused plan before capacity "
                "and market access are permanently lost.",
            ],
            tone="warning",
        ),
        _section(
            "Path forward",
            [
                "Permanent subsidies or a larger MIFCO share concentrate risk and crowd out capacity. The durable "
                "route is reviving private processors with investment under clear sovereignty guardrails.",
            ],
            bullets=[
                "Pay boats within 24–48h via receivables-backed working capital.",
                "Blended-finance capex for private plants, keeping a state veto on sovereignty matters.",
                "Compete on realised USD/kg (value-add cuts, MSC branding) rather than quay price-setting.",
            ],
            tone="positive",
        ),
        _section(
            "Myth: the Maldivian purchase price is higher than international",
            [
                f"Outside {outlier} the international index sits well above the local price (gap %: "
                f"{_gap_evidence(summary.get('gap_pct_ex_outlier') or {})}), about {avg_gap} on average. "
                f"{outlier} was the exception, when policy set the local price above the benchmark.",
            ],
        ),
        _section(
            f"Market confidence & destination mix ({year}) — action to verify",
            [
                f"Hypothesis: the Sep {outlier} fixed-price hike eroded buyer confidence and some importers were "
                "lost. Compare destination-level exports (EU, Thailand, Sri Lanka, Japan, Middle East, others) by "
                "volume, value and product form using Maldives Customs or MMA monthly data.",
            ],
            bullets=[
                f"Compute % share by destination and the YoY change in {year} vs {prev_year}.",
                "Flag buyers with -30% or worse volume drops and check if prices paid diverged from benchmark.",
                "Cross-reference price memos and cancelled PO notes to attribute to price vs logistics/quality.",
            ],
            tone="warning",
        ),
        _section(
            "Emergency actions (next 90 days)",
            [],
            bullets=[
                "Ring-fence a working-capital line to keep quay buying uninterrupted and pay boats within 48 hours.",
                "Publish the weekly formula and smoothing band; report an expected SKJ price 2 weeks forward.",
                "Fast-track cold storage/stevedoring swaps with private plants to stabilise throughput.",
            ],
        ),
        _section(
            "Stabilise cash & capacity",
            [
                "Guarantee 48-hour payments via receivables-backed working capital. Eliminate buy halts by adding "
                "surge cold capacity and rapid cross-shuttle between plants.",
            ],
        ),
        _section(
            "Predictable support",
            [
                "Fund a Fisher Stabilisation Account with a small export levy and windfalls; pay out only when the "
                "index breaches the floor.",
            ],
        ),
        _section(
            "Protect the premium",
            [
                "Maintain zero foreign industrial access in the EEZ, enforce MCS, and push MSC-aligned "
                "branding/value-added cuts to lift realised USD/kg.",
            ],
        ),
    ]


def methodology_note(summary: Dict[str, Any]) -> str:
    outlier = summary.get("outlier_year")
    return (
        "All local company purchase prices use MMA Table 4.1 annual averages. Gap % ((global - local) / local) "
        f"is read as a proxy for gross margin %. {outlier} (local >= global) is the outlier year; excluding it, "
        f"the average gap favours global over local by about "
        f"{format_value(summary.get('avg_gap_ex_outlier'), ' MVR/kg')}. Abbreviations: m = million; bn = billion."
    )


def compute_narrative(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    summary: Dict[str, Any] = ctx.get("summary", {})
    return {
        "filters": asdict(filters),
        "title": f"Analysis: {summary.get('outlier_year')} decision → {summary.get('headline_year')} "
        + trend_word(summary.get("revenue_yoy_pct"), "collapse", "outcome", "outcome"),
        "sections": build_sections(summary),
        "methodology": methodology_note(summary),
        "sources": SOURCES,
        "footnote": FOOTNOTE,
    }
