from __future__ import annotations

from typing import Any, Dict, Iterable

import altair as alt
import pandas as pd

from survey.aggregate import profession_counts, usage_breakdown
from survey.config import PROFESSION_COLORS, USAGE_COLORS, SurveyConfig

alt.data_transformers.disable_max_rows()

USAGE_LABELS = {"mb_data": "মিনিট/এমবি চেক", "social_ad": "এড দেখা", "both": "উভয়"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def profession_distribution_chart(collection: Iterable[Any], config: SurveyConfig) -> alt.Chart:
    counts = profession_counts(collection, config.professions)
    df = pd.DataFrame({"profession": list(counts.keys()), "count": list(counts.values())})
    hover = alt.selection_point(fields=["profession"], on="mouseover", empty="all")
    return (
        alt.Chart(df, title="পেশাভিত্তিক বিতরণ")
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("count:Q", stack=True),
            color=alt.Color(
                "profession:N",
                title="পেশা",
                sort=list(config.professions),
                scale=alt.Scale(domain=list(config.professions), range=PROFESSION_COLORS[: len(config.professions)]),
                legend=alt.Legend(orient="bottom"),
            ),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip("profession:N", title="পেশা"), alt.Tooltip("count:Q", title="সার্ভে")],
        )
        .add_params(hover)
        .properties(height=280)
    )


def usage_reason_chart(collection: Iterable[Any], config: SurveyConfig) -> alt.Chart:
    counts = usage_breakdown(collection, config.reasons)
    labels = [USAGE_LABELS[k] for k in counts]
    df = pd.DataFrame({"reason": labels, "users": list(counts.values())})
    return (
        alt.Chart(df, title="MyGP ব্যবহারের কারণ")
        .mark_bar()
        .encode(
            x=alt.X("reason:N", title=None, sort=labels, axis=alt.Axis(grid=False, labelAngle=0)),
            y=alt.Y("users:Q", title="ব্যবহারকারী", axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("reason:N", scale=alt.Scale(domain=labels, range=USAGE_COLORS), legend=None),
            tooltip=[alt.Tooltip("reason:N", title="কারণ"), alt.Tooltip("users:Q", title="ব্যবহারকারী")],
        )
        .properties(height=280)
    )


def compute_charts(collection: Iterable[Any], config: SurveyConfig) -> Dict[str, Any]:
    entries = list(collection)
    return {
        "profession_distribution": to_vega_spec(profession_distribution_chart(entries, config)),
        "usage_reasons": to_vega_spec(usage_reason_chart(entries, config)),
    }
