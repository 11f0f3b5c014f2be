from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def yearly_trend_charts(frame: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
    """One line chart per metric of a `yearly_frame`, accounts as colors."""
    charts: Dict[str, Dict[str, Any]] = {}
    if frame.empty:
        return charts
    for metric in frame["metric"].drop_duplicates().tolist():
        subset = frame[frame["metric"] == metric]
        chart = (
            alt.Chart(subset)
            .mark_line(point=True)
            .encode(
                x=alt.X("month:O", title="月份"),
                y=alt.Y("value:Q", title=metric, axis=alt.Axis(format="~s")),
                color=alt.Color("account:N", title="公众号"),
                tooltip=["account", "month", alt.Tooltip("value:Q", format=",")],
            )
        )
        charts[metric] = to_vega_spec(chart)
    return charts
