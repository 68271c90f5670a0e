from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()

BACKGROUND = "#0f172a"
LABEL_COLOR = "#e5e7eb"
MUTED_COLOR = "#9ca3af"
GRID_COLOR = "#1f2937"


def style_chart(chart: alt.Chart) -> alt.Chart:
    """Dark dashboard look shared by every chart."""
    return (
        chart.configure(background=BACKGROUND)
        .configure_view(strokeWidth=0)
        .configure_axis(labelColor=MUTED_COLOR, titleColor=LABEL_COLOR, gridColor=GRID_COLOR, domainColor=GRID_COLOR)
        .configure_legend(labelColor=LABEL_COLOR, titleColor=LABEL_COLOR)
        .configure_title(color=LABEL_COLOR, fontSize=13, anchor="start")
    )


def to_vega_spec(chart: alt.Chart, *, styled: bool = True) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    if styled:
        chart = style_chart(chart)
    return chart.to_dict()
