"""Chart drawings for the exported document.

Each renderer takes a ChartSeries and returns a reportlab Drawing, which the
document writer embeds as an opaque image handle. A series with no non-zero
value renders to None so the exporter can skip its block.
"""

import colorsys

from reportlab.graphics.charts.barcharts import VerticalBarChart
from reportlab.graphics.charts.doughnut import Doughnut
from reportlab.graphics.charts.piecharts import Pie
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.units import mm

# Embedded size of each chart in the document, in millimetres (width, height).
CHART_SIZES = {
    "category": (80, 80),
    "trend": (120, 70),
    "priority": (80, 80),
}

PRIORITY_COLORS = {
    "High": colors.HexColor("#E74C3C"),
    "Medium": colors.HexColor("#F39C12"),
    "Low": colors.HexColor("#2ECC71"),
}
TREND_COLOR = colors.HexColor("#3498DB")


def palette_color(index):
    """Evenly spaced hues, 60 degrees apart."""
    hue = (index * 60 % 360) / 360
    r, g, b = colorsys.hls_to_rgb(hue, 0.5, 0.7)
    return colors.Color(r, g, b)


def _nonzero(series):
    return [(label, value) for label, value in zip(series.labels, series.values) if value]


def _render_pie(series, drawing, chart_class, fill_for):
    slices = _nonzero(series)
    chart = chart_class()
    side = min(drawing.width, drawing.height) * 0.7
    chart.x = (drawing.width - side) / 2
    chart.y = (drawing.height - side) / 2
    chart.width = side
    chart.height = side
    chart.data = [value for _, value in slices]
    chart.labels = [f"{label} ({value})" for label, value in slices]
    chart.slices.strokeWidth = 0.5
    chart.slices.fontSize = 7
    for index, (label, _) in enumerate(slices):
        chart.slices[index].fillColor = fill_for(index, label)
    drawing.add(chart)


def _render_bar(series, drawing):
    chart = VerticalBarChart()
    chart.x = 12 * mm
    chart.y = 14 * mm
    chart.width = drawing.width - 16 * mm
    chart.height = drawing.height - 18 * mm
    chart.data = [list(series.values)]
    chart.bars[0].fillColor = TREND_COLOR
    chart.valueAxis.valueMin = 0
    chart.valueAxis.valueStep = 1 if max(series.values) <= 10 else None
    chart.valueAxis.labels.fontSize = 6
    # ISO dates are shortened to MM-DD to fit under the bars.
    chart.categoryAxis.categoryNames = [label[5:] for label in series.labels]
    chart.categoryAxis.labels.fontSize = 6
    chart.categoryAxis.labels.angle = 45
    chart.categoryAxis.labels.boxAnchor = "ne"
    drawing.add(chart)


def render_chart(series, width, height):
    """Render *series* at *width* x *height* millimetres, or None when it is empty."""
    if not series.has_data:
        return None

    drawing = Drawing(width * mm, height * mm)
    if series.kind == "pie":
        _render_pie(series, drawing, Pie, lambda index, label: palette_color(index))
    elif series.kind == "doughnut":
        _render_pie(
            series, drawing, Doughnut,
            lambda index, label: PRIORITY_COLORS.get(label, palette_color(index)),
        )
    elif series.kind == "bar":
        _render_bar(series, drawing)
    else:
        raise ValueError(f"Unknown chart kind {series.kind!r}")
    return drawing


def render_charts(view):
    """Render the three report charts keyed by their document block name."""
    series_by_name = {
        "category": view.category_series,
        "trend": view.trend_series,
        "priority": view.priority_series,
    }
    return {
        name: render_chart(series, *CHART_SIZES[name])
        for name, series in series_by_name.items()
    }
