"""Display-ready structure for the on-screen report.

build_view() only reshapes an AggregationResult: stat cards, three chart
series and the task detail list. Drawing the charts is someone else's job
(the browser template or reports.charts).
"""

from dataclasses import dataclass

from .aggregation import PRIORITIES, due_date_of
from .ranges import format_date

EMPTY_MESSAGE = "No tasks found for the selected period."


@dataclass(frozen=True)
class StatCard:
    label: str
    value: str


@dataclass(frozen=True)
class ChartSeries:
    kind: str
    title: str
    labels: tuple
    values: tuple

    @property
    def has_data(self):
        return any(self.values)

    @property
    def points(self):
        """Label/value pairs with ``bar_pct`` relative to the largest value."""
        peak = max(self.values, default=0)
        return [
            {
                "label": label,
                "value": value,
                "bar_pct": round(value / peak * 100) if peak else 0,
            }
            for label, value in zip(self.labels, self.values)
        ]


@dataclass(frozen=True)
class TaskEntry:
    title: str
    due_display: str
    priority: str
    completed: bool

    @property
    def status_label(self):
        return "Completed" if self.completed else "Pending"


@dataclass(frozen=True)
class ReportView:
    period_label: str
    cards: tuple
    category_series: ChartSeries
    trend_series: ChartSeries
    priority_series: ChartSeries
    entries: tuple
    empty_message: str | None = None

    @property
    def charts(self):
        return (self.category_series, self.trend_series, self.priority_series)


def format_rate(rate):
    return f"{rate:.1f}%"


def format_due(task):
    due = format_date(due_date_of(task))
    due_time = getattr(task, "due_time", None)
    return f"{due} {due_time}" if due_time else due


def task_entries(result):
    """Tasks in the period sorted by due date, then due time, then input order."""
    ordered = sorted(
        result.tasks_in_period,
        key=lambda t: (due_date_of(t), getattr(t, "due_time", None) or ""),
    )
    return tuple(
        TaskEntry(
            title=getattr(task, "title", ""),
            due_display=format_due(task),
            priority=getattr(task, "priority", None) or "",
            completed=bool(getattr(task, "completed", False)),
        )
        for task in ordered
    )


def stat_cards(result):
    return (
        StatCard("Total Tasks", str(result.total_tasks)),
        StatCard("Completed Tasks", str(result.completed_tasks)),
        StatCard("Pending Tasks", str(result.pending_tasks)),
        StatCard("Completion Rate", format_rate(result.completion_rate)),
    )


def category_series(result):
    return ChartSeries(
        kind="pie",
        title="Tasks by Category",
        labels=tuple(result.category_breakdown.keys()),
        values=tuple(result.category_breakdown.values()),
    )


def trend_series(result, date_range):
    """One bar per calendar day of the range; days without completions are 0."""
    days = [day.isoformat() for day in date_range.days()]
    return ChartSeries(
        kind="bar",
        title="Completion Trend",
        labels=tuple(days),
        values=tuple(result.completion_trend.get(day, 0) for day in days),
    )


def priority_series(result):
    return ChartSeries(
        kind="doughnut",
        title="Priority Distribution",
        labels=PRIORITIES,
        values=tuple(result.priority_breakdown.get(p, 0) for p in PRIORITIES),
    )


def build_view(result, date_range):
    entries = task_entries(result)
    return ReportView(
        period_label=date_range.label,
        cards=stat_cards(result),
        category_series=category_series(result),
        trend_series=trend_series(result, date_range),
        priority_series=priority_series(result),
        entries=entries,
        empty_message=None if entries else EMPTY_MESSAGE,
    )
