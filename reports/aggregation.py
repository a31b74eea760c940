"""Completion statistics for a report period.

aggregate() is a pure function of its inputs: it re-applies the due-window
filter itself, so callers may pass either the Task Store's range query
result or an unfiltered collection.

Two different dates are at play. A task belongs to the period when its
*due date* falls inside the range; the completion trend buckets those
tasks by the date they were *completed*, and drops completions that fall
outside the range's calendar days.
"""

import datetime
from dataclasses import dataclass
from types import MappingProxyType

import structlog
from django.db import DatabaseError
from django.utils import timezone

from tasks import services as task_services
from tasks.serializers import task_to_dict

from .exceptions import DataFetchError

log = structlog.get_logger()

PRIORITIES = ("High", "Medium", "Low")
UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class AggregationResult:
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    completion_rate: float
    category_breakdown: MappingProxyType
    priority_breakdown: MappingProxyType
    completion_trend: MappingProxyType
    tasks_in_period: tuple

    def as_dict(self):
        """Serialize with the analytics API's field names."""
        return {
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "pendingTasks": self.pending_tasks,
            "completionRate": self.completion_rate,
            "categoryBreakdown": dict(self.category_breakdown),
            "completionTrend": dict(self.completion_trend),
            "priorityBreakdown": dict(self.priority_breakdown),
            "tasksInPeriod": [task_to_dict(t) for t in self.tasks_in_period],
        }


def due_date_of(task):
    value = getattr(task, "due_date", None)
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value)
        except ValueError:
            return None
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def _completion_day(value):
    """Local calendar date of a completion timestamp."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.datetime.fromisoformat(value)
        except ValueError:
            return None
    if isinstance(value, datetime.datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


def category_label(task):
    return getattr(task, "category", None) or UNCATEGORIZED


def aggregate(tasks, date_range):
    """Compute totals, completion rate and breakdowns for *date_range*."""
    in_period = []
    for task in tasks:
        due = due_date_of(task)
        if due is not None and date_range.contains(due):
            in_period.append(task)

    completed = 0
    categories = {}
    priorities = dict.fromkeys(PRIORITIES, 0)
    trend = {}
    for task in in_period:
        if getattr(task, "completed", False):
            completed += 1

        label = category_label(task)
        categories[label] = categories.get(label, 0) + 1

        priority = getattr(task, "priority", None)
        if priority in priorities:
            priorities[priority] += 1

        day = _completion_day(getattr(task, "completed_at", None))
        if day is not None and date_range.contains(day):
            key = day.isoformat()
            trend[key] = trend.get(key, 0) + 1

    total = len(in_period)
    return AggregationResult(
        total_tasks=total,
        completed_tasks=completed,
        pending_tasks=total - completed,
        completion_rate=(completed / total * 100) if total else 0.0,
        category_breakdown=MappingProxyType(categories),
        priority_breakdown=MappingProxyType(priorities),
        completion_trend=MappingProxyType(dict(sorted(trend.items()))),
        tasks_in_period=tuple(in_period),
    )


def load_aggregation(user, date_range, list_tasks=None):
    """Fetch *user*'s tasks for *date_range* once and aggregate them.

    *list_tasks* is the Task Store range query; it defaults to
    tasks.services.list_tasks_by_due_date_range.
    """
    if list_tasks is None:
        list_tasks = task_services.list_tasks_by_due_date_range

    range_start, range_end = date_range.iso_bounds()
    try:
        tasks = list_tasks(user, range_start, range_end)
    except DatabaseError as exc:
        log.error(
            "report_fetch_failed",
            user_id=getattr(user, "pk", None),
            start=range_start,
            end=range_end,
            error=str(exc),
        )
        raise DataFetchError("Task data is unavailable.") from exc

    result = aggregate(tasks, date_range)
    log.info(
        "report_generated",
        user_id=getattr(user, "pk", None),
        start=range_start,
        end=range_end,
        total_tasks=result.total_tasks,
        completed_tasks=result.completed_tasks,
    )
    return result
