"""Service helpers for the tasks app.

This module is the Task Store: views and the reports app reach task rows
only through these functions.
"""

import datetime

import structlog
from django.utils import timezone

from .models import Task

log = structlog.get_logger()

EDITABLE_FIELDS = ("title", "description", "due_date", "due_time", "priority", "category")


def list_tasks(user):
    return Task.objects.filter(user=user).order_by("due_date", "due_time", "pk")


def list_tasks_by_due_date_range(user, range_start, range_end):
    """Return *user*'s tasks due between two ``YYYY-MM-DD`` strings, both inclusive."""
    return list(
        list_tasks(user).filter(due_date__gte=range_start, due_date__lte=range_end)
    )


def get_task(user, task_id):
    """Return the task with *task_id* owned by *user*, or None."""
    try:
        return Task.objects.get(pk=task_id, user=user)
    except Task.DoesNotExist:
        return None


def create_task(user, completed=False, **fields):
    """Create a task for *user*.

    ``completed`` is routed through set_completed so a task created as done
    gets its completion timestamp.
    """
    task = Task(user=user, **{k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
    task.save()
    if completed:
        set_completed(task, True)
    log.info("task_created", task_id=task.pk, user_id=user.pk)
    return task


def update_task(task, completed=None, **fields):
    """Update editable fields; ``completed`` (when given) goes through set_completed."""
    changed = []
    for name, value in fields.items():
        if name in EDITABLE_FIELDS:
            setattr(task, name, value)
            changed.append(name)
    if changed:
        task.save(update_fields=[*changed, "updated_at"])
    if completed is not None:
        set_completed(task, completed)
    return task


def delete_task(task):
    task_id = task.pk
    task.delete()
    log.info("task_deleted", task_id=task_id)


def set_completed(task, completed, now=None):
    """Mark *task* complete or incomplete.

    The only writer of ``completed`` and ``completed_at``: both change in
    the same save. Re-completing a completed task keeps its timestamp.
    """
    if completed:
        if task.completed and task.completed_at is not None:
            return task
        task.completed = True
        task.completed_at = now or timezone.now()
        event = "task_completed"
    else:
        task.completed = False
        task.completed_at = None
        event = "task_uncompleted"
    task.save(update_fields=["completed", "completed_at", "updated_at"])
    log.info(event, task_id=task.pk)
    return task


def toggle_completed(task, now=None):
    return set_completed(task, not task.completed, now=now)


def upcoming_reminder(tasks, today):
    """Return reminder text for incomplete tasks due *today* or tomorrow, or None."""
    tomorrow = today + datetime.timedelta(days=1)

    due_today = 0
    due_tomorrow = 0
    for task in tasks:
        if task.completed:
            continue
        if task.due_date == today:
            due_today += 1
        elif task.due_date == tomorrow:
            due_tomorrow += 1

    if due_today and due_tomorrow:
        return f"You have {due_today} tasks due today and {due_tomorrow} due tomorrow!"
    if due_today:
        return f"You have {due_today} tasks due today!"
    if due_tomorrow:
        return f"You have {due_tomorrow} tasks due tomorrow."
    return None
