def _iso(value):
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def task_to_dict(task):
    """Wire form of a task, shared by the task API and report payloads.

    Works for model instances and for plain records carrying the same
    attribute names.
    """
    return {
        "id": getattr(task, "pk", None) or getattr(task, "id", None),
        "title": getattr(task, "title", ""),
        "description": getattr(task, "description", ""),
        "dueDate": _iso(getattr(task, "due_date", None)),
        "dueTime": getattr(task, "due_time", None) or None,
        "priority": getattr(task, "priority", None),
        "category": getattr(task, "category", None) or None,
        "completed": bool(getattr(task, "completed", False)),
        "completedAt": _iso(getattr(task, "completed_at", None)),
        "createdAt": _iso(getattr(task, "created_at", None)),
    }
