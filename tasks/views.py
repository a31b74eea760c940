"""
Task JSON API.

Every view authenticates with a bearer token and only ever sees the
requesting user's tasks; a foreign task id answers 404.
"""
import datetime
import json

from django.http import HttpResponse, HttpResponseNotAllowed, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from accounts.tokens import token_required

from . import services
from .forms import TaskForm
from .serializers import task_to_dict


def _read_json(request):
    try:
        payload = json.loads(request.body or b"{}")
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _form_data(payload):
    """Map camelCase API fields onto TaskForm field names."""
    data = {
        "title": payload.get("title"),
        "description": payload.get("description"),
        "due_date": payload.get("dueDate"),
        "due_time": payload.get("dueTime"),
        "priority": payload.get("priority"),
        "category": payload.get("category"),
    }
    return {k: ("" if v is None else v) for k, v in data.items()}


_API_NAMES = {
    "due_date": "dueDate",
    "due_time": "dueTime",
}


def _api_name(field):
    return _API_NAMES.get(field, field)


def _parse_date(value):
    if value:
        try:
            return datetime.date.fromisoformat(value)
        except ValueError:
            pass
    return None


def _not_found():
    return JsonResponse({"message": "Task not found"}, status=404)


def _completed_flag(payload, default=None):
    """The ``completed`` field as sent; only JSON true, false or null are accepted."""
    value = payload.get("completed", default)
    if value is not None and not isinstance(value, bool):
        raise ValueError("completed must be true or false")
    return value


@csrf_exempt
@token_required
def task_collection(request):
    if request.method == "GET":
        start = _parse_date(request.GET.get("startDate"))
        end = _parse_date(request.GET.get("endDate"))
        if start and end:
            tasks = services.list_tasks_by_due_date_range(
                request.user, start.isoformat(), end.isoformat(),
            )
        else:
            tasks = services.list_tasks(request.user)
        return JsonResponse([task_to_dict(t) for t in tasks], safe=False)

    if request.method == "POST":
        payload = _read_json(request)
        if payload is None:
            return JsonResponse({"message": "Invalid JSON body"}, status=400)
        try:
            completed = _completed_flag(payload, default=False)
        except ValueError as exc:
            return JsonResponse({"message": str(exc)}, status=400)
        form = TaskForm(_form_data(payload))
        if not form.is_valid():
            return JsonResponse({"errors": form.errors.get_json_data()}, status=400)
        task = services.create_task(
            request.user,
            completed=bool(completed),
            **form.cleaned_data,
        )
        return JsonResponse(task_to_dict(task), status=201)

    return HttpResponseNotAllowed(["GET", "POST"])


@csrf_exempt
@token_required
def task_detail(request, task_id):
    task = services.get_task(request.user, task_id)
    if task is None:
        return _not_found()

    if request.method == "GET":
        return JsonResponse(task_to_dict(task))

    if request.method in ("PUT", "PATCH"):
        payload = _read_json(request)
        if payload is None:
            return JsonResponse({"message": "Invalid JSON body"}, status=400)
        try:
            completed = _completed_flag(payload)
        except ValueError as exc:
            return JsonResponse({"message": str(exc)}, status=400)
        data = _form_data(payload)
        if request.method == "PATCH":
            # Unsent fields keep their stored values.
            current = _form_data(task_to_dict(task))
            data = {k: (data[k] if _api_name(k) in payload else current[k]) for k in data}
        form = TaskForm(data, instance=task)
        if not form.is_valid():
            return JsonResponse({"errors": form.errors.get_json_data()}, status=400)
        task = services.update_task(
            task,
            completed=completed,
            **form.cleaned_data,
        )
        return JsonResponse(task_to_dict(task))

    if request.method == "DELETE":
        services.delete_task(task)
        return HttpResponse(status=204)

    return HttpResponseNotAllowed(["GET", "PUT", "PATCH", "DELETE"])


@csrf_exempt
@require_POST
@token_required
def toggle_complete(request, task_id):
    task = services.get_task(request.user, task_id)
    if task is None:
        return _not_found()
    services.toggle_completed(task)
    return JsonResponse(task_to_dict(task))
