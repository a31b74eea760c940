"""
Report views.

The analytics endpoint is part of the bearer-token JSON API; the report
page and its PDF download use the regular session login.
"""
from urllib.parse import urlencode

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_GET

from accounts.tokens import token_required

from .aggregation import load_aggregation
from .exceptions import DataFetchError, ExportDataUnavailableError, InvalidRangeError
from .export import export_report
from .presentation import build_view
from .ranges import CUSTOM, PERIOD_CHOICES, WEEKLY, resolve_range


@require_GET
@token_required
def analytics_api(request):
    start = request.GET.get("startDate")
    end = request.GET.get("endDate")
    if not start or not end:
        return JsonResponse({"message": "startDate and endDate are required"}, status=400)

    try:
        date_range = resolve_range(CUSTOM, start=start, end=end)
    except InvalidRangeError as exc:
        return JsonResponse({"message": str(exc)}, status=400)

    try:
        result = load_aggregation(request.user, date_range)
    except DataFetchError:
        return JsonResponse({"message": "Server error"}, status=500)

    return JsonResponse(result.as_dict())


def _period_params(request):
    return {
        "period": request.GET.get("period", WEEKLY),
        "start": request.GET.get("start", ""),
        "end": request.GET.get("end", ""),
    }


def _resolve(params):
    return resolve_range(params["period"], start=params["start"], end=params["end"])


@login_required
def report(request):
    """Show the completion report for the selected period."""
    params = _period_params(request)
    context = {
        "params": params,
        "period_choices": PERIOD_CHOICES,
        "view": None,
        "error": None,
    }

    try:
        date_range = _resolve(params)
    except InvalidRangeError as exc:
        context["error"] = str(exc)
        return render(request, "reports/report.html", context, status=400)

    try:
        result = load_aggregation(request.user, date_range)
    except DataFetchError:
        context["error"] = "Failed to load report. Please try again."
        return render(request, "reports/report.html", context, status=503)

    context["view"] = build_view(result, date_range)
    context["export_query"] = urlencode(params)
    return render(request, "reports/report.html", context)


@login_required
def report_export(request):
    """Download the selected period's report as a PDF."""
    params = _period_params(request)
    back = f"{reverse('reports:report')}?{urlencode(params)}"

    try:
        date_range = _resolve(params)
    except InvalidRangeError as exc:
        messages.error(request, str(exc))
        return redirect(back)

    try:
        document = export_report(request.user, date_range)
    except ExportDataUnavailableError:
        messages.error(request, "Could not fetch data for the PDF. Please regenerate the report.")
        return redirect(back)

    response = HttpResponse(document.content, content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{document.filename}"'
    return response
