"""
Sign-up and log-in endpoints for the JSON API.

Both answer with a bearer token and the public user fields. The email
address doubles as the username.
"""
import json

import structlog
from django.contrib.auth import authenticate, get_user_model
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .tokens import issue_token

log = structlog.get_logger()


def _read_json(request):
    try:
        payload = json.loads(request.body or b"{}")
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _user_payload(user):
    return {"id": user.pk, "name": user.first_name, "email": user.email}


@csrf_exempt
@require_POST
def signup(request):
    payload = _read_json(request)
    if payload is None:
        return JsonResponse({"message": "Invalid JSON body"}, status=400)

    name = str(payload.get("name", "")).strip()
    email = str(payload.get("email", "")).strip().lower()
    password = str(payload.get("password", ""))
    if not email or not password:
        return JsonResponse({"message": "Email and password are required"}, status=400)

    User = get_user_model()
    if User.objects.filter(username=email).exists():
        return JsonResponse({"message": "User already exists"}, status=400)

    user = User.objects.create_user(
        username=email, email=email, password=password, first_name=name,
    )
    log.info("user_signed_up", user_id=user.pk)
    return JsonResponse({"token": issue_token(user), "user": _user_payload(user)}, status=201)


@csrf_exempt
@require_POST
def login(request):
    payload = _read_json(request)
    if payload is None:
        return JsonResponse({"message": "Invalid JSON body"}, status=400)

    email = str(payload.get("email", "")).strip().lower()
    password = str(payload.get("password", ""))
    user = authenticate(request, username=email, password=password)
    if user is None:
        log.info("login_failed")
        return JsonResponse({"message": "Invalid credentials"}, status=400)

    log.info("user_logged_in", user_id=user.pk)
    return JsonResponse({"token": issue_token(user), "user": _user_payload(user)})
