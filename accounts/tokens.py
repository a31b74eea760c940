"""Bearer tokens for the JSON API.

Tokens are signed with Django's signing framework; nothing is stored
server-side. A token carries the user id and email and expires after
``SKED_TOKEN_MAX_AGE`` seconds.
"""
from functools import wraps

import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing
from django.http import JsonResponse

log = structlog.get_logger()

TOKEN_SALT = "accounts.api-token"


class AuthExpiredError(Exception):
    """The bearer token is invalid or expired; the client must log in again."""


def issue_token(user):
    return signing.dumps({"id": user.pk, "email": user.email}, salt=TOKEN_SALT)


def user_for_token(token):
    """Return the active user a token was issued to.

    Raises AuthExpiredError for a bad signature, an expired token, or a user
    that no longer exists.
    """
    try:
        payload = signing.loads(token, salt=TOKEN_SALT, max_age=settings.SKED_TOKEN_MAX_AGE)
    except signing.SignatureExpired as exc:
        raise AuthExpiredError("Token expired") from exc
    except signing.BadSignature as exc:
        raise AuthExpiredError("Invalid token") from exc

    User = get_user_model()
    try:
        return User.objects.get(pk=payload.get("id"), is_active=True)
    except User.DoesNotExist as exc:
        raise AuthExpiredError("Unknown user") from exc


def _bearer_token(request):
    header = request.headers.get("Authorization", "")
    parts = header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def token_required(view):
    """Authenticate a JSON view by bearer token.

    401 when no token is sent, 403 when the token is rejected. The client
    reacts to either by running its logout flow.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        token = _bearer_token(request)
        if token is None:
            return JsonResponse({"message": "No token provided"}, status=401)
        try:
            request.user = user_for_token(token)
        except AuthExpiredError as exc:
            log.warning("token_rejected", reason=str(exc))
            return JsonResponse({"message": "Invalid token"}, status=403)
        return view(request, *args, **kwargs)

    return wrapper
