"""Django settings for the sked project.

Every deploy-specific value comes from an ``SKED_*`` environment variable;
the defaults are suitable for local development only.
"""
import os
from pathlib import Path

from .logging_setup import setup_logging

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.environ.get("SKED_SECRET_KEY", "dev-only-secret-key-change-me")
DEBUG = _env_bool("SKED_DEBUG", default=False)
ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("SKED_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if h.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "accounts",
    "tasks",
    "reports",
]

MIDDLEWARE = [
    "sked.middleware.RequestLogMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "sked.urls"
WSGI_APPLICATION = "sked.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "sked" / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("SKED_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("SKED_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGIN_URL = "/accounts/login/"
LOGIN_REDIRECT_URL = "/reports/"
LOGOUT_REDIRECT_URL = "/accounts/login/"

# Lifetime of a bearer token issued by the auth API, in seconds.
SKED_TOKEN_MAX_AGE = int(os.environ.get("SKED_TOKEN_MAX_AGE", 60 * 60 * 24 * 7))

# TrueType font for exported PDFs; empty means built-in Helvetica (Latin-1 only).
SKED_PDF_FONT_PATH = os.environ.get("SKED_PDF_FONT_PATH", "")

# Let structlog own the root logger instead of Django's dictConfig.
LOGGING_CONFIG = None
setup_logging(
    log_format=os.environ.get("SKED_LOG_FORMAT", "dev"),
    log_level=os.environ.get("SKED_LOG_LEVEL", "INFO"),
)
