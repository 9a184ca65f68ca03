"""
Django settings for the OSS portal project.
"""
from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-k2#p0v!x7q@oss-portal-dev-only-9w$u3z^m1r&t8e")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

_default_allowed_hosts = ["127.0.0.1", "localhost", "testserver"]
ALLOWED_HOSTS = (
    os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",")
    if os.getenv("DJANGO_ALLOWED_HOSTS")
    else _default_allowed_hosts
)

INSTALLED_APPS = [
    "django.contrib.sessions",
    "django.contrib.messages",
    "accounts",
    "offers",
    "documents",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "accounts.middleware.TokenUserMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "portal.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
                "accounts.context_processors.portal_user_nav",
            ],
        },
    }
]

WSGI_APPLICATION = "portal.wsgi.application"

# -----------------------------
# Storage
# -----------------------------
# Offers, applications, users and logs live in the REST backend.
DATABASES = {}

# -----------------------------
# Backend API
# -----------------------------
PORTAL_API_URL = os.getenv("PORTAL_API_URL", "http://localhost:8000").rstrip("/")
PORTAL_API_TIMEOUT = float(os.getenv("PORTAL_API_TIMEOUT", "30"))

# -----------------------------
# Session management
# -----------------------------
# The bearer token is the only session state; keep it client-side.
SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_AGE = int(os.getenv("SESSION_COOKIE_AGE", "3600"))
SESSION_COOKIE_HTTPONLY = True
SESSION_SAVE_EVERY_REQUEST = True
SESSION_EXPIRE_AT_BROWSER_CLOSE = False
SESSION_TOKEN_KEY = "token"

LOGIN_URL = "login"

# Offer form default deadline
OFFER_DEFAULT_DEADLINE_DAYS = 30
OFFERS_PER_PAGE = 12

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

# Upload size accepted before streaming to the backend
DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024
FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024

# -----------------------------
# Logging
# -----------------------------
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "[{levelname}] {asctime} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
        "file": {
            "class": "logging.FileHandler",
            "filename": str(LOG_DIR / "portal.log"),
            "formatter": "standard",
            "level": "INFO",
        },
    },
    "root": {"handlers": ["console", "file"], "level": os.getenv("LOG_LEVEL", "INFO")},
}
