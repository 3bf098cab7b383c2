"""
config/settings.py
===================
  - Postgres primary ("default") + streaming replica ("replica")
  - DATABASE_ROUTERS     — ORM fallback: reads → replica, writes → primary
  - Redis cache backend (django-redis), shared by every instance; holds the
    read-your-writes last-write markers
  - READ_YOUR_WRITES     — consistency window / marker retention / store
  - REST_FRAMEWORK auth  — JWTAuthentication + SessionAuthentication
  - Secrets and hosts from environment variables (.env loaded if present)
"""

import os
from pathlib import Path
from datetime import timedelta

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY",
    "django-insecure-dev-key-change-in-production"
)

DEBUG = os.environ.get("DJANGO_DEBUG", "true").lower() == "true"

ALLOWED_HOSTS = os.environ.get(
    "DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1"
).split(",")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "rest_framework_simplejwt",
    "apps.consistency",
    "apps.profiles",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",   # must be first
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Demo only: X-Demo-UserId header as identity for unauthenticated calls
    "apps.profiles.identity.DemoIdentityMiddleware",
]

# Identity for demo requests that send no X-Demo-UserId header (a UUID, or unset)
DEMO_DEFAULT_IDENTITY = os.environ.get("RYW_DEMO_DEFAULT_IDENTITY") or None

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
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
        "ENGINE":   "django.db.backends.postgresql",
        "NAME":     os.environ.get("POSTGRES_DB",       "ryw"),
        "USER":     os.environ.get("POSTGRES_USER",     "ryw"),
        "PASSWORD": os.environ.get("POSTGRES_PASSWORD", "ryw"),
        "HOST":     os.environ.get("POSTGRES_HOST",     "localhost"),
        "PORT":     os.environ.get("POSTGRES_PORT",     "5433"),
        "CONN_MAX_AGE": 600,
    },
    "replica": {
        "ENGINE":   "django.db.backends.postgresql",
        "NAME":     os.environ.get("POSTGRES_DB",           "ryw"),
        "USER":     os.environ.get("POSTGRES_USER",         "ryw"),
        "PASSWORD": os.environ.get("POSTGRES_PASSWORD",     "ryw"),
        "HOST":     os.environ.get("POSTGRES_REPLICA_HOST", "localhost"),
        "PORT":     os.environ.get("POSTGRES_REPLICA_PORT", "5434"),
        "CONN_MAX_AGE": 600,
    },
}

# Route reads → replica, writes → default (for queries not routed explicitly)
DATABASE_ROUTERS = ["config.db_router.ReadReplicaRouter"]

# ── Redis Cache ───────────────────────────────────────────────────────────────
_redis_base = os.environ.get("REDIS_URL", "redis://localhost:6379")

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": f"{_redis_base}/1",
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            # Throttle counters and other best-effort caching
            "IGNORE_EXCEPTIONS": True,
            "SOCKET_CONNECT_TIMEOUT": 2,
            "SOCKET_TIMEOUT": 1,
        },
        "KEY_PREFIX": "ryw",
    },
    # Last-write markers. Errors must reach LastWriteTracker, which logs and
    # counts them before degrading the read to the follower.
    "markers": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": f"{_redis_base}/1",
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "IGNORE_EXCEPTIONS": False,
            "SOCKET_CONNECT_TIMEOUT": 2,
            "SOCKET_TIMEOUT": 1,
        },
        "KEY_PREFIX": "ryw",
    },
}

# ── Read-your-writes routing ──────────────────────────────────────────────────
READ_YOUR_WRITES = {
    "CONSISTENCY_WINDOW_SECONDS": os.environ.get("RYW_CONSISTENCY_WINDOW_SECONDS", "5"),
    "MARKER_RETENTION_SECONDS":   os.environ.get("RYW_MARKER_RETENTION_SECONDS", "600"),
    "LEADER_DATABASE":   "default",
    "FOLLOWER_DATABASE": "replica",
    # "django" → CACHES[CACHE_ALIAS]; "redis" → REDIS_URL below; "memory" → single process only
    "STORE":       os.environ.get("RYW_STORE", "django"),
    "CACHE_ALIAS": "markers",
    "REDIS_URL":   os.environ.get("RYW_REDIS_URL", f"{_redis_base}/3"),
}

# ── REST Framework ────────────────────────────────────────────────────────────
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",  # browsable API
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    # 100 requests/min per user; counters live in Redis
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "user": "100/min",
    },
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME":  timedelta(minutes=60),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
    "ROTATE_REFRESH_TOKENS":  True,
    "ALGORITHM": "HS256",
    "AUTH_HEADER_TYPES": ("Bearer",),
}

# ── Logging ───────────────────────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": os.environ.get("RYW_LOG_LEVEL", "INFO"),
        },
    },
}

# ── Auth ──────────────────────────────────────────────────────────────────────
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE     = "UTC"
USE_I18N      = True
USE_TZ        = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = os.environ.get(
    "CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",") if not DEBUG else []
