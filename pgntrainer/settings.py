import os
from pathlib import Path

import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

IS_PRODUCTION = os.getenv("DATABASE_URL") is not None
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "fallback-secret-key")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]
if extra_hosts := os.getenv("ALLOWED_HOSTS"):
    ALLOWED_HOSTS += [host.strip() for host in extra_hosts.split(",") if host.strip()]

INSTALLED_APPS = [
    "pgntrainer",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "djangoql",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "pgntrainer.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

if IS_PRODUCTION:
    # Parse the DATABASE_URL environment variable (contains password, etc)
    DATABASES = {"default": dj_database_url.config(default=os.getenv("DATABASE_URL"))}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "data" / "pgntrainer.sqlite3",
        }
    }

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Set the maximum size for uploaded files (in bytes)
DATA_UPLOAD_MAX_MEMORY_SIZE = 25 * 1024 * 1024  # 25 MB

PGNTRAINER_LOG_LEVEL = os.getenv("PGNTRAINER_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "{levelname} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "pgntrainer": {
            "handlers": ["console"],
            "level": PGNTRAINER_LOG_LEVEL,
            "propagate": True,
        },
    },
}

# Comment heuristics: a comment on the first move counts as a game comment
# when it's long, mentions a year or a game word, or never talks about moves
PGNTRAINER_GAME_COMMENT_MIN_LENGTH = 100
PGNTRAINER_GAME_COMMENT_KEYWORDS = (
    "World Championship",
    "Champion",
    "tournament",
    "match",
    "game",
)
PGNTRAINER_MOVE_COMMENT_KEYWORDS = (
    "move",
    "plays",
    "captures",
    "attacks",
    "defends",
    "threatens",
)

PGNTRAINER_DEFAULT_BRUSH = os.getenv("PGNTRAINER_DEFAULT_BRUSH", "green")
PGNTRAINER_FETCH_TIMEOUT = int(os.getenv("PGNTRAINER_FETCH_TIMEOUT", "15"))
