import os
from pathlib import Path
import environ
from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent
env = environ.Env(
    DJANGO_DEBUG=(bool, True),
    DJANGO_SECRET_KEY=(str, "insecure-key"),
    DJANGO_ALLOWED_HOSTS=(str, "localhost,127.0.0.1"),
    TIME_ZONE=(str, "America/Sao_Paulo"),
    CSRF_TRUSTED_ORIGINS=(str, ""),
    SESSION_COOKIE_SECURE=(bool, False),
    CSRF_COOKIE_SECURE=(bool, False),

    DEFAULT_AVAILABILITY_DEADLINE_DAY=(int, 20),
    ENFORCE_DEPARTMENT_PRIORITY=(bool, True),
    DEFAULT_SERVICE_TIME=(str, "19:00"),
    ICS_EVENT_DURATION_MINUTES=(int, 120),
    CALENDAR_LOCATION=(str, ""),

    POSTGRES_DB=(str, "volunteer_roster"),
    POSTGRES_USER=(str, "roster_user"),
    POSTGRES_PASSWORD=(str, "roster_pass"),
    POSTGRES_HOST=(str, "db"),
    POSTGRES_PORT=(int, 5432),

    REDIS_URL=(str, "redis://redis:6379/0"),
    REMINDER_DAYS_AHEAD=(int, 7),
    DEADLINE_REMINDER_DAYS=(int, 3),
    REMINDER_HOUR=(int, 8),

    EMAIL_BACKEND=(str, "django.core.mail.backends.console.EmailBackend"),
    EMAIL_HOST=(str, ""),
    EMAIL_PORT=(int, 587),
    EMAIL_HOST_USER=(str, ""),
    EMAIL_HOST_PASSWORD=(str, ""),
    EMAIL_USE_TLS=(bool, True),
    DEFAULT_FROM_EMAIL=(str, "noreply@example.com"),
)
environ.Env.read_env(os.path.join(BASE_DIR.parent, ".env"))

SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = env("DJANGO_DEBUG")
ALLOWED_HOSTS = [h.strip() for h in env("DJANGO_ALLOWED_HOSTS").split(",")]

CSRF_TRUSTED_ORIGINS = [h.strip() for h in env("CSRF_TRUSTED_ORIGINS").split(",") if h.strip()]
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True
SESSION_COOKIE_SECURE = env("SESSION_COOKIE_SECURE")
CSRF_COOKIE_SECURE = env("CSRF_COOKIE_SECURE")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "django_filters",
    "rostering",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.middleware.locale.LocaleMiddleware",
    "core.middleware.ErrorLoggingMiddleware",  # custom middleware to log errors
    "core.middleware.CurrentUserMiddleware", # custom middleware to track current user
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "core.urls"

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

WSGI_APPLICATION = "core.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": env("POSTGRES_DB"),
        "USER": env("POSTGRES_USER"),
        "PASSWORD": env("POSTGRES_PASSWORD"),
        "HOST": env("POSTGRES_HOST"),
        "PORT": env("POSTGRES_PORT"),
    }
}

LANGUAGE_CODE = "pt-br"
TIME_ZONE = env("TIME_ZONE")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "static"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_FILTER_BACKENDS": ["django_filters.rest_framework.DjangoFilterBackend"],
    "EXCEPTION_HANDLER": "core.exceptions.api_exception_handler",
}

# ==== Regras de escala ====
DEFAULT_AVAILABILITY_DEADLINE_DAY = env("DEFAULT_AVAILABILITY_DEADLINE_DAY")
ENFORCE_DEPARTMENT_PRIORITY = env("ENFORCE_DEPARTMENT_PRIORITY")
DEFAULT_SERVICE_TIME = env("DEFAULT_SERVICE_TIME")
ICS_EVENT_DURATION_MINUTES = env("ICS_EVENT_DURATION_MINUTES")
CALENDAR_LOCATION = env("CALENDAR_LOCATION") or None
REMINDER_DAYS_AHEAD = env("REMINDER_DAYS_AHEAD")
DEADLINE_REMINDER_DAYS = env("DEADLINE_REMINDER_DAYS")
REMINDER_HOUR = env("REMINDER_HOUR")

CELERY_BROKER_URL = env("REDIS_URL")
CELERY_RESULT_BACKEND = env("REDIS_URL")
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "daily-reminder": {
        "task": "rostering.tasks.daily_reminder",
        "schedule": crontab(minute=0, hour=REMINDER_HOUR),
    },

    "availability-deadline-reminder": {
        "task": "rostering.tasks.availability_deadline_reminder",
        "schedule": crontab(minute=30, hour=REMINDER_HOUR),
    },
}

EMAIL_BACKEND = env("EMAIL_BACKEND")
EMAIL_HOST = env("EMAIL_HOST")
EMAIL_PORT = env("EMAIL_PORT")
EMAIL_HOST_USER = env("EMAIL_HOST_USER")
EMAIL_HOST_PASSWORD = env("EMAIL_HOST_PASSWORD")
EMAIL_USE_TLS = env("EMAIL_USE_TLS")
DEFAULT_FROM_EMAIL = env("DEFAULT_FROM_EMAIL", default="escala@igreja.local")

LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
        "rotating_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "app.log",
            "maxBytes": 1024 * 1024 * 5,  # 5 MB
            "backupCount": 5,
            "formatter": "detailed",
        }
    },
    "loggers": {
        "rostering": {"handlers": ["console", "rotating_file"], "level": "INFO"},
        "core": {"handlers": ["console", "rotating_file"], "level": "INFO"},

        "django": {"handlers": ["console", "rotating_file"], "level": "INFO", "propagate": True},
        "django.request": {"handlers": ["console", "rotating_file"], "level": "ERROR", "propagate": False},
        "gunicorn.error": {"handlers": ["console", "rotating_file"], "level": "INFO", "propagate": False},
    },
}

LANGUAGES = [
    ('en', 'English'),
    ('pt-br', 'Português (Brasil)'),
]

LOCALE_PATHS = [
    BASE_DIR / "locale",
]
