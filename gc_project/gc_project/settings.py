from pathlib import Path

from decouple import Csv, config

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config("SECRET_KEY", default="dev-only-not-secure")
DEBUG = config("DEBUG", cast=bool, default=False)
ALLOWED_HOSTS = config("DJANGO_ALLOWED_HOSTS", cast=Csv(),
                       default="localhost,127.0.0.1")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "billing_core",
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

ROOT_URLCONF = "gc_project.urls"

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

WSGI_APPLICATION = "gc_project.wsgi.application"

# DB (sqlite unless DB_ENGINE says otherwise, e.g. django.db.backends.postgresql)
DATABASES = {
    "default": {
        "ENGINE": config("DB_ENGINE", default="django.db.backends.sqlite3"),
        "NAME": config("DB_NAME", default=str(BASE_DIR / "db.sqlite3")),
        "USER": config("DB_USER", default=""),
        "PASSWORD": config("DB_PASSWORD", default=""),
        "HOST": config("DB_HOST", default=""),
        "PORT": config("DB_PORT", default=""),
        "ATOMIC_REQUESTS": False,
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = config("TIME_ZONE", default="Africa/Nairobi")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# Celery
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default="redis://localhost:6379/0")
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND",
                               default="redis://localhost:6379/1")
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE

MPESA_SWEEP_SECONDS = config("MPESA_SWEEP_SECONDS", cast=int, default=60)
CELERY_BEAT_SCHEDULE = {
    "sweep-mobile-money-transactions": {
        "task": "billing_core.tasks.sweep_mobile_money_transactions",
        "schedule": MPESA_SWEEP_SECONDS,
    },
}

# SMS gateway
SMS_ENDPOINT = config("SMS_ENDPOINT", default="")
BULK_SMS_ENDPOINT = config("BULK_SMS_ENDPOINT", default="")
SMS_BALANCE_URL = config("SMS_BALANCE_URL", default="")
SMS_API_KEY = config("SMS_API_KEY", default="")
PARTNER_ID = config("PARTNER_ID", default="")
SHORTCODE = config("SHORTCODE", default="")
SMS_COUNTRY_CODE = config("SMS_COUNTRY_CODE", default="254")
SMS_TIMEOUT = config("SMS_TIMEOUT", cast=int, default=10)

# Shared secret for the billing JSON endpoints (X-Api-Key header); empty = closed
BILLING_API_KEY = config("BILLING_API_KEY", default="")

# Text used in customer messages
PAYBILL_NUMBER = config("PAYBILL_NUMBER", default="4107197")
SUPPORT_PHONE = config("SUPPORT_PHONE", default="0726594923")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": config("DJANGO_LOG_LEVEL", default="WARNING"),
        },
        "billing_core": {
            "handlers": ["console"],
            "level": config("LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
