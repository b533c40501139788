import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_int(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "flights",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "flights-default",
    }
}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

USE_TZ = True
TIME_ZONE = "UTC"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --- Upstream flight API (Vyspa REST v4) ---
FLIGHTS_PROVIDER = os.getenv("FLIGHTS_PROVIDER", "vyspa")
VYSPA_API_URL = os.getenv("VYSPA_API_URL", "")
VYSPA_FLIGHTVIEW_URL = os.getenv("VYSPA_FLIGHTVIEW_URL", "")
VYSPA_API_VERSION = os.getenv("VYSPA_API_VERSION", "1")
VYSPA_USERNAME = os.getenv("VYSPA_USERNAME", "")
VYSPA_PASSWORD = os.getenv("VYSPA_PASSWORD", "")
VYSPA_SEARCH_VERSION = os.getenv("VYSPA_SEARCH_VERSION", "2")

FLIGHTS_REQUEST_TIMEOUT = _env_int("FLIGHTS_REQUEST_TIMEOUT", 30)
FLIGHTS_BATCH_WORKERS = _env_int("FLIGHTS_BATCH_WORKERS", 6)
FLIGHTS_BATCH_MAX_ITEMS = _env_int("FLIGHTS_BATCH_MAX_ITEMS", 20)

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "GBP")
DEFAULT_CHILD_AGE = os.getenv("DEFAULT_CHILD_AGE", "9")

PASSENGER_LIMITS = {
    "min_adults": 1,
    "max_adults": 9,
    "max_children": 9,
    "max_infants": 9,
    "max_total": 9,
}

# --- Caches (seconds) ---
SEARCH_CACHE_TTL = _env_int("SEARCH_CACHE_TTL", 60 * 10)
PRICE_CHECK_CACHE_TTL = _env_int("PRICE_CHECK_CACHE_TTL", 60 * 5)
EXCHANGE_RATES_TTL = _env_int("EXCHANGE_RATES_TTL", 60 * 60 * 24)
EXCHANGE_RATES_URL = os.getenv("EXCHANGE_RATES_URL", "https://api.exchangerate-api.com/v4/latest/USD")

# --- Airports dataset used for enrichment and autocomplete ---
AIRPORTS_DATA_URL = os.getenv(
    "AIRPORTS_DATA_URL",
    "https://raw.githubusercontent.com/mwgg/Airports/master/airports.json",
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s [%(name)s] %(levelname)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "flights": {
            "handlers": ["console"],
            "level": os.getenv("FLIGHTS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
