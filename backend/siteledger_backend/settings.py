import os
import sys
from decimal import Decimal
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url
from datetime import timedelta
from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("SECRET_KEY", os.environ.get("DJANGO_SECRET_KEY", "changeme"))
DEBUG = os.getenv("DEBUG", os.getenv("DJANGO_DEBUG", "True")) == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")

# Include Django's manage.py test invocation.
TESTING = (
    "PYTEST_CURRENT_TEST" in os.environ
    or "pytest" in sys.modules
    or "pytest" in sys.argv
    or "test" in sys.argv
)

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "corsheaders",
    "rest_framework",
    "ops.apps.OpsConfig",  # Operations & observability
    "accounting.apps.AccountingConfig",
    "projects.apps.ProjectsConfig",
    "wip.apps.WipConfig",
    "reports.apps.ReportsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "ops.metrics.track_request_metrics",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "siteledger_backend.urls"

WSGI_APPLICATION = "siteledger_backend.wsgi.application"

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
    }
]

# =============================================================================
# Database Configuration
# =============================================================================
DATABASES = {
    "default": dj_database_url.config(
        env="DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 8},
    },
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "COERCE_DECIMAL_TO_STRING": True,
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=30),
}

CORS_ALLOWED_ORIGINS = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000"
).split(",")

CORS_ALLOW_CREDENTIALS = True

CSRF_TRUSTED_ORIGINS = os.getenv(
    "CSRF_TRUSTED_ORIGINS",
    "http://localhost:3000"
).split(",")

# =============================================================================
# Ledger Configuration
# =============================================================================
# Account codes the engine posts to by default. Every value can be overridden
# through the environment so a different chart of accounts can be plugged in.
LEDGER = {
    "DEFAULT_CASH_ACCOUNT": os.getenv("LEDGER_DEFAULT_CASH_ACCOUNT", "1101"),
    "DEFAULT_BANK_ACCOUNT": os.getenv("LEDGER_DEFAULT_BANK_ACCOUNT", "1102"),
    "CASH_ACCOUNT_CODES": os.getenv(
        "LEDGER_CASH_ACCOUNT_CODES", "1101,1102,1103,1104,1105"
    ).split(","),
    "RECEIVABLE_ACCOUNT": os.getenv("LEDGER_RECEIVABLE_ACCOUNT", "1201"),
    "PAYABLE_ACCOUNT": os.getenv("LEDGER_PAYABLE_ACCOUNT", "2102"),
    "DEFAULT_REVENUE_ACCOUNT": os.getenv("LEDGER_DEFAULT_REVENUE_ACCOUNT", "4001"),
    "DEFAULT_EXPENSE_ACCOUNT": os.getenv("LEDGER_DEFAULT_EXPENSE_ACCOUNT", "6101"),
    "DEFAULT_LIABILITY_ACCOUNT": os.getenv("LEDGER_DEFAULT_LIABILITY_ACCOUNT", "2101"),
    "WIP_ACCOUNT": os.getenv("LEDGER_WIP_ACCOUNT", "1301"),
    "RETAINED_EARNINGS_ACCOUNT": os.getenv("LEDGER_RETAINED_EARNINGS_ACCOUNT", "3102"),
    "FALLBACK_CASH_ACCOUNT": os.getenv("LEDGER_FALLBACK_CASH_ACCOUNT", "1101"),
    # ProjectCost.category -> expense account
    "COST_CATEGORY_ACCOUNTS": {
        "material": "5101",
        "labor": "5102",
        "equipment": "5103",
        "transportation": "5104",
        "other": "5105",
    },
    "DEFAULT_COST_ACCOUNT": "5105",
    # Billing.category -> revenue account
    "BILLING_CATEGORY_ACCOUNTS": {
        "boring": "4001",
        "sondir": "4002",
        "consultation": "4003",
    },
}

# =============================================================================
# WIP Valuation Configuration
# =============================================================================
WIP = {
    # Expected total cost as a share of contract value. Completion percentage is
    # measured against total_value * EXPECTED_COST_RATIO.
    "EXPECTED_COST_RATIO": Decimal(os.getenv("WIP_EXPECTED_COST_RATIO", "0.70")),
    "ADJUSTMENT_EPSILON": Decimal(os.getenv("WIP_ADJUSTMENT_EPSILON", "0.01")),
    "AMOUNT_TOLERANCE": Decimal(os.getenv("WIP_AMOUNT_TOLERANCE", "0.01")),
    "ACTIVE_PROJECT_STATUSES": os.getenv(
        "WIP_ACTIVE_PROJECT_STATUSES", "planned,ongoing"
    ).split(","),
}

# =============================================================================
# Celery Configuration (Async Task Processing)
# =============================================================================
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")

CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)

CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes
CELERY_WORKER_PREFETCH_MULTIPLIER = 1  # Prevent task hoarding
CELERY_TASK_ALWAYS_EAGER = TESTING

# Nightly batch WIP recalculation (needs `celery -A siteledger_backend beat`)
CELERY_BEAT_SCHEDULE = {
    "recalculate-all-projects-wip": {
        "task": "wip.tasks.recalculate_all_projects_wip",
        "schedule": crontab(
            hour=int(os.getenv("WIP_RECALC_HOUR", "1")),
            minute=int(os.getenv("WIP_RECALC_MINUTE", "0")),
        ),
    },
}

# =============================================================================
# Structured Logging Configuration
# =============================================================================
from ops.logging_config import get_logging_config
LOGGING = get_logging_config(DEBUG)

# =============================================================================
# Observability Configuration
# =============================================================================
# Application version (set via CI/CD)
VERSION = os.getenv("APP_VERSION", "dev")
