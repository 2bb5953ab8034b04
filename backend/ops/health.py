"""
Health check endpoints for operations monitoring.

Endpoints:
- /_health/live    - Liveness check (is the process running?)
- /_health/ready   - Readiness check (can we reach the database?)
- /_health/full    - Every check below, for debugging and dashboards

Checks:
- database: every configured alias answers SELECT 1
- broker: the Celery broker answers PING
- ledger: no journal is unbalanced or has fewer than two postings
- chart: every account code named in settings.LEDGER exists
- wip: active projects have a snapshot from the last WIP_STALE_DAYS days
"""
import logging
import time
from datetime import timedelta
from functools import wraps
from typing import Any, Callable, Dict

from django.conf import settings
from django.db import connections
from django.db.models import Max, Q
from django.http import JsonResponse
from django.utils import timezone
from django.views import View

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"
DEGRADED = "degraded"
SKIPPED = "skipped"

WIP_STALE_DAYS = 2


def timed_check(func: Callable[..., Dict[str, Any]]) -> Callable[..., Dict[str, Any]]:
    """Add duration_ms to a check result; report a raised error as unhealthy."""

    @wraps(func)
    def wrapper(*args, **kwargs) -> Dict[str, Any]:
        start = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.warning("Health check failed", extra={"check": func.__name__, "error": str(e)})
            result = {"status": UNHEALTHY, "error": str(e)}
        result["duration_ms"] = round((time.monotonic() - start) * 1000, 2)
        return result

    return wrapper


@timed_check
def check_database(alias: str = "default") -> Dict[str, Any]:
    with connections[alias].cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {"status": HEALTHY, "alias": alias}


def check_databases() -> Dict[str, Any]:
    results = {alias: check_database(alias) for alias in settings.DATABASES}
    healthy = all(r["status"] == HEALTHY for r in results.values())
    return {"status": HEALTHY if healthy else UNHEALTHY, "databases": results}


@timed_check
def check_broker() -> Dict[str, Any]:
    """PING the Celery broker. Skipped when tasks run eagerly."""
    if getattr(settings, "CELERY_TASK_ALWAYS_EAGER", False):
        return {"status": SKIPPED, "reason": "tasks run eagerly"}
    broker_url = getattr(settings, "CELERY_BROKER_URL", "")
    if not broker_url.startswith(("redis://", "rediss://")):
        return {"status": SKIPPED, "reason": "broker is not redis"}

    import redis

    redis.from_url(broker_url, socket_connect_timeout=2).ping()
    return {"status": HEALTHY}


@timed_check
def check_ledger() -> Dict[str, Any]:
    from accounting.ledger import find_unbalanced_journals

    offenders = find_unbalanced_journals()
    if not offenders:
        return {"status": HEALTHY}

    logger.error("Ledger integrity check failed", extra={"unbalanced_journals": len(offenders)})
    return {
        "status": UNHEALTHY,
        "unbalanced_journals": len(offenders),
        "journals": [str(public_id) for public_id in offenders[:10]],
    }


def configured_account_codes(config: dict) -> set:
    codes = {value for key, value in config.items() if key.endswith("_ACCOUNT")}
    codes.update(config.get("COST_CATEGORY_ACCOUNTS", {}).values())
    codes.update(config.get("BILLING_CATEGORY_ACCOUNTS", {}).values())
    return codes


@timed_check
def check_chart() -> Dict[str, Any]:
    """A missing configured account makes every posting against it fail."""
    from accounting.models import Account

    expected = configured_account_codes(settings.LEDGER)
    present = set(Account.objects.filter(code__in=expected).values_list("code", flat=True))
    missing = sorted(expected - present)
    if missing:
        return {"status": UNHEALTHY, "missing_accounts": missing}
    return {"status": HEALTHY, "accounts": len(present)}


@timed_check
def check_wip_freshness() -> Dict[str, Any]:
    from projects.models import Project

    cutoff = timezone.localdate() - timedelta(days=WIP_STALE_DAYS)
    stale = (
        Project.objects.filter(status__in=settings.WIP["ACTIVE_PROJECT_STATUSES"])
        .annotate(last_snapshot=Max("wip_snapshots__date"))
        .filter(Q(last_snapshot__isnull=True) | Q(last_snapshot__lt=cutoff))
        .count()
    )
    if stale:
        return {"status": DEGRADED, "stale_projects": stale, "cutoff": cutoff.isoformat()}
    return {"status": HEALTHY}


def full_health() -> Dict[str, Any]:
    checks = {
        "database": check_databases(),
        "broker": check_broker(),
        "ledger": check_ledger(),
        "chart": check_chart(),
        "wip": check_wip_freshness(),
    }

    statuses = {check["status"] for check in checks.values()}
    if UNHEALTHY in statuses:
        overall = UNHEALTHY
    elif DEGRADED in statuses:
        overall = DEGRADED
    else:
        overall = HEALTHY

    return {
        "status": overall,
        "checks": checks,
        "version": getattr(settings, "VERSION", "unknown"),
        "environment": "development" if settings.DEBUG else "production",
    }


class LivenessView(View):
    """Returns 200 while the process can answer at all."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """Returns 200 when the default database is reachable, 503 otherwise."""

    def get(self, request):
        database = check_database("default")
        if database["status"] == HEALTHY:
            return JsonResponse({"status": "ready", "database": database})
        return JsonResponse({"status": "not_ready", "database": database}, status=503)


class FullHealthView(View):
    """
    Every check with its details. Degraded still answers 200.

    Should be reachable from the internal network only.
    """

    def get(self, request):
        health = full_health()
        status_code = 503 if health["status"] == UNHEALTHY else 200
        return JsonResponse(health, status=status_code)
