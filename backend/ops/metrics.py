"""
Prometheus metrics endpoint.

Exposes application metrics in Prometheus format at /_metrics/.

Counters (incremented when the surrounding transaction commits):
- siteledger_journals_posted_total: journals written, by purpose and kind
- siteledger_journals_reversed_total: reversals, by the original's purpose
- siteledger_duplicate_journals_total: journals stopped by the unique
  (source, purpose) constraint
- siteledger_transitions_total: status changes by event kind, old and new
  status
- siteledger_wip_recalculations_total: project recalculations by outcome

Histograms:
- siteledger_wip_recalculation_seconds: time per project recalculation
- siteledger_request_duration_seconds: HTTP request duration

Gauges, refreshed on every scrape:
- siteledger_billable_events: billings and costs by status
- siteledger_wip_value: total WIP of the latest snapshot per project
"""
import logging
import re
import time

from django.db import models, transaction
from django.http import HttpResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)


journals_posted = Counter(
    "siteledger_journals_posted",
    "Journals posted to the ledger",
    ["purpose", "kind"],
)

journals_reversed = Counter(
    "siteledger_journals_reversed",
    "Journals reversed, by the purpose of the reversed journal",
    ["purpose"],
)

duplicate_journals = Counter(
    "siteledger_duplicate_journals",
    "Journals rejected as duplicates of an existing (source, purpose)",
    ["purpose"],
)

transitions = Counter(
    "siteledger_transitions",
    "Billable event status transitions",
    ["event_kind", "old_status", "new_status"],
)

wip_recalculations = Counter(
    "siteledger_wip_recalculations",
    "Project WIP recalculations",
    ["outcome"],
)

wip_recalculation_duration = Histogram(
    "siteledger_wip_recalculation_seconds",
    "Time to recalculate one project's WIP",
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

request_duration = Histogram(
    "siteledger_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

active_requests = Gauge(
    "siteledger_active_requests",
    "Number of requests currently being processed",
)

billable_events = Gauge(
    "siteledger_billable_events",
    "Billings and project costs by status",
    ["event_kind", "status"],
)

wip_value = Gauge(
    "siteledger_wip_value",
    "Sum of the latest WIP snapshot value per project",
)


# =============================================================================
# Recording helpers
# =============================================================================

def _on_commit(counter, **labels):
    transaction.on_commit(lambda: counter.labels(**labels).inc())


def record_journal_posted(purpose: str, kind: str):
    _on_commit(journals_posted, purpose=purpose, kind=kind)


def record_journal_reversed(purpose: str):
    _on_commit(journals_reversed, purpose=purpose)


def record_duplicate_journal(purpose: str):
    # The rejecting transaction rolls back; count immediately
    duplicate_journals.labels(purpose=purpose).inc()


def record_transition(event_kind: str, old_status: str, new_status: str):
    _on_commit(transitions, event_kind=event_kind, old_status=old_status, new_status=new_status)


def record_wip_recalculation(outcome: str, seconds: float = None):
    wip_recalculations.labels(outcome=outcome).inc()
    if seconds is not None:
        wip_recalculation_duration.observe(seconds)


# =============================================================================
# Scrape
# =============================================================================

def collect_metrics():
    """Refresh the gauges from the database."""
    from projects.models import Billing, ProjectCost
    from wip.models import WipSnapshot

    billable_events.clear()
    for kind, model in (("billing", Billing), ("project_cost", ProjectCost)):
        for row in model.objects.values("status").annotate(count=models.Count("id")):
            billable_events.labels(event_kind=kind, status=row["status"]).set(row["count"])

    total = sum(snapshot.wip_value for snapshot in WipSnapshot.objects.latest_per_project())
    wip_value.set(float(total))


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        try:
            collect_metrics()
        except Exception as e:
            # Serve the counters even when the gauges cannot be refreshed
            logger.error("Error collecting metrics", extra={"error": str(e)})
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


def _endpoint_label(path: str) -> str:
    path = re.sub(r"/\d+/", "/{id}/", path)
    path = re.sub(r"/[0-9a-f-]{36}/", "/{uuid}/", path)
    return path[:50]


def track_request_metrics(get_response):
    """Middleware recording request duration by method, endpoint and status class."""

    def middleware(request):
        start = time.monotonic()
        active_requests.inc()
        status = 500
        try:
            response = get_response(request)
            status = response.status_code
            return response
        finally:
            active_requests.dec()
            request_duration.labels(
                method=request.method,
                endpoint=_endpoint_label(request.path),
                status=f"{status // 100}xx",
            ).observe(time.monotonic() - start)

    return middleware
