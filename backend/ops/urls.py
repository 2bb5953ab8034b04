"""
Operations endpoints.

Health checks are mounted under /_health/ and the Prometheus scrape target
under /_metrics/. No authentication; restrict them at the network level in
production.
"""
from django.urls import path

from ops.health import FullHealthView, LivenessView, ReadinessView
from ops.metrics import MetricsView

urlpatterns = [
    path("live", LivenessView.as_view(), name="health-live"),
    path("ready", ReadinessView.as_view(), name="health-ready"),
    path("full", FullHealthView.as_view(), name="health-full"),
]

# Metrics endpoint (separate path prefix in the root urls.py)
metrics_patterns = [
    path("", MetricsView.as_view(), name="metrics"),
]
