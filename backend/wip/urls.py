# wip/urls.py
"""
URL configuration for WIP API.

Endpoints:
- /projects/<id>/ - Compute WIP (no persistence)
- /projects/<id>/recalculate/ - Recalculate and record a snapshot
- /recalculate-all/ - Batch recalculation
- /history/<id>/, /aging/, /risk-analysis/, /trend/, /cashflow-projection/,
  /summary/ - Analytics
"""

from django.urls import path

from .views import (
    ProjectRecalculateView,
    ProjectWipView,
    RecalculateAllView,
    WipAgingView,
    WipCashFlowProjectionView,
    WipHistoryView,
    WipRiskAnalysisView,
    WipSummaryView,
    WipTrendView,
)

app_name = "wip"

urlpatterns = [
    path("projects/<int:pk>/", ProjectWipView.as_view(), name="project-wip"),
    path("projects/<int:pk>/recalculate/", ProjectRecalculateView.as_view(), name="project-recalculate"),
    path("recalculate-all/", RecalculateAllView.as_view(), name="recalculate-all"),
    path("history/<int:pk>/", WipHistoryView.as_view(), name="history"),
    path("aging/", WipAgingView.as_view(), name="aging"),
    path("risk-analysis/", WipRiskAnalysisView.as_view(), name="risk-analysis"),
    path("trend/", WipTrendView.as_view(), name="trend"),
    path("cashflow-projection/", WipCashFlowProjectionView.as_view(), name="cashflow-projection"),
    path("summary/", WipSummaryView.as_view(), name="summary"),
]
