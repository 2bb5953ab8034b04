# projects/urls.py
"""
URL configuration for projects API.

Endpoints:
- /billings/<id>/transition/ - Change billing status
- /billings/<id>/history/ - Billing status history
- /costs/<id>/transition/ - Change project cost status
- /costs/<id>/history/ - Project cost status history
"""

from django.urls import path

from .views import (
    BillingHistoryView,
    BillingTransitionView,
    ProjectCostHistoryView,
    ProjectCostTransitionView,
)

app_name = "projects"

urlpatterns = [
    path(
        "billings/<int:pk>/transition/",
        BillingTransitionView.as_view(),
        name="billing-transition",
    ),
    path(
        "billings/<int:pk>/history/",
        BillingHistoryView.as_view(),
        name="billing-history",
    ),
    path(
        "costs/<int:pk>/transition/",
        ProjectCostTransitionView.as_view(),
        name="cost-transition",
    ),
    path(
        "costs/<int:pk>/history/",
        ProjectCostHistoryView.as_view(),
        name="cost-history",
    ),
]
