# accounting/urls.py
"""
URL configuration for accounting API.

Endpoints:
- /accounts/ - Chart of Accounts (read-only)
- /accounts/<code>/suggest-counter/ - Default counter account
- /journals/ - List and post journals
- /journals/<uuid>/reverse/ - Reverse a journal
"""

from django.urls import path

from .views import (
    AccountListView,
    AccountSuggestCounterView,
    JournalDetailView,
    JournalListCreateView,
    JournalReverseView,
)

app_name = "accounting"

urlpatterns = [
    # ==========================================================================
    # Accounts (Chart of Accounts)
    # ==========================================================================
    path(
        "accounts/",
        AccountListView.as_view(),
        name="account-list",
    ),
    path(
        "accounts/<str:code>/suggest-counter/",
        AccountSuggestCounterView.as_view(),
        name="account-suggest-counter",
    ),

    # ==========================================================================
    # Journals
    # ==========================================================================
    path(
        "journals/",
        JournalListCreateView.as_view(),
        name="journal-list-create",
    ),
    path(
        "journals/<uuid:public_id>/",
        JournalDetailView.as_view(),
        name="journal-detail",
    ),
    path(
        "journals/<uuid:public_id>/reverse/",
        JournalReverseView.as_view(),
        name="journal-reverse",
    ),
]
