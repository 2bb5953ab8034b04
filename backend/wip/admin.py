# wip/admin.py
"""WIP snapshots are append-only; the admin shows them read-only."""

from django.contrib import admin

from .models import WipSnapshot


@admin.register(WipSnapshot)
class WipSnapshotAdmin(admin.ModelAdmin):
    list_display = [
        "project", "date", "completion_percentage", "earned_value",
        "total_billed", "wip_value", "risk_score", "age_in_days",
    ]
    list_filter = ["date"]
    search_fields = ["project__code", "project__name"]
    list_select_related = ["project"]
    date_hierarchy = "date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
