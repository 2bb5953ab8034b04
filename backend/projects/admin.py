# projects/admin.py
"""
Django admin configuration for project models.

Billable event status is read-only here: status changes must go through
the StatusTransitionMachine so the ledger stays in step.
"""

from django.contrib import admin

from .models import (
    Billing,
    BillingStatusHistory,
    Client,
    Project,
    ProjectCost,
    ProjectCostStatusHistory,
)


class ReadOnlyInline(admin.TabularInline):
    extra = 0

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class BillingStatusHistoryInline(ReadOnlyInline):
    model = BillingStatusHistory
    fields = readonly_fields = ["old_status", "new_status", "changed_by", "notes", "changed_at"]


class ProjectCostStatusHistoryInline(ReadOnlyInline):
    model = ProjectCostStatusHistory
    fields = readonly_fields = ["old_status", "new_status", "changed_by", "notes", "changed_at"]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ["name", "phone", "email"]
    search_fields = ["name", "email"]


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "client", "status", "total_value", "progress", "start_date"]
    list_filter = ["status"]
    search_fields = ["code", "name", "client__name"]
    list_select_related = ["client"]
    readonly_fields = ["progress", "created_at", "updated_at"]


@admin.register(Billing)
class BillingAdmin(admin.ModelAdmin):
    list_display = ["id", "project", "invoice_number", "amount", "status", "date"]
    list_filter = ["status", "category"]
    search_fields = ["invoice_number", "project__code"]
    list_select_related = ["project"]
    readonly_fields = ["status", "created_at", "updated_at"]
    inlines = [BillingStatusHistoryInline]


@admin.register(ProjectCost)
class ProjectCostAdmin(admin.ModelAdmin):
    list_display = ["id", "project", "category", "amount", "status", "date"]
    list_filter = ["status", "category"]
    search_fields = ["project__code", "description"]
    list_select_related = ["project"]
    readonly_fields = ["status", "created_at", "updated_at"]
    inlines = [ProjectCostStatusHistoryInline]
