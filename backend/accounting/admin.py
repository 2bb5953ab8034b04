# accounting/admin.py
"""
Django admin configuration for accounting models.

Journals and postings are written only by the LedgerEngine, so the admin
shows them read-only. Accounts may be added from the admin but never
edited: postings already made against an account depend on its category.
"""

from django.contrib import admin

from .models import Account, Journal, Posting


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Base admin class for ledger rows."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class PostingInline(admin.TabularInline):
    """Inline display of postings within a journal (read-only)."""
    model = Posting
    extra = 0
    readonly_fields = ["account", "direction", "label", "amount", "description"]
    fields = ["account", "direction", "label", "amount", "description"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "category", "cash_flow_activity", "is_cash"]
    list_filter = ["category", "is_cash"]
    search_fields = ["code", "name"]
    ordering = ["code"]

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ["code", "name", "category", "cash_flow_activity", "is_cash", "created_at"]
        return ["created_at"]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Journal)
class JournalAdmin(ReadOnlyModelAdmin):
    list_display = [
        "public_id", "date", "description", "kind",
        "source_type", "source_id", "purpose", "is_reversed",
    ]
    list_filter = ["kind", "source_type", "purpose", "is_reversed", "date"]
    search_fields = ["description", "public_id"]
    date_hierarchy = "date"
    list_select_related = ["project", "created_by"]
    ordering = ["-date", "-id"]
    inlines = [PostingInline]


@admin.register(Posting)
class PostingAdmin(ReadOnlyModelAdmin):
    list_display = ["journal", "date", "account", "direction", "amount", "project"]
    list_filter = ["direction", "date"]
    search_fields = ["account__code", "account__name", "description"]
    list_select_related = ["journal", "account", "project"]
