# projects/serializers.py
"""Serializers for the projects API."""

from rest_framework import serializers

from accounting.serializers import JournalSerializer
from .models import BillableEvent, Billing, ProjectCost


class BillingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Billing
        fields = [
            "id", "project", "amount", "status", "post_journal_entries",
            "category", "percentage", "invoice_number", "date", "description",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class ProjectCostSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectCost
        fields = [
            "id", "project", "amount", "status", "post_journal_entries",
            "category", "receipt", "date", "description",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.Serializer):
    """Works for both history models."""
    id = serializers.IntegerField(read_only=True)
    old_status = serializers.CharField(read_only=True)
    new_status = serializers.CharField(read_only=True)
    changed_by = serializers.CharField(source="changed_by.username", read_only=True, default=None)
    notes = serializers.CharField(read_only=True)
    changed_at = serializers.DateTimeField(read_only=True)


class TransitionInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BillableEvent.Status.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    cash_account_code = serializers.CharField(max_length=20, required=False, allow_null=True, default=None)


def serialize_transition(result) -> dict:
    event_serializer = BillingSerializer if isinstance(result.event, Billing) else ProjectCostSerializer
    return {
        "event": event_serializer(result.event).data,
        "old_status": result.old_status,
        "new_status": result.new_status,
        "journals": JournalSerializer(result.journals, many=True).data,
        "history": StatusHistorySerializer(result.history).data if result.history else None,
        "skipped": result.skipped,
        "skip_reason": result.skip_reason,
    }
