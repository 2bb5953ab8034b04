# accounting/serializers.py
"""
Serializers for accounting API.

Note: These serializers are used for:
1. Input validation
2. Output formatting

The actual business logic happens in ledger.py.
Direction tags are passed through as given; the engine resolves them
against the account category.
"""

from rest_framework import serializers

from .models import Account, Journal, Posting


# =============================================================================
# Account Serializers
# =============================================================================

class AccountSerializer(serializers.ModelSerializer):
    """Chart of Accounts entry (read-only)."""
    normal_balance = serializers.CharField(read_only=True)
    activity = serializers.CharField(read_only=True)

    class Meta:
        model = Account
        fields = [
            "code", "name", "category", "cash_flow_activity", "activity",
            "is_cash", "normal_balance", "created_at",
        ]
        read_only_fields = fields


# =============================================================================
# Journal Serializers
# =============================================================================

class PostingSerializer(serializers.ModelSerializer):
    """Serializer for individual postings."""
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = Posting
        fields = [
            "id", "account_code", "account_name", "direction", "label",
            "amount", "date", "project", "description", "notes", "created_at",
        ]
        read_only_fields = fields


class JournalSerializer(serializers.ModelSerializer):
    """
    Full journal serializer with nested postings.
    Used for retrieval and display.
    """
    postings = PostingSerializer(many=True, read_only=True)
    total_debit = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)
    total_credit = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)
    reverses = serializers.UUIDField(source="reverses.public_id", read_only=True, default=None)

    class Meta:
        model = Journal
        fields = [
            "public_id", "date", "description", "kind",
            "source_type", "source_id", "purpose", "project",
            "is_reversed", "reversed_at", "reverses",
            "created_by", "created_at",
            "postings", "total_debit", "total_credit",
        ]
        read_only_fields = fields


class JournalLineInputSerializer(serializers.Serializer):
    """
    Serializer for journal line input.

    ``direction`` accepts debit/credit as well as the legacy movement tags
    (income, expense, Pendapatan, Beban, WIP_INCREASE, WIP_DECREASE).
    """
    account_code = serializers.CharField(max_length=20)
    direction = serializers.CharField(max_length=30)
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    label = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class JournalPostSerializer(serializers.Serializer):
    """Input for posting a manual journal."""
    date = serializers.DateField(required=False, allow_null=True, default=None)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    project = serializers.IntegerField(required=False, allow_null=True, default=None)
    journal_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    lines = JournalLineInputSerializer(many=True)


class JournalReverseSerializer(serializers.Serializer):
    date = serializers.DateField(required=False, allow_null=True, default=None)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class SuggestCounterQuerySerializer(serializers.Serializer):
    direction = serializers.CharField(max_length=30)
