# wip/serializers.py
"""Serializers for the WIP API."""

from rest_framework import serializers

from .models import WipSnapshot


class WipSnapshotSerializer(serializers.ModelSerializer):
    project_code = serializers.CharField(source="project.code", read_only=True)
    adjustment_journal = serializers.UUIDField(
        source="adjustment_journal.public_id", read_only=True, default=None,
    )

    class Meta:
        model = WipSnapshot
        fields = [
            "id", "project", "project_code", "date",
            "total_cost", "total_billed", "completion_percentage",
            "earned_value", "wip_value", "risk_score", "age_in_days",
            "adjustment_journal", "notes", "created_at",
        ]
        read_only_fields = fields


class ComputeQuerySerializer(serializers.Serializer):
    """Optional cross-check figures for GET /api/wip/projects/<id>/."""
    costs = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True, default=None)
    billed = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True, default=None)
    wip_value = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, allow_null=True, default=None)


class RecalculateSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    post_adjustment = serializers.BooleanField(required=False, default=True)


class RecalculateAllSerializer(serializers.Serializer):
    statuses = serializers.ListField(child=serializers.CharField(), required=False, allow_null=True, default=None)
    run_async = serializers.BooleanField(required=False, default=False)


class HistoryQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    limit = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=1000, default=None)


class TrendQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)


class ProjectionQuerySerializer(serializers.Serializer):
    months = serializers.IntegerField(required=False, min_value=1, max_value=24, default=3)
