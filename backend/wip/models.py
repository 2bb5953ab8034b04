# wip/models.py
"""
WIP snapshot model.

Snapshots form an append-only time series per project. The latest
snapshot of a project is the one with the greatest (date, id).
"""

from decimal import Decimal

from django.db import models
from django.db.models import OuterRef, Subquery


class WipSnapshotQuerySet(models.QuerySet):
    def latest_per_project(self, as_of=None):
        """One row per project: its latest snapshot (optionally as of a date)."""
        candidates = WipSnapshot.objects.filter(project_id=OuterRef("project_id"))
        if as_of is not None:
            candidates = candidates.filter(date__lte=as_of)
        latest_id = candidates.order_by("-date", "-id").values("id")[:1]

        qs = self
        if as_of is not None:
            qs = qs.filter(date__lte=as_of)
        return qs.filter(id=Subquery(latest_id))

    def latest_for(self, project, as_of=None):
        project_id = getattr(project, "pk", project)
        qs = self.filter(project_id=project_id)
        if as_of is not None:
            qs = qs.filter(date__lte=as_of)
        return qs.order_by("-date", "-id").first()


class WipSnapshot(models.Model):
    """Point-in-time WIP valuation of one project."""

    objects = WipSnapshotQuerySet.as_manager()

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="wip_snapshots",
    )
    date = models.DateField()

    total_cost = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    total_billed = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    completion_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    earned_value = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    wip_value = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    risk_score = models.PositiveSmallIntegerField(default=0)
    age_in_days = models.PositiveIntegerField(default=0)

    adjustment_journal = models.ForeignKey(
        "accounting.Journal",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="wip_snapshots",
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["project", "date", "id"], name="wip_project_date_idx"),
            models.Index(fields=["date"], name="wip_date_idx"),
        ]

    def __str__(self):
        return f"WIP {self.project_id} @ {self.date}: {self.wip_value}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("WIP snapshots are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("WIP snapshots are append-only.")
