# projects/models.py
"""
Project models for Siteledger.

Models:
- Client: Customer a project is delivered for
- Project: Contract with a total value, tracked for WIP
- Billing / ProjectCost: Billable events (money in / money out)
- BillingStatusHistory / ProjectCostStatusHistory: Append-only status log

Billable event status is owned by the StatusTransitionMachine
(projects/transitions.py). Saving a changed status from anywhere else
raises.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Client(models.Model):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Project(models.Model):
    """
    A contract delivered for a client.

    ``progress`` is the completion percentage last computed by the WIP
    engine; nothing else writes it.
    """

    class Status(models.TextChoices):
        PLANNED = "planned", "Planned"
        ONGOING = "ongoing", "Ongoing"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        related_name="projects",
    )

    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    total_value = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ONGOING,
    )
    progress = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Completion percentage, written by the WIP engine.",
    )
    description = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["status"], name="project_status_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"


class BillableEvent(models.Model):
    """
    Shared fields of Billing and ProjectCost.

    Workflow: pending -> unpaid -> paid, pending/unpaid -> rejected.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        UNPAID = "unpaid", "Unpaid"
        PAID = "paid", "Paid"
        REJECTED = "rejected", "Rejected"

    # Journal.SourceType value for this event kind; set by subclasses
    source_type = None

    amount = models.DecimalField(max_digits=15, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    post_journal_entries = models.BooleanField(
        default=True,
        help_text="When false, status changes do not touch the ledger.",
    )
    category = models.CharField(max_length=50, blank=True, default="")
    date = models.DateField()
    description = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_status = instance.__dict__.get("status")
        return instance

    def save(self, *args, _transition_write: bool = False, **kwargs):
        """
        Save the event.

        Args:
            _transition_write: Set by the StatusTransitionMachine. Any other
                caller changing the status of an existing event is refused.
        """
        loaded_status = getattr(self, "_loaded_status", None)
        if (
            not self._state.adding
            and not _transition_write
            and loaded_status is not None
            and self.status != loaded_status
        ):
            raise RuntimeError(
                f"{self.__class__.__name__} status is owned by the status "
                "transition machine. Use projects.transitions to change it."
            )
        super().save(*args, **kwargs)
        self._loaded_status = self.status


class Billing(BillableEvent):
    """Invoice raised against a project (money in)."""

    source_type = "billing"

    project = models.ForeignKey(
        Project,
        on_delete=models.PROTECT,
        related_name="billings",
    )
    percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Share of the contract value this billing represents.",
    )
    invoice_number = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["project", "status"], name="billing_project_status_idx"),
        ]

    def __str__(self):
        return f"Billing #{self.pk} {self.amount} ({self.status})"


class ProjectCost(BillableEvent):
    """Cost incurred on a project (money out)."""

    class Category(models.TextChoices):
        MATERIAL = "material", "Material"
        LABOR = "labor", "Labor"
        EQUIPMENT = "equipment", "Equipment"
        TRANSPORTATION = "transportation", "Transportation"
        OTHER = "other", "Other"

    source_type = "project_cost"

    project = models.ForeignKey(
        Project,
        on_delete=models.PROTECT,
        related_name="costs",
    )
    receipt = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["project", "status"], name="cost_project_status_idx"),
        ]

    def __str__(self):
        return f"Cost #{self.pk} {self.amount} ({self.status})"


class StatusHistoryRecord(models.Model):
    """Append-only record of one status change."""

    old_status = models.CharField(max_length=20)
    new_status = models.CharField(max_length=20)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    notes = models.TextField(blank=True, default="")
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("Status history is append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Status history is append-only.")


class BillingStatusHistory(StatusHistoryRecord):
    billing = models.ForeignKey(
        Billing,
        on_delete=models.CASCADE,
        related_name="status_history",
    )

    class Meta:
        ordering = ["-changed_at", "-id"]
        verbose_name_plural = "billing status history"


class ProjectCostStatusHistory(StatusHistoryRecord):
    project_cost = models.ForeignKey(
        ProjectCost,
        on_delete=models.CASCADE,
        related_name="status_history",
    )

    class Meta:
        ordering = ["-changed_at", "-id"]
        verbose_name_plural = "project cost status history"
