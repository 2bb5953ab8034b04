# accounting/models.py
"""
Ledger models for Siteledger.

The LedgerEngine (accounting/ledger.py) is the only writer of Journal and
Posting rows. Views and other apps go through the engine so every journal
is balanced and every duplicate is caught by the database.

Models:
- Account: Chart of Accounts entry (read-only lookup for the engine)
- Journal: Journal header, carries the causing-event reference
- Posting: One debit or credit against one account
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum


class Direction(models.TextChoices):
    DEBIT = "debit", "Debit"
    CREDIT = "credit", "Credit"

    @property
    def opposite(self) -> "Direction":
        return Direction.CREDIT if self == Direction.DEBIT else Direction.DEBIT


class Account(models.Model):
    """
    Chart of Accounts entry.

    Accounts are created once (seed command or admin) and never mutated by
    the engine; the engine only looks them up by code.
    """

    class Category(models.TextChoices):
        ASSET = "asset", "Asset"
        LIABILITY = "liability", "Liability"
        EQUITY = "equity", "Equity"
        REVENUE = "revenue", "Revenue"
        EXPENSE = "expense", "Expense"

    class CashFlowActivity(models.TextChoices):
        OPERATING = "operating", "Operating"
        INVESTING = "investing", "Investing"
        FINANCING = "financing", "Financing"

    NORMAL_BALANCE_MAP = {
        Category.ASSET: Direction.DEBIT,
        Category.EXPENSE: Direction.DEBIT,
        Category.LIABILITY: Direction.CREDIT,
        Category.EQUITY: Direction.CREDIT,
        Category.REVENUE: Direction.CREDIT,
    }

    # Labels found in imported charts of accounts
    LEGACY_CATEGORY_LABELS = {
        "aktiva": Category.ASSET,
        "aset": Category.ASSET,
        "aset lancar": Category.ASSET,
        "aset tetap": Category.ASSET,
        "kontra aset": Category.ASSET,
        "kewajiban": Category.LIABILITY,
        "hutang": Category.LIABILITY,
        "ekuitas": Category.EQUITY,
        "modal": Category.EQUITY,
        "pendapatan": Category.REVENUE,
        "beban": Category.EXPENSE,
    }

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=Category.choices)

    cash_flow_activity = models.CharField(
        max_length=20,
        choices=CashFlowActivity.choices,
        blank=True,
        default="",
        help_text="Blank means derived from the category.",
    )
    is_cash = models.BooleanField(
        default=False,
        help_text="Cash and bank accounts feed the cash flow statement.",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @classmethod
    def normalize_category(cls, raw: str) -> str:
        """
        Map a raw category label to a Category value.

        Accepts the canonical values ("asset", "REVENUE") as well as the
        Indonesian labels used by older charts ("Aset Tetap", "Beban").
        """
        if raw is None:
            raise ValueError("Account category is required.")
        key = str(raw).strip().lower()
        if key in cls.Category.values:
            return cls.Category(key)
        if key in cls.LEGACY_CATEGORY_LABELS:
            return cls.LEGACY_CATEGORY_LABELS[key]
        raise ValueError(f"Unknown account category: {raw!r}")

    @property
    def normal_balance(self) -> Direction:
        return self.NORMAL_BALANCE_MAP[self.category]

    @property
    def activity(self) -> str:
        """Cash flow activity, explicit or derived from the category."""
        if self.cash_flow_activity:
            return self.cash_flow_activity
        if self.category == self.Category.EQUITY:
            return self.CashFlowActivity.FINANCING
        if self.category == self.Category.LIABILITY and self.code.startswith("22"):
            return self.CashFlowActivity.FINANCING
        if self.category == self.Category.ASSET and self.code[:2] in ("15", "16"):
            return self.CashFlowActivity.INVESTING
        return self.CashFlowActivity.OPERATING

    def save(self, *args, **kwargs):
        """
        Accounts are written once. Changing an existing account would
        silently re-interpret every posting already made against it.
        """
        if not self._state.adding:
            raise RuntimeError(
                f"Account {self.code} already exists. "
                "Accounts are immutable once created."
            )
        self.category = self.normalize_category(self.category)
        super().save(*args, **kwargs)


class Journal(models.Model):
    """
    Journal header.

    A journal groups the postings of one accounting event. ``source_type``,
    ``source_id`` and ``purpose`` record what caused it; the partial unique
    constraint guarantees at most one recognition and one payment journal
    per billable event.
    """

    class Kind(models.TextChoices):
        STANDARD = "standard", "Standard"
        REVERSAL = "reversal", "Reversal"
        WIP_ADJUSTMENT = "wip_adjustment", "WIP Adjustment"

    class SourceType(models.TextChoices):
        BILLING = "billing", "Billing"
        PROJECT_COST = "project_cost", "Project Cost"
        PROJECT = "project", "Project"
        MANUAL = "manual", "Manual"

    class Purpose(models.TextChoices):
        RECOGNITION = "recognition", "Recognition"
        PAYMENT = "payment", "Payment"
        REVERSAL = "reversal", "Reversal"
        WIP_ADJUSTMENT = "wip_adjustment", "WIP Adjustment"
        MANUAL = "manual", "Manual"

    # Purposes that may occur at most once per source
    UNIQUE_PURPOSES = (Purpose.RECOGNITION, Purpose.PAYMENT)

    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )

    date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")

    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.STANDARD,
    )

    # Causing-event reference
    source_type = models.CharField(
        max_length=20,
        choices=SourceType.choices,
        default=SourceType.MANUAL,
    )
    source_id = models.PositiveBigIntegerField(null=True, blank=True)
    purpose = models.CharField(
        max_length=20,
        choices=Purpose.choices,
        default=Purpose.MANUAL,
    )

    project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="journals",
    )

    # Reversal metadata
    is_reversed = models.BooleanField(default=False)
    reversed_at = models.DateTimeField(null=True, blank=True)
    reverses = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_journals",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["source_type", "source_id", "purpose"],
                condition=Q(purpose__in=["recognition", "payment"]),
                name="uniq_journal_per_source_purpose",
            ),
        ]
        indexes = [
            models.Index(fields=["source_type", "source_id"], name="journal_source_idx"),
            models.Index(fields=["date", "id"], name="journal_date_idx"),
        ]

    def __str__(self):
        return f"Journal {self.public_id} ({self.date}) {self.kind}"

    def clean(self):
        if self.reverses_id and self.kind != self.Kind.REVERSAL:
            raise ValidationError("If reverses is set, kind must be REVERSAL.")

    def save(self, *args, **kwargs):
        if self.reverses_id and self.kind != self.Kind.REVERSAL:
            raise ValidationError("If reverses is set, kind must be REVERSAL.")
        super().save(*args, **kwargs)

    @property
    def total_debit(self) -> Decimal:
        total = self.postings.filter(direction=Direction.DEBIT).aggregate(total=Sum("amount"))["total"]
        return total or Decimal("0.00")

    @property
    def total_credit(self) -> Decimal:
        total = self.postings.filter(direction=Direction.CREDIT).aggregate(total=Sum("amount"))["total"]
        return total or Decimal("0.00")

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class Posting(models.Model):
    """One debit or credit against one account."""

    journal = models.ForeignKey(
        Journal,
        on_delete=models.PROTECT,
        related_name="postings",
    )

    date = models.DateField()

    account = models.ForeignKey(
        Account,
        to_field="code",
        db_column="account_code",
        on_delete=models.PROTECT,
        related_name="postings",
    )

    direction = models.CharField(max_length=6, choices=Direction.choices)
    label = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Semantic label, e.g. 'receivable' or 'counter:asset_increase'.",
    )
    amount = models.DecimalField(max_digits=15, decimal_places=2)

    project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="postings",
    )

    description = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["journal", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_posting_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["account", "date"], name="posting_account_date_idx"),
            models.Index(fields=["project", "date"], name="posting_project_date_idx"),
        ]

    def __str__(self):
        return f"{self.direction} {self.account_id} {self.amount}"

    @property
    def signed_amount(self) -> Decimal:
        """Debit-positive amount."""
        return self.amount if self.direction == Direction.DEBIT else -self.amount
