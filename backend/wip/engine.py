# wip/engine.py
"""
WIP Valuation Engine.

Earned-value method:

    completion  = 100                                     if project completed
                = min(100, costs / (value * ratio) * 100) if value > 0
                = 0                                       otherwise
    earned      = completion / 100 * value
    wip         = earned - billed

``ratio`` is the expected cost share of the contract value
(WIP["EXPECTED_COST_RATIO"]). Costs are summed regardless of status.

Risk score (0..100):
    age points    0 / 10 / 20 / 30 for <=30 / <=60 / <=90 / >90 days
    ratio points  0 / 10 / 20 / 40 for wip/costs <10% / <20% / <30% / >=30%
    -20 when wip is negative, then clamped

The engine owns WipSnapshot rows and Project.progress. It asks the
LedgerEngine for adjustment journals and never touches billable event
status.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction

from accounting.exceptions import AmountMismatchError, ProjectNotFoundError
from accounting.ledger import default_ledger, to_decimal
from accounting.models import Journal
from ops import metrics
from projects.models import Project
from wip.models import WipSnapshot


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# Pure calculations
# =============================================================================

def completion_percentage(status: str, total_costs: Decimal, total_value: Decimal, cost_ratio: Decimal) -> Decimal:
    if status == Project.Status.COMPLETED:
        return quantize(HUNDRED)
    if total_value <= 0:
        return ZERO
    if cost_ratio <= 0:
        raise ImproperlyConfigured("WIP['EXPECTED_COST_RATIO'] must be greater than zero.")
    expected_cost = total_value * cost_ratio
    return quantize(min(HUNDRED, total_costs / expected_cost * HUNDRED))


def earned_value(completion: Decimal, total_value: Decimal) -> Decimal:
    return quantize(completion / HUNDRED * total_value)


def age_in_days(start_date: date, today: date) -> int:
    """Whole calendar days since the start date, never negative."""
    if start_date is None:
        return 0
    return max(0, (today - start_date).days)


def age_points(age: int) -> int:
    if age <= 30:
        return 0
    if age <= 60:
        return 10
    if age <= 90:
        return 20
    return 30


def ratio_points(wip_value: Decimal, total_costs: Decimal) -> int:
    ratio = wip_value / total_costs if total_costs > 0 else ZERO
    if ratio < Decimal("0.10"):
        return 0
    if ratio < Decimal("0.20"):
        return 10
    if ratio < Decimal("0.30"):
        return 20
    return 40


def risk_score(age: int, wip_value: Decimal, total_costs: Decimal) -> int:
    score = age_points(age) + ratio_points(wip_value, total_costs)
    if wip_value < 0:
        score -= 20
    return max(0, min(100, score))


def _sum_amounts(items) -> Decimal:
    total = ZERO
    for item in items:
        amount = getattr(item, "amount", item)
        total += to_decimal(amount)
    return total


@dataclass(frozen=True)
class WipComputation:
    """Result of compute_wip; nothing is persisted."""

    project_id: int
    as_of: date
    total_value: Decimal
    total_costs: Decimal
    total_billed: Decimal
    completion_percentage: Decimal
    earned_value: Decimal
    wip_value: Decimal
    age_in_days: int
    risk_score: int

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "as_of": self.as_of.isoformat(),
            "total_value": str(self.total_value),
            "total_costs": str(self.total_costs),
            "total_billed": str(self.total_billed),
            "completion_percentage": str(self.completion_percentage),
            "earned_value": str(self.earned_value),
            "wip_value": str(self.wip_value),
            "age_in_days": self.age_in_days,
            "risk_score": self.risk_score,
        }


# =============================================================================
# Engine
# =============================================================================

class WipEngine:
    """Computes and records WIP valuations."""

    def __init__(self, ledger=None, clock=None, config: dict = None, ledger_config: dict = None):
        self.ledger = ledger or default_ledger
        self.clock = clock or self.ledger.clock
        self._config = config
        self._ledger_config = ledger_config

    @property
    def config(self) -> dict:
        if self._config is not None:
            return self._config
        return settings.WIP

    @property
    def ledger_config(self) -> dict:
        if self._ledger_config is not None:
            return self._ledger_config
        return self.ledger.config

    def _setting(self, key: str) -> Decimal:
        return Decimal(str(self.config[key]))

    def compute_wip(
        self,
        project: Project,
        costs=None,
        billings=None,
        expected_total_cost=None,
        expected_total_billed=None,
        expected_wip_value=None,
    ) -> WipComputation:
        """
        Compute the WIP valuation of a project.

        Args:
            project: The project
            costs: Cost amounts or objects with ``.amount``; defaults to all
                of the project's costs
            billings: Same for billings
            expected_total_cost / expected_total_billed / expected_wip_value:
                Caller-supplied figures to cross-check

        Raises:
            AmountMismatchError: a supplied figure differs from the computed
                one by more than WIP["AMOUNT_TOLERANCE"]
        """
        if costs is None:
            costs = project.costs.all()
        if billings is None:
            billings = project.billings.all()

        total_costs = _sum_amounts(costs)
        total_billed = _sum_amounts(billings)
        total_value = to_decimal(project.total_value)

        self._check_amount("total_costs", total_costs, expected_total_cost)
        self._check_amount("total_billed", total_billed, expected_total_billed)

        completion = completion_percentage(
            project.status, total_costs, total_value, self._setting("EXPECTED_COST_RATIO"),
        )
        earned = earned_value(completion, total_value)
        wip_value = earned - total_billed

        self._check_amount("wip_value", wip_value, expected_wip_value)

        today = self.clock.today()
        age = age_in_days(project.start_date, today)

        return WipComputation(
            project_id=project.pk,
            as_of=today,
            total_value=total_value,
            total_costs=total_costs,
            total_billed=total_billed,
            completion_percentage=completion,
            earned_value=earned,
            wip_value=wip_value,
            age_in_days=age,
            risk_score=risk_score(age, wip_value, total_costs),
        )

    def _check_amount(self, field: str, computed: Decimal, provided) -> None:
        if provided is None:
            return
        provided = to_decimal(provided)
        if abs(provided - computed) > self._setting("AMOUNT_TOLERANCE"):
            raise AmountMismatchError(field, computed, provided)

    def record_snapshot(self, project: Project, computation: WipComputation, notes: str = "", adjustment_journal=None) -> WipSnapshot:
        """Insert a snapshot. Snapshots are never updated."""
        return WipSnapshot.objects.create(
            project=project,
            date=computation.as_of,
            total_cost=computation.total_costs,
            total_billed=computation.total_billed,
            completion_percentage=computation.completion_percentage,
            earned_value=computation.earned_value,
            wip_value=computation.wip_value,
            risk_score=computation.risk_score,
            age_in_days=computation.age_in_days,
            adjustment_journal=adjustment_journal,
            notes=notes or "",
        )

    def post_wip_adjustment(self, project: Project, wip_value, notes: str = "", actor=None):
        """
        Post a WIP adjustment journal.

        Positive value: Dr WIP / Cr retained earnings. Negative value: the
        reverse, for the absolute amount. Values within
        WIP["ADJUSTMENT_EPSILON"] of zero post nothing.

        Returns:
            The Journal, or None when nothing was posted
        """
        value = quantize(to_decimal(wip_value))
        if abs(value) <= self._setting("ADJUSTMENT_EPSILON"):
            return None

        tag = "wip_increase" if value >= 0 else "wip_decrease"
        description = f"WIP adjustment for project {project.code}"
        primary = {
            "account_code": self.ledger_config["WIP_ACCOUNT"],
            "direction": tag,
            "amount": abs(value),
            "label": tag,
            "description": description,
            "notes": notes or "",
        }
        return self.ledger.post_with_counter(
            self.clock.today(),
            description,
            primary,
            self.ledger_config["RETAINED_EARNINGS_ACCOUNT"],
            project=project,
            source_type=Journal.SourceType.PROJECT,
            source_id=project.pk,
            purpose=Journal.Purpose.WIP_ADJUSTMENT,
            kind=Journal.Kind.WIP_ADJUSTMENT,
            actor=actor,
        )

    def posted_wip(self, project: Project) -> Decimal:
        """The project's balance on the WIP account: every adjustment posted so far."""
        balances = self.ledger.account_balances(project=project)
        return balances.get(self.ledger_config["WIP_ACCOUNT"], ZERO)

    def recalculate_project(self, project_id, notes: str = "", actor=None, post_adjustment: bool = True) -> WipSnapshot:
        """
        Recompute a project's WIP, record a snapshot and post the difference
        between the new value and the project's WIP account balance, all in
        one transaction. With ``post_adjustment=False`` only the snapshot is
        written; the next posting run catches the ledger up.

        Raises:
            ProjectNotFoundError
        """
        project_id = getattr(project_id, "pk", project_id)
        started = time.monotonic()
        try:
            with transaction.atomic():
                project = Project.objects.select_for_update().filter(pk=project_id).first()
                if project is None:
                    raise ProjectNotFoundError(project_id)

                computation = self.compute_wip(project)

                delta = computation.wip_value - self.posted_wip(project)

                journal = None
                if post_adjustment:
                    journal = self.post_wip_adjustment(project, delta, notes=notes, actor=actor)

                snapshot = self.record_snapshot(project, computation, notes=notes, adjustment_journal=journal)

                project.progress = computation.completion_percentage
                project.save(update_fields=["progress", "updated_at"])
        except Exception:
            metrics.record_wip_recalculation("failed")
            raise
        metrics.record_wip_recalculation("succeeded", time.monotonic() - started)

        logger.info(
            "WIP recalculated",
            extra={
                "project_id": project.pk,
                "wip_value": str(computation.wip_value),
                "delta": str(delta),
                "risk_score": computation.risk_score,
                "adjustment_journal": str(journal.public_id) if journal else None,
            },
        )
        return snapshot

    def recalculate_all(self, statuses=None, notes: str = "Batch WIP recalculation") -> dict:
        """
        Recalculate every project in ``statuses`` (default: active statuses).

        Each project runs in its own transaction. A failing project is
        logged and counted; it never stops the batch and is not retried.
        """
        if statuses is None:
            statuses = self.config.get("ACTIVE_PROJECT_STATUSES", ["planned", "ongoing"])

        project_ids = list(
            Project.objects.filter(status__in=list(statuses)).order_by("id").values_list("id", flat=True)
        )

        succeeded = 0
        failures = []
        for project_id in project_ids:
            try:
                self.recalculate_project(project_id, notes=notes)
                succeeded += 1
            except Exception as exc:
                logger.exception(
                    "WIP recalculation failed for project",
                    extra={"project_id": project_id},
                )
                failures.append({"project_id": project_id, "error": str(exc)})

        logger.info(
            "Batch WIP recalculation finished",
            extra={
                "processed": len(project_ids),
                "succeeded": succeeded,
                "failed": len(failures),
            },
        )
        return {
            "processed": len(project_ids),
            "succeeded": succeeded,
            "failed": len(failures),
            "failures": failures,
        }


default_engine = WipEngine()
