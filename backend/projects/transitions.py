# projects/transitions.py
"""
Status Transition State Machine for billable events.

    pending --> unpaid --> paid
       |          |
       +--> rejected <--+

Every transition runs as one atomic unit:
1. Lock the event row (select_for_update) and validate the change
2. Post or reverse journals through the LedgerEngine
3. Update the status
4. Append a status history row

Any failure rolls back all four steps. The lock plus the unique
(source_type, source_id, purpose) journal constraint guarantee at most one
recognition and one payment journal per event, however many times or
however concurrently a transition is requested.
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import transaction

from accounting.exceptions import BillableEventNotFoundError, InvalidTransitionError, LedgerError
from accounting.ledger import default_ledger
from accounting.models import Direction, Journal
from ops import metrics
from projects.models import (
    BillableEvent,
    Billing,
    BillingStatusHistory,
    ProjectCost,
    ProjectCostStatusHistory,
)
from projects.policies import allowed_transitions, can_transition


logger = logging.getLogger(__name__)

Status = BillableEvent.Status

# event kind -> (model, history model, history FK name)
EVENT_KINDS = {
    "billing": (Billing, BillingStatusHistory, "billing"),
    "project_cost": (ProjectCost, ProjectCostStatusHistory, "project_cost"),
}

KIND_ALIASES = {
    "billing": "billing",
    "billings": "billing",
    "project_cost": "project_cost",
    "projectcost": "project_cost",
    "cost": "project_cost",
    "costs": "project_cost",
}


def resolve_event_kind(event_kind: str) -> str:
    kind = KIND_ALIASES.get(str(event_kind).strip().lower())
    if kind is None:
        raise ValueError(f"Unknown billable event kind: {event_kind!r}")
    return kind


@dataclass
class TransitionResult:
    """
    Outcome of a transition.

    ``skipped`` is True when the ledger step wrote nothing (journals disabled
    on the event, or the journal already existed); ``skip_reason`` says why.
    """

    event: BillableEvent
    old_status: str
    new_status: str
    journals: list = field(default_factory=list)
    history: object = None
    skipped: bool = False
    skip_reason: str = ""


class StatusTransitionMachine:
    """Moves billable events through their workflow and keeps the ledger in step."""

    def __init__(self, ledger=None, clock=None, config: dict = None):
        self.ledger = ledger or default_ledger
        self.clock = clock or self.ledger.clock
        self._config = config

    @property
    def config(self) -> dict:
        if self._config is not None:
            return self._config
        return settings.LEDGER

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def transition(
        self,
        event_kind: str,
        event_id,
        new_status: str,
        actor=None,
        notes: str = "",
        cash_account_code: str = None,
    ) -> TransitionResult:
        """
        Change the status of a Billing or ProjectCost.

        Args:
            event_kind: "billing" or "project_cost"
            event_id: Primary key of the event
            new_status: Target status
            actor: User requesting the change, optional
            notes: Free text stored on the history row
            cash_account_code: Cash/bank account for payments; defaults to
                the configured bank (billing) or cash (cost) account

        Raises:
            BillableEventNotFoundError, InvalidTransitionError, and any
            LedgerError from the posting step (the transition is rolled back)
        """
        kind = resolve_event_kind(event_kind)
        model, history_model, history_fk = EVENT_KINDS[kind]

        with transaction.atomic():
            event = self._load_for_update(model, kind, event_id)
            old_status = event.status

            allowed, reason = can_transition(old_status, new_status)
            if not allowed:
                raise InvalidTransitionError(old_status, new_status, kind, event.pk)

            if event.post_journal_entries:
                journals, skip_reason = self._apply_ledger(
                    event, old_status, new_status, actor, cash_account_code,
                )
            else:
                journals, skip_reason = [], "Journal posting is disabled for this event."

            event.status = new_status
            event.save(update_fields=["status", "updated_at"], _transition_write=True)

            history = history_model.objects.create(
                **{history_fk: event},
                old_status=old_status,
                new_status=new_status,
                changed_by=actor if getattr(actor, "pk", None) else None,
                notes=notes or "",
                changed_at=self.clock.now(),
            )
            metrics.record_transition(kind, old_status, new_status)

        logger.info(
            "Billable event status changed",
            extra={
                "event_kind": kind,
                "event_id": event.pk,
                "old_status": old_status,
                "new_status": new_status,
                "journal_ids": [str(j.public_id) for j in journals],
                "skip_reason": skip_reason,
            },
        )
        return TransitionResult(
            event=event,
            old_status=old_status,
            new_status=new_status,
            journals=journals,
            history=history,
            skipped=not journals,
            skip_reason=skip_reason,
        )

    def status_history(self, event_kind: str, event_id) -> list:
        """History rows for an event, newest first."""
        kind = resolve_event_kind(event_kind)
        model = EVENT_KINDS[kind][0]
        event = model.objects.filter(pk=self._clean_id(kind, event_id)).first()
        if event is None:
            raise BillableEventNotFoundError(kind, event_id)
        return list(event.status_history.select_related("changed_by").order_by("-changed_at", "-id"))

    def allowed_transitions(self, status: str) -> list[str]:
        return allowed_transitions(status)

    # -------------------------------------------------------------------------
    # Loading and guards
    # -------------------------------------------------------------------------

    def _clean_id(self, kind: str, event_id) -> int:
        try:
            return int(event_id)
        except (TypeError, ValueError):
            raise BillableEventNotFoundError(kind, event_id)

    def _load_for_update(self, model, kind: str, event_id):
        event = model.objects.select_for_update().filter(pk=self._clean_id(kind, event_id)).first()
        if event is None:
            raise BillableEventNotFoundError(kind, event_id)
        return event

    def _journal_exists(self, event, purpose: str, active_only: bool) -> bool:
        journals = self.ledger.journals_for_source(event.source_type, event.pk, purpose=purpose)
        if active_only:
            journals = journals.filter(is_reversed=False)
        return journals.exists()

    def _is_recognised(self, event) -> bool:
        return (
            self.ledger.journals_for_source(event.source_type, event.pk, purpose=Journal.Purpose.RECOGNITION)
            .filter(is_reversed=False)
            .exists()
        )

    # -------------------------------------------------------------------------
    # Ledger step
    # -------------------------------------------------------------------------

    def _apply_ledger(self, event, old_status, new_status, actor, cash_account_code) -> tuple[list, str]:
        if new_status == Status.REJECTED:
            reversals = self._reverse_all(event, actor)
            if not reversals:
                return [], "No journals to reverse."
            return reversals, ""

        if old_status == Status.PENDING and new_status == Status.UNPAID:
            if self._journal_exists(event, Journal.Purpose.RECOGNITION, active_only=True):
                return [], "Recognition journal already exists."
            return [self._post_recognition(event, actor)], ""

        if old_status == Status.UNPAID and new_status == Status.PAID:
            if self._journal_exists(event, Journal.Purpose.PAYMENT, active_only=False):
                return [], "Payment journal already exists."
            if not self._is_recognised(event):
                raise LedgerError(
                    f"{event.source_type} #{event.pk} has no active recognition journal; "
                    f"payment cannot be posted.",
                    event_kind=event.source_type,
                    event_id=event.pk,
                )
            return [self._post_payment(event, actor, cash_account_code)], ""

        return [], ""

    def _revenue_account(self, event) -> str:
        accounts = self.config.get("BILLING_CATEGORY_ACCOUNTS", {})
        return accounts.get((event.category or "").strip().lower(), self.config["DEFAULT_REVENUE_ACCOUNT"])

    def _expense_account(self, event) -> str:
        accounts = self.config.get("COST_CATEGORY_ACCOUNTS", {})
        return accounts.get((event.category or "").strip().lower(), self.config["DEFAULT_COST_ACCOUNT"])

    def _post(self, event, purpose, description, primary_code, label, counter_code, actor):
        primary = {
            "account_code": primary_code,
            "direction": Direction.DEBIT,
            "amount": event.amount,
            "label": label,
            "description": description,
        }
        return self.ledger.post_with_counter(
            self.clock.today(),
            description,
            primary,
            counter_code,
            project=event.project_id,
            source_type=event.source_type,
            source_id=event.pk,
            purpose=purpose,
            actor=actor,
        )

    def _post_recognition(self, event, actor):
        if isinstance(event, Billing):
            # Dr receivable / Cr revenue
            return self._post(
                event,
                Journal.Purpose.RECOGNITION,
                f"Billing #{event.pk} recognised {event.invoice_number}".strip(),
                self.config["RECEIVABLE_ACCOUNT"],
                "receivable",
                self._revenue_account(event),
                actor,
            )
        # Dr expense / Cr payable
        return self._post(
            event,
            Journal.Purpose.RECOGNITION,
            f"Project cost #{event.pk} recognised ({event.category or 'other'})",
            self._expense_account(event),
            "expense",
            self.config["PAYABLE_ACCOUNT"],
            actor,
        )

    def _post_payment(self, event, actor, cash_account_code):
        if isinstance(event, Billing):
            # Dr cash / Cr receivable
            return self._post(
                event,
                Journal.Purpose.PAYMENT,
                f"Payment received for billing #{event.pk}",
                cash_account_code or self.config["DEFAULT_BANK_ACCOUNT"],
                "cash_in",
                self.config["RECEIVABLE_ACCOUNT"],
                actor,
            )
        # Dr payable / Cr cash
        return self._post(
            event,
            Journal.Purpose.PAYMENT,
            f"Payment made for project cost #{event.pk}",
            self.config["PAYABLE_ACCOUNT"],
            "payable_settled",
            cash_account_code or self.config["DEFAULT_CASH_ACCOUNT"],
            actor,
        )

    def _reverse_all(self, event, actor) -> list:
        journals = (
            self.ledger.journals_for_source(event.source_type, event.pk)
            .filter(is_reversed=False)
            .exclude(kind=Journal.Kind.REVERSAL)
        )
        return [
            self.ledger.reverse_journal(journal.public_id, actor=actor, through_workflow=True)
            for journal in journals
        ]


default_machine = StatusTransitionMachine()
