# tests/test_transitions.py
"""
Tests for the billable event status transition machine.

Tests cover:
- The allowed transition graph, exhaustively
- Recognition, payment and rejection postings for billings and costs
- Rollback when the ledger step fails
- Status history and the status write guard
"""

from decimal import Decimal
from itertools import product

import pytest
from django.conf import settings

from accounting.exceptions import (
    AccountNotFoundError,
    BillableEventNotFoundError,
    InvalidTransitionError,
    LedgerError,
)
from accounting.models import Direction, Journal
from projects.models import BillableEvent, Billing, ProjectCost
from projects.policies import allowed_transitions, can_transition
from projects.transitions import StatusTransitionMachine, resolve_event_kind


Status = BillableEvent.Status

ALLOWED = {
    (Status.PENDING, Status.UNPAID),
    (Status.PENDING, Status.REJECTED),
    (Status.UNPAID, Status.PAID),
    (Status.UNPAID, Status.REJECTED),
}


def _postings(journal) -> dict:
    return {(p.account_id, p.direction): p.amount for p in journal.postings.all()}


# =============================================================================
# Transition Graph
# =============================================================================

class TestTransitionPolicy:

    @pytest.mark.parametrize("old, new", list(product(Status.values, Status.values)))
    def test_can_transition(self, old, new):
        allowed, reason = can_transition(old, new)
        assert allowed == ((old, new) in ALLOWED)
        assert bool(reason) != allowed

    def test_allowed_transitions(self):
        assert allowed_transitions("pending") == ["rejected", "unpaid"]
        assert allowed_transitions("paid") == []
        assert allowed_transitions("bogus") == []

    def test_unknown_status(self):
        allowed, _ = can_transition("pending", "archived")
        assert not allowed

    def test_event_kind_aliases(self):
        assert resolve_event_kind("Billings") == "billing"
        assert resolve_event_kind("cost") == "project_cost"
        with pytest.raises(ValueError):
            resolve_event_kind("invoice")


@pytest.mark.django_db
class TestTransitionGraph:

    @pytest.mark.parametrize("old, new", list(product(Status.values, Status.values)))
    def test_every_status_pair(self, chart, machine, make_billing, old, new):
        billing = make_billing(status=old)

        if (old, new) in ALLOWED:
            result = machine.transition("billing", billing.pk, new)
            assert result.old_status == old
            assert result.new_status == new
            billing.refresh_from_db()
            assert billing.status == new
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                machine.transition("billing", billing.pk, new)
            assert exc_info.value.old_status == old
            assert exc_info.value.new_status == new
            billing.refresh_from_db()
            assert billing.status == old
            assert billing.status_history.count() == 0

    def test_missing_event(self, chart, machine):
        with pytest.raises(BillableEventNotFoundError):
            machine.transition("billing", 999999, "unpaid")


# =============================================================================
# Ledger Effects
# =============================================================================

@pytest.mark.django_db
class TestBillingPostings:

    def test_recognition(self, machine, billing, user, fixed_clock):
        result = machine.transition("billing", billing.pk, "unpaid", actor=user, notes="Invoice sent")

        assert len(result.journals) == 1
        journal = result.journals[0]
        assert journal.purpose == Journal.Purpose.RECOGNITION
        assert journal.source_type == "billing"
        assert journal.source_id == billing.pk
        assert journal.project_id == billing.project_id
        assert journal.date == fixed_clock.today()
        assert _postings(journal) == {
            ("1201", Direction.DEBIT): Decimal("300000.00"),
            ("4001", Direction.CREDIT): Decimal("300000.00"),
        }
        assert not result.skipped

    def test_billing_category_selects_revenue_account(self, chart, machine, make_billing):
        billing = make_billing(category="sondir")

        journal = machine.transition("billing", billing.pk, "unpaid").journals[0]

        assert ("4002", Direction.CREDIT) in _postings(journal)

    def test_payment_defaults_to_bank(self, machine, billing):
        machine.transition("billing", billing.pk, "unpaid")
        result = machine.transition("billing", billing.pk, "paid")

        journal = result.journals[0]
        assert journal.purpose == Journal.Purpose.PAYMENT
        assert _postings(journal) == {
            ("1102", Direction.DEBIT): Decimal("300000.00"),
            ("1201", Direction.CREDIT): Decimal("300000.00"),
        }

    def test_payment_into_chosen_account(self, machine, billing):
        machine.transition("billing", billing.pk, "unpaid")
        result = machine.transition("billing", billing.pk, "paid", cash_account_code="1103")

        assert ("1103", Direction.DEBIT) in _postings(result.journals[0])

    def test_receivable_cleared_after_payment(self, machine, ledger, billing):
        machine.transition("billing", billing.pk, "unpaid")
        machine.transition("billing", billing.pk, "paid")

        balances = ledger.account_balances()
        assert balances["1201"] == Decimal("0.00")
        assert balances["1102"] == Decimal("300000.00")
        assert balances["4001"] == Decimal("-300000.00")

    def test_rejection_reverses_recognition(self, machine, ledger, billing):
        recognition = machine.transition("billing", billing.pk, "unpaid").journals[0]

        result = machine.transition("billing", billing.pk, "rejected")

        assert len(result.journals) == 1
        reversal = result.journals[0]
        assert reversal.kind == Journal.Kind.REVERSAL
        assert reversal.reverses_id == recognition.pk
        recognition.refresh_from_db()
        assert recognition.is_reversed
        balances = ledger.account_balances()
        assert balances["1201"] == Decimal("0.00")
        assert balances["4001"] == Decimal("0.00")

    def test_rejecting_pending_posts_nothing(self, machine, billing):
        result = machine.transition("billing", billing.pk, "rejected")

        assert result.journals == []
        assert result.skipped
        assert result.skip_reason == "No journals to reverse."

    def test_second_unpaid_request_is_rejected_without_posting(self, machine, billing):
        machine.transition("billing", billing.pk, "unpaid")

        with pytest.raises(InvalidTransitionError):
            machine.transition("billing", billing.pk, "unpaid")

        assert Journal.objects.filter(source_type="billing", source_id=billing.pk).count() == 1

    def test_journals_disabled(self, chart, machine, make_billing):
        billing = make_billing(post_journal_entries=False)

        result = machine.transition("billing", billing.pk, "unpaid")

        assert result.skipped
        assert result.journals == []
        assert Journal.objects.count() == 0
        billing.refresh_from_db()
        assert billing.status == Status.UNPAID


@pytest.mark.django_db
class TestEventJournalsFollowStatus:

    def test_event_journal_cannot_be_reversed_directly(self, machine, ledger, billing):
        recognition = machine.transition("billing", billing.pk, "unpaid").journals[0]

        with pytest.raises(LedgerError):
            ledger.reverse_journal(recognition.public_id)

        recognition.refresh_from_db()
        assert not recognition.is_reversed
        assert Journal.objects.filter(kind=Journal.Kind.REVERSAL).count() == 0

        machine.transition("billing", billing.pk, "paid")
        balances = ledger.account_balances()
        assert balances["1201"] == Decimal("0.00")
        assert balances["4001"] == Decimal("-300000.00")

    def test_payment_requires_active_recognition(self, chart, machine, make_billing):
        billing = make_billing(post_journal_entries=False)
        machine.transition("billing", billing.pk, "unpaid")
        Billing.objects.filter(pk=billing.pk).update(post_journal_entries=True)

        with pytest.raises(LedgerError) as exc_info:
            machine.transition("billing", billing.pk, "paid")

        assert exc_info.value.context["event_id"] == billing.pk
        billing.refresh_from_db()
        assert billing.status == Status.UNPAID
        assert billing.status_history.count() == 1
        assert Journal.objects.count() == 0


@pytest.mark.django_db
class TestProjectCostPostings:

    def test_recognition_and_payment(self, machine, ledger, cost):
        recognition = machine.transition("project_cost", cost.pk, "unpaid").journals[0]
        payment = machine.transition("cost", cost.pk, "paid").journals[0]

        assert _postings(recognition) == {
            ("5101", Direction.DEBIT): Decimal("350000.00"),
            ("2102", Direction.CREDIT): Decimal("350000.00"),
        }
        assert _postings(payment) == {
            ("2102", Direction.DEBIT): Decimal("350000.00"),
            ("1101", Direction.CREDIT): Decimal("350000.00"),
        }
        balances = ledger.account_balances()
        assert balances["2102"] == Decimal("0.00")
        assert balances["1101"] == Decimal("-350000.00")

    def test_uncategorised_cost_uses_default_account(self, chart, machine, make_cost):
        cost = make_cost(category="")

        journal = machine.transition("project_cost", cost.pk, "unpaid").journals[0]

        assert ("5105", Direction.DEBIT) in _postings(journal)


# =============================================================================
# Failure & Rollback
# =============================================================================

@pytest.mark.django_db
class TestRollback:

    def test_missing_configured_account_rolls_back(self, ledger, billing):
        config = dict(settings.LEDGER, RECEIVABLE_ACCOUNT="9999")
        machine = StatusTransitionMachine(ledger=ledger, config=config)

        with pytest.raises(AccountNotFoundError):
            machine.transition("billing", billing.pk, "unpaid")

        billing.refresh_from_db()
        assert billing.status == Status.PENDING
        assert billing.status_history.count() == 0
        assert Journal.objects.count() == 0

    def test_unknown_cash_account_rolls_back_payment(self, machine, billing):
        machine.transition("billing", billing.pk, "unpaid")

        with pytest.raises(AccountNotFoundError):
            machine.transition("billing", billing.pk, "paid", cash_account_code="9999")

        billing.refresh_from_db()
        assert billing.status == Status.UNPAID
        assert billing.status_history.count() == 1
        assert Journal.objects.filter(purpose=Journal.Purpose.PAYMENT).count() == 0


# =============================================================================
# History & Write Guard
# =============================================================================

@pytest.mark.django_db
class TestStatusHistory:

    def test_history_newest_first(self, machine, billing, user):
        machine.transition("billing", billing.pk, "unpaid", actor=user, notes="Sent")
        machine.transition("billing", billing.pk, "paid", actor=user, notes="Settled")

        history = machine.status_history("billing", billing.pk)

        assert [(h.old_status, h.new_status) for h in history] == [
            ("unpaid", "paid"),
            ("pending", "unpaid"),
        ]
        assert history[0].notes == "Settled"
        assert history[0].changed_by == user

    def test_history_is_append_only(self, machine, billing):
        record = machine.transition("billing", billing.pk, "unpaid").history

        record.notes = "edited"
        with pytest.raises(RuntimeError):
            record.save()
        with pytest.raises(RuntimeError):
            record.delete()

    def test_history_for_missing_event(self, chart, machine):
        with pytest.raises(BillableEventNotFoundError):
            machine.status_history("project_cost", 424242)


@pytest.mark.django_db
class TestStatusWriteGuard:

    def test_direct_status_change_raises(self, billing):
        fresh = Billing.objects.get(pk=billing.pk)
        fresh.status = Status.PAID

        with pytest.raises(RuntimeError, match="status transition machine"):
            fresh.save()

    def test_other_fields_can_be_saved(self, cost):
        fresh = ProjectCost.objects.get(pk=cost.pk)
        fresh.description = "Cement, 40 bags"
        fresh.save()

        fresh.refresh_from_db()
        assert fresh.description == "Cement, 40 bags"
