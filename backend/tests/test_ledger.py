# tests/test_ledger.py
"""
Tests for the ledger engine.

Tests cover:
- Balanced posting (including a randomised property check)
- Rejection of unbalanced, unknown-account and malformed journals
- Idempotent reversal and balance restoration
- Legacy direction tags
- Counter account suggestion and counter postings
"""

import random
import uuid
from decimal import Decimal

import pytest

from accounting.counter_rules import COUNTER_RULES, counter_direction
from accounting.directions import resolve_direction
from accounting.exceptions import (
    AccountNotFoundError,
    DuplicateJournalError,
    JournalNotFoundError,
    LedgerError,
    UnbalancedJournalError,
)
from accounting.ledger import JournalLine, find_unbalanced_journals
from accounting.models import Account, Direction, Journal, Posting
from accounting.policies import check_line_amounts, check_lines_balance


def _line(code, direction, amount, **extra):
    return {"account_code": code, "direction": direction, "amount": Decimal(amount), **extra}


def _partition(rng, total_cents: int, parts: int) -> list[int]:
    parts = min(parts, total_cents)
    cuts = sorted(rng.sample(range(1, total_cents), parts - 1)) if parts > 1 else []
    bounds = [0] + cuts + [total_cents]
    return [b - a for a, b in zip(bounds, bounds[1:])]


# =============================================================================
# Posting
# =============================================================================

@pytest.mark.django_db
class TestPostJournal:

    def test_posts_balanced_journal(self, chart, ledger, fixed_clock):
        journal = ledger.post_journal(
            None,
            "Office rent",
            [_line("6101", "debit", "1500000.00"), _line("1101", "credit", "1500000.00")],
        )

        assert journal.date == fixed_clock.today()
        assert journal.kind == Journal.Kind.STANDARD
        assert journal.postings.count() == 2
        assert journal.total_debit == journal.total_credit == Decimal("1500000.00")
        assert journal.is_balanced

    def test_randomised_balanced_lines_always_balance(self, chart, ledger):
        rng = random.Random(20250630)
        debit_codes = ["1201", "1301", "5101", "5102", "6101"]
        credit_codes = ["1101", "1102", "2102", "4001", "3102"]

        for _ in range(25):
            debits = [rng.randint(1, 5_000_000) for _ in range(rng.randint(1, 4))]
            total = sum(debits)
            credits = _partition(rng, total, rng.randint(1, 4))

            lines = [
                _line(rng.choice(debit_codes), "debit", Decimal(cents) / 100) for cents in debits
            ] + [
                _line(rng.choice(credit_codes), "credit", Decimal(cents) / 100) for cents in credits
            ]
            rng.shuffle(lines)

            journal = ledger.post_journal("2025-06-01", "Random journal", lines)
            assert journal.total_debit == journal.total_credit == Decimal(total) / 100

        assert find_unbalanced_journals() == []

    def test_fractional_totals_not_reported_unbalanced(self, chart, ledger):
        journal = ledger.post_journal(
            None,
            "Fractions",
            [
                _line("1201", "debit", "0.10"),
                _line("1301", "debit", "0.20"),
                _line("4001", "credit", "0.30"),
            ],
        )

        assert journal.is_balanced
        assert find_unbalanced_journals() == []

    def test_unbalanced_journal_rejected(self, chart, ledger):
        with pytest.raises(UnbalancedJournalError) as exc_info:
            ledger.post_journal(
                None,
                "Bad",
                [_line("6101", "debit", "100.00"), _line("1101", "credit", "90.00")],
            )

        assert exc_info.value.total_debit == Decimal("100.00")
        assert exc_info.value.total_credit == Decimal("90.00")
        assert Journal.objects.count() == 0
        assert Posting.objects.count() == 0

    def test_single_line_rejected(self, chart, ledger):
        with pytest.raises(UnbalancedJournalError):
            ledger.post_journal(None, "One line", [_line("6101", "debit", "100.00")])

    @pytest.mark.parametrize("amount", ["0", "-10.00", "10.001"])
    def test_invalid_amounts_rejected(self, chart, ledger, amount):
        with pytest.raises(UnbalancedJournalError):
            ledger.post_journal(
                None,
                "Bad amount",
                [_line("6101", "debit", amount), _line("1101", "credit", amount)],
            )

    def test_unknown_account_rejected(self, chart, ledger):
        with pytest.raises(AccountNotFoundError) as exc_info:
            ledger.post_journal(
                None,
                "Unknown",
                [_line("9999", "debit", "100.00"), _line("1101", "credit", "100.00")],
            )

        assert exc_info.value.account_code == "9999"
        assert Journal.objects.count() == 0

    def test_unknown_direction_rejected(self, chart, ledger):
        with pytest.raises(LedgerError):
            ledger.post_journal(
                None,
                "Sideways",
                [_line("6101", "sideways", "100.00"), _line("1101", "credit", "100.00")],
            )

    def test_explicit_journal_id_cannot_be_reused(self, chart, ledger):
        journal_id = uuid.uuid4()
        lines = [_line("6101", "debit", "100.00"), _line("1101", "credit", "100.00")]
        journal = ledger.post_journal(None, "First", lines, journal_id=journal_id)
        assert journal.public_id == journal_id

        with pytest.raises(DuplicateJournalError):
            ledger.post_journal(None, "Second", lines, journal_id=journal_id)
        assert Journal.objects.count() == 1

    def test_unique_purpose_per_source(self, chart, ledger):
        lines = [_line("1201", "debit", "100.00"), _line("4001", "credit", "100.00")]
        ledger.post_journal(None, "Recognition", lines, source_type="billing", source_id=7, purpose="recognition")

        with pytest.raises(DuplicateJournalError) as exc_info:
            ledger.post_journal(None, "Again", lines, source_type="billing", source_id=7, purpose="recognition")

        assert exc_info.value.source_id == 7
        assert ledger.journals_for_source("billing", 7).count() == 1

    def test_manual_journals_may_share_source(self, chart, ledger):
        lines = [_line("6101", "debit", "100.00"), _line("1101", "credit", "100.00")]
        ledger.post_journal(None, "One", lines, source_type="manual", source_id=1)
        ledger.post_journal(None, "Two", lines, source_type="manual", source_id=1)

        assert Journal.objects.count() == 2


# =============================================================================
# Reversal
# =============================================================================

@pytest.mark.django_db
class TestReverseJournal:

    def _post(self, ledger):
        return ledger.post_journal(
            "2025-06-01",
            "Fuel",
            [_line("5104", "debit", "250000.00"), _line("1101", "credit", "250000.00")],
        )

    def test_reversal_mirrors_postings(self, chart, ledger):
        original = self._post(ledger)

        reversal = ledger.reverse_journal(original.public_id)

        original.refresh_from_db()
        assert original.is_reversed
        assert original.reversed_at is not None
        assert reversal.kind == Journal.Kind.REVERSAL
        assert reversal.reverses_id == original.pk
        directions = {p.account_id: p.direction for p in reversal.postings.all()}
        assert directions == {"5104": Direction.CREDIT, "1101": Direction.DEBIT}
        assert all(p.label == "reversal" for p in reversal.postings.all())

    def test_reverse_twice_yields_one_reversal(self, chart, ledger):
        original = self._post(ledger)

        first = ledger.reverse_journal(original.public_id)
        second = ledger.reverse_journal(original.public_id)

        assert first.pk == second.pk
        assert Journal.objects.filter(reverses=original).count() == 1
        assert Journal.objects.filter(kind=Journal.Kind.REVERSAL).count() == 1

    def test_post_then_reverse_restores_balances(self, chart, ledger):
        before = ledger.account_balances()
        original = self._post(ledger)
        assert ledger.account_balances()["5104"] == Decimal("250000.00")

        ledger.reverse_journal(original.public_id)

        after = ledger.account_balances()
        for code in set(before) | set(after):
            assert after.get(code, Decimal("0")) == before.get(code, Decimal("0"))

    def test_reversal_cannot_be_reversed(self, chart, ledger):
        reversal = ledger.reverse_journal(self._post(ledger).public_id)

        with pytest.raises(LedgerError):
            ledger.reverse_journal(reversal.public_id)

    def test_missing_journal(self, chart, ledger):
        with pytest.raises(JournalNotFoundError):
            ledger.reverse_journal(uuid.uuid4())


# =============================================================================
# Directions & Counter Postings
# =============================================================================

class TestResolveDirection:

    @pytest.mark.parametrize("tag, category, expected", [
        ("debit", None, Direction.DEBIT),
        ("CR", None, Direction.CREDIT),
        ("income", "asset", Direction.DEBIT),
        ("Pendapatan", "revenue", Direction.CREDIT),
        ("Beban", "expense", Direction.DEBIT),
        ("income", "expense", Direction.CREDIT),
        ("expense", "asset", Direction.CREDIT),
        ("WIP_INCREASE", "Aktiva", Direction.DEBIT),
        ("WIP_DECREASE", "asset", Direction.CREDIT),
        ("expense", "liability", Direction.DEBIT),
    ])
    def test_tags(self, tag, category, expected):
        assert resolve_direction(tag, category) == expected

    def test_movement_tag_needs_category(self):
        with pytest.raises(ValueError):
            resolve_direction("income")

    def test_unknown_tag(self):
        with pytest.raises(ValueError):
            resolve_direction("upward", "asset")


@pytest.mark.django_db
class TestLegacyTagsInJournals:

    def test_legacy_tags_resolve_on_post(self, chart, ledger):
        journal = ledger.post_journal(
            None,
            "Cash sale",
            [_line("1101", "income", "500.00"), _line("4001", "Pendapatan", "500.00")],
        )

        postings = {p.account_id: p for p in journal.postings.all()}
        assert postings["1101"].direction == Direction.DEBIT
        assert postings["4001"].direction == Direction.CREDIT
        assert postings["1101"].label == "income"


class TestCounterRules:

    def test_every_rule_flips_direction(self):
        for (category, direction), (counter, label) in COUNTER_RULES.items():
            assert counter == Direction(direction).opposite
            assert label.startswith(f"counter:{category}_")

    def test_expense_debit(self):
        assert counter_direction("expense", "debit") == (Direction.CREDIT, "counter:expense_increase")


@pytest.mark.django_db
class TestSuggestCounterAccount:

    @pytest.mark.parametrize("code, direction, expected", [
        ("1101", "debit", "4001"),
        ("1102", "credit", "6101"),
        ("4002", "credit", "1101"),
        ("5101", "debit", "1101"),
        ("1201", "debit", "2101"),
        ("1501", "credit", "6101"),
        ("2102", "debit", "1101"),
        ("3101", "credit", "1101"),
    ])
    def test_suggestion_table(self, chart, ledger, code, direction, expected):
        assert ledger.suggest_counter_account(code, direction) == expected

    def test_unknown_account(self, chart, ledger):
        with pytest.raises(AccountNotFoundError):
            ledger.suggest_counter_account("9999", "debit")

    def test_generate_counter_posting(self, chart, ledger):
        primary = _line("5101", "debit", "75000.00", description="Cement")

        counter = ledger.generate_counter_posting(primary, "2102")

        assert isinstance(counter, JournalLine)
        assert counter.account_code == "2102"
        assert counter.direction == Direction.CREDIT
        assert counter.amount == Decimal("75000.00")
        assert counter.label == "counter:expense_increase"
        assert counter.description == "Counter entry for: Cement"

    def test_post_with_counter_suggests_account(self, chart, ledger):
        journal = ledger.post_with_counter(
            None, "Cash received", _line("1101", "debit", "1000.00"),
        )

        postings = {p.account_id: p.direction for p in journal.postings.all()}
        assert postings == {"1101": Direction.DEBIT, "4001": Direction.CREDIT}


# =============================================================================
# Policies & Chart
# =============================================================================

class TestPolicies:

    def test_balance_policy(self):
        lines = [
            JournalLine("6101", Direction.DEBIT, Decimal("10.00")),
            JournalLine("1101", Direction.CREDIT, Decimal("10.00")),
        ]
        assert check_lines_balance(lines) == (True, "")

    def test_amount_policy_rejects_float_precision(self):
        allowed, reason = check_line_amounts([
            JournalLine("6101", Direction.DEBIT, Decimal("0.005")),
        ])
        assert not allowed
        assert reason


@pytest.mark.django_db
class TestChart:

    def test_seed_is_idempotent(self, chart):
        from accounting.chart import DEFAULT_CHART, seed_chart

        created, skipped = seed_chart()

        assert created == 0
        assert skipped == len(DEFAULT_CHART)

    def test_legacy_labels_normalised(self, chart):
        assert Account.objects.get(code="1501").category == Account.Category.ASSET
        assert Account.objects.get(code="1501").activity == Account.CashFlowActivity.INVESTING
        assert Account.objects.get(code="2201").activity == Account.CashFlowActivity.FINANCING
        assert Account.objects.get(code="5101").category == Account.Category.EXPENSE

    def test_accounts_are_immutable(self, chart):
        account = Account.objects.get(code="1101")
        account.name = "Petty cash"

        with pytest.raises(RuntimeError):
            account.save()
