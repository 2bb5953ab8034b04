# accounting/policies.py
"""
Business policy functions for ledger operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the engine's job.

Usage:
    from accounting.policies import check_lines_balance, can_reverse_journal

    allowed, reason = check_lines_balance(lines)
    if not allowed:
        raise UnbalancedJournalError(reason)

Design Principles:
1. Policies are pure functions (no side effects)
2. Policies return (bool, str) tuples for clear error messages
3. Policies check ONE thing conceptually
4. The engine composes policies as needed
"""

from decimal import Decimal

from accounting.models import Direction, Journal


# =============================================================================
# Posting Policies
# =============================================================================

def check_line_amounts(lines) -> tuple[bool, str]:
    """
    Every line must carry a positive amount with at most two decimals.
    """
    for index, line in enumerate(lines, start=1):
        amount = line.amount
        if not isinstance(amount, Decimal):
            return False, f"Line {index}: amount must be a Decimal."
        if not amount.is_finite():
            return False, f"Line {index}: amount must be a finite number."
        if amount <= 0:
            return False, f"Line {index}: amount must be greater than zero."
        if amount != amount.quantize(Decimal("0.01")):
            return False, f"Line {index}: amount cannot have more than 2 decimal places."
    return True, ""


def line_totals(lines) -> tuple[Decimal, Decimal]:
    total_debit = sum(
        (line.amount for line in lines if line.direction == Direction.DEBIT),
        Decimal("0.00"),
    )
    total_credit = sum(
        (line.amount for line in lines if line.direction == Direction.CREDIT),
        Decimal("0.00"),
    )
    return total_debit, total_credit


def check_lines_balance(lines) -> tuple[bool, str]:
    """
    Check that a set of lines can form a journal.

    Rules:
    - At least 2 lines
    - Every amount > 0
    - Total debits == total credits
    """
    if len(lines) < 2:
        return False, "Journal must have at least 2 lines."

    allowed, reason = check_line_amounts(lines)
    if not allowed:
        return False, reason

    total_debit, total_credit = line_totals(lines)
    if total_debit != total_credit:
        return False, (
            f"Journal is not balanced. Debit: {total_debit}, Credit: {total_credit}"
        )
    return True, ""


# =============================================================================
# Reversal Policies
# =============================================================================

# Journals owned by a billable event; only a status transition reverses them
WORKFLOW_SOURCES = (Journal.SourceType.BILLING, Journal.SourceType.PROJECT_COST)


def can_reverse_journal(journal, through_workflow: bool = False) -> tuple[bool, str]:
    """
    Check if a journal can be reversed.

    Rules:
    - Reversal journals cannot themselves be reversed
    - Journals of a billing or project cost are reversed only by the status
      transition machine (rejecting the event)

    An already reversed journal is not a policy violation: reversing it
    again is a no-op handled by the engine.
    """
    if journal.kind == Journal.Kind.REVERSAL:
        return False, "Reversal journals cannot be reversed."
    if journal.source_type in WORKFLOW_SOURCES and not through_workflow:
        return False, (
            f"Journals of a {journal.source_type} are reversed by rejecting "
            f"the event, not directly."
        )
    return True, ""
