# projects/policies.py
"""
Business policy functions for billable event workflow.

Policies answer: "Is this status change allowed?"
They do NOT perform it; that's the StatusTransitionMachine's job.

Usage:
    allowed, reason = can_transition(event.status, "unpaid")
    if not allowed:
        raise InvalidTransitionError(event.status, "unpaid")
"""

from projects.models import BillableEvent


Status = BillableEvent.Status

VALID_TRANSITIONS = {
    Status.PENDING: frozenset({Status.UNPAID, Status.REJECTED}),
    Status.UNPAID: frozenset({Status.PAID, Status.REJECTED}),
    Status.PAID: frozenset(),
    Status.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)


def allowed_transitions(status: str) -> list[str]:
    """Statuses reachable from ``status`` in one step, sorted."""
    if status not in Status.values:
        return []
    return sorted(VALID_TRANSITIONS[Status(status)])


def can_transition(old_status: str, new_status: str) -> tuple[bool, str]:
    """
    Check a status change.

    Rules:
    - pending -> unpaid | rejected
    - unpaid -> paid | rejected
    - paid and rejected are terminal
    """
    if new_status not in Status.values:
        return False, f"Unknown status '{new_status}'."
    if old_status not in Status.values:
        return False, f"Unknown status '{old_status}'."
    if Status(old_status) in TERMINAL_STATUSES:
        return False, f"Status '{old_status}' is terminal."
    if Status(new_status) not in VALID_TRANSITIONS[Status(old_status)]:
        return False, f"Cannot transition from '{old_status}' to '{new_status}'."
    return True, ""
