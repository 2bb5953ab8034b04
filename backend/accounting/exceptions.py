# accounting/exceptions.py
"""
Error taxonomy for the accounting engine.

Every error raised by the ledger, the status transition machine and the WIP
engine derives from LedgerError so callers can catch the whole family at
once. Each error carries the context needed to report it (event id, the
attempted values) and a ``status_code`` the HTTP layer uses when mapping it
to a response.

Nothing in this package retries automatically. The caller decides.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for accounting engine errors."""

    status_code = 400
    default_message = "Ledger operation failed."

    def __init__(self, message: str = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.__class__.__name__}
        for key, value in self.context.items():
            if isinstance(value, Decimal):
                value = str(value)
            elif value is not None and not isinstance(value, (int, float, str, bool, list, dict)):
                value = str(value)
            payload[key] = value
        return payload


class AccountNotFoundError(LedgerError):
    status_code = 404

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} not found in the chart of accounts.",
            account_code=account_code,
        )


class ProjectNotFoundError(LedgerError):
    status_code = 404

    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found.", project_id=project_id)


class JournalNotFoundError(LedgerError):
    status_code = 404

    def __init__(self, journal_id):
        self.journal_id = journal_id
        super().__init__(f"Journal {journal_id} not found.", journal_id=journal_id)


class BillableEventNotFoundError(LedgerError):
    status_code = 404

    def __init__(self, event_kind: str, event_id):
        self.event_kind = event_kind
        self.event_id = event_id
        super().__init__(
            f"{event_kind} {event_id} not found.",
            event_kind=event_kind,
            event_id=event_id,
        )


class UnbalancedJournalError(LedgerError):
    """Lines are missing, non-positive, or debits do not equal credits."""

    def __init__(self, reason: str, total_debit=None, total_credit=None):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(reason, total_debit=total_debit, total_credit=total_credit)


class AlreadyReversedError(LedgerError):
    """
    The journal already has a reversal.

    Benign: LedgerEngine.reverse_journal catches it and hands back the
    existing reversal, so callers normally never see it.
    """

    status_code = 409

    def __init__(self, journal_id, reversal=None):
        self.journal_id = journal_id
        self.reversal = reversal
        super().__init__(
            f"Journal {journal_id} has already been reversed.",
            journal_id=journal_id,
        )


class DuplicateJournalError(LedgerError):
    """A journal for this (source, purpose) pair already exists."""

    status_code = 409

    def __init__(self, source_type: str, source_id, purpose: str, journal_id=None):
        self.source_type = source_type
        self.source_id = source_id
        self.purpose = purpose
        self.journal_id = journal_id
        if journal_id is not None:
            message = f"Journal {journal_id} already exists."
        else:
            message = f"A {purpose} journal already exists for {source_type} {source_id}."
        super().__init__(
            message,
            source_type=source_type,
            source_id=source_id,
            purpose=purpose,
            journal_id=journal_id,
        )


class AmountMismatchError(LedgerError):
    """Caller-supplied totals disagree with the recomputed sums."""

    def __init__(self, field: str, expected: Decimal, provided: Decimal):
        self.field = field
        self.expected = expected
        self.provided = provided
        super().__init__(
            f"Provided {field} {provided} does not match the computed {expected}.",
            field=field,
            expected=expected,
            provided=provided,
        )


class InvalidTransitionError(LedgerError):
    def __init__(self, old_status: str, new_status: str, event_kind: str = None, event_id=None):
        self.old_status = old_status
        self.new_status = new_status
        self.event_kind = event_kind
        self.event_id = event_id
        super().__init__(
            f"Cannot transition from '{old_status}' to '{new_status}'.",
            old_status=old_status,
            new_status=new_status,
            event_kind=event_kind,
            event_id=event_id,
        )
