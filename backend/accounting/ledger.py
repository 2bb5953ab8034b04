# accounting/ledger.py
"""
Ledger Engine: the only writer of Journal and Posting rows.

Pattern (same for every write):
1. Normalise input (directions, amounts, dates) at the boundary
2. Apply policies (check_lines_balance, can_reverse_journal)
3. Write the journal and all of its postings in one atomic block
4. Log the outcome with structured context
5. Return the Journal

Duplicates are stopped by the database: the unique
(source_type, source_id, purpose) constraint turns a second recognition or
payment journal for the same event into DuplicateJournalError.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date as date_type
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.utils.dateparse import parse_date

from accounting.catalog import AccountCatalog
from accounting.clock import SystemClock
from accounting.counter_rules import counter_direction, suggest_counter_account_code
from accounting.directions import resolve_direction
from accounting.exceptions import (
    AlreadyReversedError,
    DuplicateJournalError,
    JournalNotFoundError,
    LedgerError,
    ProjectNotFoundError,
    UnbalancedJournalError,
)
from accounting.models import Account, Direction, Journal, Posting
from accounting.policies import can_reverse_journal, check_lines_balance, line_totals
from ops import metrics


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class JournalLine:
    """One line of a journal request, direction already resolved."""

    account_code: str
    direction: Direction
    amount: Decimal
    label: str = ""
    description: str = ""
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "account_code": self.account_code,
            "direction": str(self.direction),
            "amount": str(self.amount),
            "label": self.label,
            "description": self.description,
            "notes": self.notes,
        }


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise LedgerError(f"Invalid amount: {value!r}", amount=value)


def to_date(value, default=None) -> date_type:
    if value is None or value == "":
        return default
    if isinstance(value, date_type):
        return value
    parsed = parse_date(str(value))
    if parsed is None:
        raise LedgerError(f"Invalid date: {value!r}", date=value)
    return parsed


def find_unbalanced_journals() -> list:
    """
    Return public ids of journals that break the double-entry invariant
    (fewer than two postings, or debits != credits).

    Totals are compared at two decimal places after fetching; SQLite
    returns decimal sums as floats.
    """
    rows = (
        Journal.objects.annotate(
            debit_total=Sum("postings__amount", filter=Q(postings__direction=Direction.DEBIT)),
            credit_total=Sum("postings__amount", filter=Q(postings__direction=Direction.CREDIT)),
            posting_count=Count("postings"),
        )
        .order_by("id")
        .values_list("public_id", "debit_total", "credit_total", "posting_count")
    )

    offenders = []
    for public_id, debit_total, credit_total, posting_count in rows.iterator():
        debit_total = to_decimal(debit_total or ZERO).quantize(CENT, rounding=ROUND_HALF_UP)
        credit_total = to_decimal(credit_total or ZERO).quantize(CENT, rounding=ROUND_HALF_UP)
        if posting_count < 2 or debit_total != credit_total:
            offenders.append(public_id)
    return offenders


class LedgerEngine:
    """
    Double-entry ledger.

    Stateless apart from its collaborators: an account catalog, a clock and
    the LEDGER settings block (read at call time when not given).
    """

    def __init__(self, catalog: AccountCatalog = None, clock=None, config: dict = None):
        self.catalog = catalog or AccountCatalog()
        self.clock = clock or SystemClock()
        self._config = config

    @property
    def config(self) -> dict:
        if self._config is not None:
            return self._config
        return settings.LEDGER

    # -------------------------------------------------------------------------
    # Input normalisation
    # -------------------------------------------------------------------------

    def build_line(self, data, account: Account = None) -> JournalLine:
        """
        Turn a line dict (or JournalLine) into a JournalLine.

        Legacy direction tags are resolved against the account category.
        """
        if isinstance(data, JournalLine):
            if isinstance(data.direction, Direction):
                return data
            data = data.to_dict()

        code = str(data.get("account_code") or data.get("account") or "").strip()
        if not code:
            raise LedgerError("Each line needs an account_code.")
        if account is None:
            account = self.catalog.get(code)

        raw_direction = data.get("direction") or data.get("type")
        try:
            direction = resolve_direction(raw_direction, account.category)
        except ValueError as exc:
            raise LedgerError(str(exc), account_code=code, direction=raw_direction)

        label = data.get("label") or ""
        if not label and raw_direction and str(raw_direction).strip().lower() not in ("debit", "credit"):
            label = str(raw_direction).strip().lower()

        return JournalLine(
            account_code=code,
            direction=direction,
            amount=to_decimal(data.get("amount")),
            label=label,
            description=data.get("description") or "",
            notes=data.get("notes") or "",
        )

    def _build_lines(self, lines) -> tuple[list[JournalLine], dict[str, Account]]:
        codes = []
        for line in lines:
            if isinstance(line, JournalLine):
                codes.append(line.account_code)
            else:
                codes.append(str(line.get("account_code") or line.get("account") or "").strip())
        accounts = self.catalog.get_many(code for code in codes if code)
        built = [
            self.build_line(line, accounts.get(code))
            for line, code in zip(lines, codes)
        ]
        return built, accounts

    def _resolve_project(self, project):
        from projects.models import Project

        if project is None or isinstance(project, Project):
            return project
        found = Project.objects.filter(pk=project).first()
        if found is None:
            raise ProjectNotFoundError(project)
        return found

    def _get_journal(self, journal_id, for_update: bool = False) -> Journal:
        if isinstance(journal_id, Journal):
            journal_id = journal_id.public_id
        try:
            public_id = uuid.UUID(str(journal_id))
        except ValueError:
            raise JournalNotFoundError(journal_id)
        qs = Journal.objects.all()
        if for_update:
            qs = qs.select_for_update()
        journal = qs.filter(public_id=public_id).first()
        if journal is None:
            raise JournalNotFoundError(journal_id)
        return journal

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def post_journal(
        self,
        date,
        description: str,
        lines,
        project=None,
        journal_id=None,
        *,
        source_type: str = Journal.SourceType.MANUAL,
        source_id=None,
        purpose: str = Journal.Purpose.MANUAL,
        kind: str = Journal.Kind.STANDARD,
        actor=None,
    ) -> Journal:
        """
        Post a balanced journal.

        Args:
            date: Journal date (date or ISO string; defaults to today)
            description: Journal description
            lines: Dicts {account_code, direction, amount, label?, description?,
                notes?} or JournalLine instances
            project: Project instance or id, optional
            journal_id: Optional public id to assign to the journal
            source_type/source_id/purpose: Causing-event reference
            kind: Journal kind
            actor: User posting the journal, optional

        Returns:
            The Journal; postings via journal.postings

        Raises:
            UnbalancedJournalError, AccountNotFoundError, ProjectNotFoundError,
            DuplicateJournalError
        """
        lines = list(lines or [])
        if len(lines) < 2:
            raise UnbalancedJournalError("Journal must have at least 2 lines.")

        built, accounts = self._build_lines(lines)

        allowed, reason = check_lines_balance(built)
        if not allowed:
            total_debit, total_credit = line_totals(built)
            raise UnbalancedJournalError(reason, total_debit=total_debit, total_credit=total_credit)

        project = self._resolve_project(project)
        journal_date = to_date(date, default=self.clock.today())

        public_id = None
        if journal_id is not None:
            try:
                public_id = uuid.UUID(str(journal_id))
            except ValueError:
                raise LedgerError(f"Invalid journal id: {journal_id!r}", journal_id=journal_id)
            if Journal.objects.filter(public_id=public_id).exists():
                metrics.record_duplicate_journal(purpose)
                raise DuplicateJournalError(source_type, source_id, purpose, journal_id=public_id)

        try:
            with transaction.atomic():
                journal = Journal(
                    date=journal_date,
                    description=(description or "")[:255],
                    kind=kind,
                    source_type=source_type,
                    source_id=source_id,
                    purpose=purpose,
                    project=project,
                    created_by=actor if getattr(actor, "pk", None) else None,
                )
                if public_id is not None:
                    journal.public_id = public_id
                journal.save()

                Posting.objects.bulk_create([
                    Posting(
                        journal=journal,
                        date=journal_date,
                        account=accounts[line.account_code],
                        direction=line.direction,
                        label=line.label[:50],
                        amount=line.amount,
                        project=project,
                        description=(line.description or description or "")[:255],
                        notes=line.notes,
                    )
                    for line in built
                ])
        except IntegrityError as exc:
            if purpose in Journal.UNIQUE_PURPOSES or public_id is not None:
                logger.warning(
                    "Duplicate journal rejected",
                    extra={
                        "source_type": source_type,
                        "source_id": source_id,
                        "purpose": purpose,
                    },
                )
                metrics.record_duplicate_journal(purpose)
                raise DuplicateJournalError(source_type, source_id, purpose, journal_id=public_id) from exc
            raise

        metrics.record_journal_posted(purpose, kind)
        total_debit, _ = line_totals(built)
        logger.info(
            "Journal posted",
            extra={
                "journal_id": str(journal.public_id),
                "kind": kind,
                "source_type": source_type,
                "source_id": source_id,
                "purpose": purpose,
                "amount": str(total_debit),
                "line_count": len(built),
            },
        )
        return journal

    def reverse_journal(
        self, journal_id, *, date=None, description: str = None, actor=None, through_workflow: bool = False,
    ) -> Journal:
        """
        Reverse a journal by posting its mirror image.

        Idempotent: reversing an already reversed journal returns the
        existing reversal without writing anything.

        Raises:
            JournalNotFoundError, LedgerError (journal is itself a reversal,
            or belongs to a billing or project cost and through_workflow is
            False)
        """
        try:
            return self._reverse(
                journal_id, date=date, description=description, actor=actor, through_workflow=through_workflow,
            )
        except AlreadyReversedError as exc:
            logger.info(
                "Journal already reversed, returning existing reversal",
                extra={"journal_id": str(exc.journal_id)},
            )
            return exc.reversal

    @transaction.atomic
    def _reverse(self, journal_id, *, date=None, description=None, actor=None, through_workflow=False) -> Journal:
        original = self._get_journal(journal_id, for_update=True)

        allowed, reason = can_reverse_journal(original, through_workflow=through_workflow)
        if not allowed:
            raise LedgerError(reason, journal_id=str(original.public_id))

        if original.is_reversed:
            existing = Journal.objects.filter(reverses=original).first()
            raise AlreadyReversedError(original.public_id, reversal=existing)

        postings = list(original.postings.select_related("account").order_by("id"))
        reversal_date = to_date(date, default=self.clock.today())

        reversal = Journal.objects.create(
            date=reversal_date,
            description=(description or f"Reversal of {original.description}")[:255],
            kind=Journal.Kind.REVERSAL,
            source_type=original.source_type,
            source_id=original.source_id,
            purpose=Journal.Purpose.REVERSAL,
            project_id=original.project_id,
            reverses=original,
            created_by=actor if getattr(actor, "pk", None) else None,
        )
        Posting.objects.bulk_create([
            Posting(
                journal=reversal,
                date=reversal_date,
                account=posting.account,
                direction=Direction(posting.direction).opposite,
                label="reversal",
                amount=posting.amount,
                project_id=posting.project_id,
                description=f"Reversal: {posting.description}"[:255],
                notes=posting.notes,
            )
            for posting in postings
        ])

        original.is_reversed = True
        original.reversed_at = self.clock.now()
        original.save(update_fields=["is_reversed", "reversed_at"])
        metrics.record_journal_reversed(original.purpose)

        logger.info(
            "Journal reversed",
            extra={
                "journal_id": str(original.public_id),
                "reversal_id": str(reversal.public_id),
                "source_type": original.source_type,
                "source_id": original.source_id,
            },
        )
        return reversal

    # -------------------------------------------------------------------------
    # Counter postings
    # -------------------------------------------------------------------------

    def suggest_counter_account(self, account_code: str, direction) -> str:
        """Suggest the default counter account for a primary posting."""
        account = self.catalog.get(account_code)
        try:
            resolved = resolve_direction(direction, account.category)
        except ValueError as exc:
            raise LedgerError(str(exc), account_code=account_code, direction=direction)
        return suggest_counter_account_code(account, resolved, self.config)

    def generate_counter_posting(self, primary, counter_account_code: str) -> JournalLine:
        """
        Build the line that balances ``primary`` on ``counter_account_code``.

        The counter direction comes from COUNTER_RULES keyed by the primary
        account's category and the primary direction.
        """
        primary_line = self.build_line(primary)
        primary_account = self.catalog.get(primary_line.account_code)
        counter_account = self.catalog.get(counter_account_code)

        direction, label = counter_direction(primary_account.category, primary_line.direction)
        return JournalLine(
            account_code=counter_account.code,
            direction=direction,
            amount=primary_line.amount,
            label=label,
            description=f"Counter entry for: {primary_line.description}".strip(),
            notes=f"Counter posting for {primary_account.name} ({primary_account.code})",
        )

    def post_with_counter(self, date, description: str, primary, counter_account_code: str = None, **kwargs) -> Journal:
        """
        Post ``primary`` together with its counter line.

        When no counter account is given, suggest_counter_account picks one.
        """
        primary_line = self.build_line(primary)
        if not primary_line.description:
            primary_line = replace(primary_line, description=description or "")
        if counter_account_code is None:
            counter_account_code = self.suggest_counter_account(
                primary_line.account_code, primary_line.direction
            )
        counter_line = self.generate_counter_posting(primary_line, counter_account_code)
        return self.post_journal(date, description, [primary_line, counter_line], **kwargs)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def journals_for_source(self, source_type: str, source_id, purpose: str = None):
        qs = Journal.objects.filter(source_type=source_type, source_id=source_id)
        if purpose:
            qs = qs.filter(purpose=purpose)
        return qs.order_by("id")

    def account_balances(self, as_of=None, project=None) -> dict[str, Decimal]:
        """
        Debit-positive balance (sum of debits minus sum of credits) per
        account code. Accounts without postings are omitted.
        """
        qs = Posting.objects.all()
        as_of = to_date(as_of)
        if as_of is not None:
            qs = qs.filter(date__lte=as_of)
        if project is not None:
            project_id = getattr(project, "pk", project)
            qs = qs.filter(project_id=project_id)

        rows = qs.values("account").annotate(
            debit_total=Sum("amount", filter=Q(direction=Direction.DEBIT)),
            credit_total=Sum("amount", filter=Q(direction=Direction.CREDIT)),
        )
        return {
            row["account"]: (row["debit_total"] or ZERO) - (row["credit_total"] or ZERO)
            for row in rows
        }

    def display_balance(self, account: Account, debit_positive: Decimal) -> Decimal:
        """Sign a debit-positive balance by the account's normal side."""
        if account.normal_balance == Direction.DEBIT:
            return debit_positive
        return -debit_positive


default_ledger = LedgerEngine()
