# reports/cashflow.py
"""
Cash flow statement (direct method) from ledger postings.

Every posting on a cash or bank account is a movement: debit is an inflow,
credit an outflow. A movement is classified by the activity of the largest
non-cash posting in the same journal. Journals that only touch cash
accounts are transfers; they net to zero and are reported separately.

    closing_cash = opening_cash + operating.net + investing.net + financing.net
"""

import logging
from datetime import date
from decimal import Decimal

from django.db.models import Q, Sum

from accounting.catalog import AccountCatalog
from accounting.ledger import default_ledger
from accounting.models import Account, Direction, Posting
from .comparison import compare_totals


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

ACTIVITIES = [
    Account.CashFlowActivity.OPERATING,
    Account.CashFlowActivity.INVESTING,
    Account.CashFlowActivity.FINANCING,
]


def _cash_codes(config: dict = None, catalog: AccountCatalog = None) -> list[str]:
    config = config or default_ledger.config
    catalog = catalog or AccountCatalog()
    return list(catalog.cash_accounts(config).values_list("code", flat=True))


def cash_balance(codes, before: date = None, through: date = None) -> Decimal:
    """Debit-positive balance of the given cash accounts."""
    qs = Posting.objects.filter(account_id__in=codes)
    if before is not None:
        qs = qs.filter(date__lt=before)
    if through is not None:
        qs = qs.filter(date__lte=through)
    totals = qs.aggregate(
        debit=Sum("amount", filter=Q(direction=Direction.DEBIT)),
        credit=Sum("amount", filter=Q(direction=Direction.CREDIT)),
    )
    return (totals["debit"] or ZERO) - (totals["credit"] or ZERO)


def _counter_activities(journal_ids, cash_codes) -> dict:
    """journal id -> activity of its largest non-cash posting."""
    counters = (
        Posting.objects.filter(journal_id__in=journal_ids)
        .exclude(account_id__in=cash_codes)
        .select_related("account")
        .order_by("journal_id", "-amount", "id")
    )
    activities = {}
    for posting in counters:
        activities.setdefault(posting.journal_id, posting.account.activity)
    return activities


def cash_flow_statement(start: date, end: date, config: dict = None, catalog: AccountCatalog = None) -> dict:
    """
    Cash movements between ``start`` and ``end`` inclusive.

    Returns:
        {
            "start_date", "end_date", "opening_cash",
            "activities": {activity: {"inflow", "outflow", "net", "lines"}},
            "transfers", "net_change", "closing_cash",
        }
    """
    codes = _cash_codes(config, catalog)

    sections = {
        activity.value: {"inflow": ZERO, "outflow": ZERO, "net": ZERO, "lines": []}
        for activity in ACTIVITIES
    }
    transfers = {"inflow": ZERO, "outflow": ZERO, "count": 0}

    postings = list(
        Posting.objects.filter(account_id__in=codes, date__gte=start, date__lte=end)
        .select_related("journal")
        .order_by("date", "id")
    )
    activities = _counter_activities({p.journal_id for p in postings}, codes)

    for posting in postings:
        inflow = posting.direction == Direction.DEBIT
        activity = activities.get(posting.journal_id)
        if activity is None:
            transfers["inflow" if inflow else "outflow"] += posting.amount
            transfers["count"] += 1
            continue

        section = sections[activity]
        section["inflow" if inflow else "outflow"] += posting.amount
        section["lines"].append({
            "date": posting.date,
            "journal": str(posting.journal.public_id),
            "account_code": posting.account_id,
            "description": posting.description or posting.journal.description,
            "inflow": posting.amount if inflow else ZERO,
            "outflow": ZERO if inflow else posting.amount,
        })

    net_change = ZERO
    for section in sections.values():
        section["net"] = section["inflow"] - section["outflow"]
        net_change += section["net"]
    net_change += transfers["inflow"] - transfers["outflow"]

    opening = cash_balance(codes, before=start)
    closing = opening + net_change

    logger.debug(
        "Cash flow statement built",
        extra={"start": str(start), "end": str(end), "postings": len(postings)},
    )
    return {
        "start_date": start,
        "end_date": end,
        "opening_cash": opening,
        "activities": sections,
        "transfers": transfers,
        "net_change": net_change,
        "closing_cash": closing,
    }


def _cash_flow_totals(statement: dict) -> dict:
    activities = statement["activities"]
    return {
        "operating": activities["operating"]["net"],
        "investing": activities["investing"]["net"],
        "financing": activities["financing"]["net"],
        "net_change": statement["net_change"],
    }


def comparative_cash_flow(
    current_start: date,
    current_end: date,
    previous_start: date,
    previous_end: date,
    config: dict = None,
    catalog: AccountCatalog = None,
) -> dict:
    """
    Two cash flow statements with the change in each activity's net flow.

    Percent changes are relative to the absolute previous value, zero when
    the previous value is zero.
    """
    current = cash_flow_statement(current_start, current_end, config=config, catalog=catalog)
    previous = cash_flow_statement(previous_start, previous_end, config=config, catalog=catalog)

    current_totals = _cash_flow_totals(current)
    previous_totals = _cash_flow_totals(previous)
    changes, percent_changes = compare_totals(current_totals, previous_totals, current_totals.keys())
    return {
        "current": current,
        "previous": previous,
        "totals": {"current": current_totals, "previous": previous_totals},
        "changes": changes,
        "percent_changes": percent_changes,
    }
