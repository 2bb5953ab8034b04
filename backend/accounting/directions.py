# accounting/directions.py
"""
Direction normalisation.

Older data and some callers describe a posting with a movement tag instead
of debit/credit: "income"/"Pendapatan" for money coming in, "expense"/"Beban"
for money going out, "WIP_INCREASE"/"WIP_DECREASE" for WIP adjustments.
resolve_direction() turns any of these, together with the account category,
into a Direction once at the boundary. Nothing past the boundary sees a tag.

Rules:
- "debit"/"dr" and "credit"/"cr" are taken literally.
- Inflow tags increase the account (its normal side), except on expense
  accounts where an inflow is a reduction of the expense (credit).
- Outflow tags are the opposite: they increase an expense account (debit)
  and decrease every other account.
"""

from accounting.models import Account, Direction


DEBIT_TAGS = {"debit", "dr", "d"}
CREDIT_TAGS = {"credit", "cr", "c"}
INFLOW_TAGS = {"income", "pendapatan", "wip_increase", "increase", "in"}
OUTFLOW_TAGS = {"expense", "beban", "wip_decrease", "decrease", "out"}


def _normalize_tag(tag) -> str:
    return str(tag).strip().lower().replace("-", "_").replace(" ", "_")


def is_known_tag(tag) -> bool:
    if tag is None:
        return False
    key = _normalize_tag(tag)
    return key in DEBIT_TAGS | CREDIT_TAGS | INFLOW_TAGS | OUTFLOW_TAGS


def resolve_direction(tag, category: str = None) -> Direction:
    """
    Resolve a direction tag to a Direction.

    Args:
        tag: "debit", "credit", or a legacy movement tag
        category: Account category (raw labels accepted). Required for
            movement tags, ignored for debit/credit.

    Raises:
        ValueError: unknown tag, or movement tag without a category
    """
    if isinstance(tag, Direction):
        return tag
    if tag is None:
        raise ValueError("Direction is required.")

    key = _normalize_tag(tag)
    if key in DEBIT_TAGS:
        return Direction.DEBIT
    if key in CREDIT_TAGS:
        return Direction.CREDIT

    if key not in INFLOW_TAGS and key not in OUTFLOW_TAGS:
        raise ValueError(f"Unknown direction: {tag!r}")
    if category is None:
        raise ValueError(f"Direction {tag!r} needs the account category to resolve.")

    category = Account.normalize_category(category)
    inflow = key in INFLOW_TAGS

    if category == Account.Category.EXPENSE:
        return Direction.CREDIT if inflow else Direction.DEBIT

    normal = Account.NORMAL_BALANCE_MAP[category]
    return normal if inflow else normal.opposite
