# reports/comparison.py
"""Period-over-period deltas shared by the comparative reports."""

from decimal import ROUND_HALF_UP, Decimal


ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def percent_change(change: Decimal, previous: Decimal) -> Decimal:
    """Change as a percentage of |previous|; zero when previous is zero."""
    if not previous:
        return ZERO
    return (change / abs(previous) * HUNDRED).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def compare_totals(current: dict, previous: dict, keys) -> tuple[dict, dict]:
    """
    Returns:
        (changes, percent_changes), each keyed like ``keys``
    """
    changes = {key: current[key] - previous[key] for key in keys}
    percents = {key: percent_change(changes[key], previous[key]) for key in keys}
    return changes, percents
