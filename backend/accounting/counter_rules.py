# accounting/counter_rules.py
"""
Counter-posting rules.

COUNTER_RULES is a pure table keyed by (primary account category, primary
direction). The counter side is always the opposite of the primary; the
label records which movement of the primary account it balances.

suggest_counter_account_code() picks a default counter account from the
LEDGER settings. It is deterministic and reads no database state beyond
the primary account handed to it.
"""

from accounting.models import Account, Direction


Category = Account.Category

COUNTER_RULES = {
    (Category.ASSET, Direction.DEBIT): (Direction.CREDIT, "counter:asset_increase"),
    (Category.ASSET, Direction.CREDIT): (Direction.DEBIT, "counter:asset_decrease"),
    (Category.LIABILITY, Direction.DEBIT): (Direction.CREDIT, "counter:liability_decrease"),
    (Category.LIABILITY, Direction.CREDIT): (Direction.DEBIT, "counter:liability_increase"),
    (Category.EQUITY, Direction.DEBIT): (Direction.CREDIT, "counter:equity_decrease"),
    (Category.EQUITY, Direction.CREDIT): (Direction.DEBIT, "counter:equity_increase"),
    (Category.REVENUE, Direction.DEBIT): (Direction.CREDIT, "counter:revenue_decrease"),
    (Category.REVENUE, Direction.CREDIT): (Direction.DEBIT, "counter:revenue_increase"),
    (Category.EXPENSE, Direction.DEBIT): (Direction.CREDIT, "counter:expense_increase"),
    (Category.EXPENSE, Direction.CREDIT): (Direction.DEBIT, "counter:expense_decrease"),
}


def counter_direction(category: str, direction: str) -> tuple[Direction, str]:
    """Return (counter direction, label) for a primary posting."""
    return COUNTER_RULES[(Category(category), Direction(direction))]


def is_cash_account(account: Account, config: dict) -> bool:
    return account.is_cash or account.code in config.get("CASH_ACCOUNT_CODES", [])


def suggest_counter_account_code(account: Account, direction: str, config: dict) -> str:
    """
    Suggest the default counter account for a primary posting.

    Table:
    - cash/bank + debit -> default revenue
    - cash/bank + credit -> default expense
    - revenue or expense -> default cash
    - other asset + debit -> default liability
    - other asset + credit -> default expense
    - liability or equity -> default cash
    - anything else -> fallback cash
    """
    direction = Direction(direction)

    if is_cash_account(account, config):
        if direction == Direction.DEBIT:
            return config["DEFAULT_REVENUE_ACCOUNT"]
        return config["DEFAULT_EXPENSE_ACCOUNT"]

    if account.category in (Category.REVENUE, Category.EXPENSE):
        return config["DEFAULT_CASH_ACCOUNT"]

    if account.category == Category.ASSET:
        if direction == Direction.DEBIT:
            return config["DEFAULT_LIABILITY_ACCOUNT"]
        return config["DEFAULT_EXPENSE_ACCOUNT"]

    if account.category in (Category.LIABILITY, Category.EQUITY):
        return config["DEFAULT_CASH_ACCOUNT"]

    return config["FALLBACK_CASH_ACCOUNT"]
