# reports/balance_sheet.py
"""
Balance sheet from ledger balances.

Account balances come from LedgerEngine.account_balances(as_of), signed by
each account's normal side. Assets and liabilities are split into current
and non-current by cash flow activity (investing assets and financing
liabilities are non-current). Contra-asset accounts carry credit balances
and so appear as negative assets.

Revenue and expense accounts are not closed into retained earnings by the
ledger, so their net is shown as a current period earnings line in equity:

    assets == liabilities + equity + (revenue - expenses)
"""

from datetime import date
from decimal import Decimal

from accounting.ledger import default_ledger, to_date
from accounting.models import Account
from .comparison import compare_totals


ZERO = Decimal("0.00")
TOLERANCE = Decimal("0.01")

COMPARED_TOTALS = ("total_assets", "total_liabilities", "total_equity", "net_income", "total_liabilities_and_equity")


def _section() -> dict:
    return {"accounts": [], "total": ZERO}


def _add(section: dict, account: Account, balance: Decimal) -> None:
    section["accounts"].append({"code": account.code, "name": account.name, "balance": balance})
    section["total"] += balance


def balance_sheet(as_of: date = None, ledger=None) -> dict:
    """
    Financial position at the end of ``as_of`` (default: today).

    Returns:
        {
            "as_of",
            "assets": {"current", "non_current", "total"},
            "liabilities": {"current", "non_current", "total"},
            "equity": {"accounts", "net_income", "total"},
            "summary": {total_assets, total_liabilities, total_equity,
                        net_income, total_liabilities_and_equity,
                        difference, balanced},
        }
    """
    ledger = ledger or default_ledger
    as_of = to_date(as_of, default=ledger.clock.today())

    balances = ledger.account_balances(as_of=as_of)
    accounts = Account.objects.filter(code__in=balances.keys()).order_by("code")

    assets = {"current": _section(), "non_current": _section()}
    liabilities = {"current": _section(), "non_current": _section()}
    equity = _section()
    revenue = expenses = ZERO

    for account in accounts:
        balance = ledger.display_balance(account, balances[account.code])
        category = account.category
        if category == Account.Category.ASSET:
            term = "non_current" if account.activity == Account.CashFlowActivity.INVESTING else "current"
            _add(assets[term], account, balance)
        elif category == Account.Category.LIABILITY:
            term = "non_current" if account.activity == Account.CashFlowActivity.FINANCING else "current"
            _add(liabilities[term], account, balance)
        elif category == Account.Category.EQUITY:
            _add(equity, account, balance)
        elif category == Account.Category.REVENUE:
            revenue += balance
        else:
            expenses += balance

    net_income = revenue - expenses
    total_assets = assets["current"]["total"] + assets["non_current"]["total"]
    total_liabilities = liabilities["current"]["total"] + liabilities["non_current"]["total"]
    total_equity = equity["total"] + net_income
    difference = total_assets - (total_liabilities + total_equity)

    assets["total"] = total_assets
    liabilities["total"] = total_liabilities

    return {
        "as_of": as_of,
        "assets": assets,
        "liabilities": liabilities,
        "equity": {
            "accounts": equity["accounts"],
            "net_income": net_income,
            "total": total_equity,
        },
        "summary": {
            "total_assets": total_assets,
            "total_liabilities": total_liabilities,
            "total_equity": total_equity,
            "net_income": net_income,
            "total_liabilities_and_equity": total_liabilities + total_equity,
            "difference": difference,
            "balanced": abs(difference) < TOLERANCE,
        },
    }


def comparative_balance_sheet(current_date: date, previous_date: date, ledger=None) -> dict:
    """Balance sheets at two dates with the change in each summary total."""
    current = balance_sheet(current_date, ledger=ledger)
    previous = balance_sheet(previous_date, ledger=ledger)
    changes, percent_changes = compare_totals(current["summary"], previous["summary"], COMPARED_TOTALS)
    return {
        "current_date": current["as_of"],
        "previous_date": previous["as_of"],
        "current": current,
        "previous": previous,
        "changes": changes,
        "percent_changes": percent_changes,
    }
