# accounting/catalog.py
"""Read-only lookup over the chart of accounts."""

from django.db.models import Q

from accounting.exceptions import AccountNotFoundError
from accounting.models import Account


class AccountCatalog:
    """
    Looks accounts up by code.

    The engine never creates or edits accounts; a missing code is always an
    AccountNotFoundError.
    """

    def get(self, code: str) -> Account:
        account = Account.objects.filter(code=str(code)).first()
        if account is None:
            raise AccountNotFoundError(str(code))
        return account

    def get_many(self, codes) -> dict[str, Account]:
        codes = {str(code) for code in codes}
        accounts = {a.code: a for a in Account.objects.filter(code__in=codes)}
        missing = sorted(codes - accounts.keys())
        if missing:
            raise AccountNotFoundError(missing[0])
        return accounts

    def exists(self, code: str) -> bool:
        return Account.objects.filter(code=str(code)).exists()

    def cash_accounts(self, config: dict):
        codes = config.get("CASH_ACCOUNT_CODES", [])
        return Account.objects.filter(Q(is_cash=True) | Q(code__in=codes))
