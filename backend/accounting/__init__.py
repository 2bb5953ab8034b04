"""
Accounting app - double-entry ledger for Siteledger.

This app provides:
- Account: Chart of Accounts (read-only lookup)
- Journal / Posting: balanced journals and their debit/credit lines
- LedgerEngine: the only writer of journals (accounting/ledger.py)
"""
