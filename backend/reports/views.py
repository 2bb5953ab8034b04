# reports/views.py
"""
API views for financial reports.

All reports are computed on request from postings, billable events and
WIP snapshots. Nothing here writes.
"""

from datetime import timedelta

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.clock import SystemClock
from accounting.exceptions import ProjectNotFoundError
from accounting.ledger import default_ledger
from accounting.models import Account
from accounting.views import error_response
from projects.models import Project
from .balance_sheet import balance_sheet, comparative_balance_sheet
from .cashflow import cash_flow_statement, comparative_cash_flow
from .profitability import profitability_summary, project_profitability
from .serializers import (
    BalanceSheetQuerySerializer,
    BalancesQuerySerializer,
    ComparativeBalanceSheetQuerySerializer,
    ComparativeCashFlowQuerySerializer,
    DateRangeQuerySerializer,
    ProfitabilityQuerySerializer,
)


class CashFlowStatementView(APIView):
    """
    GET /api/reports/cash-flow/?start_date=&end_date=

    Defaults to the current month up to today.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        today = SystemClock().today()
        end = query.validated_data["end_date"] or today
        start = query.validated_data["start_date"] or end.replace(day=1)
        return Response(cash_flow_statement(start, end))


class ProfitabilitySummaryView(APIView):
    """GET /api/reports/profitability/?status=ongoing,completed"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = ProfitabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        statuses = [s for s in query.validated_data["status"].split(",") if s]
        return Response(profitability_summary(statuses=statuses or None))


class ProjectProfitabilityView(APIView):
    """GET /api/reports/profitability/<id>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        project = Project.objects.filter(pk=pk).first()
        if project is None:
            return error_response(ProjectNotFoundError(pk))
        return Response(project_profitability(project))


class AccountBalancesView(APIView):
    """
    GET /api/reports/balances/?as_of=&project=

    Balance per account with postings, signed by the account's normal side.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = BalancesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        balances = default_ledger.account_balances(
            as_of=query.validated_data["as_of"],
            project=query.validated_data["project"],
        )
        accounts = Account.objects.filter(code__in=balances.keys()).order_by("code")

        rows = [
            {
                "code": account.code,
                "name": account.name,
                "category": account.category,
                "normal_balance": account.normal_balance,
                "debit_balance": balances[account.code],
                "balance": default_ledger.display_balance(account, balances[account.code]),
            }
            for account in accounts
        ]
        return Response({"as_of": query.validated_data["as_of"], "accounts": rows})


class BalanceSheetView(APIView):
    """GET /api/reports/balance-sheet/?as_of= (defaults to today)"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = BalanceSheetQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(balance_sheet(query.validated_data["as_of"]))


class ComparativeBalanceSheetView(APIView):
    """
    GET /api/reports/balance-sheet/comparative/?current_date=&previous_date=

    Defaults: today against the last day of the previous month.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = ComparativeBalanceSheetQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        current = query.validated_data["current_date"] or SystemClock().today()
        previous = query.validated_data["previous_date"] or current.replace(day=1) - timedelta(days=1)
        return Response(comparative_balance_sheet(current, previous))


class ComparativeCashFlowView(APIView):
    """
    GET /api/reports/cash-flow/comparative/
        ?current_start=&current_end=&previous_start=&previous_end=

    Defaults: the current month to date against the whole previous month.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = ComparativeCashFlowQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        current_end = data["current_end"] or SystemClock().today()
        current_start = data["current_start"] or current_end.replace(day=1)
        previous_end = data["previous_end"] or current_start - timedelta(days=1)
        previous_start = data["previous_start"] or previous_end.replace(day=1)
        if current_start > current_end or previous_start > previous_end:
            return Response(
                {"detail": "Each period must start on or before its end."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(comparative_cash_flow(current_start, current_end, previous_start, previous_end))
