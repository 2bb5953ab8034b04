# accounting/views.py
"""
Thin views that delegate to the ledger engine.

Views handle: HTTP parsing, authentication, response formatting.
The engine handles: business logic, validation, atomicity.

Views never call .save() on ledger models.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import LedgerError
from .ledger import default_ledger
from .models import Account, Journal
from .serializers import (
    AccountSerializer,
    JournalPostSerializer,
    JournalReverseSerializer,
    JournalSerializer,
    SuggestCounterQuerySerializer,
)


def error_response(exc: LedgerError, status_code: int = None) -> Response:
    """Render a LedgerError with its context and mapped HTTP status."""
    return Response(exc.to_dict(), status=status_code or exc.status_code)


def parse_limit(request, default: int = 100, maximum: int = 1000) -> int:
    try:
        limit = int(request.query_params.get("limit", default))
    except (TypeError, ValueError):
        return default
    return max(1, min(limit, maximum))


# =============================================================================
# Account Views
# =============================================================================

class AccountListView(APIView):
    """
    GET /api/accounting/accounts/ -> list the chart of accounts

    Optional filter: ?category=asset
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        accounts = Account.objects.all().order_by("code")
        category = request.query_params.get("category")
        if category:
            try:
                accounts = accounts.filter(category=Account.normalize_category(category))
            except ValueError as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        serializer = AccountSerializer(accounts, many=True)
        return Response(serializer.data)


class AccountSuggestCounterView(APIView):
    """
    GET /api/accounting/accounts/<code>/suggest-counter/?direction=debit
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, code):
        query = SuggestCounterQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            counter_code = default_ledger.suggest_counter_account(
                code, query.validated_data["direction"],
            )
        except LedgerError as exc:
            return error_response(exc)

        counter = Account.objects.filter(code=counter_code).first()
        return Response({
            "account_code": code,
            "direction": query.validated_data["direction"],
            "counter_account_code": counter_code,
            "counter_account": AccountSerializer(counter).data if counter else None,
        })


# =============================================================================
# Journal Views
# =============================================================================

class JournalListCreateView(APIView):
    """
    GET /api/accounting/journals/ -> list journals
    POST /api/accounting/journals/ -> post a manual journal

    GET filters: ?source_type=&source_id=&project=&kind=&limit=
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        journals = Journal.objects.select_related("reverses").prefetch_related("postings__account")

        params = request.query_params
        if params.get("source_type"):
            journals = journals.filter(source_type=params["source_type"])
        if params.get("source_id"):
            journals = journals.filter(source_id=params["source_id"])
        if params.get("project"):
            journals = journals.filter(project_id=params["project"])
        if params.get("kind"):
            journals = journals.filter(kind=params["kind"])

        journals = journals.order_by("-date", "-id")[:parse_limit(request)]
        serializer = JournalSerializer(journals, many=True)
        return Response(serializer.data)

    def post(self, request):
        input_serializer = JournalPostSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        try:
            journal = default_ledger.post_journal(
                data["date"],
                data["description"],
                [dict(line) for line in data["lines"]],
                project=data["project"],
                journal_id=data["journal_id"],
                actor=request.user,
            )
        except LedgerError as exc:
            return error_response(exc)

        return Response(JournalSerializer(journal).data, status=status.HTTP_201_CREATED)


class JournalDetailView(APIView):
    """
    GET /api/accounting/journals/<uuid>/ -> journal with postings
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, public_id):
        journal = (
            Journal.objects.select_related("reverses")
            .prefetch_related("postings__account")
            .filter(public_id=public_id)
            .first()
        )
        if journal is None:
            return Response({"detail": "Journal not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(JournalSerializer(journal).data)


class JournalReverseView(APIView):
    """
    POST /api/accounting/journals/<uuid>/reverse/

    Idempotent: a second call returns the same reversal.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, public_id):
        input_serializer = JournalReverseSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        try:
            reversal = default_ledger.reverse_journal(
                public_id,
                date=data["date"],
                description=data["description"] or None,
                actor=request.user,
            )
        except LedgerError as exc:
            return error_response(exc)

        return Response(JournalSerializer(reversal).data)
