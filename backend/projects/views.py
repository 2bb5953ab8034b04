# projects/views.py
"""
Thin views that delegate to the StatusTransitionMachine.

Views handle: HTTP parsing, authentication, response formatting.
The machine handles: workflow rules, ledger postings, history.
"""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.exceptions import AccountNotFoundError, LedgerError
from accounting.views import error_response
from .serializers import StatusHistorySerializer, TransitionInputSerializer, serialize_transition
from .transitions import default_machine


logger = logging.getLogger(__name__)


class EventTransitionView(APIView):
    """
    POST /api/projects/billings/<id>/transition/
    POST /api/projects/costs/<id>/transition/

    Body: {"status": "unpaid", "notes": "...", "cash_account_code": "1102"}
    """
    permission_classes = [IsAuthenticated]
    event_kind = None

    def post(self, request, pk):
        input_serializer = TransitionInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        try:
            result = default_machine.transition(
                self.event_kind,
                pk,
                data["status"],
                actor=request.user,
                notes=data["notes"],
                cash_account_code=data["cash_account_code"],
            )
        except AccountNotFoundError as exc:
            if data["cash_account_code"] and exc.account_code == data["cash_account_code"]:
                return error_response(exc, status.HTTP_400_BAD_REQUEST)
            # The chart of accounts is missing a configured account
            logger.error(
                "Transition rolled back: configured account missing",
                extra={"event_kind": self.event_kind, "event_id": pk, "account_code": exc.account_code},
            )
            return error_response(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
        except LedgerError as exc:
            return error_response(exc)

        return Response(serialize_transition(result))


class BillingTransitionView(EventTransitionView):
    event_kind = "billing"


class ProjectCostTransitionView(EventTransitionView):
    event_kind = "project_cost"


class EventHistoryView(APIView):
    """
    GET /api/projects/billings/<id>/history/
    GET /api/projects/costs/<id>/history/
    """
    permission_classes = [IsAuthenticated]
    event_kind = None

    def get(self, request, pk):
        try:
            history = default_machine.status_history(self.event_kind, pk)
        except LedgerError as exc:
            return error_response(exc)
        return Response(StatusHistorySerializer(history, many=True).data)


class BillingHistoryView(EventHistoryView):
    event_kind = "billing"


class ProjectCostHistoryView(EventHistoryView):
    event_kind = "project_cost"
