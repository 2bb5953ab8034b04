# wip/views.py
"""
Thin views over the WIP engine and WIP aggregations.

GET endpoints compute without persisting; POST endpoints record snapshots.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.exceptions import LedgerError, ProjectNotFoundError
from accounting.views import error_response
from projects.models import Project
from . import aggregations
from .engine import default_engine
from .serializers import (
    ComputeQuerySerializer,
    HistoryQuerySerializer,
    ProjectionQuerySerializer,
    RecalculateAllSerializer,
    RecalculateSerializer,
    TrendQuerySerializer,
    WipSnapshotSerializer,
)
from .tasks import recalculate_all_projects_wip


class ProjectWipView(APIView):
    """
    GET /api/wip/projects/<id>/ -> current WIP valuation (not persisted)

    Optional ?costs=&billed=&wip_value= are cross-checked against the
    computed figures (400 on mismatch).
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        query = ComputeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        project = Project.objects.filter(pk=pk).first()
        if project is None:
            return error_response(ProjectNotFoundError(pk))

        try:
            computation = default_engine.compute_wip(
                project,
                expected_total_cost=query.validated_data["costs"],
                expected_total_billed=query.validated_data["billed"],
                expected_wip_value=query.validated_data["wip_value"],
            )
        except LedgerError as exc:
            return error_response(exc)

        data = computation.to_dict()
        data["project_code"] = project.code
        data["status"] = project.status
        return Response(data)


class ProjectRecalculateView(APIView):
    """
    POST /api/wip/projects/<id>/recalculate/ -> record a snapshot
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        input_serializer = RecalculateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            snapshot = default_engine.recalculate_project(
                pk,
                notes=input_serializer.validated_data["notes"],
                actor=request.user,
                post_adjustment=input_serializer.validated_data["post_adjustment"],
            )
        except LedgerError as exc:
            return error_response(exc)

        return Response(WipSnapshotSerializer(snapshot).data, status=status.HTTP_201_CREATED)


class RecalculateAllView(APIView):
    """
    POST /api/wip/recalculate-all/

    Runs inline by default; {"run_async": true} queues the Celery task.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        input_serializer = RecalculateAllSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        if data["run_async"]:
            result = recalculate_all_projects_wip.delay(statuses=data["statuses"])
            return Response({"task_id": result.id}, status=status.HTTP_202_ACCEPTED)

        summary = default_engine.recalculate_all(statuses=data["statuses"])
        return Response(summary)


class WipHistoryView(APIView):
    """GET /api/wip/history/<id>/?start_date=&end_date=&limit="""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        if not Project.objects.filter(pk=pk).exists():
            return error_response(ProjectNotFoundError(pk))

        snapshots = aggregations.wip_history(
            pk,
            start=query.validated_data["start_date"],
            end=query.validated_data["end_date"],
            limit=query.validated_data["limit"],
        )
        return Response(WipSnapshotSerializer(snapshots, many=True).data)


class WipAgingView(APIView):
    """GET /api/wip/aging/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(aggregations.aging_analysis())


class WipRiskAnalysisView(APIView):
    """GET /api/wip/risk-analysis/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(aggregations.risk_analysis())


class WipTrendView(APIView):
    """GET /api/wip/trend/?start_date=&end_date="""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = TrendQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(aggregations.trend(
            start=query.validated_data["start_date"],
            end=query.validated_data["end_date"],
        ))


class WipCashFlowProjectionView(APIView):
    """GET /api/wip/cashflow-projection/?months=3"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = ProjectionQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(aggregations.cash_flow_projection(months=query.validated_data["months"]))


class WipSummaryView(APIView):
    """GET /api/wip/summary/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(aggregations.wip_summary())
