"""Export-order API views.

Exposes ``ExportOrderService``, the order-scoped parts of
``MilestoneService`` (activation, milestone list, health) and
``OrderLifecycleService`` (completion, cancel requests) via DRF
ViewSets.  Domain exceptions are translated into the standard error
body; the views never swallow generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import actor_from_user
from modules.core.exceptions import first_error_message
from modules.core.pagination import StandardResultsSetPagination
from modules.milestones.exceptions import MilestoneError
from modules.milestones.lifecycle import OrderLifecycleService
from modules.milestones.repositories.django_repository import MilestoneDjangoRepository
from modules.milestones.serializers import DecisionSerializer, MilestoneSerializer
from modules.milestones.views import build_milestone_service, milestone_error_response
from modules.orders.dtos import CreateCancelRequestDTO, CreateExportOrderDTO
from modules.orders.exceptions import (
    ExportOrderError,
    InvalidCancelRequest,
    InvalidExportOrder,
)
from modules.orders.filters import ExportOrderFilter
from modules.orders.models import CancelRequest, ExportOrder
from modules.orders.repositories.django_repository import (
    CancelRequestDjangoRepository,
    ExportOrderDjangoRepository,
)
from modules.orders.serializers import (
    CancelRequestSerializer,
    CreateCancelRequestSerializer,
    CreateExportOrderSerializer,
    ExportOrderListSerializer,
    ExportOrderSerializer,
)
from modules.orders.services import ExportOrderService


def build_lifecycle_service() -> OrderLifecycleService:
    return OrderLifecycleService(
        order_repository=ExportOrderDjangoRepository(),
        milestone_repository=MilestoneDjangoRepository(),
        cancel_repository=CancelRequestDjangoRepository(),
    )


class ExportOrderViewSet(GenericViewSet):
    """ViewSet for export orders.

    Does **not** extend ``ModelViewSet``; writes go through the
    service/repository layer.
    """

    queryset = ExportOrder.objects.all()
    filterset_class = ExportOrderFilter
    search_fields = ["order_number", "customer_name"]
    ordering_fields = ["created_at", "etd", "warehouse_due_date", "order_number"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ExportOrderService(order_repository=ExportOrderDjangoRepository())
        self._milestones = build_milestone_service()
        self._lifecycle = build_lifecycle_service()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/export-orders/"""
        serializer = CreateExportOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateExportOrderDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return milestone_error_response(InvalidExportOrder(first_error_message(exc)))

        order = self._service.create_order(dto, actor_from_user(request.user))
        return Response(ExportOrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/export-orders/

        Filtering is handled by ``ExportOrderFilter``; results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = ExportOrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/export-orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response(ExportOrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def activate(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/export-orders/{pk}/activate/

        Generates the order's milestones and starts the earliest one.
        """
        try:
            milestones = self._milestones.activate_order(pk, actor_from_user(request.user))
        except (ExportOrderError, MilestoneError) as exc:
            return milestone_error_response(exc)
        return Response(
            MilestoneSerializer(milestones, many=True).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"])
    def milestones(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/export-orders/{pk}/milestones/ (by due date)."""
        try:
            milestones = self._milestones.list_for_order(pk)
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response(MilestoneSerializer(milestones, many=True).data)

    @action(detail=True, methods=["get"])
    def health(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/export-orders/{pk}/health/"""
        try:
            health = self._milestones.order_health(pk)
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response({"color": health.color, "reason": health.reason})

    # ------------------------------------------------------------------
    # Close-out
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def complete(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/export-orders/{pk}/complete/

        Closes the order once every milestone is done.
        """
        try:
            order = self._lifecycle.complete_order(pk, actor_from_user(request.user))
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response(ExportOrderSerializer(order).data)

    @action(detail=True, methods=["get", "post"], url_path="cancel-requests")
    def cancel_requests(self, request: Request, pk: str | None = None) -> Response:
        """GET/POST /api/v1/export-orders/{pk}/cancel-requests/"""
        if request.method == "GET":
            try:
                requests = self._lifecycle.list_cancel_requests(pk)
            except ExportOrderError as exc:
                return milestone_error_response(exc)
            return Response(CancelRequestSerializer(requests, many=True).data)

        serializer = CreateCancelRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateCancelRequestDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return milestone_error_response(InvalidCancelRequest(first_error_message(exc)))

        try:
            cancel_request = self._lifecycle.request_cancel(
                pk, dto, actor_from_user(request.user)
            )
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response(
            CancelRequestSerializer(cancel_request).data,
            status=status.HTTP_201_CREATED,
        )


class CancelRequestViewSet(GenericViewSet):
    """Cancel request detail and decisions (creator or administrator)."""

    queryset = CancelRequest.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._lifecycle = build_lifecycle_service()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/cancel-requests/{pk}/"""
        try:
            cancel_request = self._lifecycle.get_cancel_request(pk)
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response(CancelRequestSerializer(cancel_request).data)

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/cancel-requests/{pk}/approve/

        Cancels the order; its open milestones get a cancellation note.
        """
        serializer = DecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cancel_request = self._lifecycle.approve_cancel(
                pk,
                actor_from_user(request.user),
                note=serializer.validated_data["note"],
            )
        except ExportOrderError as exc:
            return milestone_error_response(exc)

        payload = CancelRequestSerializer(cancel_request).data
        payload["order"] = ExportOrderSerializer(cancel_request.order).data
        return Response(payload)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/cancel-requests/{pk}/reject/"""
        serializer = DecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cancel_request = self._lifecycle.reject_cancel(
                pk,
                actor_from_user(request.user),
                note=serializer.validated_data["note"],
            )
        except ExportOrderError as exc:
            return milestone_error_response(exc)
        return Response(CancelRequestSerializer(cancel_request).data)
