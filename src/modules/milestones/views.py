"""Milestone and delay-request API views.

Exposes ``MilestoneService`` and ``DelayRequestService`` via DRF
ViewSets.  Domain exceptions are translated into the standard error body
by ``milestone_error_response``; anything else propagates.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import actor_from_user
from modules.core.exceptions import DomainError, error_response, first_error_message
from modules.core.pagination import StandardResultsSetPagination
from modules.milestones.delays import DelayRequestService
from modules.milestones.dtos import CreateDelayRequestDTO, RegisterEvidenceDTO
from modules.milestones.exceptions import (
    DelayDecisionNotAllowed,
    DelayRequestAlreadyDecided,
    DelayRequestNotFound,
    InvalidDelayRequest,
    MilestoneError,
    MilestoneNotFound,
    NotAuthorized,
    OrderAlreadyActivated,
    RecalculationPartialFailure,
)
from modules.milestones.models import DelayRequest, Milestone
from modules.milestones.recalculation import ScheduleRecalculator
from modules.milestones.repositories.django_repository import (
    DelayRequestDjangoRepository,
    MilestoneDjangoRepository,
)
from modules.milestones.serializers import (
    AssignOwnerSerializer,
    CreateDelayRequestSerializer,
    DecisionSerializer,
    DelayRequestSerializer,
    EvidenceAttachmentSerializer,
    MilestoneLogSerializer,
    MilestoneSerializer,
    RegisterEvidenceSerializer,
    TransitionSerializer,
)
from modules.milestones.services import MilestoneService
from modules.orders.exceptions import (
    CancelRequestAlreadyDecided,
    CancelRequestNotFound,
    ExportOrderError,
    ExportOrderNotFound,
    OrderActionNotAllowed,
    OrderClosed,
)
from modules.orders.repositories.django_repository import ExportOrderDjangoRepository

_NOT_FOUND = (
    MilestoneNotFound,
    DelayRequestNotFound,
    ExportOrderNotFound,
    CancelRequestNotFound,
)
_FORBIDDEN = (NotAuthorized, DelayDecisionNotAllowed, OrderActionNotAllowed)
_CONFLICT = (
    DelayRequestAlreadyDecided,
    OrderAlreadyActivated,
    RecalculationPartialFailure,
    OrderClosed,
    CancelRequestAlreadyDecided,
)


def milestone_error_response(exc: DomainError) -> Response:
    """Map a milestone/order domain error to its HTTP status."""
    if isinstance(exc, _NOT_FOUND):
        return error_response(exc, status.HTTP_404_NOT_FOUND)
    if isinstance(exc, _FORBIDDEN):
        return error_response(exc, status.HTTP_403_FORBIDDEN)
    if isinstance(exc, _CONFLICT):
        return error_response(exc, status.HTTP_409_CONFLICT)
    return error_response(exc, status.HTTP_400_BAD_REQUEST)


def build_milestone_service() -> MilestoneService:
    return MilestoneService(
        milestone_repository=MilestoneDjangoRepository(),
        order_repository=ExportOrderDjangoRepository(),
    )


def build_delay_request_service() -> DelayRequestService:
    milestone_repository = MilestoneDjangoRepository()
    return DelayRequestService(
        delay_repository=DelayRequestDjangoRepository(),
        milestone_repository=milestone_repository,
        recalculator=ScheduleRecalculator(
            milestone_repository=milestone_repository,
            order_repository=ExportOrderDjangoRepository(),
        ),
    )


class MilestoneViewSet(GenericViewSet):
    """Milestone detail, status transitions, owner assignment and evidence.

    Milestones are created by order activation only, so there is no
    ``create`` or ``list`` here; list them via the order, or ``mine`` for
    the caller's assigned worklist.
    """

    queryset = Milestone.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_milestone_service()

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """GET /api/v1/milestones/mine/ (assigned to the caller, by due date)."""
        actor = actor_from_user(request.user)
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(
            self._service.list_for_owner(actor.user_id), request, view=self
        )
        return paginator.get_paginated_response(MilestoneSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/milestones/{pk}/"""
        try:
            milestone = self._service.get_milestone(pk)
        except MilestoneError as exc:
            return milestone_error_response(exc)
        return Response(MilestoneSerializer(milestone).data)

    @action(detail=True, methods=["post"])
    def transition(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/milestones/{pk}/transition/

        Body: ``{"status": "...", "note": "..."}``.  The note is the
        blocked reason when moving to ``blocked``.
        """
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            milestone = self._service.transition(
                pk,
                data["status"],
                actor_from_user(request.user),
                note=data.get("note") or None,
            )
        except (MilestoneError, ExportOrderError) as exc:
            return milestone_error_response(exc)
        return Response(MilestoneSerializer(milestone).data)

    @action(detail=True, methods=["post"], url_path="assign-owner")
    def assign_owner(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/milestones/{pk}/assign-owner/"""
        serializer = AssignOwnerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            milestone = self._service.assign_owner(
                pk,
                serializer.validated_data["owner_user_id"],
                actor_from_user(request.user),
            )
        except MilestoneError as exc:
            return milestone_error_response(exc)
        return Response(MilestoneSerializer(milestone).data)

    @action(detail=True, methods=["post"])
    def evidence(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/milestones/{pk}/evidence/

        Registers the metadata of a file already uploaded to storage.
        """
        serializer = RegisterEvidenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = RegisterEvidenceDTO(**serializer.validated_data)

        try:
            attachment = self._service.register_evidence(
                pk, dto, actor_from_user(request.user)
            )
        except MilestoneError as exc:
            return milestone_error_response(exc)
        return Response(
            EvidenceAttachmentSerializer(attachment).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"])
    def logs(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/milestones/{pk}/logs/ (newest first)."""
        try:
            entries = self._service.logs_for(pk)
        except MilestoneError as exc:
            return milestone_error_response(exc)

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(entries, request, view=self)
        return paginator.get_paginated_response(
            MilestoneLogSerializer(page, many=True).data
        )


class DelayRequestViewSet(GenericViewSet):
    queryset = DelayRequest.objects.all()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_delay_request_service()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/delay-requests/"""
        serializer = CreateDelayRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateDelayRequestDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return milestone_error_response(InvalidDelayRequest(first_error_message(exc)))

        try:
            delay_request = self._service.create_request(dto, actor_from_user(request.user))
        except (MilestoneError, ExportOrderError) as exc:
            return milestone_error_response(exc)
        return Response(
            DelayRequestSerializer(delay_request).data,
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/delay-requests/?order=<id>&status=<status>"""
        filters = {}
        if request.query_params.get("order"):
            filters["order_id"] = request.query_params["order"]
        if request.query_params.get("status"):
            filters["status"] = request.query_params["status"]

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(
            self._service.list_requests(filters), request, view=self
        )
        return paginator.get_paginated_response(
            DelayRequestSerializer(page, many=True).data
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/delay-requests/{pk}/"""
        try:
            delay_request = self._service.get_request(pk)
        except MilestoneError as exc:
            return milestone_error_response(exc)
        return Response(DelayRequestSerializer(delay_request).data)

    @action(detail=True, methods=["get"])
    def impact(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/delay-requests/{pk}/impact/

        Milestones the request would move if approved; nothing is written.
        """
        try:
            impacted = self._service.preview_impact(pk)
        except MilestoneError as exc:
            return milestone_error_response(exc)
        return Response([item.model_dump(mode="json") for item in impacted])

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/delay-requests/{pk}/approve/

        Approves the request and recalculates the schedule atomically.
        """
        serializer = DecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            approval = self._service.approve(
                pk,
                actor_from_user(request.user),
                note=serializer.validated_data["note"],
            )
        except MilestoneError as exc:
            return milestone_error_response(exc)

        payload = DelayRequestSerializer(approval.delay_request).data
        payload["recalculation"] = {
            "mode": approval.recalculation.mode,
            "changed_count": len(approval.recalculation.updated),
            "note": approval.recalculation.note,
        }
        return Response(payload)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/delay-requests/{pk}/reject/"""
        serializer = DecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            delay_request = self._service.reject(
                pk,
                actor_from_user(request.user),
                note=serializer.validated_data["note"],
            )
        except MilestoneError as exc:
            return milestone_error_response(exc)
        return Response(DelayRequestSerializer(delay_request).data)
