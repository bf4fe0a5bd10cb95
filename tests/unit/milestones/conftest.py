import pytest
from freezegun import freeze_time

from modules.milestones.authorization import RoleAuthorizationPolicy
from modules.milestones.delays import DelayRequestService
from modules.milestones.dtos import RegisterEvidenceDTO
from modules.milestones.lifecycle import OrderLifecycleService
from modules.milestones.recalculation import ScheduleRecalculator
from modules.milestones.repositories.django_repository import (
    DelayRequestDjangoRepository,
    MilestoneDjangoRepository,
)
from modules.milestones.services import MilestoneService
from modules.orders.repositories.django_repository import (
    CancelRequestDjangoRepository,
    ExportOrderDjangoRepository,
)


@pytest.fixture()
def policy():
    return RoleAuthorizationPolicy(admin_roles=["admin"])


@pytest.fixture()
def milestone_service(policy):
    return MilestoneService(
        milestone_repository=MilestoneDjangoRepository(),
        order_repository=ExportOrderDjangoRepository(),
        policy=policy,
    )


@pytest.fixture()
def delay_service(policy):
    milestone_repository = MilestoneDjangoRepository()
    return DelayRequestService(
        delay_repository=DelayRequestDjangoRepository(),
        milestone_repository=milestone_repository,
        recalculator=ScheduleRecalculator(
            milestone_repository=milestone_repository,
            order_repository=ExportOrderDjangoRepository(),
        ),
        policy=policy,
    )


@pytest.fixture()
def lifecycle_service(policy):
    return OrderLifecycleService(
        order_repository=ExportOrderDjangoRepository(),
        milestone_repository=MilestoneDjangoRepository(),
        cancel_repository=CancelRequestDjangoRepository(),
        policy=policy,
    )


@pytest.fixture()
def order(make_order):
    """FOB order created 2024-01-02, shipping 2024-03-01."""
    with freeze_time("2024-01-02 03:00:00"):
        return make_order()


@pytest.fixture()
def activated(order, milestone_service, admin_actor):
    """``order`` with its milestones generated; returns ``{step_key: Milestone}``."""
    milestone_service.activate_order(order.id, admin_actor)
    return {m.step_key: m for m in milestone_service.list_for_order(order.id)}


@pytest.fixture()
def reload(milestone_service):
    """Fresh ``{step_key: Milestone}`` for an order."""

    def _reload(order):
        return {m.step_key: m for m in milestone_service.list_for_order(order.id)}

    return _reload


@pytest.fixture()
def upload(milestone_service, admin_actor):
    """Register evidence documents of the given types on a milestone."""

    def _upload(milestone, *document_types):
        for document_type in document_types:
            milestone_service.register_evidence(
                milestone.id,
                RegisterEvidenceDTO(
                    document_type=document_type,
                    file_name=f"{document_type.lower()}.pdf",
                    file_url=f"https://files.example.com/{document_type.lower()}.pdf",
                ),
                admin_actor,
            )

    return _upload
