"""Milestone repositories package."""

from modules.milestones.repositories.django_repository import (
    DelayRequestDjangoRepository,
    MilestoneDjangoRepository,
)
from modules.milestones.repositories.interfaces import (
    IDelayRequestRepository,
    IMilestoneRepository,
)

__all__ = [
    "IMilestoneRepository",
    "IDelayRequestRepository",
    "MilestoneDjangoRepository",
    "DelayRequestDjangoRepository",
]
