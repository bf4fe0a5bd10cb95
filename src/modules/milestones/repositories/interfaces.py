"""Milestone and delay-request repository interfaces.

The state machine, the recalculation engine and the delay workflow depend
only on these contracts.  ``update_dates`` writes absolute dates, so
replaying it for a row already updated is harmless.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.milestones.models import (
        DelayRequest,
        EvidenceAttachment,
        Milestone,
        MilestoneLog,
    )


class IMilestoneRepository(IRepository["Milestone"]):
    """Repository contract for milestones, their audit log and evidence."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Milestone]:
        """Retrieve a milestone with a row-level lock."""

    @abstractmethod
    def list_for_order(self, order_id: Any) -> List[Milestone]:
        """Milestones of an order ordered by due date, then catalog order."""

    @abstractmethod
    def list_for_owner(self, owner_user_id: str) -> List[Milestone]:
        """Milestones assigned to one user across orders, earliest due first."""

    @abstractmethod
    def has_milestones(self, order_id: Any) -> bool:
        """``True`` once the order's milestone set has been generated."""

    @abstractmethod
    def create_many(self, milestones: Sequence[Milestone]) -> List[Milestone]:
        """Insert a freshly generated milestone set."""

    @abstractmethod
    def update_dates(self, milestone_id: Any, planned_at: date, due_at: date) -> Milestone:
        """Set ``planned_at``/``due_at`` on one milestone."""

    @abstractmethod
    def add_log(
        self,
        milestone: Milestone,
        actor: Actor,
        action: str,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        note: str = "",
        payload: Optional[Dict[str, Any]] = None,
    ) -> MilestoneLog:
        """Append an audit record."""

    @abstractmethod
    def logs_for(self, milestone_id: Any) -> List[MilestoneLog]:
        """Audit records of a milestone, newest first."""

    @abstractmethod
    def add_attachment(self, milestone: Milestone, data: Dict[str, Any]) -> EvidenceAttachment:
        """Register evidence metadata for a milestone."""

    @abstractmethod
    def document_types_for(self, milestone_id: Any) -> List[str]:
        """Document types of the attachments registered on a milestone."""

    @abstractmethod
    def record_reminder(self, milestone: Milestone, kind: str) -> bool:
        """Record a reminder; ``False`` when it already existed for this due date."""


class IDelayRequestRepository(IRepository["DelayRequest"]):
    """Repository contract for delay requests."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> DelayRequest:
        """Create a pending delay request."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[DelayRequest]:
        """Retrieve a delay request with a row-level lock."""
