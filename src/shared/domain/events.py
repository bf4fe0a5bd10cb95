"""Domain event primitive shared by the orders and milestones modules."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable).

    Events are published after the transaction that produced them commits,
    so handlers only ever observe persisted state.
    """

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    def as_log_fields(self) -> Dict[str, Any]:
        """Event attributes as strings, ready for a structured log line."""
        return {
            key: value if isinstance(value, (int, bool)) or value is None else str(value)
            for key, value in asdict(self).items()
        }
