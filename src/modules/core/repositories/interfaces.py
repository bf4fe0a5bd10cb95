"""Generic repository interface.

Service-layer code depends on these abstractions, never on the Django
ORM directly, so the scheduling and state-machine rules can be tested
against in-memory stubs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base repository contract for an aggregate of type ``T``."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Return the entity or ``None`` when it does not exist."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """List entities matching the optional ORM-style filters."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
