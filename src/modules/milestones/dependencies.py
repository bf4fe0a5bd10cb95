"""Dependency gate checker.

A milestone may enter ``in_progress`` only when every *required*
predecessor present in the order's milestone set is ``done``.
Predecessors missing from the set (excluded for this order) are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from modules.milestones.catalog import get_template
from modules.milestones.constants import MilestoneStatus


@dataclass(frozen=True)
class GateResult:
    allowed: bool
    blocking_step_key: Optional[str] = None


def _predecessor_keys(milestone) -> Sequence[str]:
    keys = getattr(milestone, "predecessor_keys", None)
    if keys is None:
        template = get_template(milestone.step_key)
        keys = template.predecessors if template else ()
    return keys


def _is_required(step_key: str) -> bool:
    template = get_template(step_key)
    return template.required if template is not None else True


def can_enter_in_progress(milestone, milestones: Iterable) -> GateResult:
    """Check ``milestone`` against the statuses of its order's milestones."""
    predecessors = _predecessor_keys(milestone)
    if not predecessors:
        return GateResult(allowed=True)

    by_key = {m.step_key: m for m in milestones}
    for key in predecessors:
        predecessor = by_key.get(key)
        if predecessor is None or not _is_required(key):
            continue
        if predecessor.status != MilestoneStatus.DONE:
            return GateResult(allowed=False, blocking_step_key=str(key))
    return GateResult(allowed=True)
