"""Milestone template catalog.

The catalog is fixed domain knowledge: one ``MilestoneTemplate`` per step,
in execution order.  Each template declares its responsible role, flags,
predecessor steps, a date-offset rule and an inclusion predicate over the
order's attributes.

The catalog is validated at import time: predecessor and ``derived_from``
references must name catalog steps and neither graph may contain a
cycle.  ``templates_for`` returns the templates that apply to one order,
with predecessors narrowed to the included steps (an excluded predecessor
counts as satisfied).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from graphlib import CycleError, TopologicalSorter
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple

from django.db import models

from modules.core.constants import Role
from modules.milestones.constants import StepKey

if TYPE_CHECKING:
    from modules.milestones.scheduling import ScheduleInput


class CatalogError(Exception):
    """The template catalog has a dangling or cyclic reference."""


class Anchor(models.TextChoices):
    ORDER_CREATED = "order_created", "Order created"
    SHIP_ANCHOR = "ship_anchor", "Ship anchor"


class OffsetUnit(models.TextChoices):
    BUSINESS = "business", "Business days"
    CALENDAR = "calendar", "Calendar days"


@dataclass(frozen=True)
class OffsetRule:
    """Where a milestone's due date comes from.

    With ``derived_from`` set, ``offset_days`` is applied to that sibling's
    computed due date instead of the anchor.
    """

    anchor: Anchor
    offset_days: int
    derived_from: Optional[StepKey] = None
    unit: OffsetUnit = OffsetUnit.BUSINESS


def _always(order: ScheduleInput) -> bool:
    return True


def _needs_pp_sample(order: ScheduleInput) -> bool:
    return order.needs_pp_sample


def _needs_third_party_qc(order: ScheduleInput) -> bool:
    return order.needs_third_party_qc


@dataclass(frozen=True)
class MilestoneTemplate:
    step_key: StepKey
    name: str
    role: str
    required: bool
    critical: bool
    evidence_required: bool
    predecessors: Tuple[StepKey, ...]
    offset: OffsetRule
    include_when: Callable[[ScheduleInput], bool] = _always

    def applies_to(self, order: ScheduleInput) -> bool:
        return self.include_when(order)


def _created(days: int) -> OffsetRule:
    return OffsetRule(Anchor.ORDER_CREATED, days)


def _ship(days: int) -> OffsetRule:
    return OffsetRule(Anchor.SHIP_ANCHOR, days)


def _from(step: StepKey, days: int, unit: OffsetUnit = OffsetUnit.BUSINESS) -> OffsetRule:
    return OffsetRule(Anchor.SHIP_ANCHOR, days, derived_from=step, unit=unit)


S = StepKey

MILESTONE_TEMPLATES: Tuple[MilestoneTemplate, ...] = (
    MilestoneTemplate(
        S.PO_CONFIRMED, S.PO_CONFIRMED.label, Role.SALES,
        required=True, critical=True, evidence_required=True,
        predecessors=(), offset=_created(0),
    ),
    MilestoneTemplate(
        S.FINANCE_APPROVAL, S.FINANCE_APPROVAL.label, Role.FINANCE,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.PO_CONFIRMED,), offset=_created(2),
    ),
    MilestoneTemplate(
        S.ORDER_DOCS_COMPLETE, S.ORDER_DOCS_COMPLETE.label, Role.SALES,
        required=True, critical=True, evidence_required=True,
        predecessors=(S.PO_CONFIRMED,), offset=_created(3),
    ),
    MilestoneTemplate(
        S.RM_PURCHASE_SHEET_SUBMIT, S.RM_PURCHASE_SHEET_SUBMIT.label, Role.SALES,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.ORDER_DOCS_COMPLETE,), offset=_created(4),
    ),
    MilestoneTemplate(
        S.FINANCE_PURCHASE_APPROVAL, S.FINANCE_PURCHASE_APPROVAL.label, Role.FINANCE,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.FINANCE_APPROVAL, S.RM_PURCHASE_SHEET_SUBMIT),
        offset=_created(5),
    ),
    MilestoneTemplate(
        S.PROCUREMENT_ORDER_PLACED, S.PROCUREMENT_ORDER_PLACED.label, Role.PROCUREMENT,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.FINANCE_PURCHASE_APPROVAL,),
        offset=_from(S.PRODUCTION_START, -5),
    ),
    MilestoneTemplate(
        S.MATERIALS_RECEIVED_INSPECTED, S.MATERIALS_RECEIVED_INSPECTED.label, Role.QC,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.PROCUREMENT_ORDER_PLACED,),
        offset=_from(S.PRODUCTION_START, -2),
    ),
    MilestoneTemplate(
        S.PPS_READY, S.PPS_READY.label, Role.QC,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.MATERIALS_RECEIVED_INSPECTED,),
        offset=_from(S.PPS_SENT, -2, OffsetUnit.CALENDAR),
        include_when=_needs_pp_sample,
    ),
    MilestoneTemplate(
        S.PPS_SENT, S.PPS_SENT.label, Role.SALES,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.PPS_READY,),
        offset=_from(S.PPS_CUSTOMER_APPROVED, -3, OffsetUnit.CALENDAR),
        include_when=_needs_pp_sample,
    ),
    MilestoneTemplate(
        S.PPS_CUSTOMER_APPROVED, S.PPS_CUSTOMER_APPROVED.label, Role.SALES,
        required=True, critical=True, evidence_required=True,
        predecessors=(S.PPS_SENT,),
        offset=_from(S.PRODUCTION_START, -2),
        include_when=_needs_pp_sample,
    ),
    MilestoneTemplate(
        S.PRODUCTION_START, S.PRODUCTION_START.label, Role.PRODUCTION,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.MATERIALS_RECEIVED_INSPECTED, S.PPS_CUSTOMER_APPROVED),
        offset=_ship(-20),
    ),
    MilestoneTemplate(
        S.MID_QC_CHECK, S.MID_QC_CHECK.label, Role.QC,
        required=False, critical=False, evidence_required=False,
        predecessors=(S.PRODUCTION_START,),
        offset=_from(S.PRODUCTION_START, 10),
    ),
    MilestoneTemplate(
        S.FINAL_QC_CHECK, S.FINAL_QC_CHECK.label, Role.QC,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.PRODUCTION_START, S.MID_QC_CHECK),
        offset=_ship(-8),
    ),
    MilestoneTemplate(
        S.PACKAGING_MATERIALS_READY, S.PACKAGING_MATERIALS_READY.label, Role.PROCUREMENT,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.PRODUCTION_START,),
        offset=_ship(-10),
    ),
    MilestoneTemplate(
        S.PACKING_LABELING_DONE, S.PACKING_LABELING_DONE.label, Role.LOGISTICS,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.FINAL_QC_CHECK, S.PACKAGING_MATERIALS_READY),
        offset=_ship(-4),
    ),
    MilestoneTemplate(
        S.THIRD_PARTY_INSPECTION, S.THIRD_PARTY_INSPECTION.label, Role.QC,
        required=True, critical=True, evidence_required=True,
        predecessors=(S.FINAL_QC_CHECK,),
        offset=_ship(-6),
        include_when=_needs_third_party_qc,
    ),
    MilestoneTemplate(
        S.BOOKING_DONE, S.BOOKING_DONE.label, Role.LOGISTICS,
        required=True, critical=True, evidence_required=True,
        predecessors=(S.PRODUCTION_START,),
        offset=_ship(-5),
    ),
    MilestoneTemplate(
        S.SHIPMENT_DONE, S.SHIPMENT_DONE.label, Role.LOGISTICS,
        required=True, critical=True, evidence_required=True,
        predecessors=(S.BOOKING_DONE, S.PACKING_LABELING_DONE, S.THIRD_PARTY_INSPECTION),
        offset=_ship(0),
    ),
    MilestoneTemplate(
        S.PAYMENT_RECEIVED, S.PAYMENT_RECEIVED.label, Role.FINANCE,
        required=True, critical=True, evidence_required=False,
        predecessors=(S.SHIPMENT_DONE,),
        offset=_ship(22),
    ),
)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_catalog(templates: Iterable[MilestoneTemplate]) -> None:
    """Raise ``CatalogError`` on duplicate, dangling or cyclic references."""
    templates = list(templates)
    keys = [t.step_key for t in templates]
    if len(keys) != len(set(keys)):
        raise CatalogError("Duplicate step keys in catalog.")
    known = set(keys)

    for template in templates:
        for predecessor in template.predecessors:
            if predecessor not in known:
                raise CatalogError(
                    f"{template.step_key}: unknown predecessor {predecessor}."
                )
        source = template.offset.derived_from
        if source is not None and source not in known:
            raise CatalogError(f"{template.step_key}: unknown derived_from {source}.")

    predecessor_graph = {t.step_key: set(t.predecessors) for t in templates}
    derivation_graph = {
        t.step_key: {t.offset.derived_from} if t.offset.derived_from else set()
        for t in templates
    }
    for label, graph in (("predecessor", predecessor_graph), ("derivation", derivation_graph)):
        try:
            TopologicalSorter(graph).prepare()
        except CycleError as exc:
            raise CatalogError(f"Cyclic {label} graph: {exc.args[1]}") from exc


validate_catalog(MILESTONE_TEMPLATES)

TEMPLATES_BY_KEY: Dict[str, MilestoneTemplate] = {
    t.step_key: t for t in MILESTONE_TEMPLATES
}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_template(step_key: str) -> Optional[MilestoneTemplate]:
    return TEMPLATES_BY_KEY.get(step_key)


def templates_for(order: ScheduleInput) -> List[MilestoneTemplate]:
    """Templates that apply to ``order``, in catalog order.

    Predecessor keys are narrowed to the included templates.
    """
    included = [t for t in MILESTONE_TEMPLATES if t.applies_to(order)]
    included_keys = {t.step_key for t in included}
    return [
        replace(
            t,
            predecessors=tuple(p for p in t.predecessors if p in included_keys),
        )
        for t in included
    ]
