"""Schedule calculator.

``compute_dates`` is a pure function of a ``ScheduleInput`` snapshot:

1. The ship anchor (ETD for FOB, warehouse due date for DDP) and the
   creation date are moved back to a business day.
2. Each template's offset is adjusted for the order: the booking lead time
   depends on the trade term, custom packaging extends the packaging lead
   time, and sample orders compress every offset (magnitude rounded up).
3. Offsets derived from a sibling milestone are resolved in topological
   order over the ``derived_from`` graph.
4. ``planned_at`` is one business day before ``due_at``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date
from graphlib import TopologicalSorter
from typing import Dict, Iterable, Optional

from django.utils import timezone

from modules.milestones.calendar import (
    shift_business_days,
    shift_calendar_days,
    subtract_business_days,
    to_business_day,
)
from modules.milestones.catalog import (
    TEMPLATES_BY_KEY,
    Anchor,
    MilestoneTemplate,
    OffsetUnit,
    templates_for,
)
from modules.milestones.constants import (
    BOOKING_LEAD_DAYS,
    CUSTOM_PACKAGING_EXTENSION_DAYS,
    SAMPLE_COMPRESSION_RATIO,
    StepKey,
)
from modules.milestones.exceptions import MissingAnchorDate
from modules.orders.constants import (
    ANCHOR_FIELD_BY_TRADE_TERM,
    OrderType,
    PackagingType,
)


@dataclass(frozen=True)
class ScheduleInput:
    """Order attributes the calculator depends on."""

    created_on: date
    trade_term: str
    etd: Optional[date] = None
    warehouse_due_date: Optional[date] = None
    order_type: str = OrderType.BULK
    packaging_type: str = PackagingType.STANDARD
    needs_pp_sample: bool = True
    needs_third_party_qc: bool = False

    @classmethod
    def from_order(cls, order) -> ScheduleInput:
        created_at = getattr(order, "created_at", None)
        created_on = timezone.localdate(created_at) if created_at else timezone.localdate()
        return cls(
            created_on=created_on,
            trade_term=order.trade_term,
            etd=order.etd,
            warehouse_due_date=order.warehouse_due_date,
            order_type=order.order_type,
            packaging_type=order.packaging_type,
            needs_pp_sample=order.needs_pp_sample,
            needs_third_party_qc=order.needs_third_party_qc,
        )

    @property
    def anchor_field(self) -> str:
        try:
            return ANCHOR_FIELD_BY_TRADE_TERM[self.trade_term]
        except KeyError:
            raise MissingAnchorDate(
                f"Unknown trade term {self.trade_term!r}.", trade_term=self.trade_term
            ) from None

    @property
    def anchor_date(self) -> date:
        value = getattr(self, self.anchor_field)
        if value is None:
            raise MissingAnchorDate(
                f"{self.anchor_field} is required to schedule a {self.trade_term} order.",
                attr=self.anchor_field,
            )
        return value

    def with_anchor(self, new_date: date) -> ScheduleInput:
        return replace(self, **{self.anchor_field: new_date})


@dataclass(frozen=True)
class ScheduledDates:
    planned_at: date
    due_at: date


def compress_offset(offset: int) -> int:
    """Scale a sample-order offset, rounding the magnitude up."""
    magnitude = math.ceil(abs(offset) * SAMPLE_COMPRESSION_RATIO)
    return -magnitude if offset < 0 else magnitude


def adjusted_offset(template: MilestoneTemplate, order: ScheduleInput) -> int:
    offset = template.offset.offset_days
    if template.step_key == StepKey.BOOKING_DONE:
        offset = -BOOKING_LEAD_DAYS[order.trade_term]
    if (
        template.step_key == StepKey.PACKAGING_MATERIALS_READY
        and order.packaging_type == PackagingType.CUSTOM
    ):
        offset -= CUSTOM_PACKAGING_EXTENSION_DAYS
    if order.order_type == OrderType.SAMPLE:
        offset = compress_offset(offset)
    return offset


def _with_derivation_sources(
    templates: Iterable[MilestoneTemplate],
) -> Dict[str, MilestoneTemplate]:
    """Add catalog templates that others derive their dates from."""
    needed: Dict[str, MilestoneTemplate] = {}
    pending = list(templates)
    while pending:
        template = pending.pop()
        if template.step_key in needed:
            continue
        needed[template.step_key] = template
        source = template.offset.derived_from
        if source is not None and source not in needed:
            pending.append(TEMPLATES_BY_KEY[source])
    return needed


def compute_dates(
    order: ScheduleInput,
    templates: Optional[Iterable[MilestoneTemplate]] = None,
) -> Dict[str, ScheduledDates]:
    """Return ``{step_key: ScheduledDates}`` in template order.

    Raises:
        MissingAnchorDate: the anchor implied by the trade term is missing.
    """
    templates = list(templates_for(order) if templates is None else templates)
    ship_anchor = to_business_day(order.anchor_date)
    created = to_business_day(order.created_on)

    needed = _with_derivation_sources(templates)
    graph = {
        key: {t.offset.derived_from} if t.offset.derived_from else set()
        for key, t in needed.items()
    }

    due: Dict[str, date] = {}
    for key in TopologicalSorter(graph).static_order():
        template = needed[key]
        rule = template.offset
        if rule.derived_from is not None:
            base = due[rule.derived_from]
        elif rule.anchor == Anchor.ORDER_CREATED:
            base = created
        else:
            base = ship_anchor

        offset = adjusted_offset(template, order)
        if rule.unit == OffsetUnit.CALENDAR:
            due[key] = shift_calendar_days(base, offset)
        else:
            due[key] = shift_business_days(base, offset)

    return {
        t.step_key: ScheduledDates(
            planned_at=subtract_business_days(due[t.step_key], 1),
            due_at=due[t.step_key],
        )
        for t in templates
    }
