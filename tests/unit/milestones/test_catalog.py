"""Unit tests for the milestone template catalog."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from modules.core.constants import Role
from modules.milestones.catalog import (
    MILESTONE_TEMPLATES,
    Anchor,
    CatalogError,
    OffsetRule,
    get_template,
    templates_for,
    validate_catalog,
)
from modules.milestones.constants import StepKey
from modules.milestones.scheduling import ScheduleInput

pytestmark = pytest.mark.unit


def _input(**overrides) -> ScheduleInput:
    data = {"created_on": date(2024, 1, 2), "trade_term": "FOB", "etd": date(2024, 3, 1)}
    data.update(overrides)
    return ScheduleInput(**data)


class TestCatalog:
    def test_covers_every_step_once(self):
        keys = [t.step_key for t in MILESTONE_TEMPLATES]
        assert len(keys) == len(StepKey.values)
        assert set(keys) == set(StepKey.values)

    def test_catalog_is_valid(self):
        validate_catalog(MILESTONE_TEMPLATES)

    def test_roles(self):
        assert get_template(StepKey.PO_CONFIRMED).role == Role.SALES
        assert get_template(StepKey.FINANCE_APPROVAL).role == Role.FINANCE
        assert get_template(StepKey.SHIPMENT_DONE).role == Role.LOGISTICS

    def test_mid_qc_is_optional(self):
        template = get_template(StepKey.MID_QC_CHECK)
        assert template.required is False
        assert template.critical is False

    def test_unknown_step(self):
        assert get_template("dyeing") is None


class TestValidateCatalog:
    def test_duplicate_key(self):
        with pytest.raises(CatalogError, match="Duplicate"):
            validate_catalog([MILESTONE_TEMPLATES[0], MILESTONE_TEMPLATES[0]])

    def test_dangling_predecessor(self):
        orphan = replace(MILESTONE_TEMPLATES[1], predecessors=(StepKey.PAYMENT_RECEIVED,))
        with pytest.raises(CatalogError, match="unknown predecessor"):
            validate_catalog([MILESTONE_TEMPLATES[0], orphan])

    def test_dangling_derived_from(self):
        orphan = replace(
            MILESTONE_TEMPLATES[0],
            offset=OffsetRule(Anchor.SHIP_ANCHOR, -1, derived_from=StepKey.PRODUCTION_START),
        )
        with pytest.raises(CatalogError, match="unknown derived_from"):
            validate_catalog([orphan])

    def test_predecessor_cycle(self):
        first = replace(MILESTONE_TEMPLATES[0], predecessors=(StepKey.FINANCE_APPROVAL,))
        second = replace(MILESTONE_TEMPLATES[1], predecessors=(StepKey.PO_CONFIRMED,))
        with pytest.raises(CatalogError, match="Cyclic predecessor"):
            validate_catalog([first, second])


class TestTemplatesFor:
    def test_default_order_skips_third_party_inspection(self):
        keys = [t.step_key for t in templates_for(_input())]
        assert StepKey.THIRD_PARTY_INSPECTION not in keys
        assert StepKey.PPS_READY in keys
        assert len(keys) == 18

    def test_third_party_inspection_included_on_request(self):
        keys = [t.step_key for t in templates_for(_input(needs_third_party_qc=True))]
        assert StepKey.THIRD_PARTY_INSPECTION in keys

    def test_no_pp_sample_drops_sample_steps(self):
        keys = {t.step_key for t in templates_for(_input(needs_pp_sample=False))}
        assert not keys & {StepKey.PPS_READY, StepKey.PPS_SENT, StepKey.PPS_CUSTOMER_APPROVED}

    def test_excluded_predecessors_are_narrowed(self):
        by_key = {t.step_key: t for t in templates_for(_input(needs_pp_sample=False))}
        assert by_key[StepKey.PRODUCTION_START].predecessors == (
            StepKey.MATERIALS_RECEIVED_INSPECTED,
        )
        assert StepKey.THIRD_PARTY_INSPECTION not in by_key[StepKey.SHIPMENT_DONE].predecessors

    def test_catalog_order_is_kept(self):
        keys = [t.step_key for t in templates_for(_input())]
        assert keys[0] == StepKey.PO_CONFIRMED
        assert keys[-1] == StepKey.PAYMENT_RECEIVED
