"""Unit tests for the dependency gate."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from modules.milestones.constants import MilestoneStatus, StepKey
from modules.milestones.dependencies import can_enter_in_progress

pytestmark = pytest.mark.unit

S = StepKey


def _m(step_key, status=MilestoneStatus.NOT_STARTED, predecessors=None):
    return SimpleNamespace(step_key=step_key, status=status, predecessor_keys=predecessors)


class TestGate:
    def test_no_predecessors_is_allowed(self):
        po = _m(S.PO_CONFIRMED, predecessors=[])
        assert can_enter_in_progress(po, [po]).allowed

    def test_pending_predecessor_blocks(self):
        po = _m(S.PO_CONFIRMED, MilestoneStatus.IN_PROGRESS, [])
        finance = _m(S.FINANCE_APPROVAL, predecessors=[S.PO_CONFIRMED])
        result = can_enter_in_progress(finance, [po, finance])
        assert result.allowed is False
        assert result.blocking_step_key == S.PO_CONFIRMED

    def test_done_predecessor_allows(self):
        po = _m(S.PO_CONFIRMED, MilestoneStatus.DONE, [])
        finance = _m(S.FINANCE_APPROVAL, predecessors=[S.PO_CONFIRMED])
        assert can_enter_in_progress(finance, [po, finance]).allowed

    def test_first_unfinished_predecessor_is_reported(self):
        finance = _m(S.FINANCE_APPROVAL, MilestoneStatus.DONE)
        rm = _m(S.RM_PURCHASE_SHEET_SUBMIT, MilestoneStatus.BLOCKED)
        target = _m(
            S.FINANCE_PURCHASE_APPROVAL,
            predecessors=[S.FINANCE_APPROVAL, S.RM_PURCHASE_SHEET_SUBMIT],
        )
        result = can_enter_in_progress(target, [finance, rm, target])
        assert result.blocking_step_key == S.RM_PURCHASE_SHEET_SUBMIT

    def test_optional_predecessor_is_ignored(self):
        production = _m(S.PRODUCTION_START, MilestoneStatus.DONE)
        mid_qc = _m(S.MID_QC_CHECK, MilestoneStatus.NOT_STARTED)
        final_qc = _m(S.FINAL_QC_CHECK, predecessors=[S.PRODUCTION_START, S.MID_QC_CHECK])
        assert can_enter_in_progress(final_qc, [production, mid_qc, final_qc]).allowed

    def test_missing_predecessor_is_skipped(self):
        production = _m(S.PRODUCTION_START, predecessors=[S.PPS_CUSTOMER_APPROVED])
        assert can_enter_in_progress(production, [production]).allowed

    def test_falls_back_to_catalog_predecessors(self):
        po = _m(S.PO_CONFIRMED, MilestoneStatus.IN_PROGRESS, [])
        finance = _m(S.FINANCE_APPROVAL, predecessors=None)
        result = can_enter_in_progress(finance, [po, finance])
        assert result.blocking_step_key == S.PO_CONFIRMED
