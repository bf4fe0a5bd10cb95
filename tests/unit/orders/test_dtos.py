"""Unit tests for export-order DTOs.

Covers:
- Anchor date required by the trade term (ETD for FOB, warehouse due
  date for DDP).
- Customer name trimming and blank rejection.
- Defaults and frozen immutability.
"""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderType, PackagingType, TradeTerm
from modules.orders.dtos import CreateExportOrderDTO

pytestmark = pytest.mark.unit


class TestCreateExportOrderDTOValid:
    def test_fob_with_etd(self):
        dto = CreateExportOrderDTO(
            customer_name="Acme", trade_term="FOB", etd=date(2024, 3, 1)
        )
        assert dto.trade_term == TradeTerm.FOB
        assert dto.order_type == OrderType.BULK
        assert dto.packaging_type == PackagingType.STANDARD
        assert dto.needs_pp_sample is True
        assert dto.needs_third_party_qc is False

    def test_ddp_with_warehouse_due_date(self):
        dto = CreateExportOrderDTO(
            customer_name="Acme", trade_term="DDP", warehouse_due_date=date(2024, 4, 1)
        )
        assert dto.warehouse_due_date == date(2024, 4, 1)

    def test_customer_name_is_trimmed(self):
        dto = CreateExportOrderDTO(
            customer_name="  Acme  ", trade_term="FOB", etd=date(2024, 3, 1)
        )
        assert dto.customer_name == "Acme"

    def test_frozen(self):
        dto = CreateExportOrderDTO(
            customer_name="Acme", trade_term="FOB", etd=date(2024, 3, 1)
        )
        with pytest.raises(ValidationError):
            dto.customer_name = "Other"


class TestCreateExportOrderDTOValidation:
    def test_fob_without_etd_raises(self):
        with pytest.raises(ValidationError, match="etd is required for FOB"):
            CreateExportOrderDTO(
                customer_name="Acme", trade_term="FOB", warehouse_due_date=date(2024, 3, 1)
            )

    def test_ddp_without_warehouse_due_date_raises(self):
        with pytest.raises(ValidationError, match="warehouse_due_date is required for DDP"):
            CreateExportOrderDTO(customer_name="Acme", trade_term="DDP", etd=date(2024, 3, 1))

    def test_blank_customer_raises(self):
        with pytest.raises(ValidationError, match="Customer name must not be blank"):
            CreateExportOrderDTO(customer_name="   ", trade_term="FOB", etd=date(2024, 3, 1))

    def test_unknown_trade_term_raises(self):
        with pytest.raises(ValidationError):
            CreateExportOrderDTO(customer_name="Acme", trade_term="CIF", etd=date(2024, 3, 1))
