"""Export-order DTOs for the Service Layer.

Immutable Pydantic v2 contracts between the DRF serializers and
``ExportOrderService`` or the order lifecycle service.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import (
    ANCHOR_FIELD_BY_TRADE_TERM,
    CancelReason,
    OrderType,
    PackagingType,
    TradeTerm,
)


class CreateExportOrderDTO(BaseModel):
    """Input for export-order creation.

    Validates:
    - ``customer_name`` is not blank.
    - The anchor date implied by ``trade_term`` is present
      (``etd`` for FOB, ``warehouse_due_date`` for DDP).
    """

    model_config = ConfigDict(frozen=True)

    customer_name: str
    trade_term: TradeTerm
    etd: Optional[date] = None
    warehouse_due_date: Optional[date] = None
    order_type: OrderType = OrderType.BULK
    packaging_type: PackagingType = PackagingType.STANDARD
    needs_pp_sample: bool = True
    needs_third_party_qc: bool = False
    notes: str = ""

    @field_validator("customer_name")
    @classmethod
    def customer_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Customer name must not be blank.")
        return v.strip()

    @model_validator(mode="after")
    def anchor_matches_trade_term(self):
        field = ANCHOR_FIELD_BY_TRADE_TERM[self.trade_term]
        if getattr(self, field) is None:
            raise ValueError(f"{field} is required for {self.trade_term.value} orders.")
        return self


class CreateCancelRequestDTO(BaseModel):
    """Input for a cancel request; the reason detail is mandatory."""

    model_config = ConfigDict(frozen=True)

    reason_type: CancelReason
    reason_detail: str

    @field_validator("reason_detail")
    @classmethod
    def reason_detail_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Reason detail must not be blank.")
        return v.strip()
