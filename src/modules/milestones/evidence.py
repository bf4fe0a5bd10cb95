"""Evidence gate: document types each step needs before it can be done.

Steps with a document list require one attachment of every listed type.
Steps without a list fall back to the single ``evidence_required`` flag:
at least one attachment of any type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from django.db import models

from modules.milestones.constants import StepKey


class DocumentType(models.TextChoices):
    PO = "PO", "Customer purchase order"
    PO_CONFIRM_EMAIL = "PO_CONFIRM_EMAIL", "PO confirmation e-mail"
    PRODUCTION_SHEET = "PRODUCTION_SHEET", "Production sheet"
    PACKING_SPEC = "PACKING_SPEC", "Packing specification"
    PROCUREMENT_SHEET = "PROCUREMENT_SHEET", "Procurement sheet"
    SUPPLIER_PO = "SUPPLIER_PO", "Supplier purchase order"
    IQC_REPORT = "IQC_REPORT", "Incoming QC report"
    TEST_REPORT = "TEST_REPORT", "Test report"
    SAMPLE_PHOTO = "SAMPLE_PHOTO", "Sample photo"
    COURIER_RECEIPT = "COURIER_RECEIPT", "Courier receipt"
    CUSTOMER_APPROVAL = "CUSTOMER_APPROVAL", "Customer approval"
    QA_REPORT = "QA_REPORT", "QA report"
    PACKING_MATERIAL_RECEIPT = "PACKING_MATERIAL_RECEIPT", "Packing material receipt"
    LABEL_PHOTO = "LABEL_PHOTO", "Label photo"
    BOOKING_CONFIRMATION = "BOOKING_CONFIRMATION", "Booking confirmation"
    CI = "CI", "Commercial invoice"
    PL = "PL", "Packing list"
    BL_DRAFT = "BL_DRAFT", "Bill of lading draft"
    PAYMENT_RECEIPT = "PAYMENT_RECEIPT", "Payment receipt"
    OTHER = "OTHER", "Other"


D = DocumentType

REQUIRED_DOCUMENTS: Dict[str, Tuple[DocumentType, ...]] = {
    StepKey.PO_CONFIRMED: (D.PO, D.PO_CONFIRM_EMAIL),
    StepKey.ORDER_DOCS_COMPLETE: (D.PRODUCTION_SHEET,),
    StepKey.RM_PURCHASE_SHEET_SUBMIT: (D.PROCUREMENT_SHEET,),
    StepKey.PROCUREMENT_ORDER_PLACED: (D.SUPPLIER_PO,),
    StepKey.MATERIALS_RECEIVED_INSPECTED: (D.IQC_REPORT,),
    StepKey.PPS_READY: (D.SAMPLE_PHOTO,),
    StepKey.PPS_SENT: (D.COURIER_RECEIPT,),
    StepKey.PPS_CUSTOMER_APPROVED: (D.CUSTOMER_APPROVAL,),
    StepKey.FINAL_QC_CHECK: (D.QA_REPORT,),
    StepKey.PACKAGING_MATERIALS_READY: (D.PACKING_MATERIAL_RECEIPT,),
    StepKey.PACKING_LABELING_DONE: (D.LABEL_PHOTO,),
    StepKey.BOOKING_DONE: (D.BOOKING_CONFIRMATION,),
    StepKey.SHIPMENT_DONE: (D.CI, D.PL),
    StepKey.PAYMENT_RECEIVED: (D.PAYMENT_RECEIPT,),
}

OPTIONAL_DOCUMENTS: Dict[str, Tuple[DocumentType, ...]] = {
    StepKey.ORDER_DOCS_COMPLETE: (D.PACKING_SPEC,),
    StepKey.MATERIALS_RECEIVED_INSPECTED: (D.TEST_REPORT,),
    StepKey.SHIPMENT_DONE: (D.BL_DRAFT,),
}


@dataclass(frozen=True)
class EvidenceCheck:
    satisfied: bool
    missing: Tuple[str, ...] = ()
    # True when the step has no document list and the single-flag rule applied
    legacy: bool = False


def required_documents_for(step_key: str) -> Tuple[DocumentType, ...]:
    return REQUIRED_DOCUMENTS.get(step_key, ())


def optional_documents_for(step_key: str) -> Tuple[DocumentType, ...]:
    return OPTIONAL_DOCUMENTS.get(step_key, ())


def check_evidence(
    step_key: str, evidence_required: bool, document_types: Iterable[str]
) -> EvidenceCheck:
    """Compare uploaded ``document_types`` with what ``step_key`` needs."""
    uploaded = {str(t) for t in document_types}
    required = required_documents_for(step_key)
    if required:
        missing = tuple(str(d) for d in required if str(d) not in uploaded)
        return EvidenceCheck(satisfied=not missing, missing=missing)
    if evidence_required and not uploaded:
        return EvidenceCheck(satisfied=False, legacy=True)
    return EvidenceCheck(satisfied=True, legacy=True)
