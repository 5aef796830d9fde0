# models.py
# Pydantic models: request bodies for the proxy routes plus the normalized
# shapes of the spreadsheet rows.

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, model_validator

Amount = Union[float, str]


# --- Request bodies ---
# Required fields are checked by the routes so that a missing value is a 400,
# not a schema error.

class IntakeForm(BaseModel):
    model_config = ConfigDict(extra="allow")

    requesterName: Optional[str] = None
    requesterEmail: Optional[str] = None
    department: Optional[str] = None
    costCenter: Optional[str] = None
    itemName: Optional[str] = None
    quantity: Optional[Union[int, float, str]] = None
    estimatedCost: Optional[Union[int, float, str]] = None
    priority: Optional[str] = None
    stage: Optional[str] = None


class QuotationSubmission(BaseModel):
    requestId: Optional[str] = None
    vendorName: Optional[str] = None
    vendorEmail: Optional[str] = None
    unitPrice: Optional[Amount] = None
    totalPrice: Optional[Amount] = None
    deliveryTime: Optional[str] = None
    notes: Optional[str] = None


class QuoteRequestBatch(BaseModel):
    requestId: Optional[str] = None
    vendors: Optional[List[str]] = None


class StageUpdate(BaseModel):
    id: Optional[str] = None
    requestId: Optional[str] = None
    stage: Optional[str] = None
    sourcingType: Optional[str] = None
    vendor: Optional[str] = None
    notes: Optional[str] = None


class VendorApprovalUpdate(BaseModel):
    requestId: Optional[str] = None
    vendorName: Optional[str] = None
    isApproved: Optional[StrictBool] = None


class VendorSelectionUpdate(BaseModel):
    requestId: Optional[str] = None
    vendorName: Optional[str] = None
    isSelected: Optional[StrictBool] = None


class AgreementUpdate(BaseModel):
    requestId: Optional[str] = None
    vendorName: Optional[str] = None
    isAccepted: Optional[StrictBool] = None


class NegotiationUpdate(BaseModel):
    requestId: Optional[str] = None
    vendorName: Optional[str] = None
    negotiationNotes: Optional[str] = None
    negotiatedAmount: Optional[Amount] = None


class PurchaseOrderRequest(BaseModel):
    requestId: Optional[str] = None
    vendorName: Optional[str] = None
    vendorEmail: Optional[str] = None
    poNumber: Optional[str] = None
    poDate: Optional[str] = None
    itemName: Optional[str] = None
    quantity: Optional[Union[int, float, str]] = None
    unitPrice: Optional[Amount] = None
    totalPrice: Optional[Amount] = None
    requesterEmail: Optional[str] = None
    requesterName: Optional[str] = None
    department: Optional[str] = None


# --- Spreadsheet rows ---

class Submission(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    requestId: Optional[str] = None
    customerId: Optional[str] = None
    timestamp: Optional[str] = None
    requesterName: str = ""
    requesterEmail: str = ""
    department: str = ""
    costCenter: str = ""
    item_class: str = Field("", alias="class")
    type: str = ""
    itemName: str = ""
    description: str = ""
    quantity: str = ""
    preferredVendor: str = ""
    estimatedCost: str = ""
    priority: str = ""
    requiredDate: str = ""
    stage: str = ""

    @model_validator(mode="before")
    @classmethod
    def _stringify_cells(cls, data):
        # sheet cells arrive as numbers, dates or blanks
        if not isinstance(data, dict):
            return data
        return {
            key: value if isinstance(value, (dict, list)) else ("" if value is None else str(value))
            for key, value in data.items()
        }

    @property
    def submission_id(self) -> str:
        return self.requestId or self.id or ""


class Vendor(BaseModel):
    name: str
    itemName: str = ""
    tier: Optional[str] = None


class Quotation(BaseModel):
    request_id: str = ""
    vendor_name: str = ""
    vendor_email: str = ""
    phone_number: str = ""
    unit_price: float = 0.0
    total_price: float = 0.0
    delivery_time: str = ""
    notes: str = ""
    attachment_url: str = ""
    submitted_date: str = ""
    negotiation_notes: str = ""
    negotiated_amount: float = 0.0
    selected: int = 0
    agreement_accepted: int = 0
    agreement_sent_date: str = ""
    agreement_accepted_date: str = ""
    vendor_approved: int = 0
    vendor_approved_date: str = ""
    po_sent: int = 0
    po_number: str = ""
    po_date: str = ""
    ship_via: str = ""
    fob: str = ""
    shipping_terms: str = ""

    @property
    def is_selected(self) -> bool:
        return self.selected == 1

    @property
    def has_negotiation(self) -> bool:
        return self.negotiated_amount > 0 and bool(self.negotiation_notes.strip())


class PurchaseOrder(BaseModel):
    po_number: str
    po_date: str
    vendor_name: str
    vendor_email: str = ""
    vendor_phone: str = ""
    ship_via: str
    fob: str
    shipping_terms: str
    requisitioner: str = ""
    ship_to_name: str = ""
    ship_to_department: str = ""
    ship_to_email: str = ""
    item_name: str = ""
    description: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0
    total: float = 0.0


def with_success(**payload: Any) -> Dict[str, Any]:
    return {"success": True, **payload}
