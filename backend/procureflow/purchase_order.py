# purchase_order.py
# Purchase orders: the send-PO request body built on the staff side and the
# PO document shown to the requester once a selected vendor has PO Sent = 1.

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from .models import PurchaseOrder, Quotation, Submission
from .quotations import to_amount

DEFAULT_SHIP_VIA = "Standard Ground Shipping"
DEFAULT_FOB = "Origin"
DEFAULT_SHIPPING_TERMS = "Net 30 Days"


def generate_po_number(request_id: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))
    return f"PO-{request_id or 'N/A'}-{millis[-6:]}"


def format_po_date(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%d-%m-%Y")


def order_total(quotation: Quotation) -> float:
    """Negotiated amount when one was agreed, else the quoted total."""
    return quotation.negotiated_amount or quotation.total_price


def purchase_order_request(submission: Submission, quotation: Quotation,
                           now: Optional[datetime] = None) -> Dict[str, Any]:
    """Body for the send-purchase-order route."""
    return {
        "requestId": submission.submission_id,
        "vendorName": quotation.vendor_name,
        "vendorEmail": quotation.vendor_email,
        "poNumber": generate_po_number(submission.submission_id, now),
        "poDate": format_po_date(now),
        "itemName": submission.itemName,
        "quantity": submission.quantity or 1,
        "unitPrice": quotation.unit_price,
        "totalPrice": order_total(quotation),
        "requesterEmail": submission.requesterEmail,
        "requesterName": submission.requesterName,
        "department": submission.department,
    }


def po_sent_quotation(quotations: Iterable[Quotation]) -> Optional[Quotation]:
    return next((q for q in quotations if q.is_selected and q.po_sent == 1), None)


def build_purchase_order(submission: Submission, quotation: Quotation,
                         today: Optional[datetime] = None) -> PurchaseOrder:
    total = order_total(quotation)
    quantity = to_amount(submission.quantity) or 1.0
    return PurchaseOrder(
        po_number=quotation.po_number or f"PO-{submission.submission_id}",
        po_date=quotation.po_date or (today or datetime.now()).strftime("%d/%m/%Y"),
        vendor_name=quotation.vendor_name or "Unknown Vendor",
        vendor_email=quotation.vendor_email,
        vendor_phone=quotation.phone_number,
        ship_via=quotation.ship_via or DEFAULT_SHIP_VIA,
        fob=quotation.fob or DEFAULT_FOB,
        shipping_terms=quotation.shipping_terms or DEFAULT_SHIPPING_TERMS,
        requisitioner=submission.requesterName,
        ship_to_name=submission.requesterName,
        ship_to_department=submission.department,
        ship_to_email=submission.requesterEmail,
        item_name=submission.itemName,
        description=submission.description,
        quantity=quantity,
        unit_price=total / quantity if quantity > 0 else 0.0,
        total=total,
    )
