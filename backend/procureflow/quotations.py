# quotations.py
# Normalization of quotation rows returned by the script endpoint.
#
# The sheet script emits each column twice: once under a compact key built
# from the header ("unitprice") and once under a hand-written label
# ("Unit Price"). The compact family follows the real column positions and is
# authoritative; the labelled family is only a fallback.

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import Quotation

# logical field -> aliases, most trusted first
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "request_id": ("requestid", "Request ID"),
    "vendor_name": ("vendorname", "Vendor Name"),
    "vendor_email": ("vendoremail", "Vendor Email"),
    "phone_number": ("phonenumber", "Phone Number"),
    "unit_price": ("unitprice", "Unit Price"),
    "total_price": ("totalprice", "Total Price"),
    "delivery_time": ("deliverytime", "Delivery Time"),
    "notes": ("notes", "Notes"),
    "attachment_url": ("attachmenturl", "Attachment URL"),
    "submitted_date": ("submitteddate", "Submitted Date"),
    "negotiation_notes": ("negotiationnotes", "Negotiation Notes"),
    "negotiated_amount": ("negotiatedamount", "Negotiated Amount"),
    "selected": ("selected", "Selected"),
    "agreement_accepted": ("agreementaccepted", "Agreement Accepted"),
    "agreement_sent_date": ("agreementsentdate", "Agreement Sent Date"),
    "agreement_accepted_date": ("agreementaccepteddate", "Agreement Accepted Date"),
    "vendor_approved": ("vendorapproved", "Vendor Approved"),
    "vendor_approved_date": ("vendorapproveddate", "Vendor Approved Date"),
    "po_sent": ("posent", "PO Sent"),
    "po_number": ("ponumber", "PO Number"),
    "po_date": ("podate", "PO Date"),
    "ship_via": ("shipvia", "Ship Via"),
    "fob": ("fob", "F.O.B."),
    "shipping_terms": ("shippingterms", "Shipping Terms"),
}

FLAG_FIELDS = ("selected", "agreement_accepted", "vendor_approved", "po_sent")
AMOUNT_FIELDS = ("unit_price", "total_price", "negotiated_amount")

# heuristic recovery bounds for a misplaced price column
PLAUSIBLE_PRICE_MAX = 10000
_NON_NUMERIC = re.compile(r"[^\d.\-]")
_NON_DIGIT = re.compile(r"\D")
_SHEET_DATE = re.compile(r"^\d{2}/\d{2}/\d{4}")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve(row: Dict[str, Any], field: str) -> Any:
    """First non-blank value among the aliases of ``field``, else None."""
    for key in FIELD_ALIASES[field]:
        value = row.get(key)
        if not is_blank(value):
            return value
    return None


def to_flag(value: Any) -> int:
    """1 when the value numerically equals 1, otherwise 0."""
    if is_blank(value):
        return 0
    if isinstance(value, (bool, int, float)):
        return 1 if value == 1 else 0
    try:
        return 1 if float(str(value).strip()) == 1 else 0
    except ValueError:
        return 0


def to_amount(value: Any) -> float:
    """Parse a price-like cell ("₹1,250.00", 51, "51") to float; 0.0 when unparseable."""
    if is_blank(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def to_text(value: Any) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def _scan_price(row: Dict[str, Any], exclude: Iterable[str]) -> Optional[float]:
    # Known fragility: guesses a price from any numeric-looking cell.
    excluded = {e for e in exclude if e}
    for value in row.values():
        if is_blank(value) or isinstance(value, bool):
            continue
        number = to_amount(value)
        if not 0 < number < PLAUSIBLE_PRICE_MAX:
            continue
        if _number_key(number) in excluded:
            continue
        return number
    return None


def _number_key(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _scan_text(row: Dict[str, Any], match) -> str:
    for value in row.values():
        if not is_blank(value) and match(str(value)):
            return str(value)
    return ""


def normalize_quotation(row: Dict[str, Any], recover_misplaced: bool = False) -> Quotation:
    """
    Map one raw quotation row to a Quotation.

    With ``recover_misplaced`` set, fields that are missing under every alias
    are guessed from the row's other values (prices, attachment URL, submitted
    date). Only the procurement detail view asks for this.
    """
    values: Dict[str, Any] = {}
    for field in FIELD_ALIASES:
        raw = resolve(row, field)
        if field in FLAG_FIELDS:
            values[field] = to_flag(raw)
        elif field in AMOUNT_FIELDS:
            values[field] = to_amount(raw)
        else:
            values[field] = to_text(raw)

    if recover_misplaced:
        phone = _NON_DIGIT.sub("", values["phone_number"])
        if resolve(row, "unit_price") is None:
            values["unit_price"] = _scan_price(row, [phone]) or 0.0
        if resolve(row, "total_price") is None:
            unit = _number_key(values["unit_price"]) if values["unit_price"] else ""
            values["total_price"] = _scan_price(row, [phone, unit]) or 0.0
        if not values["attachment_url"]:
            values["attachment_url"] = _scan_text(
                row, lambda v: "http" in v or "drive.google.com" in v)
        if not values["submitted_date"]:
            values["submitted_date"] = _scan_text(row, lambda v: bool(_SHEET_DATE.match(v)))

    return Quotation(**values)


def normalize_quotations(rows: Optional[List[Dict[str, Any]]],
                         recover_misplaced: bool = False) -> List[Quotation]:
    return [normalize_quotation(row, recover_misplaced) for row in rows or []
            if isinstance(row, dict)]


def vendors_from_quotations(rows: Optional[List[Dict[str, Any]]]) -> List[str]:
    """Unique vendor names, in first-seen order."""
    seen: List[str] = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        name = to_text(resolve(row, "vendor_name"))
        if name and name not in seen:
            seen.append(name)
    return seen


def unique_by_vendor(quotations: Iterable[Quotation]) -> List[Quotation]:
    """First row per vendor name; a vendor that quoted twice shows once."""
    rows: Dict[str, Quotation] = {}
    for q in quotations:
        rows.setdefault(q.vendor_name, q)
    return list(rows.values())


def replace_quotation(quotations: List[Quotation], vendor_name: str, **changes: Any) -> List[Quotation]:
    """Copy of ``quotations`` with ``changes`` applied to the named vendor's row."""
    return [q.model_copy(update=changes) if q.vendor_name == vendor_name else q
            for q in quotations]
