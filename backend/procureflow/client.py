# client.py
# HTTP client the Streamlit views use to talk to the proxy API.

import logging
from typing import Any, Dict, List, Optional

import requests

from . import storage
from .errors import LOG_PREVIEW_CHARS, preview
from .models import Quotation, Submission, Vendor
from .quotations import normalize_quotations
from .submissions import parse_submissions
from .vendors import normalize_vendors

log = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000"


class ProxyCallError(Exception):
    """A proxy call failed; ``message`` is fit to show to the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProxyClient:
    def __init__(self, base_url: str = DEFAULT_API_URL, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
              body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, params=params, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            log.error("%s %s failed: %s", method, path, e)
            raise ProxyCallError(f"Could not reach the API: {e}")
        try:
            data = r.json()
        except ValueError:
            log.error("Non-JSON answer from %s: %s", path, preview(r.text, LOG_PREVIEW_CHARS))
            raise ProxyCallError(f"Invalid response from API: {preview(r.text)}", r.status_code)
        if not isinstance(data, dict):
            raise ProxyCallError("Invalid response from API", r.status_code)
        if not r.ok or not data.get("success"):
            raise ProxyCallError(data.get("error") or f"Request failed ({r.status_code})", r.status_code)
        return data

    # --- reads ---

    def fetch_submissions(self) -> List[Submission]:
        return parse_submissions(self._call("GET", "/api/fetch-submissions").get("data"))

    def products(self, search: str = "") -> List[str]:
        params = {"search": search} if search else None
        rows = self._call("GET", "/api/products", params=params).get("products") or []
        names = []
        for row in rows:
            if isinstance(row, dict):
                row = row.get("itemName") or row.get("name") or row.get("Item Name")
            if row and str(row).strip() and str(row).strip() not in names:
                names.append(str(row).strip())
        return names

    def vendors(self, item_name: str = "") -> List[Vendor]:
        params = {"itemName": item_name} if item_name else None
        return normalize_vendors(self._call("GET", "/api/vendors", params=params).get("vendors"))

    def quotations(self, request_id: str, recover_misplaced: bool = False) -> List[Quotation]:
        rows = self._call("GET", "/api/quotations", params={"requestId": request_id}).get("quotations")
        return normalize_quotations(rows, recover_misplaced=recover_misplaced)

    def vendor_history(self, vendor_name: str) -> List[Dict[str, Any]]:
        rows = self._call("GET", "/api/vendor-history", params={"vendorName": vendor_name}).get("history")
        return [row for row in rows or [] if isinstance(row, dict)]

    def vendors_sent_quotes(self, request_id: str) -> List[str]:
        return self._call("GET", "/api/vendors-sent-quotes", params={"requestId": request_id}).get("vendors") or []

    # --- writes ---

    def submit_intake(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("POST", "/api/submit-intake", body=payload)

    def submit_quotation(self, request_id: str, vendor_name: str, vendor_email: str,
                         unit_price, total_price, delivery_time: str = "", notes: str = "") -> str:
        data = self._call("POST", "/api/submit-quotation", body={
            "requestId": request_id,
            "vendorName": vendor_name,
            "vendorEmail": vendor_email,
            "unitPrice": unit_price,
            "totalPrice": total_price,
            "deliveryTime": delivery_time,
            "notes": notes,
        })
        return data.get("message") or ""

    def send_quote_requests(self, request_id: str, vendors: List[str]) -> int:
        data = self._call("POST", "/api/send-quote-requests",
                          body={"requestId": request_id, "vendors": list(vendors)})
        return int(data.get("sentCount") or 0)

    def update_stage(self, request_id: str, stage: str, **extra: Any) -> Dict[str, Any]:
        body = {"requestId": request_id, "stage": stage}
        body.update({k: v for k, v in extra.items() if v is not None})
        return self._call("POST", "/api/update-stage", body=body)

    def update_vendor_approval(self, request_id: str, vendor_name: str, approved: bool) -> Dict[str, Any]:
        return self._call("POST", "/api/update-vendor-approval", body={
            "requestId": request_id, "vendorName": vendor_name, "isApproved": bool(approved)})

    def update_vendor_selection(self, request_id: str, vendor_name: str, selected: bool) -> Dict[str, Any]:
        return self._call("POST", "/api/update-vendor-selection", body={
            "requestId": request_id, "vendorName": vendor_name, "isSelected": bool(selected)})

    def update_negotiation(self, request_id: str, vendor_name: str, notes: str, amount) -> Dict[str, Any]:
        return self._call("POST", "/api/update-quotation-negotiation", body={
            "requestId": request_id, "vendorName": vendor_name,
            "negotiationNotes": notes, "negotiatedAmount": amount})

    def update_agreement(self, request_id: str, vendor_name: str, accepted: bool) -> Dict[str, Any]:
        return self._call("POST", "/api/update-agreement-acceptance", body={
            "requestId": request_id, "vendorName": vendor_name, "isAccepted": bool(accepted)})

    def send_purchase_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("POST", "/api/send-purchase-order", body=body)


def quotes_sent_to(client: ProxyClient, request_id: str) -> List[str]:
    """Vendors emailed for ``request_id``: live list when available, else the local cache."""
    try:
        live = client.vendors_sent_quotes(request_id)
    except ProxyCallError as e:
        log.warning("Sent-quotes lookup failed for %s: %s", request_id, e.message)
        live = None
    return storage.resolve_sent_to(request_id, live)


def remember_sent_to(request_id: str, sent_to: List[str], vendors: List[str]) -> List[str]:
    merged = list(sent_to)
    for name in vendors:
        if name not in merged:
            merged.append(name)
    storage.write_sent_to(request_id, merged)
    return merged
