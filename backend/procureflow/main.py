# main.py
# Proxy API in front of the spreadsheet script endpoint. Each route checks
# its inputs, forwards one call upstream and normalizes the JSON envelope.

import logging
from typing import Any, Dict, Optional

import requests
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models
from .config import Settings, get_settings
from .errors import MissingFieldsError, ProxyError, UpstreamError, UpstreamProtocolError
from .logging_config import setup_logging
from .models import with_success
from .quotations import vendors_from_quotations
from .sheets import ScriptClient
from .submissions import INTAKE_STAGE

setup_logging()
log = logging.getLogger(__name__)

app = FastAPI(title="Procurement Intake Proxy API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # for local dev only
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- error envelope ---

def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(ProxyError)
def handle_proxy_error(request: Request, exc: ProxyError):
    return _failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
def handle_bad_body(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())[1:]) or "body" for err in exc.errors())
    return _failure(400, f"Invalid request: {fields}")


@app.exception_handler(requests.RequestException)
def handle_network_error(request: Request, exc: requests.RequestException):
    log.error("Upstream call failed: %s", exc)
    return _failure(500, f"Internal server error: {exc}")


@app.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    log.exception("Unhandled error on %s", request.url.path)
    return _failure(500, f"Internal server error: {exc}")


# --- dependencies ---

_session = requests.Session()


def get_session() -> requests.Session:
    return _session


def get_client(settings: Settings = Depends(get_settings),
               session: requests.Session = Depends(get_session)) -> ScriptClient:
    return ScriptClient(session, timeout=settings.timeout)


def script_url(settings: Settings = Depends(get_settings)) -> str:
    return settings.require_script_url()


def read_url(settings: Settings = Depends(get_settings)) -> str:
    return settings.require_read_url()


def update_url(settings: Settings = Depends(get_settings)) -> str:
    return settings.require_update_url()


def require(message: str, **values: Any) -> None:
    missing = [k for k, v in values.items() if v is None or (isinstance(v, str) and not v.strip())]
    if missing:
        log.warning("Rejected request, missing %s", ", ".join(missing))
        raise MissingFieldsError(message)


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


@app.get("/health")
def health():
    return {"status": "ok"}


# --- reads ---

@app.get("/api/fetch-submissions")
def fetch_submissions(url: str = Depends(read_url), client: ScriptClient = Depends(get_client)):
    result = client.get(url, require_success=False, failure="Failed to fetch submissions")
    data = result.get("data", result) if isinstance(result, dict) else result
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        data = data["data"]
    if not isinstance(data, list):
        if not (isinstance(result, dict) and result.get("success")):
            raise UpstreamError(_upstream_error(result, "Google Script returned an error"))
        data = []
    return with_success(data=data)


@app.get("/api/products")
def fetch_products(search: str = "", url: str = Depends(script_url),
                   client: ScriptClient = Depends(get_client)):
    params = {"action": "products"}
    if search:
        params["search"] = search
    result = client.get(url, params, require_success=False, failure="Failed to fetch products")
    return with_success(products=_list_field(result, "products"))


@app.get("/api/vendors")
def fetch_vendors(item_name: str = Query("", alias="itemName"), url: str = Depends(read_url),
                  client: ScriptClient = Depends(get_client)):
    params = {"action": "vendors"}
    if item_name:
        params["itemName"] = item_name
    result = client.get(url, params)
    return with_success(vendors=_list_field(result, "vendors"))


@app.get("/api/quotations")
def fetch_quotations(request_id: Optional[str] = Query(None, alias="requestId"),
                     url: str = Depends(script_url), client: ScriptClient = Depends(get_client)):
    require("Request ID is required", requestId=request_id)
    result = client.get(url, {"action": "quotations", "requestId": request_id},
                        failure="Failed to fetch quotations")
    return with_success(quotations=_list_field(result, "quotations"))


@app.get("/api/vendor-history")
def fetch_vendor_history(vendor_name: Optional[str] = Query(None, alias="vendorName"),
                         url: str = Depends(script_url), client: ScriptClient = Depends(get_client)):
    require("Vendor Name is required", vendorName=vendor_name)
    result = client.get(url, {"action": "vendorHistory", "vendorName": vendor_name},
                        failure="Failed to fetch vendor history")
    return with_success(history=_list_field(result, "history"))


@app.get("/api/vendors-sent-quotes")
def fetch_vendors_sent_quotes(request_id: Optional[str] = Query(None, alias="requestId"),
                              url: str = Depends(script_url),
                              client: ScriptClient = Depends(get_client)):
    # every vendor emailed for a request has a row in the quotation sheet,
    # whether or not it has quoted yet
    require("Request ID is required", requestId=request_id)
    result = client.get(url, {"action": "quotations", "requestId": request_id},
                        failure="Failed to fetch quotations")
    vendors = vendors_from_quotations(_list_field(result, "quotations"))
    return with_success(vendors=vendors, count=len(vendors))


# --- writes ---

@app.post("/api/submit-intake")
def submit_intake(form: models.IntakeForm, url: str = Depends(script_url),
                  client: ScriptClient = Depends(get_client)):
    require("Item name is required", itemName=form.itemName)
    payload = form.model_dump(exclude_none=True)
    if payload.get("stage") not in (None, INTAKE_STAGE):
        log.info("Ignoring client stage %r on intake", payload["stage"])
    payload["stage"] = INTAKE_STAGE
    log.info("Submitting intake for item %s", form.itemName)
    result = client.post(url, payload, failure="Failed to submit form")
    data = result if isinstance(result, dict) else {"result": result}
    nested = data.get("data") if isinstance(data.get("data"), dict) else {}
    request_id = data.get("requestId") or nested.get("requestId")
    if not request_id:
        raise UpstreamProtocolError("Google Script did not return a request ID")
    return with_success(data=data, requestId=request_id,
                        customerId=data.get("customerId") or nested.get("customerId"))


@app.post("/api/submit-quotation")
def submit_quotation(body: models.QuotationSubmission, url: str = Depends(script_url),
                     client: ScriptClient = Depends(get_client)):
    require("Request ID, vendor name, vendor email, unit price, and total price are required",
            requestId=body.requestId, vendorName=body.vendorName, vendorEmail=body.vendorEmail,
            unitPrice=body.unitPrice, totalPrice=body.totalPrice)
    result = client.post(url, {
        "action": "submitQuotation",
        "requestId": body.requestId,
        "vendorName": body.vendorName,
        "vendorEmail": body.vendorEmail,
        "unitPrice": body.unitPrice,
        "totalPrice": body.totalPrice,
        "deliveryTime": body.deliveryTime or "",
        "notes": body.notes or "",
    }, require_success=True, failure="Failed to submit quotation")
    return with_success(message=result.get("message") or "Quotation submitted successfully")


@app.post("/api/send-quote-requests")
def send_quote_requests(body: models.QuoteRequestBatch, url: str = Depends(script_url),
                        client: ScriptClient = Depends(get_client)):
    vendors = [v for v in body.vendors or [] if v and v.strip()]
    require("Request ID and vendors array are required",
            requestId=body.requestId, vendors=vendors or None)
    log.info("Sending quote requests for %s to %d vendor(s)", body.requestId, len(vendors))
    result = client.post(url, {
        "action": "sendQuoteRequests",
        "requestId": body.requestId,
        "vendors": vendors,
    }, require_success=True, failure="Failed to send quotation requests")
    return with_success(sentCount=result.get("sentCount") or len(vendors),
                        message=result.get("message"))


@app.post("/api/update-stage")
def update_stage(body: models.StageUpdate, url: str = Depends(update_url),
                 client: ScriptClient = Depends(get_client)):
    target = body.requestId or body.id
    require("Request ID and stage are required", requestId=target, stage=body.stage)
    log.info("Updating stage of %s to %s", target, body.stage)
    result = client.post(url, _compact({
        "id": target,
        "requestId": target,
        "stage": body.stage,
        "sourcingType": body.sourcingType,
        "vendor": body.vendor,
        "notes": body.notes,
    }), failure="Failed to update stage")
    return with_success(data=result)


@app.post("/api/update-vendor-approval")
def update_vendor_approval(body: models.VendorApprovalUpdate, url: str = Depends(update_url),
                           client: ScriptClient = Depends(get_client)):
    require("Request ID, Vendor Name, and isApproved (boolean) are required",
            requestId=body.requestId, vendorName=body.vendorName, isApproved=body.isApproved)
    result = client.post(url, {
        "action": "updateVendorApproval",
        "requestId": body.requestId,
        "vendorName": body.vendorName,
        "isApproved": body.isApproved,
    }, failure="Failed to update vendor approval")
    return with_success(data=result)


@app.post("/api/update-vendor-selection")
def update_vendor_selection(body: models.VendorSelectionUpdate, url: str = Depends(update_url),
                            client: ScriptClient = Depends(get_client)):
    require("Request ID, Vendor Name, and isSelected (boolean) are required",
            requestId=body.requestId, vendorName=body.vendorName, isSelected=body.isSelected)
    result = client.post(url, {
        "action": "updateVendorSelection",
        "requestId": body.requestId,
        "vendorName": body.vendorName,
        "isSelected": body.isSelected,
    }, failure="Failed to save vendor selection")
    return with_success(data=result)


@app.post("/api/update-quotation-negotiation")
def update_quotation_negotiation(body: models.NegotiationUpdate, url: str = Depends(update_url),
                                 client: ScriptClient = Depends(get_client)):
    require("Request ID and Vendor Name are required",
            requestId=body.requestId, vendorName=body.vendorName)
    amount = body.negotiatedAmount if body.negotiatedAmount is not None else ""
    result = client.post(url, {
        "action": "updateQuotationNegotiation",
        "requestId": body.requestId,
        "vendorName": body.vendorName,
        "negotiationNotes": body.negotiationNotes or "",
        "negotiatedAmount": amount,
    }, failure="Failed to save negotiation data")
    return with_success(data=result)


@app.post("/api/update-agreement-acceptance")
def update_agreement_acceptance(body: models.AgreementUpdate, url: str = Depends(update_url),
                                client: ScriptClient = Depends(get_client)):
    require("Request ID, Vendor Name, and isAccepted (boolean) are required",
            requestId=body.requestId, vendorName=body.vendorName, isAccepted=body.isAccepted)
    result = client.post(url, {
        "action": "updateAgreementAcceptance",
        "requestId": body.requestId,
        "vendorName": body.vendorName,
        "isAccepted": body.isAccepted,
    }, failure="Failed to update agreement acceptance")
    return with_success(data=result)


@app.post("/api/send-purchase-order")
def send_purchase_order(body: models.PurchaseOrderRequest, url: str = Depends(update_url),
                        client: ScriptClient = Depends(get_client)):
    require("Request ID, Vendor Name, and Vendor Email are required",
            requestId=body.requestId, vendorName=body.vendorName, vendorEmail=body.vendorEmail)
    log.info("Sending purchase order %s to %s", body.poNumber, body.vendorName)
    result = client.post(url, {
        "action": "sendPurchaseOrder",
        "requestId": body.requestId,
        "vendorName": body.vendorName,
        "vendorEmail": body.vendorEmail,
        "poNumber": body.poNumber,
        "poDate": body.poDate,
        "itemName": body.itemName or "",
        "quantity": body.quantity or 1,
        "unitPrice": body.unitPrice or 0,
        "totalPrice": body.totalPrice or 0,
        "requesterEmail": body.requesterEmail or "",
        "requesterName": body.requesterName or "",
        "department": body.department or "",
    }, failure="Failed to send Purchase Order")
    return with_success(data=result)


def _list_field(result: Any, key: str) -> list:
    if not isinstance(result, dict):
        raise UpstreamProtocolError(f"Invalid response from Google Script: expected an object with '{key}'")
    value = result.get(key)
    return value if isinstance(value, list) else []


def _upstream_error(result: Any, default: str) -> str:
    if isinstance(result, dict) and result.get("error"):
        return str(result["error"])
    return default
