"""Tests for submission lookup, the procurement queue, the sent-quotes cache and purchase orders."""

import json
from datetime import datetime, timezone

from procureflow import storage
from procureflow.models import Quotation, Submission
from procureflow.purchase_order import (
    build_purchase_order,
    format_po_date,
    generate_po_number,
    po_sent_quotation,
    purchase_order_request,
)
from procureflow.submissions import (
    find_submission,
    intake_payload,
    parse_submissions,
    priority_rank,
    procurement_queue,
)


def sub(request_id, stage, timestamp="", **extra):
    return Submission.model_validate({"requestId": request_id, "stage": stage, "timestamp": timestamp, **extra})


class TestSubmissions:
    def test_cells_become_strings(self):
        s = Submission.model_validate({"id": 7, "quantity": 2, "class": "purchase", "estimatedCost": None})
        assert s.submission_id == "7"
        assert s.quantity == "2"
        assert s.item_class == "purchase"
        assert s.estimatedCost == ""

    def test_unknown_columns_kept(self):
        s = Submission.model_validate({"requestId": "R1", "approverEmail": "boss@corp.test"})
        assert s.model_dump()["approverEmail"] == "boss@corp.test"

    def test_parse_wrapped_and_bare(self):
        assert len(parse_submissions([{"requestId": "R1"}, "junk"])) == 1
        assert len(parse_submissions({"data": [{"requestId": "R1"}]})) == 1
        assert parse_submissions(None) == []

    def test_find_by_request_id_or_id(self):
        subs = parse_submissions([{"requestId": "R1"}, {"id": "R2"}])
        assert find_submission(subs, " R2 ").submission_id == "R2"
        assert find_submission(subs, "R1").submission_id == "R1"
        assert find_submission(subs, "") is None
        assert find_submission(subs, "R3") is None


class TestQueue:
    def test_in_flight_newest_first(self):
        subs = [
            sub("old", "Sourcing", "2024-01-01T10:00:00Z"),
            sub("new", "Review", "2024-03-01T10:00:00Z"),
            sub("intake", "Intake", "2024-04-01T10:00:00Z"),
            sub("done", "Completion", "2024-05-01T10:00:00Z"),
            sub("rejected", "Internal Rejected", "2024-05-01T10:00:00Z"),
            sub("approved", "Internal Approval", "2024-02-01T10:00:00"),
            sub("nodate", "Approval"),
        ]
        queue = [s.submission_id for s in procurement_queue(subs)]
        assert queue == ["new", "approved", "old", "nodate"]

    def test_stage_filter(self):
        subs = [sub("a", "Internal Approval"), sub("b", "Sourcing"), sub("c", "Purchase Order")]
        assert [s.submission_id for s in procurement_queue(subs, "Intent Report")] == ["a"]
        assert [s.submission_id for s in procurement_queue(subs, "PO Creation")] == ["c"]

    def test_priority_rank(self):
        assert priority_rank("Urgent") < priority_rank("low") < priority_rank("")


class TestIntakePayload:
    def test_stage_forced(self):
        assert intake_payload({"itemName": "Laptop", "stage": "Approval"})["stage"] == "Intake"

    def test_custom_cost_center(self):
        payload = intake_payload({"costCenter": "other"}, " LAB-7 ")
        assert payload["costCenter"] == "LAB-7"
        assert intake_payload({"costCenter": "ENG-101"}, "LAB-7")["costCenter"] == "ENG-101"


class TestSentToCache:
    def test_live_list_wins_and_is_cached(self, data_dir):
        assert storage.resolve_sent_to("R1", ["Acme"]) == ["Acme"]
        cached = json.loads((data_dir / storage.CACHE_FILE).read_text())
        assert cached == {"R1": ["Acme"]}

    def test_cache_used_when_live_missing(self):
        storage.write_sent_to("R1", ["Acme", "Globex"])
        assert storage.resolve_sent_to("R1", None) == ["Acme", "Globex"]
        assert storage.resolve_sent_to("R1", []) == ["Acme", "Globex"]
        assert storage.resolve_sent_to("R2", None) == []

    def test_corrupt_cache_is_ignored(self, data_dir):
        (data_dir / storage.CACHE_FILE).write_text("{not json")
        assert storage.read_sent_to("R1") == []


class TestPurchaseOrder:
    def test_po_number(self):
        now = datetime.fromtimestamp(1700000123, tz=timezone.utc)
        assert generate_po_number("R1", now) == "PO-R1-123000"
        assert generate_po_number("", now).startswith("PO-N/A-")

    def test_po_date(self):
        assert format_po_date(datetime(2024, 3, 5)) == "05-03-2024"

    def test_request_uses_negotiated_total(self):
        s = sub("R1", "Approval", itemName="Laptop", quantity="2", requesterName="Ana",
                requesterEmail="ana@corp.test", department="IT")
        q = Quotation(vendor_name="Acme", vendor_email="a@acme.test", unit_price=500, total_price=1000,
                      negotiated_amount=900)
        body = purchase_order_request(s, q, datetime(2024, 3, 5))
        assert body["totalPrice"] == 900
        assert body["poDate"] == "05-03-2024"
        assert body["poNumber"].startswith("PO-R1-")
        assert body["vendorEmail"] == "a@acme.test"
        assert body["quantity"] == "2"

    def test_po_sent_quotation_needs_selection(self):
        quotations = [Quotation(vendor_name="A", po_sent=1), Quotation(vendor_name="B", selected=1, po_sent=1)]
        assert po_sent_quotation(quotations).vendor_name == "B"
        assert po_sent_quotation(quotations[:1]) is None

    def test_document_defaults(self):
        s = sub("R1", "Purchase Order", itemName="Laptop", quantity="4", requesterName="Ana")
        q = Quotation(vendor_name="Acme", selected=1, po_sent=1, total_price=1000)
        po = build_purchase_order(s, q, datetime(2024, 3, 5))
        assert po.po_number == "PO-R1"
        assert po.po_date == "05/03/2024"
        assert (po.ship_via, po.fob, po.shipping_terms) == ("Standard Ground Shipping", "Origin", "Net 30 Days")
        assert po.unit_price == 250.0
        assert po.total == 1000.0
        assert po.ship_to_name == "Ana"

    def test_document_keeps_sheet_values(self):
        s = sub("R1", "Purchase Order", quantity="")
        q = Quotation(vendor_name="Acme", po_number="PO-R1-999999", po_date="01-02-2024",
                      ship_via="Air", total_price=80, negotiated_amount=60)
        po = build_purchase_order(s, q)
        assert po.po_number == "PO-R1-999999"
        assert po.ship_via == "Air"
        assert po.quantity == 1.0
        assert po.total == 60.0
