"""Tests for quotation row normalization."""

import pytest

from procureflow.quotations import (
    normalize_quotation,
    normalize_quotations,
    replace_quotation,
    resolve,
    to_amount,
    to_flag,
    unique_by_vendor,
    vendors_from_quotations,
)


class TestToFlag:
    @pytest.mark.parametrize("value", [1, 1.0, "1", " 1 ", "1.0", True])
    def test_one(self, value):
        assert to_flag(value) == 1

    @pytest.mark.parametrize("value", [None, "", "  ", 0, "0", "yes", "true", 2, False, -1])
    def test_zero(self, value):
        assert to_flag(value) == 0


class TestToAmount:
    def test_currency_and_separators(self):
        assert to_amount("₹1,250.50") == 1250.5

    def test_numbers_pass_through(self):
        assert to_amount(51) == 51.0

    def test_unparseable(self):
        assert to_amount("n/a") == 0.0
        assert to_amount(None) == 0.0

    def test_negative(self):
        assert to_amount("-20") == -20.0


class TestResolve:
    def test_compact_key_wins(self):
        assert resolve({"unitprice": 10, "Unit Price": 99}, "unit_price") == 10

    def test_blank_compact_falls_back(self):
        assert resolve({"unitprice": " ", "Unit Price": 99}, "unit_price") == 99

    def test_absent(self):
        assert resolve({"Unit Price": None}, "unit_price") is None


class TestNormalizeQuotation:
    def test_human_keys(self):
        q = normalize_quotation({
            "Request ID": "R1", "Vendor Name": " Acme ", "Unit Price": "100", "Total Price": "200",
            "Selected": 1, "Agreement Accepted": "", "Vendor Approved": "1", "PO Sent": 0,
        })
        assert q.request_id == "R1"
        assert q.vendor_name == "Acme"
        assert (q.unit_price, q.total_price) == (100.0, 200.0)
        assert (q.selected, q.agreement_accepted, q.vendor_approved, q.po_sent) == (1, 0, 1, 0)

    def test_every_flag_is_zero_or_one(self):
        q = normalize_quotation({"selected": "yes", "agreementaccepted": True, "posent": "1.0"})
        for flag in (q.selected, q.agreement_accepted, q.vendor_approved, q.po_sent):
            assert flag in (0, 1)
        assert q.agreement_accepted == 1
        assert q.po_sent == 1
        assert q.selected == 0

    def test_no_recovery_by_default(self):
        q = normalize_quotation({"vendorname": "Acme", "random": "450"})
        assert q.unit_price == 0.0

    def test_recovers_misplaced_values(self):
        q = normalize_quotation({
            "vendorname": "Acme",
            "phonenumber": "9876",
            "col1": "9876",
            "col2": "450",
            "col3": "900",
            "col4": "https://drive.google.com/file/abc",
            "col5": "12/03/2024 10:00",
        }, recover_misplaced=True)
        assert q.unit_price == 450.0
        assert q.total_price == 900.0
        assert q.attachment_url == "https://drive.google.com/file/abc"
        assert q.submitted_date == "12/03/2024 10:00"

    def test_recovery_keeps_present_prices(self):
        q = normalize_quotation({"unitprice": "5", "totalprice": "10", "other": "77"}, recover_misplaced=True)
        assert (q.unit_price, q.total_price) == (5.0, 10.0)

    def test_negotiation_evidence(self):
        q = normalize_quotation({"negotiatedamount": "900", "negotiationnotes": "  "})
        assert not q.has_negotiation
        q = normalize_quotation({"negotiatedamount": "900", "negotiationnotes": "agreed"})
        assert q.has_negotiation


class TestCollections:
    def test_normalize_skips_non_rows(self):
        assert len(normalize_quotations([{"vendorname": "A"}, "junk", None])) == 1
        assert normalize_quotations(None) == []

    def test_vendors_from_quotations(self):
        rows = [{"vendorname": "Acme"}, {"Vendor Name": " Globex"}, {"vendorname": "Acme "}]
        assert vendors_from_quotations(rows) == ["Acme", "Globex"]

    def test_saved_negotiation_survives_refetch(self):
        row = {"vendorname": "Acme", "vendoremail": "a@acme.test", "unitprice": 10, "totalprice": 100,
               "selected": 1, "deliverytime": "5 days"}
        before = normalize_quotation(row)
        saved = replace_quotation([before], "Acme", negotiation_notes="10% off", negotiated_amount=90.0)
        refetched = normalize_quotation({**row, "negotiationnotes": "10% off", "negotiatedamount": "90"})
        assert saved[0] == refetched
        assert saved[0].vendor_email == "a@acme.test"

    def test_unique_by_vendor_keeps_first_row(self):
        quotations = normalize_quotations([
            {"vendorname": "Acme", "unitprice": 10},
            {"vendorname": "Globex"},
            {"vendorname": "Acme", "unitprice": 12},
        ])
        rows = unique_by_vendor(quotations)
        assert [q.vendor_name for q in rows] == ["Acme", "Globex"]
        assert rows[0].unit_price == 10.0

    def test_replace_leaves_other_vendors(self):
        quotations = normalize_quotations([{"vendorname": "Acme"}, {"vendorname": "Globex"}])
        updated = replace_quotation(quotations, "Acme", selected=1)
        assert updated[0].selected == 1
        assert updated[1] is quotations[1]
        assert quotations[0].selected == 0
