"""Tests for the procurement detail view's staff actions, run through Streamlit's AppTest."""

import pytest
from streamlit.testing.v1 import AppTest

from procureflow.client import ProxyCallError
from procureflow.models import Quotation, Submission, Vendor


def detail_page():
    import streamlit as st

    import procurement_detail

    procurement_detail.render(st.session_state["api"], "R1")


class FakeDetailApi:
    """Stands in for ProxyClient: canned sheet rows, recorded updates, optional failures."""

    def __init__(self, stage, quotations=(), vendors=(), fail=()):
        self.submission = Submission(requestId="R1", itemName="Laptop", requesterName="Ana",
                                     department="IT", priority="High", stage=stage)
        self.rows = list(quotations)
        self.vendor_rows = list(vendors)
        self.fail = set(fail)
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise ProxyCallError("Sheet is locked", 500)
        return {"success": True}

    def fetch_submissions(self):
        return [self.submission]

    def quotations(self, request_id, recover_misplaced=False):
        return list(self.rows)

    def vendors_sent_quotes(self, request_id):
        return []

    def vendors(self, item_name=""):
        return list(self.vendor_rows)

    def vendor_history(self, vendor_name):
        return []

    def update_vendor_selection(self, request_id, vendor_name, selected):
        return self._record("update_vendor_selection", request_id, vendor_name, selected)

    def update_agreement(self, request_id, vendor_name, accepted):
        return self._record("update_agreement", request_id, vendor_name, accepted)

    def update_vendor_approval(self, request_id, vendor_name, approved):
        return self._record("update_vendor_approval", request_id, vendor_name, approved)

    def update_negotiation(self, request_id, vendor_name, notes, amount):
        return self._record("update_negotiation", request_id, vendor_name, notes, amount)

    def update_stage(self, request_id, stage, **extra):
        return self._record("update_stage", request_id, stage)


def open_detail(api):
    at = AppTest.from_function(detail_page, default_timeout=10)
    at.session_state["api"] = api
    return at.run()


def markers(at):
    return [m.value for m in at.markdown]


def errors(at):
    return [e.value for e in at.error]


@pytest.fixture
def acme():
    return Quotation(request_id="R1", vendor_name="Acme", vendor_email="a@acme.test",
                     unit_price=10, total_price=100, selected=1)


class TestDuplicateVendors:
    def test_sourcing_lists_vendor_once(self):
        api = FakeDetailApi("Sourcing", vendors=[
            Vendor(name="Acme", tier="GOLD"), Vendor(name="Acme", tier="GOLD"), Vendor(name="Globex")])
        at = open_detail(api)
        assert not at.exception
        assert [c.key for c in at.checkbox] == ["qt-R1-Acme", "qt-R1-Globex"]

    def test_review_shows_first_row_per_vendor(self, acme):
        api = FakeDetailApi("Review", quotations=[acme, acme.model_copy(update={"unit_price": 12.0})])
        at = open_detail(api)
        assert not at.exception
        assert [c.key for c in at.checkbox] == ["sel-all-R1", "sel-R1-Acme"]

    def test_review_selection_with_repeated_rows(self, acme):
        unselected = acme.model_copy(update={"selected": 0})
        api = FakeDetailApi("Review", quotations=[unselected, unselected.model_copy()])
        at = open_detail(api)
        at.checkbox(key="sel-R1-Acme").check().run()
        assert not at.exception
        assert api.calls == [("update_vendor_selection", "R1", "Acme", True)]
        assert at.checkbox(key="sel-R1-Acme").value is True


class TestSelection:
    def test_select_saves_and_marks_review_done(self, acme):
        api = FakeDetailApi("Review", quotations=[acme.model_copy(update={"selected": 0})])
        at = open_detail(api)
        assert "🔵 Review" in markers(at)
        at.checkbox(key="sel-R1-Acme").check().run()
        assert not at.exception
        assert api.calls == [("update_vendor_selection", "R1", "Acme", True)]
        assert at.checkbox(key="sel-R1-Acme").value is True
        assert "✅ Review" in markers(at)
        assert errors(at) == []

    def test_failed_select_reverts(self, acme):
        api = FakeDetailApi("Review", quotations=[acme.model_copy(update={"selected": 0})],
                            fail={"update_vendor_selection"})
        at = open_detail(api)
        at.checkbox(key="sel-R1-Acme").check().run()
        assert not at.exception
        assert at.checkbox(key="sel-R1-Acme").value is False
        assert errors(at) == ["Acme: Sheet is locked"]
        assert "🔵 Review" in markers(at)

    def test_failure_message_shown_once(self, acme):
        api = FakeDetailApi("Review", quotations=[acme.model_copy(update={"selected": 0})],
                            fail={"update_vendor_selection"})
        at = open_detail(api)
        at.checkbox(key="sel-R1-Acme").check().run()
        at.run()
        assert errors(at) == []


class TestAgreement:
    def test_accepting_completes_legal_stage(self, acme):
        api = FakeDetailApi("Legal and Compliance", quotations=[acme])
        at = open_detail(api)
        assert "🔵 Legal and Compliance" in markers(at)
        at.checkbox(key="agr-R1-Acme").check().run()
        assert not at.exception
        assert api.calls == [("update_agreement", "R1", "Acme", True)]
        assert at.checkbox(key="agr-R1-Acme").value is True
        assert "✅ Legal and Compliance" in markers(at)
        assert "⚪ Approval" in markers(at)

    def test_withdrawing_reopens_legal_stage(self, acme):
        api = FakeDetailApi("Legal and Compliance", quotations=[acme.model_copy(update={"agreement_accepted": 1})])
        at = open_detail(api)
        assert at.checkbox(key="agr-R1-Acme").value is True
        at.checkbox(key="agr-R1-Acme").uncheck().run()
        assert api.calls == [("update_agreement", "R1", "Acme", False)]
        assert "🔵 Legal and Compliance" in markers(at)

    def test_failed_accept_reverts(self, acme):
        api = FakeDetailApi("Legal and Compliance", quotations=[acme], fail={"update_agreement"})
        at = open_detail(api)
        at.checkbox(key="agr-R1-Acme").check().run()
        assert not at.exception
        assert at.checkbox(key="agr-R1-Acme").value is False
        assert errors(at) == ["Acme: Sheet is locked"]
        assert "🔵 Legal and Compliance" in markers(at)


class TestApproval:
    def test_approving_completes_approval_stage(self, acme):
        api = FakeDetailApi("Approval", quotations=[acme])
        at = open_detail(api)
        at.checkbox(key="apr-R1-Acme").check().run()
        assert not at.exception
        assert api.calls == [("update_vendor_approval", "R1", "Acme", True)]
        assert at.checkbox(key="apr-R1-Acme").value is True
        assert "✅ Approval" in markers(at)

    def test_failed_approval_reverts(self, acme):
        api = FakeDetailApi("Approval", quotations=[acme], fail={"update_vendor_approval"})
        at = open_detail(api)
        at.checkbox(key="apr-R1-Acme").check().run()
        assert not at.exception
        assert at.checkbox(key="apr-R1-Acme").value is False
        assert errors(at) == ["Acme: Sheet is locked"]
        assert "🔵 Approval" in markers(at)


class TestNegotiations:
    def test_negative_amount_shown_as_zero(self, acme):
        api = FakeDetailApi("Negotiations", quotations=[acme.model_copy(update={"negotiated_amount": -50.0})])
        at = open_detail(api)
        assert not at.exception
        assert at.number_input[0].value == 0.0
