# Streamlit UI that talks to the procurement proxy API
import os
from datetime import date

import streamlit as st
from dotenv import load_dotenv

from procureflow import stages
from procureflow import submissions as subs
from procureflow.client import ProxyCallError, ProxyClient, quotes_sent_to
from procureflow.logging_config import setup_logging
from procureflow.purchase_order import build_purchase_order, po_sent_quotation
from procureflow.vendors import filter_products, unique_vendor_names

import procurement_detail

load_dotenv()
setup_logging()

API = os.getenv("API_URL", "http://localhost:5000")
api = ProxyClient(API)

st.set_page_config(page_title="Procurement Requests", layout="wide")
st.title("Procurement Requests")

tabs = st.tabs(["New Request", "Track Request", "Procurement Dashboard", "Request Detail"])


def _load_submissions():
    try:
        return api.fetch_submissions()
    except ProxyCallError as e:
        st.error(f"Could not load requests: {e.message}")
        return []


# New request
with tabs[0]:
    st.header("New procurement request")
    typed = st.text_input("Item name", key="intake_item")
    suggestions = []
    if typed.strip():
        try:
            suggestions = filter_products(api.products(typed.strip()), typed)
        except ProxyCallError as e:
            st.warning(f"Product lookup unavailable: {e.message}")
    item_name = typed.strip()
    if suggestions:
        picked = st.selectbox("Matching products", ["(use typed name)"] + suggestions)
        if picked != "(use typed name)":
            item_name = picked

    vendor_names = []
    if item_name:
        try:
            vendor_names = unique_vendor_names([v.model_dump() for v in api.vendors(item_name)])
        except ProxyCallError as e:
            st.warning(f"Vendor lookup unavailable: {e.message}")

    with st.form("intake"):
        c1, c2 = st.columns(2)
        requester_name = c1.text_input("Your name")
        requester_email = c2.text_input("Your email")
        department = c1.text_input("Department")
        cost_center = c2.selectbox("Cost center", list(subs.COST_CENTERS) + [subs.CUSTOM_COST_CENTER])
        custom_cost_center = c2.text_input("Custom cost center (when 'other' is chosen)")
        item_class = c1.selectbox("Class", list(subs.CLASSES), format_func=subs.CLASSES.get)
        item_type = c2.selectbox("Type", list(subs.TYPES), format_func=subs.TYPES.get)
        description = st.text_area("Description")
        quantity = c1.number_input("Quantity", min_value=1, value=1, step=1)
        estimated_cost = c2.number_input("Estimated cost", min_value=0.0, value=0.0)
        preferred_vendor = c1.selectbox("Preferred vendor", [""] + vendor_names)
        priority = c2.selectbox("Priority", subs.PRIORITIES, index=2)
        required_date = st.date_input("Required by", value=date.today())
        submitted = st.form_submit_button("Submit request")

    if submitted:
        if not (requester_name.strip() and requester_email.strip() and item_name):
            st.error("Name, email and item name are required")
        else:
            payload = subs.intake_payload({
                "requesterName": requester_name.strip(),
                "requesterEmail": requester_email.strip(),
                "department": department.strip(),
                "costCenter": cost_center,
                "class": item_class,
                "type": item_type,
                "itemName": item_name,
                "description": description.strip(),
                "quantity": str(int(quantity)),
                "preferredVendor": preferred_vendor,
                "estimatedCost": str(estimated_cost),
                "priority": priority,
                "requiredDate": required_date.isoformat(),
            }, custom_cost_center)
            try:
                with st.spinner("Submitting..."):
                    result = api.submit_intake(payload)
            except ProxyCallError as e:
                st.error(e.message)
            else:
                st.success(f"Request submitted. Your request ID is {result['requestId']}")
                st.session_state["track_id"] = result["requestId"]
                st.info("Open the Track Request tab to follow its progress.")

# Track request
with tabs[1]:
    st.header("Track a request")
    request_id = st.text_input("Request ID", key="track_id").strip()
    if request_id:
        sub = subs.find_submission(_load_submissions(), request_id)
        if sub is None:
            st.warning(f"No request found with ID {request_id}")
        else:
            try:
                quotations = api.quotations(sub.submission_id)
            except ProxyCallError as e:
                st.warning(f"Quotations unavailable: {e.message}")
                quotations = []
            sent_to = quotes_sent_to(api, sub.submission_id)

            st.subheader(f"{sub.itemName} ({sub.submission_id})")
            if stages.is_rejected(sub.stage):
                st.error(stages.stage_message(sub.stage))
            else:
                st.info(stages.stage_message(sub.stage))

            progress = stages.compute_progress(sub.stage, stages.Audience.REQUESTER, quotations, sent_to)
            done = stages.completed_stages(progress)
            st.caption(f"{len(done)} of {len(progress)} stages complete")
            for status in progress:
                marker = {"complete": "✅", "current": "🔵", "upcoming": "⚪"}[status.state]
                label = f"**{status.label}**" if status.current else status.label
                st.markdown(f"{marker} {label}")

            with st.expander("Request details"):
                st.json(sub.model_dump(by_alias=True))

            po_quote = po_sent_quotation(quotations)
            if po_quote is not None:
                po = build_purchase_order(sub, po_quote)
                st.subheader(f"Purchase Order {po.po_number}")
                c1, c2, c3 = st.columns(3)
                c1.markdown(f"**Vendor**  \n{po.vendor_name}  \n{po.vendor_email}  \n{po.vendor_phone}")
                c2.markdown(f"**Ship to**  \n{po.ship_to_name}  \n{po.ship_to_department}  \n{po.ship_to_email}")
                c3.markdown(f"**Date** {po.po_date}  \n**Ship via** {po.ship_via}  \n"
                            f"**F.O.B.** {po.fob}  \n**Terms** {po.shipping_terms}")
                st.table([{
                    "Item": po.item_name,
                    "Description": po.description,
                    "Qty": po.quantity,
                    "Unit price": f"{po.unit_price:,.2f}",
                    "Total": f"{po.total:,.2f}",
                }])

# Procurement dashboard
with tabs[2]:
    st.header("Procurement dashboard")
    labels = ["All"] + [s.value for s in stages.track(stages.Audience.STAFF)]
    chosen = st.selectbox("Stage", labels)
    order = st.radio("Order", ["Newest first", "Priority"], horizontal=True)
    queue = subs.procurement_queue(_load_submissions(), None if chosen == "All" else chosen)
    if order == "Priority":
        # stable sort keeps newest first within a priority
        queue = sorted(queue, key=lambda s: subs.priority_rank(s.priority))
    if not queue:
        st.write("No requests in flight.")
    else:
        st.dataframe([{
            "Request ID": s.submission_id,
            "Item": s.itemName,
            "Requester": s.requesterName,
            "Department": s.department,
            "Priority": s.priority,
            "Stage": s.stage,
            "Submitted": s.timestamp,
        } for s in queue], use_container_width=True)
        open_id = st.selectbox("Open request", [s.submission_id for s in queue])
        if st.button("Open in detail view"):
            st.session_state["detail_id"] = open_id
            st.info("Switch to the Request Detail tab.")

# Request detail
with tabs[3]:
    st.header("Request detail")
    detail_id = st.text_input("Request ID", key="detail_id").strip()
    if detail_id:
        procurement_detail.render(api, detail_id)
