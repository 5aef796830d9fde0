# Procurement desk view of a single request: stage tabs, vendor outreach,
# quotation review and the approval / PO actions.
import streamlit as st

from procureflow import stages
from procureflow import submissions as subs
from procureflow.client import ProxyCallError, quotes_sent_to, remember_sent_to
from procureflow.purchase_order import purchase_order_request
from procureflow.quotations import replace_quotation, unique_by_vendor
from procureflow.selection import AGREED, APPROVED, NEGOTIATION, QUOTE_TARGETS, SelectionBook
from procureflow.stages import Audience, Stage
from procureflow.vendors import group_by_tier, unique_vendors


def _state(api, request_id, refresh=False):
    """Per-request view state kept across reruns."""
    key = f"detail:{request_id}"
    if refresh or key not in st.session_state:
        try:
            quotations = api.quotations(request_id, recover_misplaced=True)
        except ProxyCallError as e:
            st.error(f"Could not load quotations: {e.message}")
            quotations = []
        book = SelectionBook()
        book.restore(quotations)
        st.session_state[key] = {
            "quotations": quotations,
            "sent_to": quotes_sent_to(api, request_id),
            "book": book,
            "tab": None,
            "errors": [],
        }
    return st.session_state[key]


def _apply(state, bucket, vendor_name, desired, call, widget_key=None, **changes):
    """Flip membership now; keep it if ``call`` succeeds, else put it back."""
    book = state["book"]
    change = book.begin(bucket, vendor_name, desired)
    if change.is_noop:
        book.commit(change)
        return True
    try:
        call()
    except ProxyCallError as e:
        book.rollback(change)
        if widget_key:
            st.session_state[widget_key] = change.previous
        state["errors"].append(f"{vendor_name}: {e.message}")
        return False
    book.commit(change)
    if changes:
        state["quotations"] = replace_quotation(state["quotations"], vendor_name, **changes)
    return True


def render(api, request_id):
    try:
        sub = subs.find_submission(api.fetch_submissions(), request_id)
    except ProxyCallError as e:
        st.error(f"Could not load requests: {e.message}")
        return
    if sub is None:
        st.warning(f"No request found with ID {request_id}")
        return
    rid = sub.submission_id

    refresh = st.button("Refresh", key=f"refresh-{rid}")
    state = _state(api, rid, refresh)
    for message in state["errors"]:
        st.error(message)
    state["errors"] = []

    st.subheader(f"{sub.itemName} ({rid})")
    st.caption(f"{sub.requesterName} · {sub.department} · priority {sub.priority or '-'} · stage {sub.stage or '-'}")

    staff_track = stages.track(Audience.STAFF)
    progress = stages.compute_progress(sub.stage, Audience.STAFF, state["quotations"],
                                       state["sent_to"], selected_tab=state["tab"])
    highlighted = next((s.stage for s in progress if s.highlighted), staff_track[0])
    cols = st.columns(len(progress))
    for col, status in zip(cols, progress):
        marker = {"complete": "✅", "current": "🔵", "upcoming": "⚪"}[status.state]
        col.markdown(f"{marker} {status.label}")
    picked = st.radio("Stage", [s.value for s in staff_track], horizontal=True,
                      index=staff_track.index(highlighted), key=f"tab-{rid}")
    state["tab"] = picked

    counts = stages.Evidence.of(state["quotations"], state["sent_to"]).counts()
    st.caption(" · ".join(f"{k.replace('_', ' ')}: {v}" for k, v in counts.items()))

    _advance(api, sub)
    st.divider()

    panel = stages.parse_stage(picked)
    if panel == Stage.INTENT_REPORT:
        st.json(sub.model_dump(by_alias=True))
    elif panel == Stage.SOURCING:
        _sourcing(api, sub, state)
    elif panel == Stage.REVIEW:
        _review(api, rid, state)
    elif panel == Stage.NEGOTIATIONS:
        _negotiations(api, rid, state)
    elif panel == Stage.LEGAL_AND_COMPLIANCE:
        _legal(api, rid, state)
    elif panel == Stage.APPROVAL:
        _approval(api, rid, state)
    elif panel == Stage.PO_CREATION:
        _purchase_orders(api, sub, state)


def _advance(api, sub):
    nxt = stages.next_stage(sub.stage, Audience.STAFF)
    if nxt is None:
        return
    if st.button(f"Move to {nxt.value}", key=f"advance-{sub.submission_id}"):
        try:
            with st.spinner("Updating stage..."):
                api.update_stage(sub.submission_id, stages.to_stored(nxt))
        except ProxyCallError as e:
            st.error(f"Could not update stage: {e.message}")
        else:
            st.rerun()


def _sourcing(api, sub, state):
    rid = sub.submission_id
    book = state["book"]
    try:
        vendors = unique_vendors(api.vendors(sub.itemName))
    except ProxyCallError as e:
        st.error(f"Could not load vendors: {e.message}")
        vendors = []
    names = [v.name for v in vendors]
    check_key = lambda name: f"qt-{rid}-{name}"

    c1, c2 = st.columns(2)
    if c1.button("Select all", key=f"all-{rid}"):
        book.select_all_targets(names)
        for name in names:
            st.session_state[check_key(name)] = True
    if c2.button("Deselect all", key=f"none-{rid}"):
        book.clear_targets()
        for name in names:
            st.session_state[check_key(name)] = False

    for tier, members in group_by_tier(vendors).items():
        if not members:
            continue
        st.markdown(f"**{tier}**")
        for vendor in members:
            label = vendor.name + ("  (quote sent)" if vendor.name in state["sent_to"] else "")
            st.session_state.setdefault(check_key(vendor.name), book.has(QUOTE_TARGETS, vendor.name))
            st.checkbox(label, key=check_key(vendor.name))
    book.quote_targets = {n for n in names if st.session_state.get(check_key(n))}

    targets = sorted(book.quote_targets)
    if st.button(f"Send quote requests ({len(targets)})", disabled=not targets, key=f"send-{rid}"):
        try:
            with st.spinner("Sending quote requests..."):
                sent = api.send_quote_requests(rid, targets)
        except ProxyCallError as e:
            st.error(f"Could not send quote requests: {e.message}")
        else:
            state["sent_to"] = remember_sent_to(rid, state["sent_to"], targets)
            st.success(f"Quote requests sent to {sent} vendor(s)")


def _toggle_selection(api, rid, state, vendor_name, widget_key):
    desired = bool(st.session_state.get(widget_key))
    _apply(state, NEGOTIATION, vendor_name, desired,
           lambda: api.update_vendor_selection(rid, vendor_name, desired),
           widget_key=widget_key, selected=1 if desired else 0)


def _toggle_all(api, rid, state, widget_key):
    desired = bool(st.session_state.get(widget_key))
    for q in unique_by_vendor(state["quotations"]):
        if state["book"].has(NEGOTIATION, q.vendor_name) == desired:
            continue
        _apply(state, NEGOTIATION, q.vendor_name, desired,
               lambda name=q.vendor_name: api.update_vendor_selection(rid, name, desired),
               widget_key=f"sel-{rid}-{q.vendor_name}", selected=1 if desired else 0)


def _review(api, rid, state):
    quotations = unique_by_vendor(state["quotations"])
    if not quotations:
        st.write("No quotations received yet.")
        return
    book = state["book"]
    all_key = f"sel-all-{rid}"
    st.session_state[all_key] = book.all_quotations_selected(quotations)
    st.checkbox("Select all quotations", key=all_key, on_change=_toggle_all, args=(api, rid, state, all_key))
    for q in quotations:
        key = f"sel-{rid}-{q.vendor_name}"
        with st.container(border=True):
            c1, c2 = st.columns([3, 1])
            c1.markdown(f"**{q.vendor_name}** · {q.vendor_email} · {q.phone_number}")
            c1.write(f"Unit {q.unit_price:,.2f} · Total {q.total_price:,.2f} · Delivery {q.delivery_time or '-'}")
            if q.notes:
                c1.caption(q.notes)
            if q.attachment_url:
                c1.markdown(f"[Attachment]({q.attachment_url})")
            if q.submitted_date:
                c1.caption(f"Submitted {q.submitted_date}")
            st.session_state[key] = book.has(NEGOTIATION, q.vendor_name)
            c2.checkbox("Selected", key=key, on_change=_toggle_selection,
                        args=(api, rid, state, q.vendor_name, key))
            if c2.button("Vendor history", key=f"hist-{rid}-{q.vendor_name}"):
                try:
                    history = api.vendor_history(q.vendor_name)
                except ProxyCallError as e:
                    st.error(f"Could not load history: {e.message}")
                else:
                    if history:
                        st.dataframe(history)
                    else:
                        st.write("No previous orders.")


def _selected(state):
    return [q for q in unique_by_vendor(state["quotations"]) if q.is_selected]


def _negotiations(api, rid, state):
    selected = _selected(state)
    if not selected:
        st.write("Select quotations in Review first.")
        return
    for q in selected:
        with st.form(f"neg-{rid}-{q.vendor_name}"):
            st.markdown(f"**{q.vendor_name}** (quoted {q.total_price:,.2f})")
            notes = st.text_area("Negotiation notes", value=q.negotiation_notes)
            amount = st.number_input("Negotiated amount", min_value=0.0, value=max(0.0, q.negotiated_amount))
            if st.form_submit_button("Save"):
                try:
                    api.update_negotiation(rid, q.vendor_name, notes, amount)
                except ProxyCallError as e:
                    st.error(f"Could not save negotiation: {e.message}")
                else:
                    state["quotations"] = replace_quotation(
                        state["quotations"], q.vendor_name,
                        negotiation_notes=notes, negotiated_amount=amount)
                    st.success("Negotiation saved")


def _toggle_agreement(api, rid, state, vendor_name, widget_key):
    accepted = bool(st.session_state.get(widget_key))
    _apply(state, AGREED, vendor_name, accepted,
           lambda: api.update_agreement(rid, vendor_name, accepted),
           widget_key=widget_key, agreement_accepted=1 if accepted else 0)


def _legal(api, rid, state):
    selected = _selected(state)
    if not selected:
        st.write("Select quotations in Review first.")
        return
    for q in selected:
        key = f"agr-{rid}-{q.vendor_name}"
        st.session_state[key] = state["book"].has(AGREED, q.vendor_name)
        st.checkbox(f"{q.vendor_name}: agreement accepted", key=key, on_change=_toggle_agreement,
                    args=(api, rid, state, q.vendor_name, key))
        if q.agreement_accepted_date:
            st.caption(f"Accepted {q.agreement_accepted_date}")


def _toggle_approval(api, rid, state, vendor_name, widget_key):
    approved = bool(st.session_state.get(widget_key))
    _apply(state, APPROVED, vendor_name, approved,
           lambda: api.update_vendor_approval(rid, vendor_name, approved),
           widget_key=widget_key, vendor_approved=1 if approved else 0)


def _approval(api, rid, state):
    selected = _selected(state)
    if not selected:
        st.write("Select quotations in Review first.")
        return
    for q in selected:
        key = f"apr-{rid}-{q.vendor_name}"
        st.session_state[key] = state["book"].has(APPROVED, q.vendor_name)
        st.checkbox(f"{q.vendor_name}: approved", key=key, on_change=_toggle_approval,
                    args=(api, rid, state, q.vendor_name, key))


def _purchase_orders(api, sub, state):
    rid = sub.submission_id
    approved = [q for q in _selected(state) if q.vendor_approved == 1]
    if not approved:
        st.write("Approve a selected vendor first.")
        return
    for q in approved:
        if q.po_sent == 1:
            st.success(f"PO {q.po_number or '-'} sent to {q.vendor_name} on {q.po_date or '-'}")
            continue
        if st.button(f"Send PO to {q.vendor_name}", key=f"po-{rid}-{q.vendor_name}"):
            body = purchase_order_request(sub, q)
            try:
                with st.spinner("Sending purchase order..."):
                    api.send_purchase_order(body)
            except ProxyCallError as e:
                st.error(f"Could not send purchase order: {e.message}")
            else:
                state["quotations"] = replace_quotation(
                    state["quotations"], q.vendor_name,
                    po_sent=1, po_number=body["poNumber"], po_date=body["poDate"])
                st.success(f"PO {body['poNumber']} sent to {q.vendor_name}")
