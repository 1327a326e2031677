"""
Streamlit Frontend for RateEase

This is the interface assembly revenue staff use daily to keep the
property rate and business permit registers, print bills and take
payments.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every page checks the user's role before rendering
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

Bills are only recorded when the user presses "Print"; payments are only
applied from a successful gateway callback.
"""

import asyncio
import base64
from datetime import datetime

import streamlit as st

from rateease.auth import AuthenticationError
from rateease.config import get_settings, validate_all_settings
from rateease.core import (
    PropertyCharges,
    BopCharges,
    bill_years,
    bills_for_year,
    dashboard_summary,
    filter_by_text,
    filter_properties,
    find_defaulters,
    get_record_value,
    to_number,
)
from rateease.core.reports import PROPERTY_TYPES, record_status
from rateease.models import (
    AppearanceSettings,
    Bill,
    BillStatus,
    BillType,
    Bop,
    GeneralSettings,
    IntegrationSettings,
    PermissionPage,
    SmsSettings,
    UserRole,
)
from rateease.orchestrator import AppComponents, RecordFlow, create_app_components
from rateease.queries import (
    QueryExecutionError,
    SuggesterExecutor,
    SuggestionQuery,
    SuggestionType,
)
from rateease.repositories import ProtectedUserError
from rateease.services import (
    PaymentCallback,
    PaymentError,
    SmsError,
    SpreadsheetError,
    StorageError,
)
from rateease.services.storage import ConnectionError, DuplicateError
from rateease.validation import FormError, validate_form


# Page configuration
st.set_page_config(
    page_title="RateEase",
    page_icon="🏛️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .bill-box {
        padding: 20px;
        border: 1px solid #ccc;
        border-radius: 10px;
        margin: 10px 0;
    }
    .bill-warning {
        color: #dc3545;
        font-weight: bold;
    }
</style>
""", unsafe_allow_html=True)


# Sidebar label -> page path used for the permission check.
PAGES = {
    "📊 Dashboard": "/dashboard",
    "🏠 Properties": "/properties",
    "🧾 Property Billing": "/billing",
    "🏪 BOPs": "/bop",
    "🧾 BOP Billing": "/bop-billing",
    "📚 Bills": "/bills",
    "⚠️ Defaulters": "/defaulters",
    "📈 Reports": "/reports",
    "💡 Revenue Suggestions": "/ai-suggester",
    "💳 Payment": "/payment",
    "👥 Users": "/users",
    "⚙️ Settings": "/settings",
    "🔗 Integrations": "/integrations",
    "📝 Activity Logs": "/activity-logs",
    "👤 My Profile": "/profile",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def money(amount: float) -> str:
    return f"{get_settings().app.currency} {amount:,.2f}"


def show_form_errors(error: FormError) -> None:
    for field, message in error.errors.items():
        st.error(f"{field}: {message}")


def main():
    """Main application entry point."""
    app = get_components()

    user = app.auth.current_user()
    if user is None:
        render_login_page(app)
        return

    preferences = app.settings.get()
    st.sidebar.title(f"🏛️ {preferences.general.system_name or 'RateEase'}")
    st.sidebar.markdown(f"**{user.name}** ({user.role.value})")
    if st.sidebar.button("Log out"):
        app.auth.logout()
        st.rerun()
    st.sidebar.markdown("---")

    allowed = [label for label, path in PAGES.items() if app.auth.can_access(path, user)]
    page = st.sidebar.radio("Navigate to:", allowed, index=0)

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(app)
    elif page == "🏠 Properties":
        render_records_page(app, app.properties, "Properties")
    elif page == "🧾 Property Billing":
        render_billing_page(app, BillType.PROPERTY)
    elif page == "🏪 BOPs":
        render_records_page(app, app.bops, "Business Operating Permits")
    elif page == "🧾 BOP Billing":
        render_billing_page(app, BillType.BOP)
    elif page == "📚 Bills":
        render_bills_page(app)
    elif page == "⚠️ Defaulters":
        render_defaulters_page(app)
    elif page == "📈 Reports":
        render_reports_page(app)
    elif page == "💡 Revenue Suggestions":
        render_suggester_page(app)
    elif page == "💳 Payment":
        render_payment_page(app)
    elif page == "👥 Users":
        render_users_page(app)
    elif page == "⚙️ Settings":
        render_settings_page(app)
    elif page == "🔗 Integrations":
        render_integrations_page(app)
    elif page == "📝 Activity Logs":
        render_activity_logs_page(app)
    elif page == "👤 My Profile":
        render_profile_page(app)


def render_login_page(app: AppComponents):
    st.title("🏛️ RateEase")
    st.markdown("Sign in to manage property rates and business permits.")

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in")

    if submitted:
        try:
            app.auth.login(email, password)
            st.rerun()
        except AuthenticationError as e:
            st.error(str(e))


def render_dashboard_page(app: AppComponents):
    st.title("📊 Dashboard")
    summary = dashboard_summary(app.properties.repository.list_records())

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Revenue", money(summary.total_revenue))
    col2.metric("Total Billed", money(summary.total_billed))
    col3.metric("Outstanding", money(summary.total_outstanding))
    col4.metric("Collection Rate", f"{summary.collection_rate:.1f}%")

    st.caption(f"{summary.properties_billed} properties on the register")

    left, right = st.columns(2)
    with left:
        st.markdown("### Payment Status")
        if summary.payment_status:
            st.bar_chart(
                [{"status": s.name.value, "amount": s.value} for s in summary.payment_status],
                x="status",
                y="amount",
            )
        else:
            st.info("No payments or balances yet.")
    with right:
        st.markdown("### Revenue by Property Type")
        if summary.revenue_by_property_type:
            st.bar_chart(
                [{"type": t.name, "revenue": t.revenue} for t in summary.revenue_by_property_type],
                x="type",
                y="revenue",
            )
        else:
            st.info("No revenue recorded yet.")


def _record_rows(records) -> list[dict]:
    return [{**r.as_row(), "status": record_status(r).value} for r in records]


def render_records_page(app: AppComponents, flow: RecordFlow, title: str):
    st.title(title)
    user = app.auth.current_user()
    is_bop = flow.repository.model is Bop

    with st.expander("📥 Import from Excel"):
        st.warning("Importing replaces every record currently on the register.")
        uploaded = st.file_uploader("Workbook (.xlsx)", type=["xlsx", "xls"], key=f"import-{title}")
        if uploaded and st.button("Import", key=f"import-btn-{title}"):
            try:
                sheet = flow.import_workbook(uploaded.getvalue(), uploaded.name, user)
                st.toast(f"Imported {sheet.row_count} records from {sheet.filename}")
                st.rerun()
            except (SpreadsheetError, StorageError) as e:
                st.error(str(e))

    with st.expander("➕ Add record"):
        render_record_form(app, flow, is_bop)

    records = flow.repository.list_records()
    search = st.text_input("Search", key=f"search-{title}")
    records = filter_by_text(records, search)

    if not records:
        st.info("No records yet. Import a workbook or add one above.")
        return

    st.dataframe(_record_rows(records), use_container_width=True)

    with st.expander("✏️ Edit record"):
        name_key = "Business Name" if is_bop else "Owner Name"
        to_edit = st.selectbox(
            "Record",
            options=records,
            format_func=lambda r: f"{get_record_value(r, name_key) or '-'} ({r.id})",
            key=f"edit-{title}",
        )
        if to_edit is not None:
            render_record_form(app, flow, is_bop, record=to_edit)

    st.download_button(
        "📤 Export to Excel",
        data=flow.export_workbook(),
        file_name=f"{'bops' if is_bop else 'properties'}-{datetime.now():%Y%m%d}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    to_delete = st.multiselect(
        "Select records to delete",
        options=[r.id for r in records],
        key=f"delete-{title}",
    )
    col1, col2 = st.columns(2)
    if col1.button("🗑️ Delete selected", disabled=not to_delete, key=f"del-btn-{title}"):
        removed = flow.delete(to_delete, user)
        st.toast(f"Deleted {removed} records")
        st.rerun()
    if col2.button("Delete all", key=f"del-all-{title}"):
        flow.repository.delete_all()
        app.activity_logger.log_action(user, "Records Cleared", title)
        st.rerun()


def render_record_form(app: AppComponents, flow: RecordFlow, is_bop: bool, record=None):
    """Add form, or the edit form for ``record`` pre-filled from its columns."""
    user = app.auth.current_user()
    prefix = f"{'edit-' + record.id if record else 'add'}-{'bop' if is_bop else 'property'}"

    def text(label):
        value = get_record_value(record, label) if record else None
        return st.text_input(label, value="" if value is None else str(value), key=f"{prefix}-{label}")

    def amount(label, **kwargs):
        value = to_number(get_record_value(record, label)) if record else 0.0
        return st.number_input(label, min_value=0.0, value=max(value, 0.0), key=f"{prefix}-{label}", **kwargs)

    with st.form(prefix, clear_on_submit=False):
        if is_bop:
            data = {
                "Business Name": text("Business Name"),
                "Owner Name": text("Owner Name"),
                "Phone Number": text("Phone Number") or None,
                "Town": text("Town") or None,
                "Permit Fee": amount("Permit Fee"),
                "Payment": amount("Payment"),
            }
        else:
            current_type = get_record_value(record, "Property Type") if record else None
            type_index = PROPERTY_TYPES.index(current_type) if current_type in PROPERTY_TYPES else 0
            data = {
                "Owner Name": text("Owner Name"),
                "Phone Number": text("Phone Number") or None,
                "Town": text("Town"),
                "Suburb": text("Suburb") or None,
                "Property No": text("Property No"),
                "Valuation List No.": text("Valuation List No.") or None,
                "Account Number": text("Account Number") or None,
                "Property Type": st.selectbox(
                    "Property Type", PROPERTY_TYPES, index=type_index, key=f"{prefix}-type"
                ),
                "Rateable Value": amount("Rateable Value"),
                "Rate Impost": amount("Rate Impost", format="%.4f"),
                "Sanitation Charged": amount("Sanitation Charged"),
                "Previous Balance": amount("Previous Balance"),
                "Total Payment": amount("Total Payment"),
            }
        submitted = st.form_submit_button("Save changes" if record else "Save")

    if submitted:
        try:
            if record:
                run_async(flow.update_from_form(record, data, user))
                st.toast("Record updated")
            else:
                run_async(flow.add_from_form(data, user))
                st.toast("Record added")
            st.rerun()
        except FormError as e:
            show_form_errors(e)
        except StorageError as e:
            st.error(str(e))


def render_bill(bill: Bill):
    """Render one bill (or receipt) as it would be printed."""
    preferences = get_components().settings.get()
    general, appearance = preferences.general, preferences.appearance
    record = bill.snapshot_record()

    lines = [
        f"### {general.assembly_name or 'District Assembly'}",
        f"{general.postal_address}  \n{general.contact_phone}  {general.contact_email}",
        f"**Bill {bill.year}** generated {bill.generated_at:%d %b %Y %H:%M}",
    ]
    if bill.bill_type == BillType.BOP:
        charges = BopCharges.from_record(record)
        lines += [
            f"**Business:** {get_record_value(record, 'Business Name') or '-'}",
            f"**Owner:** {get_record_value(record, 'Owner Name') or '-'}",
            f"**Permit Fee:** {money(charges.permit_fee)}",
            f"**Paid:** {money(charges.payment)}",
        ]
    else:
        charges = PropertyCharges.from_record(record)
        lines += [
            f"**Owner:** {get_record_value(record, 'Owner Name') or '-'}",
            f"**Property No:** {get_record_value(record, 'Property No') or '-'}",
            f"**Town:** {get_record_value(record, 'Town') or '-'}",
            f"**Rateable Value:** {money(charges.rateable_value)} × {charges.rate_impost}",
            f"**Amount Charged:** {money(charges.amount_charged)}",
            f"**Sanitation:** {money(charges.sanitation_charged)}",
            f"**Previous Balance:** {money(charges.previous_balance)}",
            f"**Paid:** {money(charges.total_payment)}",
        ]
    lines.append(f"## Amount Due: {money(bill.total_amount_due)}")

    with st.container(border=True):
        st.markdown("\n\n".join(lines))
        if appearance.bill_warning_text:
            st.markdown(
                f'<p class="bill-warning">{appearance.bill_warning_text}</p>',
                unsafe_allow_html=True,
            )


def render_billing_page(app: AppComponents, bill_type: BillType):
    is_bop = bill_type == BillType.BOP
    st.title("🧾 BOP Billing" if is_bop else "🧾 Property Billing")
    user = app.auth.current_user()
    flow = app.bops if is_bop else app.properties

    records = flow.repository.list_records()
    status = st.selectbox("Status", ["all", *[s.value for s in BillStatus]])
    if status != "all":
        records = [r for r in records if record_status(r).value == status]
    records = filter_by_text(records, st.text_input("Search"))

    if not records:
        st.info("No records match.")
        return

    st.dataframe(_record_rows(records), use_container_width=True)
    selected = st.multiselect(
        "Bills to print",
        options=[r.id for r in records],
        default=[r.id for r in records],
    )

    col1, col2 = st.columns(2)
    if col1.button("🖨️ Print bills", disabled=not selected):
        try:
            if is_bop:
                bills = run_async(app.billing.print_bop_bills(selected, user))
            else:
                bills = run_async(app.billing.print_property_bills(selected, user))
            st.session_state.printed_bills = bills
            st.toast(f"{len(bills)} bills recorded")
        except StorageError as e:
            st.error(str(e))

    with col2.popover("📱 Send SMS", disabled=not selected):
        template = st.text_area("Message", value="Dear {{ Owner Name }}, your bill is ready.")
        if st.button("Send"):
            chosen = [r for r in records if r.id in set(selected)]
            try:
                results = run_async(app.notifications.send_bulk(chosen, template, user))
                sent = sum(1 for r in results if r.success)
                st.toast(f"{sent} of {len(results)} messages sent")
            except SmsError as e:
                st.error(str(e))

    for bill in st.session_state.get("printed_bills", []):
        if bill.bill_type == bill_type:
            render_bill(bill)


def render_bills_page(app: AppComponents):
    st.title("📚 Bills")
    bills = app.bills.list_bills()
    if not bills:
        st.info("No bills have been printed yet.")
        return

    years = bill_years(bills)
    year = st.selectbox("Year", [None, *years], format_func=lambda y: "All years" if y is None else str(y))
    kind = st.selectbox(
        "Type",
        [None, *BillType],
        format_func=lambda t: "All" if t is None else ("BOP" if t == BillType.BOP else "Property"),
    )

    selected = bills_for_year(bills, year)
    if kind is not None:
        selected = [b for b in selected if b.bill_type == kind]

    st.dataframe(
        [
            {
                "id": b.id,
                "generated": b.generated_at.strftime("%Y-%m-%d %H:%M"),
                "type": b.bill_type.value,
                "name": get_record_value(b.property_snapshot, "Owner Name")
                or get_record_value(b.property_snapshot, "Business Name"),
                "amount due": b.total_amount_due,
            }
            for b in selected
        ],
        use_container_width=True,
    )

    bill_id = st.selectbox("View bill", [None, *[b.id for b in selected]])
    if bill_id:
        render_bill(next(b for b in selected if b.id == bill_id))


def render_defaulters_page(app: AppComponents):
    st.title("⚠️ Defaulters")
    user = app.auth.current_user()
    kind = st.radio("Register", ["Properties", "BOPs"], horizontal=True)
    flow = app.bops if kind == "BOPs" else app.properties

    report = find_defaulters(flow.repository.list_records(), st.text_input("Search"))

    col1, col2 = st.columns(2)
    col1.metric("Defaulters", report.count)
    col2.metric("Total Owed", money(report.total_amount_owed))

    if report.counts_by_town:
        st.bar_chart(
            [{"town": town, "defaulters": n} for town, n in report.counts_by_town],
            x="town",
            y="defaulters",
        )

    if not report.records:
        st.success("No defaulters 🎉")
        return

    st.dataframe(_record_rows(report.records), use_container_width=True)

    with st.expander("📱 Remind defaulters by SMS"):
        template = st.text_area(
            "Message",
            value="Dear {{ Owner Name }}, you have an outstanding balance. Please pay promptly.",
        )
        if st.button("Send reminders"):
            try:
                results = run_async(app.notifications.send_bulk(report.records, template, user))
                sent = sum(1 for r in results if r.success)
                st.toast(f"{sent} of {len(results)} messages sent")
            except SmsError as e:
                st.error(str(e))


def render_reports_page(app: AppComponents):
    st.title("📈 Reports")
    col1, col2 = st.columns(2)
    status = col1.selectbox("Status", ["all", *[s.value for s in BillStatus]])
    property_type = col2.selectbox("Property Type", ["all", *PROPERTY_TYPES])

    rows = filter_properties(app.properties.repository.list_records(), status, property_type)
    st.caption(f"{len(rows)} properties")
    st.dataframe(
        [{**p.as_row(), "status": s.value} for p, s in rows],
        use_container_width=True,
    )


def render_suggester_page(app: AppComponents):
    st.title("💡 Revenue Suggestions")
    executor = SuggesterExecutor(app.properties.repository.list_records())

    labels = {
        SuggestionType.TOTAL_REVENUE: "Calculate Total Revenue Potential",
        SuggestionType.HIGHEST_ARREARS: "Identify Properties with Highest Arrears",
        SuggestionType.NO_SANITATION: "Find Properties without Sanitation Charges",
        SuggestionType.RATE_INCREASE: "Suggest Rate Increase Impact",
    }
    suggestion = st.selectbox("Suggestion", list(SuggestionType), format_func=labels.get)

    property_type = None
    percentage = 10.0
    if suggestion == SuggestionType.RATE_INCREASE:
        property_type = st.selectbox("Property Type", executor.property_types() or [None])
        percentage = st.number_input("Increase Percentage (%)", min_value=0.0, value=10.0)

    if not st.button("Calculate"):
        return

    try:
        result = executor.execute(SuggestionQuery(
            suggestion=suggestion,
            property_type=property_type,
            increase_percentage=percentage,
        ))
    except QueryExecutionError as e:
        st.error(str(e))
        return

    if suggestion == SuggestionType.TOTAL_REVENUE:
        st.metric("Total Revenue Potential", money(result.total_revenue))
    elif suggestion == SuggestionType.HIGHEST_ARREARS:
        st.dataframe(
            [
                {
                    "Owner Name": get_record_value(e.record, "Owner Name"),
                    "Property No": get_record_value(e.record, "Property No"),
                    "Arrears Balance": e.arrears,
                }
                for e in result.arrears
            ],
            use_container_width=True,
        )
    elif suggestion == SuggestionType.NO_SANITATION:
        st.caption(f"Found {len(result.properties)} properties where sanitation charge is zero.")
        st.dataframe(_record_rows(result.properties[:50]), use_container_width=True)
    else:
        impact = result.rate_increase
        st.markdown(
            f"Modeling a {impact.increase_percentage:g}% rate impost increase for "
            f"{impact.property_count} '{impact.property_type}' properties."
        )
        col1, col2, col3 = st.columns(3)
        col1.metric("Current Annual Revenue", money(impact.current_revenue))
        col2.metric("Projected Annual Revenue", money(impact.new_revenue))
        col3.metric("Increase", f"+{money(impact.increase_amount)}")


def render_payment_page(app: AppComponents):
    st.title("💳 Payment")
    user = app.auth.current_user()

    params = st.query_params
    if params.get("status"):
        callback = PaymentCallback.from_params(params.to_dict())
        try:
            receipt = app.payments.process_callback(callback, user)
            st.success(f"Payment of {money(callback.amount)} received. Reference {callback.reference}.")
            render_bill(receipt)
        except PaymentError as e:
            st.error(str(e))
        st.query_params.clear()
        return

    record_id = st.text_input("Property or BOP id")
    record = app.payments.find_record(record_id) if record_id else None
    if record_id and record is None:
        st.error("No property or BOP with that id.")
        return
    if record is None:
        return

    due = (
        BopCharges.from_record(record).outstanding
        if isinstance(record, Bop)
        else PropertyCharges.from_record(record).outstanding
    )
    st.metric("Outstanding", money(due))

    with st.form("pay"):
        amount = st.number_input("Amount", min_value=0.0, value=float(due))
        email = st.text_input("Payer email", value=user.email if user else "")
        submitted = st.form_submit_button("Pay now")

    if submitted:
        try:
            with st.spinner("Contacting payment gateway..."):
                initiation = run_async(app.payments.initiate(amount, email, record.id))
            callback = PaymentCallback.from_url(initiation.authorization_url)
            receipt = app.payments.process_callback(callback, user)
            st.success(f"Payment of {money(callback.amount)} received. Reference {initiation.reference}.")
            render_bill(receipt)
        except PaymentError as e:
            st.error(str(e))

    if record.payments:
        st.markdown("### Payment History")
        st.dataframe(
            [p.model_dump(mode="json") for p in record.payments],
            use_container_width=True,
        )


def render_users_page(app: AppComponents):
    st.title("👥 Users")
    actor = app.auth.current_user()

    st.dataframe(
        [
            {"id": u.id, "name": u.name, "email": u.email, "role": u.role.value}
            for u in app.users.list_users()
        ],
        use_container_width=True,
    )

    with st.expander("➕ Add user"):
        with st.form("add-user"):
            data = {
                "name": st.text_input("Name"),
                "email": st.text_input("Email"),
                "role": st.selectbox("Role", [r.value for r in UserRole]),
                "password": st.text_input("Password", type="password"),
                "confirm_password": st.text_input("Confirm Password", type="password"),
            }
            submitted = st.form_submit_button("Add")
        if submitted:
            try:
                app.user_admin.add_user(data, actor)
                st.toast("User added")
                st.rerun()
            except FormError as e:
                show_form_errors(e)
            except DuplicateError as e:
                st.error(str(e))

    users = app.users.list_users()
    user_id = st.selectbox(
        "Edit user",
        [None, *[u.id for u in users]],
        format_func=lambda i: "-" if i is None else next(u.email for u in users if u.id == i),
    )
    if user_id:
        target = app.users.get(user_id)
        with st.form("edit-user"):
            data = {
                "name": st.text_input("Name", value=target.name),
                "email": st.text_input("Email", value=target.email),
                "role": st.selectbox(
                    "Role",
                    [r.value for r in UserRole],
                    index=list(UserRole).index(target.role),
                ),
                "password": st.text_input("New Password (leave blank to keep)", type="password"),
                "confirm_password": st.text_input("Confirm Password", type="password"),
            }
            col1, col2 = st.columns(2)
            save = col1.form_submit_button("Save")
            delete = col2.form_submit_button("Delete")
        try:
            if save:
                app.user_admin.update_user(user_id, data, actor)
                st.toast("User updated")
                st.rerun()
            if delete:
                app.user_admin.delete_user(user_id, actor)
                st.toast("User deleted")
                st.rerun()
        except FormError as e:
            show_form_errors(e)
        except (DuplicateError, ProtectedUserError) as e:
            st.error(str(e))

    st.markdown("### Role Permissions")
    permissions = app.permissions.get()
    edited = {}
    for role in (UserRole.DATA_ENTRY, UserRole.VIEWER):
        st.markdown(f"**{role.value}**")
        cols = st.columns(4)
        edited[role] = {
            page: cols[i % 4].checkbox(page.value, value=permissions[role][page], key=f"{role.value}-{page.value}")
            for i, page in enumerate(PermissionPage)
        }
    if st.button("Save permissions"):
        edited[UserRole.ADMIN] = permissions[UserRole.ADMIN]
        app.permissions.update(edited)
        app.activity_logger.log_action(actor, "Permissions Updated")
        st.toast("Permissions saved")


def render_profile_page(app: AppComponents):
    """The signed-in user's own name, password and photo. Role and email stay as they are."""
    st.title("👤 My Profile")
    user = app.auth.current_user()

    if user.photo_url:
        st.markdown(
            f'<img src="{user.photo_url}" width="120" style="border-radius: 50%">',
            unsafe_allow_html=True,
        )
    st.markdown(f"**{user.email}** ({user.role.value})")

    # Uploaded photos are stored inline and are too long to show in a text box
    current_url = user.photo_url or ""
    if current_url.startswith("data:"):
        current_url = ""

    with st.form("profile"):
        name = st.text_input("Name", value=user.name)
        photo = st.file_uploader("Photo", type=["png", "jpg", "jpeg"])
        photo_url = st.text_input("or Photo URL", value=current_url)
        password = st.text_input("New Password (leave blank to keep)", type="password")
        confirm_password = st.text_input("Confirm Password", type="password")
        submitted = st.form_submit_button("Save profile")

    if submitted:
        if photo is not None:
            encoded = base64.b64encode(photo.getvalue()).decode("ascii")
            photo_url = f"data:{photo.type};base64,{encoded}"
        data = {
            "name": name,
            "email": user.email,
            "role": user.role.value,
            "password": password,
            "confirm_password": confirm_password,
            "photo_url": photo_url,
        }
        try:
            app.user_admin.update_user(user.id, data, user)
            st.toast("Profile saved")
            st.rerun()
        except FormError as e:
            show_form_errors(e)
        except StorageError as e:
            st.error(str(e))


def render_settings_page(app: AppComponents):
    st.title("⚙️ Settings")
    user = app.auth.current_user()
    preferences = app.settings.get()

    general_tab, appearance_tab, sms_tab, status_tab = st.tabs(
        ["General", "Appearance", "SMS", "Connection Status"]
    )

    with general_tab, st.form("general"):
        g = preferences.general
        values = {
            "system_name": st.text_input("System Name", g.system_name),
            "assembly_name": st.text_input("Assembly Name", g.assembly_name),
            "postal_address": st.text_area("Postal Address", g.postal_address),
            "contact_phone": st.text_input("Contact Phone", g.contact_phone),
            "contact_email": st.text_input("Contact Email", g.contact_email),
        }
        if st.form_submit_button("Save"):
            save_section(app, GeneralSettings, values, user)

    with appearance_tab, st.form("appearance"):
        a = preferences.appearance
        fonts = ["sans", "serif", "mono"]
        values = {
            "bill_warning_text": st.text_area("Bill Warning Text", a.bill_warning_text),
            "font_family": st.selectbox("Font", fonts, index=fonts.index(a.font_family)),
            "font_size": st.number_input("Font Size", min_value=6, max_value=32, value=a.font_size),
            "accent_color": st.color_picker("Accent Color", a.accent_color),
            "assembly_logo": a.assembly_logo,
            "ghana_logo": a.ghana_logo,
            "signature": a.signature,
        }
        if st.form_submit_button("Save"):
            save_section(app, AppearanceSettings, values, user)

    with sms_tab, st.form("sms"):
        s = preferences.sms
        values = {
            "sms_api_url": st.text_input(
                "API URL", s.sms_api_url,
                help="Use {api_key}, {sender_id}, {phone} and {message} placeholders",
            ),
            "sms_api_key": st.text_input("API Key", s.sms_api_key, type="password"),
            "sms_sender_id": st.text_input("Sender ID", s.sms_sender_id, max_chars=11),
            "enable_sms_on_new_property": st.checkbox(
                "Send SMS when a property is added", s.enable_sms_on_new_property
            ),
            "new_property_message_template": st.text_area(
                "New property message", s.new_property_message_template
            ),
            "enable_sms_on_bill_generated": st.checkbox(
                "Send SMS when bills are printed", s.enable_sms_on_bill_generated
            ),
            "bill_generated_message_template": st.text_area(
                "Bill message", s.bill_generated_message_template
            ),
        }
        if st.form_submit_button("Save"):
            save_section(app, SmsSettings, values, user)

    with status_tab:
        status = validate_all_settings()
        for name, key in [("Local Storage", "storage"), ("Application", "app"),
                          ("Google Sheets", "google_sheets")]:
            if status.get(key, False):
                st.success(f"✅ {name} - Configured")
            else:
                error = status.get(f"{key}_error", "Not configured")
                st.error(f"❌ {name} - {error}")


def save_section(app: AppComponents, section_cls, values: dict, user) -> None:
    try:
        section = validate_form(section_cls, values)
    except FormError as e:
        show_form_errors(e)
        return
    app.settings.save_section(section)
    app.activity_logger.log_action(user, "Settings Updated", section_cls.__name__)
    st.toast("Settings saved")


def render_integrations_page(app: AppComponents):
    st.title("🔗 Integrations")
    user = app.auth.current_user()
    integrations = app.settings.get().integrations

    with st.form("integrations"):
        values = {
            "google_sheet_url": st.text_input("Properties Google Sheet URL", integrations.google_sheet_url),
            "bop_google_sheet_url": st.text_input("BOP Google Sheet URL", integrations.bop_google_sheet_url),
        }
        if st.form_submit_button("Save"):
            save_section(app, IntegrationSettings, values, user)

    for kind, label in [(BillType.PROPERTY, "Properties"), (BillType.BOP, "BOPs")]:
        st.markdown(f"### {label}")
        col1, col2 = st.columns(2)
        try:
            if col1.button(f"⬆️ Push {label} to sheet", key=f"push-{kind.value}"):
                count = run_async(app.sheets.push(kind, user))
                st.toast(f"Wrote {count} rows")
            if col2.button(f"⬇️ Pull {label} from sheet", key=f"pull-{kind.value}"):
                count = run_async(app.sheets.pull(kind, user))
                st.toast(f"Imported {count} rows")
        except (ValueError, SpreadsheetError, StorageError, ConnectionError) as e:
            st.error(str(e))


def render_activity_logs_page(app: AppComponents):
    st.title("📝 Activity Logs")
    logs = app.activity_logs.list_logs()
    if not logs:
        st.info("No activity recorded yet.")
        return
    st.dataframe(
        [
            {
                "time": log.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "user": f"{log.user_name} ({log.user_email})",
                "action": log.action,
                "details": log.details or "",
            }
            for log in logs
        ],
        use_container_width=True,
    )


if __name__ == "__main__":
    main()
