import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, time

import streamlit as st
import pandas as pd
import plotly.express as px

from expense_tracker import config
from expense_tracker.aggregation import partition_by_kind
from expense_tracker.domain import DAY, EXPENSE, INCOME, MONTH, WEEK
from expense_tracker.errors import AppError
from expense_tracker.formatters import format_currency, format_datetime, format_iso_date
from expense_tracker.logger import get_logger
from expense_tracker.periods import is_current_period, next_period, previous_period
from expense_tracker.repository import TransactionRepository
from expense_tracker.services import CategoryService, ExportService, SummaryService, TransactionService

logger = get_logger("expense_tracker.app")

st.set_page_config(page_title="Quản lý chi tiêu", layout="wide")

GRANULARITY_LABELS = {DAY: "Ngày", WEEK: "Tuần", MONTH: "Tháng"}
KIND_LABELS = {INCOME: "Thu nhập", EXPENSE: "Chi tiêu"}

if "repo" not in st.session_state:
    st.session_state.repo = TransactionRepository.from_seed(config.SEED_PATH)
if "reference" not in st.session_state:
    st.session_state.reference = datetime.now()
if "granularity" not in st.session_state:
    st.session_state.granularity = config.DEFAULT_GRANULARITY

repo = st.session_state.repo
summary_service = SummaryService(repo)
export_service = ExportService(repo, config.EXPORT_PREFIX)
transaction_service = TransactionService(repo)
category_service = CategoryService(repo)
categories = repo.list_categories()


def category_table(items):
    return pd.DataFrame([
        {
            "Danh mục": c.category_name,
            "Số tiền": format_currency(c.total_amount),
            "Số giao dịch": c.transaction_count,
            "Tỷ lệ": f"{c.percentage}%",
        }
        for c in items
    ])


def tx_to_df(items):
    return pd.DataFrame([
        {
            "Ngày": format_datetime(t["date"]),
            "Loại": KIND_LABELS.get(t["type"], t["type"]),
            "Danh mục": t["categoryName"],
            "Số tiền": format_currency(t["amount"]),
            "Mô tả": t["description"] or "",
        }
        for t in items
    ])


def show_error(e: AppError):
    st.error(e.message)
    if isinstance(e.details, list):
        for d in e.details:
            st.caption(f"• {d['message']}")


def edit_transaction_panel(items):
    with st.expander("✏️ Sửa / xóa giao dịch"):
        chosen_tx = st.selectbox(
            "Giao dịch",
            items,
            format_func=lambda t: f"{format_datetime(t['date'])} · {t['categoryName']} · {format_currency(t['amount'])}",
            key="edit_tx",
        )
        with st.form(f"edit_form_{chosen_tx['id']}"):
            when = datetime.fromisoformat(chosen_tx["date"])
            c1, c2 = st.columns(2)
            with c1:
                day = st.date_input("Ngày", value=when.date())
                amount = st.number_input("Số tiền (₫)", min_value=0.0, step=1000.0, format="%.2f", value=chosen_tx["amount"])
            with c2:
                ids = [c.id for c in categories]
                category = st.selectbox(
                    "Danh mục",
                    categories,
                    index=ids.index(chosen_tx["categoryId"]) if chosen_tx["categoryId"] in ids else 0,
                    format_func=lambda c: f"{c.name} ({KIND_LABELS[c.kind]})",
                )
                description = st.text_input("Mô tả", value=chosen_tx["description"] or "")
            save, remove = st.columns(2)
            with save:
                saved = st.form_submit_button("Lưu thay đổi")
            with remove:
                removed = st.form_submit_button("🗑️ Xóa")

        try:
            if saved:
                transaction_service.update(chosen_tx["id"], {
                    "amount": str(amount),
                    "kind": category.kind,
                    "category_id": category.id,
                    "occurred_at": datetime.combine(day, when.time()),
                    "description": description or None,
                })
                st.rerun()
            if removed:
                transaction_service.delete(chosen_tx["id"])
                st.rerun()
        except AppError as e:
            show_error(e)


menu = st.sidebar.radio("Menu", ["🏠 Tổng quan", "🧾 Giao dịch", "🏷️ Danh mục"])

if menu == "🏠 Tổng quan":
    st.title("🏠 Tổng quan")

    granularity = st.radio(
        "Kỳ",
        options=[DAY, WEEK, MONTH],
        format_func=lambda g: GRANULARITY_LABELS[g],
        index=[DAY, WEEK, MONTH].index(st.session_state.granularity),
        horizontal=True,
    )
    st.session_state.granularity = granularity
    reference = st.session_state.reference
    today = datetime.now()

    nav_prev, nav_label, nav_next, nav_today = st.columns([1, 4, 1, 1])
    with nav_prev:
        if st.button("←", key="btn_prev", help="Kỳ trước"):
            st.session_state.reference = previous_period(reference, granularity)
            st.rerun()
    with nav_next:
        at_present = is_current_period(reference, granularity, today)
        if st.button("→", key="btn_next", help="Kỳ sau", disabled=at_present):
            st.session_state.reference = next_period(reference, granularity)
            st.rerun()
    with nav_today:
        if st.button("Hôm nay", key="btn_today"):
            st.session_state.reference = today
            st.rerun()

    period, summary = summary_service.period_totals(reference, granularity)
    payload = summary_service.to_payload(period, summary)
    with nav_label:
        st.subheader(payload["label"])

    totals = payload["summary"]
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Thu nhập", format_currency(totals["totalIncome"]))
    with k2:
        st.metric("Chi tiêu", format_currency(totals["totalExpenses"]))
    with k3:
        st.metric("Số dư", format_currency(totals["netBalance"]))
    with k4:
        st.metric("Giao dịch", totals["transactionCount"])

    income_items, expense_items = partition_by_kind(summary)

    if not summary.transaction_count:
        st.info("Chưa có giao dịch nào trong kỳ này.")
    else:
        st.caption(
            f"{sum(c.transaction_count for c in income_items)} khoản thu, "
            f"{sum(c.transaction_count for c in expense_items)} khoản chi"
        )
        col_inc, col_exp = st.columns(2)
        with col_inc:
            st.header("💰 Thu nhập theo danh mục")
            if income_items:
                st.table(category_table(income_items))
            else:
                st.info("Không có khoản thu.")
        with col_exp:
            st.header("💸 Chi tiêu theo danh mục")
            if expense_items:
                st.table(category_table(expense_items))
                fig = px.pie(
                    pd.DataFrame([
                        {"Danh mục": c.category_name, "Số tiền": float(c.total_amount)}
                        for c in expense_items
                    ]),
                    values="Số tiền",
                    names="Danh mục",
                    title="Cơ cấu chi tiêu",
                )
                fig.update_layout(height=320)
                st.plotly_chart(fig, use_container_width=True)
            else:
                st.info("Không có khoản chi.")

elif menu == "🧾 Giao dịch":
    st.title("🧾 Giao dịch")

    st.subheader("➕ Thêm giao dịch")
    with st.form("input_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            day = st.date_input("Ngày")
            amount = st.number_input("Số tiền (₫)", min_value=0.0, step=1000.0, format="%.2f")
        with col2:
            category = st.selectbox(
                "Danh mục",
                categories,
                format_func=lambda c: f"{c.name} ({KIND_LABELS[c.kind]})",
            )
            description = st.text_input("Mô tả (không bắt buộc)")
        submitted = st.form_submit_button("Lưu")

        if submitted:
            try:
                result = transaction_service.create({
                    "amount": str(amount),
                    "kind": category.kind,
                    "category_id": category.id,
                    "occurred_at": datetime.combine(day, datetime.now().time()),
                    "description": description or None,
                })
                st.success("Đã lưu giao dịch")
                if result["warning"]:
                    st.warning(result["warning"])
            except AppError as e:
                show_error(e)

    st.divider()
    st.subheader("🔎 Lọc")
    f1, f2, f3, f4 = st.columns(4)
    with f1:
        kind = st.selectbox(
            "Loại",
            [None, INCOME, EXPENSE],
            format_func=lambda k: "Tất cả" if k is None else KIND_LABELS[k],
        )
    with f2:
        selected_category = st.selectbox(
            "Danh mục",
            [None] + list(repo.list_categories(kind)),
            format_func=lambda c: "Tất cả" if c is None else c.name,
        )
    with f3:
        chosen = st.date_input("Khoảng ngày", value=(), key="tx_date_range")
    with f4:
        search = st.text_input("Tìm kiếm")

    query = {
        "kind": kind,
        "category_id": selected_category.id if selected_category else None,
        "search": search,
        "limit": config.PAGE_SIZE,
    }
    if len(chosen) == 2:
        query["start_date"] = datetime.combine(chosen[0], time.min)
        query["end_date"] = datetime.combine(chosen[1], time.min)

    try:
        first = transaction_service.list(query)
        page_no = st.number_input("Trang", min_value=1, max_value=max(first["totalPages"], 1), value=1)
        listing = transaction_service.list({**query, "page": page_no})
    except AppError as e:
        st.error(e.message)
        st.stop()

    if listing["items"]:
        st.caption(f"{listing['total']} giao dịch, trang {listing['page']}/{listing['totalPages']}")
        st.dataframe(tx_to_df(listing["items"]), use_container_width=True, hide_index=True)
        edit_transaction_panel(listing["items"])
        try:
            export = export_service.export_csv(query)
            st.download_button(
                "⬇️ Xuất CSV",
                export.content.encode("utf-8"),
                file_name=export.filename,
                mime="text/csv",
            )
        except AppError as e:
            logger.warning(f"Export unavailable: {e.message}")
    else:
        st.info("Không có giao dịch phù hợp với bộ lọc")

    if len(chosen) == 2:
        rng = summary_service.range_summary(format_iso_date(chosen[0]), format_iso_date(chosen[1]))
        st.caption(
            f"{rng['label']}: thu {format_currency(rng['summary']['totalIncome'])}, "
            f"chi {format_currency(rng['summary']['totalExpenses'])}"
        )

elif menu == "🏷️ Danh mục":
    st.title("🏷️ Danh mục")

    st.dataframe(
        pd.DataFrame([
            {
                "Tên": info["name"],
                "Loại": KIND_LABELS[info["type"]],
                "Số giao dịch": info["transactionCount"],
            }
            for info in (category_service.get(c.id) for c in categories)
        ]),
        use_container_width=True,
        hide_index=True,
    )

    st.subheader("➕ Thêm danh mục")
    with st.form("category_form", clear_on_submit=True):
        name = st.text_input("Tên danh mục")
        new_kind = st.radio("Loại", [EXPENSE, INCOME], format_func=lambda k: KIND_LABELS[k], horizontal=True)
        if st.form_submit_button("Thêm"):
            try:
                category_service.create({"name": name, "kind": new_kind})
                st.rerun()
            except AppError as e:
                show_error(e)

    if categories:
        st.subheader("✏️ Sửa / xóa danh mục")
        chosen_cat = st.selectbox("Danh mục", categories, format_func=lambda c: c.name, key="edit_cat")
        with st.form(f"edit_category_{chosen_cat.id}"):
            name = st.text_input("Tên danh mục", value=chosen_cat.name)
            kinds = [EXPENSE, INCOME]
            kind = st.radio(
                "Loại",
                kinds,
                index=kinds.index(chosen_cat.kind),
                format_func=lambda k: KIND_LABELS[k],
                horizontal=True,
            )
            save, remove = st.columns(2)
            with save:
                saved = st.form_submit_button("Lưu thay đổi")
            with remove:
                removed = st.form_submit_button("🗑️ Xóa")

        try:
            if saved:
                category_service.update(chosen_cat.id, {"name": name, "kind": kind})
                st.rerun()
            if removed:
                category_service.delete(chosen_cat.id)
                st.rerun()
        except AppError as e:
            show_error(e)
