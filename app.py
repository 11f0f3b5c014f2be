import pandas as pd
import streamlit as st
from pathlib import Path
from typing import Dict, List

from wci_core.charts import yearly_trend_charts
from wci_core.data import list_periods, load_period_sources, load_snapshot, period_signature, previous_period
from wci_core.errors import DashboardError
from wci_core.metrics_display import ACCOUNT_NAME_LABEL, DISPLAY_METRICS, DisplayMetricBundle, compute_display_table
from wci_core.metrics_yearly import YEARLY_METRICS, aggregate_yearly, yearly_frame
from wci_core.numeric import format_number, format_period
from wci_core.safe import is_field_error
from wci_core.settings import load_settings


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def format_value(value: object) -> str:
    if is_field_error(value):
        return value.message
    return format_number(value)


def format_increment(value: object) -> str:
    if value is None:
        return "无上月数据"
    if is_field_error(value):
        return value.message
    try:
        num = float(value)
    except (TypeError, ValueError):
        return "-"
    if num > 0:
        return f"+{format_number(num)}"
    if num < 0:
        return f"-{format_number(-num)}"
    return "0"


def display_frame(rows: List[DisplayMetricBundle]) -> pd.DataFrame:
    records: List[Dict[str, str]] = []
    for row in rows:
        name = row.account_name.message if is_field_error(row.account_name) else str(row.account_name)
        rec = {ACCOUNT_NAME_LABEL: name}
        for metric_def in DISPLAY_METRICS:
            pair = row.metrics[metric_def.label]
            rec[metric_def.label] = format_value(pair.value)
            rec[f"{metric_def.label} 增量"] = format_increment(pair.increment)
        records.append(rec)
    return pd.DataFrame(records)


@st.cache_data(show_spinner=False)
def load_display_rows(data_dir: str, month: str, files_sig: tuple) -> tuple:
    # files_sig only keys the cache so a replaced workbook is re-read.
    root = Path(data_dir)
    current = load_snapshot(root, month)
    prev_month = previous_period(list_periods(root), month)
    previous = None
    if prev_month is not None:
        try:
            previous = load_snapshot(root, prev_month)
        except DashboardError:
            prev_month = None
    return compute_display_table(current, previous), prev_month


def render_monthly_page(settings, periods: List[str]):
    month = st.sidebar.selectbox("月份", options=list(reversed(periods)), format_func=format_period)
    files_sig = period_signature(settings.data_dir, [p for p in (month, previous_period(periods, month)) if p])
    try:
        rows, prev_month = load_display_rows(str(settings.data_dir), month, files_sig)
    except DashboardError as exc:
        st.error(f"加载{format_period(month)}数据失败: {exc}")
        return
    if not rows:
        st.warning(f"{format_period(month)}暂无数据")
        return
    caption = f"对比 {format_period(prev_month)}" if prev_month else "无上月数据，转发增量不显示"
    st.caption(caption)
    st.dataframe(display_frame(rows), use_container_width=True, hide_index=True)


def render_yearly_page(settings, periods: List[str]):
    sources = load_period_sources(settings.data_dir, periods, max_workers=settings.max_workers)
    report = aggregate_yearly(sources, tracked_accounts=settings.tracked_accounts)
    for skipped in report.skipped:
        st.warning(f"{format_period(skipped.month)} 读取失败，已跳过: {skipped.reason}")

    frame = yearly_frame(report)
    totals = pd.DataFrame(
        [{"公众号": a.account_name, **{m: format_number(a.total[m]) for m in YEARLY_METRICS}} for a in report.accounts]
    )
    st.subheader("年度合计")
    st.dataframe(totals, use_container_width=True, hide_index=True)

    if frame.empty:
        st.info("所选账号暂无月度数据")
        return
    for spec in yearly_trend_charts(frame).values():
        st.vega_lite_chart(spec, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="公众号月度数据看板", layout="wide")
inject_base_styles()
st.markdown("<div class='app-top-bar'><div class='page-title'>公众号月度数据看板</div></div>", unsafe_allow_html=True)

settings = load_settings()
available = list_periods(settings.data_dir)
if not available:
    st.error(f"No period folders found. Place YYYYMM/<report>.xlsx under {settings.data_dir}.")
    st.stop()

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["月度数据", "年度对比"], index=0)

if nav_choice == "月度数据":
    render_monthly_page(settings, available)
else:
    render_yearly_page(settings, available)
