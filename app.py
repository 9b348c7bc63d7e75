import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Optional

from survey.charts import profession_distribution_chart, usage_reason_chart
from survey.config import MESSAGES, PROFESSION_ICONS, configure_logging, load_config
from survey.errors import NoDataError
from survey.export import (
    XLSX_MEDIA_TYPE,
    build_all_entries_report,
    build_overall_report,
    build_profession_report,
    format_date_bn,
    report_filename,
)
from survey.service import Outcome, SurveyService


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def show_outcome(outcome: Optional[Outcome]):
    if outcome is None or not outcome.notify or not outcome.message:
        return
    {"success": st.success, "info": st.info, "warning": st.warning}.get(outcome.level, st.error)(outcome.message)


def download_xlsx(label: str, build, file_name: str, key: str):
    try:
        data = build()
    except NoDataError:
        st.caption(MESSAGES["no_data"])
        return
    st.download_button(label, data=data, file_name=file_name, mime=XLSX_MEDIA_TYPE, key=key)


def entries_table(records, *, include_profession: bool = True) -> pd.DataFrame:
    rows = []
    for d in reversed([r for r in records if isinstance(r, dict)]):
        row = {"নাম": d.get("name") or "-", "ফোন নম্বর": d.get("phoneNumber") or "-"}
        if include_profession:
            row["পেশা"] = d.get("profession") or "-"
        row["MyGP ব্যবহার"] = "হ্যাঁ" if d.get("useMyGP") == "yes" else "না"
        row["কারণ"] = d.get("reason") or "-"
        row["তারিখ"] = format_date_bn(d.get("timestamp"))
        rows.append(row)
    return pd.DataFrame(rows)


@st.cache_resource
def get_service() -> SurveyService:
    config = load_config()
    configure_logging(config.log_level)
    svc = SurveyService.from_config(config)
    if config.auto_refresh_enabled:
        svc.start_auto_refresh(immediate=True)
    return svc


# ---------- UI setup ----------
st.set_page_config(page_title="MyGP সার্ভে", layout="wide")
inject_base_styles()
st.title("MyGP সার্ভে")
st.caption("পেশাভিত্তিক MyGP ব্যবহার জরিপ ও রিপোর্ট")

service = get_service()
config = service.config

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["সার্ভে ফর্ম", "ড্যাশবোর্ড", "পেশাভিত্তিক রিপোর্ট", "সকল এন্ট্রি"], index=0)
    st.markdown("---")
    if st.button("🔄 রিফ্রেশ"):
        st.session_state["last_outcome"] = service.refresh(user_initiated=True)
    st.caption(f"মোট এন্ট্রি: {service.store.count()}")

show_outcome(st.session_state.pop("last_outcome", None))

entries = service.current()
snapshot = service.snapshot()

if nav_choice == "সার্ভে ফর্ম":
    if st.session_state.pop("_clear_form", False):
        for key in ["f_name", "f_phone", "f_reason"]:
            st.session_state.pop(key, None)
    with card("নতুন সার্ভে এন্ট্রি"):
        name = st.text_input("নাম (ঐচ্ছিক)", key="f_name")
        phone = st.text_input("ফোন নম্বর", value=config.phone_input_prefix, key="f_phone")
        profession = st.selectbox(
            "পেশা",
            options=list(config.professions),
            format_func=lambda p: f"{PROFESSION_ICONS.get(p, '')} {p}",
            key="f_profession",
        )
        use_mygp = st.radio(
            "MyGP অ্যাপ ব্যবহার করেন?",
            options=["yes", "no"],
            format_func=lambda v: "হ্যাঁ" if v == "yes" else "না",
            horizontal=True,
            key="f_use",
        )
        reason = st.radio(
            "ব্যবহারের কারণ",
            options=list(config.reasons.values()),
            disabled=use_mygp != "yes",
            key="f_reason",
        )
        if st.button("জমা দিন", type="primary"):
            outcome = service.submit(
                {
                    "name": name,
                    "phoneNumber": phone,
                    "profession": profession,
                    "useMyGP": use_mygp,
                    "reason": reason if use_mygp == "yes" else "",
                }
            )
            st.session_state["last_outcome"] = outcome
            if outcome.ok:
                st.session_state["_clear_form"] = True
            st.rerun()

elif nav_choice == "ড্যাশবোর্ড":
    cols = st.columns(4)
    cols[0].metric("মোট সার্ভে", snapshot.total)
    cols[1].metric("MyGP ব্যবহারকারী", snapshot.adopters, f"{snapshot.adoption_rate}%", delta_color="off")
    cols[2].metric("এড দেখেন", snapshot.reason_counts["social_ad"], f"{snapshot.percentages['social_ad']}%", delta_color="off")
    cols[3].metric("এমবি চেক করেন", snapshot.reason_counts["mb_data"], f"{snapshot.percentages['mb_data']}%", delta_color="off")

    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("পেশাভিত্তিক বিতরণ"):
            st.altair_chart(profession_distribution_chart(entries, config), use_container_width=True)
    with chart_cols[1]:
        with card("MyGP ব্যবহারের কারণ"):
            st.altair_chart(usage_reason_chart(entries, config), use_container_width=True)

    with card("সামগ্রিক রিপোর্ট"):
        download_xlsx(
            "📥 সামগ্রিক রিপোর্ট (Excel)",
            lambda: build_overall_report(entries, config),
            report_filename("overall"),
            key="dl_overall",
        )

elif nav_choice == "পেশাভিত্তিক রিপোর্ট":
    for profession, stats in snapshot.by_profession.items():
        with card(f"{PROFESSION_ICONS.get(profession, '')} {profession}", actions=f"{stats.total} টি সার্ভে"):
            cols = st.columns(5)
            cols[0].metric("মোট", stats.total)
            cols[1].metric("MyGP ব্যবহারকারী", stats.adopters)
            cols[2].metric("এড দেখেন", stats.reason_counts["social_ad"])
            cols[3].metric("এমবি চেক করেন", stats.reason_counts["mb_data"])
            cols[4].metric("ব্যবহারের হার", f"{stats.adoption_rate}%")
            prof_records = [r for r in entries if isinstance(r, dict) and r.get("profession") == profession]
            if prof_records:
                with st.expander("বিস্তারিত", expanded=False):
                    st.dataframe(entries_table(prof_records, include_profession=False), use_container_width=True, hide_index=True)
                download_xlsx(
                    f"📥 {profession} রিপোর্ট",
                    lambda p=profession: build_profession_report(entries, p),
                    report_filename("profession", profession=profession),
                    key=f"dl_{profession}",
                )
            else:
                st.caption(MESSAGES["no_data"])

else:
    with card("সকল এন্ট্রি", actions=f"{len(entries)} টি"):
        table = entries_table(entries)
        if table.empty:
            st.caption(MESSAGES["no_data"])
        else:
            st.dataframe(table, use_container_width=True, hide_index=True)
        download_xlsx(
            "📥 সকল এন্ট্রি (Excel)",
            lambda: build_all_entries_report(entries),
            report_filename("all-entries"),
            key="dl_all",
        )
