"""
UI components for the Ad & Report Console.

Components render a screen state holder with Streamlit and translate widget
interactions into state holder calls. Coroutines are run to completion with
``run_async`` since a Streamlit script run is synchronous.
"""

import asyncio
import streamlit as st
from typing import Any, Callable, Coroutine, Dict, List, Optional
import logging
import pandas as pd

from models.data_models import Ad, Report, ReportStatus, REPORT_TYPE_NAMES
from business_logic import ad_analytics
from business_logic.ad_management import AdManagementState, FILTER_OPTIONS
from business_logic.reports import ReportsState, STATUS_FILTER_ALL
from business_logic.screen_state import ScreenState
from business_logic.video_screen import VideoScreenState
from services.auth_service import AuthService
from ui.video_surface import StreamlitVideoSurface

logger = logging.getLogger(__name__)


def run_async(coro: Coroutine) -> Any:
    """Run one screen action to completion on a fresh event loop."""
    return asyncio.run(coro)


def confirmed():
    """Confirmation callback for actions the user already confirmed in the UI."""
    async def _confirm(title: str, message: str) -> bool:
        logger.info(f"Confirmed: {title}")
        return True
    return _confirm


def display_notification(state: ScreenState):
    """
    Show the state's pending notification as a banner.

    Returns True if the user asked to retry.
    """
    notification = state.notification
    if not notification:
        return False

    text = f"**{notification['title']}**: {notification['message']}"
    kind = notification.get('type', 'info')
    if kind == 'success':
        st.success(f"✅ {text}")
    elif kind == 'warning':
        st.warning(f"⚠️ {text}")
    elif kind == 'error':
        st.error(f"❌ {text}")
    else:
        st.info(f"ℹ️ {text}")

    if notification.get('action'):
        st.caption(notification['action'])

    retry = False
    col1, col2 = st.columns(2)
    with col1:
        if notification.get('retry_possible'):
            retry = st.button("🔄 Retry", key=f"retry_{state.screen_name}")
    with col2:
        if st.button("Dismiss", key=f"dismiss_{state.screen_name}"):
            state.dismiss_notification()
    return retry


def display_screen_status(state: ScreenState) -> bool:
    """
    Render loading, sign-in and error states shared by every screen.

    Returns:
        True if the screen body should be rendered
    """
    if state.requires_sign_in:
        st.info("🔐 Please sign in from the sidebar to see this page.")
        return False

    if state.is_loading and not state.records:
        st.info("⏳ Loading...")
        return False

    if state.error_message:
        st.error(f"❌ {state.error_message}")
        if st.button("🔄 Retry", key=f"reload_{state.screen_name}"):
            run_async(state.load())
            st.rerun()

    return True


class SignInComponent:
    """Sidebar sign-in with a bearer token, plus the token diagnostic."""

    def __init__(self, auth_service: AuthService, on_sign_out: Optional[Callable[[], None]] = None):
        self.auth_service = auth_service
        self.on_sign_out = on_sign_out

    def render(self) -> bool:
        """Render the sidebar block. Returns True when signed in."""
        st.sidebar.subheader("👤 Account")

        if self.auth_service.is_signed_in():
            profile = None
            try:
                profile = run_async(self.auth_service.get_user_data())
            except Exception as e:
                logger.error(f"Profile lookup failed: {str(e)}")
                st.sidebar.warning("Could not load your profile. The server may be unreachable.")

            if profile is not None:
                st.sidebar.write(f"**{profile.name}**")
                st.sidebar.caption(profile.email)
            if st.sidebar.button("Sign out"):
                self.auth_service.sign_out()
                if self.on_sign_out:
                    self.on_sign_out()
                st.rerun()
        else:
            token = st.sidebar.text_input("Access token", type="password")
            if st.sidebar.button("Sign in") and token:
                try:
                    self.auth_service.sign_in(token)
                    st.rerun()
                except ValueError as e:
                    st.sidebar.error(str(e))

        with st.sidebar.expander("🛠️ Token diagnostics"):
            debug_token = st.text_input("Token to check", type="password", key="debug_token")
            if st.button("Check token", key="debug_check"):
                try:
                    result = run_async(self.auth_service.debug_token(debug_token or None))
                    st.write(f"Status: {result.status_code}")
                    st.json(result.body)
                except Exception as e:
                    st.error(f"Diagnostic request failed: {str(e)}")

        return self.auth_service.is_signed_in()


class AdManagementComponent:
    """
    Ad management screen: overview cards, filter/search/sort controls, the ad
    list with status actions, and multi-select bulk operations.
    """

    def __init__(self, state: AdManagementState):
        """
        Initialize the component.

        Args:
            state: Mounted AdManagementState for this session
        """
        self.state = state

    def render(self):
        st.subheader("📢 Ad Management")

        if display_notification(self.state):
            run_async(self.state.load())
            st.rerun()

        if not display_screen_status(self.state):
            return

        self._render_overview()
        self._render_controls()

        tab_list, tab_analytics = st.tabs(["Ads", "Analytics"])
        with tab_list:
            self._render_ad_list(self.state.visible_ads)
        with tab_analytics:
            self._render_analytics()

    def _render_overview(self):
        summary = self.state.summary
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Total Ads", summary['total_ads'])
        col2.metric("Active", summary['status_counts'].get('active', 0))
        col3.metric("Impressions", f"{summary['total_impressions']:,}")
        col4.metric("Total Budget", summary['total_budget'])

    def _render_controls(self):
        col1, col2, col3 = st.columns([2, 1, 1])
        with col1:
            query = st.text_input("🔍 Search ads", value=self.state.search_query,
                                  placeholder="Title, description or keyword")
            if query != self.state.search_query:
                self.state.set_search_query(query)
        with col2:
            selected = st.selectbox(
                "Status",
                options=FILTER_OPTIONS,
                index=FILTER_OPTIONS.index(self.state.selected_filter),
                format_func=lambda value: value.capitalize()
            )
            if selected != self.state.selected_filter:
                self.state.set_filter(selected)
        with col3:
            sort_keys = list(ad_analytics.SORT_OPTIONS)
            sort = st.selectbox(
                "Sort by",
                options=sort_keys,
                index=sort_keys.index(self.state.selected_sort),
                format_func=lambda key: ad_analytics.SORT_OPTIONS[key]
            )
            if sort != self.state.selected_sort:
                self.state.set_sort(sort)

        if st.button("🔄 Refresh"):
            run_async(self.state.load())
            st.rerun()

        if self.state.selected_ids:
            self._render_bulk_actions()

    def _render_bulk_actions(self):
        count = len(self.state.selected_ids)
        st.info(f"{count} ad(s) selected")
        col1, col2, col3, col4 = st.columns(4)
        if col1.button("▶️ Activate selected"):
            run_async(self.state.bulk_update_status('active'))
            st.rerun()
        if col2.button("⏸️ Pause selected"):
            run_async(self.state.bulk_update_status('paused'))
            st.rerun()
        if col3.button("🗑️ Delete selected"):
            st.session_state['pending_bulk_delete'] = True
        if col4.button("Clear selection"):
            self.state.clear_selection()
            st.rerun()

        if st.session_state.get('pending_bulk_delete'):
            st.warning(f"Delete {count} selected ads? This action cannot be undone.")
            if st.button("Confirm delete", key="confirm_bulk_delete"):
                st.session_state['pending_bulk_delete'] = False
                run_async(self.state.bulk_delete(confirmed()))
                st.rerun()
            if st.button("Cancel", key="cancel_bulk_delete"):
                st.session_state['pending_bulk_delete'] = False
                st.rerun()

    def _render_ad_list(self, ads: List[Ad]):
        if not ads:
            if self.state.selected_filter == ad_analytics.FILTER_ALL:
                st.info("No advertisements yet. Create your first ad to get started.")
            else:
                st.info(f"No {self.state.selected_filter} advertisements found.")
            return

        for ad in ads:
            with st.container():
                col_select, col_body, col_actions = st.columns([1, 6, 3])
                with col_select:
                    checked = st.checkbox("Select", value=ad.ad_id in self.state.selected_ids,
                                          key=f"select_{ad.ad_id}", label_visibility="collapsed")
                    if checked != (ad.ad_id in self.state.selected_ids):
                        self.state.toggle_selection(ad.ad_id)
                with col_body:
                    st.write(f"**{ad.title}** · {ad.status.upper()} · {ad.ad_type}")
                    st.caption(
                        f"Budget {ad.formatted_budget} · {ad.impressions:,} impressions · "
                        f"{ad.clicks:,} clicks · CTR {ad.formatted_ctr}"
                    )
                with col_actions:
                    self._render_ad_actions(ad)
                self._render_ad_details(ad)
                st.divider()

    def _render_ad_details(self, ad: Ad):
        sections = ad_analytics.ad_detail_sections(ad, self.state.analytics.get(ad.ad_id))
        with st.expander("Details"):
            tabs = st.tabs(list(sections))
            for tab, fields in zip(tabs, sections.values()):
                with tab:
                    for label, value in fields.items():
                        st.write(f"**{label}:** {value}")

    def _render_ad_actions(self, ad: Ad):
        if ad.status == 'active':
            if st.button("⏸️ Pause", key=f"pause_{ad.ad_id}"):
                run_async(self.state.update_status(ad, 'paused'))
                st.rerun()
        elif ad.status in ('paused', 'draft'):
            if st.button("▶️ Activate", key=f"activate_{ad.ad_id}"):
                run_async(self.state.update_status(ad, 'active'))
                st.rerun()

        pending_key = f"pending_delete_{ad.ad_id}"
        if st.button("🗑️ Delete", key=f"delete_{ad.ad_id}"):
            st.session_state[pending_key] = True

        if st.session_state.get(pending_key):
            st.warning(f"Delete \"{ad.title}\"?")
            if st.button("Confirm", key=f"confirm_{ad.ad_id}"):
                st.session_state[pending_key] = False
                run_async(self.state.delete_ad(ad, confirmed()))
                st.rerun()

    def _render_analytics(self):
        ads = self.state.ads
        if not ads:
            st.info("Analytics appear once you have ads.")
            return

        st.write("**Performance by ad type**")
        by_type = ad_analytics.performance_by_type(ads)
        by_type['avg_ctr'] = (by_type['avg_ctr'] * 100).round(2)
        st.dataframe(by_type, use_container_width=True, hide_index=True)

        st.write("**Top performing ads**")
        top = ad_analytics.ads_to_dataframe(ad_analytics.top_performing(ads))
        st.dataframe(top[['title', 'status', 'impressions', 'clicks', 'ctr']],
                     use_container_width=True, hide_index=True)

        st.write("**Insights**")
        for message in ad_analytics.insights(ads):
            st.write(f"• {message}")

        self._render_backend_analytics()

    def _render_backend_analytics(self):
        st.write("**Per-ad analytics**")
        if st.button("📊 Load analytics", key="load_ad_analytics"):
            run_async(self.state.load_analytics())
            st.rerun()

        if self.state.analytics_error:
            st.error(f"❌ {self.state.analytics_error}")

        frame = self.state.analytics_frame
        if frame.empty:
            st.caption("No per-ad analytics loaded yet.")
            return

        st.dataframe(
            frame.rename(columns={'ctr_pct': 'CTR %', 'delivered': 'Delivered %'}),
            use_container_width=True,
            hide_index=True
        )
        col1, col2 = st.columns(2)
        col1.metric("Total Spend", f"${frame['spend'].sum():.2f}")
        col2.metric("Creator Revenue", f"${frame['revenue'].sum():.2f}")


class ReportsComponent:
    """My Reports screen with a status filter and a submission form."""

    def __init__(self, state: ReportsState):
        self.state = state

    def render(self):
        st.subheader("🚩 My Reports")

        if display_notification(self.state):
            run_async(self.state.load())
            st.rerun()

        if not display_screen_status(self.state):
            return

        options = [STATUS_FILTER_ALL] + ReportStatus.values()
        selected = st.selectbox(
            "Status",
            options=options,
            index=options.index(self.state.selected_status),
            format_func=lambda value: 'All' if value == STATUS_FILTER_ALL else ReportStatus(value).display_name
        )
        if selected != self.state.selected_status:
            self.state.set_status_filter(selected)

        reports = self.state.visible_reports
        if not self.state.reports:
            st.info("No reports submitted yet. Help keep our community safe by reporting inappropriate content.")
        elif not reports:
            st.info("No reports with this status.")
        else:
            for report in reports:
                self._render_report(report)

        self._render_report_form()

    def _render_report(self, report: Report):
        with st.expander(f"{report.type_display_name} · {report.status_display_name} · {report.reported_content}"):
            st.write(f"**Reason:** {report.reason}")
            if report.description:
                st.write(report.description)
            st.caption(
                f"Priority {report.priority_display_name} · Severity {report.severity_display_name} · "
                f"Submitted {report.created_at:%d/%m/%Y}"
            )
            st.write(f"**Action taken:** {report.action_taken_display_name}")
            if report.resolution:
                st.write(f"**Resolution:** {report.resolution}")

    def _render_report_form(self):
        st.subheader("Report Content")
        with st.form("report_form", clear_on_submit=True):
            target_kind = st.radio("What are you reporting?", options=['video', 'user', 'comment'], horizontal=True)
            target_id = st.text_input("ID of the reported item *")
            report_type = st.selectbox(
                "Type *", options=list(REPORT_TYPE_NAMES), format_func=lambda key: REPORT_TYPE_NAMES[key]
            )
            reason = st.text_input("Reason *")
            description = st.text_area("Details")
            submitted = st.form_submit_button("Submit Report")

        if submitted:
            if not target_id.strip() or not reason.strip():
                st.error("❌ Please fill in the reported item ID and a reason.")
                return
            run_async(self.state.submit_report(target_kind, target_id.strip(), report_type, reason, description))
            st.rerun()


class VideoScreenComponent:
    """Video screen: renders the current video on the screen's playback surface."""

    def __init__(self, state: VideoScreenState, surface: StreamlitVideoSurface):
        self.state = state
        self.surface = surface

    def render(self, first_render: bool = False):
        st.subheader("🎬 Videos")

        if display_notification(self.state):
            run_async(self.state.load())
            st.rerun()

        if not display_screen_status(self.state):
            return

        video = self.state.current_video
        if video is None:
            st.info("No videos to play right now.")
            return

        if first_render:
            run_async(self.state.on_first_frame())

        self.surface.render(video.video_url)
        st.caption(f"**{video.title}** · {video.uploader_name}")

        col1, col2, col3 = st.columns(3)
        if col1.button("⏮️ Previous", disabled=self.state.current_index == 0):
            self.state.select(self.state.current_index - 1)
            st.rerun()
        if col2.button("⏸️ Pause" if self.surface.is_playing else "▶️ Play"):
            if self.surface.is_playing:
                self.state.pause()
            else:
                self.state.coordinator.force_play_current(self.state.handle)
            st.rerun()
        if col3.button("⏭️ Next", disabled=self.state.current_index >= len(self.state.records) - 1):
            self.state.select(self.state.current_index + 1)
            st.rerun()


def display_error_statistics(statistics: Dict[str, Any], container: Optional[Any] = None):
    """Diagnostics panel summarising recent errors."""
    target = container or st
    if statistics.get('total_errors', 0) == 0:
        target.caption("No errors recorded in this session.")
        return
    target.write(f"Errors this session: {statistics['total_errors']}")
    breakdown = statistics.get('category_breakdown', {})
    if breakdown:
        target.dataframe(
            pd.DataFrame(sorted(breakdown.items()), columns=['category', 'count']),
            hide_index=True
        )
