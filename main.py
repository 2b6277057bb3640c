"""
Main entry point for the Ad & Report Console.
"""
import logging
import streamlit as st

# Set up logging
logger = logging.getLogger(__name__)
from config.settings import config_manager
from business_logic.app_context import AppContext
from business_logic.ad_management import AdManagementState
from business_logic.reports import ReportsState
from business_logic.screen_state import ScreenState
from business_logic.video_screen import VideoScreenState
from business_logic.error_handler import error_handler
from ui.components import (
    AdManagementComponent,
    ReportsComponent,
    SignInComponent,
    VideoScreenComponent,
    display_error_statistics,
    run_async,
)
from ui.video_surface import StreamlitVideoSurface

PAGES = ["Ad Management", "My Reports", "Videos"]


def get_context() -> AppContext:
    """Create the session's application context on first use."""
    if 'app_context' not in st.session_state:
        config = config_manager.load_config()
        logging.getLogger().setLevel(config_manager.get_logging_settings()['level'])
        st.session_state['app_context'] = AppContext.create(config)
    return st.session_state['app_context']


def build_screen(page: str, context: AppContext) -> ScreenState:
    """Construct the state holder for a page."""
    if page == "Ad Management":
        return AdManagementState(context.ad_service)
    if page == "My Reports":
        return ReportsState(context.report_service, page_size=context.config.default_page_size)

    surface = StreamlitVideoSurface()
    st.session_state['video_surface'] = surface
    return VideoScreenState(context.playback, surface, context.ad_service.get_active_ads)


def release_screen():
    """Dispose the mounted page, pausing any playback it started."""
    current = st.session_state.pop('screen', None)
    st.session_state.pop('page', None)
    if current is not None:
        current.dispose()
    surface = st.session_state.pop('video_surface', None)
    if surface is not None:
        surface.dispose()


def end_session():
    """
    Tear the session down at sign-out and start a fresh, signed-out context.

    A configured token only signs the first session in; it is not reapplied.
    """
    release_screen()
    context = st.session_state.pop('app_context', None)
    if context is None:
        return
    context.close()
    fresh = AppContext.create(context.config)
    fresh.auth_service.sign_out()
    st.session_state['app_context'] = fresh


def switch_screen(page: str, context: AppContext) -> bool:
    """
    Dispose the previous page's state and mount the new one.

    Returns:
        True if the page was (re)mounted during this run
    """
    if st.session_state.get('screen') is not None and st.session_state.get('page') == page:
        return False

    release_screen()
    logger.info(f"Mounting page: {page}")

    screen = build_screen(page, context)
    st.session_state['page'] = page
    st.session_state['screen'] = screen
    run_async(screen.mount())
    return True


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="Ad & Report Console",
        page_icon="📢",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    st.title("📢 Ad & Report Console")

    # Load configuration
    try:
        context = get_context()
    except ValueError as e:
        st.error(f"❌ Configuration Error: {e}")
        st.stop()

    signed_in = SignInComponent(context.auth_service, on_sign_out=end_session).render()

    page = st.sidebar.radio("Navigate", PAGES)
    if not signed_in and page != "Videos":
        release_screen()
        st.info("🔐 Sign in from the sidebar to manage your ads and reports.")
        return

    mounted_now = switch_screen(page, context)
    screen = st.session_state['screen']

    if page == "Ad Management":
        AdManagementComponent(screen).render()
    elif page == "My Reports":
        ReportsComponent(screen).render()
    else:
        VideoScreenComponent(screen, st.session_state['video_surface']).render(first_render=mounted_now)

    with st.sidebar.expander("📊 Diagnostics"):
        display_error_statistics(error_handler.get_error_statistics())
        st.caption(f"Active playback surfaces: {context.playback.active_count}")


if __name__ == "__main__":
    main()
