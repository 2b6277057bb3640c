"""
Tests for the screen state holders (ad management and reports).
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from business_logic.ad_management import AdManagementState
from business_logic.error_handler import ErrorHandler
from business_logic.reports import ReportsState
from business_logic.screen_state import ScreenState
from models.data_models import Ad, AdAnalytics, Report
from services.exceptions import BackendError, BackendUnavailableError, NotAuthenticatedError


def make_ad(ad_id, status, budget=0):
    return Ad(
        ad_id=ad_id,
        title=f"Ad {ad_id}",
        description="",
        ad_type="banner",
        status=status,
        created_at=datetime(2024, 1, int(ad_id), tzinfo=timezone.utc),
        budget=budget,
    )


def make_report(report_id, status):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return Report(
        report_id=report_id,
        reporter_id="u1",
        reporter_name="Tester",
        report_type="spam",
        reason="Spam link",
        description="",
        status=status,
        created_at=now,
        updated_at=now,
    )


def confirm_with(answer):
    calls = []

    async def confirm(title, message):
        calls.append((title, message))
        return answer

    confirm.calls = calls
    return confirm


@pytest.fixture
def ads():
    return [make_ad("1", "active", 1000), make_ad("2", "draft", 2500), make_ad("3", "active")]


@pytest.fixture
def ad_service(ads):
    service = Mock()
    service.get_user_ads = AsyncMock(return_value=ads)
    service.update_ad_status = AsyncMock()
    service.delete_ad = AsyncMock(return_value=True)
    return service


@pytest.fixture
def state(ad_service):
    return AdManagementState(ad_service, errors=ErrorHandler())


class TestLoading:
    """Mount and load behaviour."""

    def test_base_state_needs_a_fetch(self):
        with pytest.raises(TypeError):
            ScreenState(errors=ErrorHandler())

    def test_mount_loads_ads(self, state, ads):
        assert asyncio.run(state.mount()) is True

        assert state.ads == ads
        assert state.is_loading is False
        assert state.error_message is None
        assert state.summary['total_budget'] == "$35.00"

    def test_failed_refresh_keeps_previous_list(self, state, ad_service, ads):
        asyncio.run(state.mount())
        ad_service.get_user_ads.side_effect = BackendUnavailableError("Connection failed")

        assert asyncio.run(state.load()) is False

        assert state.ads == ads
        assert state.error_message
        assert state.is_loading is False
        assert state.notification['retry_possible'] is True

    def test_failed_first_load_leaves_empty_list(self, ad_service):
        ad_service.get_user_ads.side_effect = BackendError("boom", status_code=500)
        state = AdManagementState(ad_service, errors=ErrorHandler())

        asyncio.run(state.mount())

        assert state.ads == []
        assert "internal error" in state.error_message

    def test_missing_sign_in_is_not_an_error(self, ad_service):
        ad_service.get_user_ads.side_effect = NotAuthenticatedError("User not authenticated")
        state = AdManagementState(ad_service, errors=ErrorHandler())

        asyncio.run(state.mount())

        assert state.requires_sign_in is True
        assert state.error_message is None

    def test_on_change_called_for_each_write(self, ad_service):
        listener = Mock()
        state = AdManagementState(ad_service, on_change=listener, errors=ErrorHandler())

        asyncio.run(state.mount())

        # loading on, then records stored
        assert listener.call_count == 2

    def test_load_after_dispose_does_nothing(self, state, ad_service):
        asyncio.run(state.mount())
        state.dispose()
        ad_service.get_user_ads.reset_mock()

        assert asyncio.run(state.load()) is False
        ad_service.get_user_ads.assert_not_called()

    def test_completion_after_dispose_is_dropped(self, ad_service, ads):
        async def slow_fetch():
            await asyncio.sleep(0.01)
            return ads

        ad_service.get_user_ads = slow_fetch
        state = AdManagementState(ad_service, errors=ErrorHandler())

        async def scenario():
            state.mounted = True
            task = asyncio.ensure_future(state.load())
            await asyncio.sleep(0)
            state.dispose()
            return await task

        assert asyncio.run(scenario()) is False
        assert state.ads == []

    def test_last_response_wins(self, ad_service):
        first = [make_ad("1", "active")]
        second = [make_ad("2", "draft")]

        async def fetch_with_delay(result, delay):
            await asyncio.sleep(delay)
            return result

        responses = iter([fetch_with_delay(first, 0.02), fetch_with_delay(second, 0.0)])
        ad_service.get_user_ads = lambda: next(responses)
        state = AdManagementState(ad_service, errors=ErrorHandler())
        state.mounted = True

        async def scenario():
            await asyncio.gather(state.load(), state.load())

        asyncio.run(scenario())
        assert state.ads == first


class TestFilters:
    """Filter, search and sort state."""

    def test_active_filter(self, state):
        asyncio.run(state.mount())
        state.set_filter("active")
        state.set_sort("created_asc")

        assert [ad.ad_id for ad in state.visible_ads] == ["1", "3"]

    def test_unknown_filter_rejected(self, state):
        asyncio.run(state.mount())
        with pytest.raises(ValueError):
            state.set_filter("archived")

    def test_search(self, state):
        asyncio.run(state.mount())
        state.set_search_query("ad 2")
        assert [ad.ad_id for ad in state.visible_ads] == ["2"]


class TestMutations:
    """Status updates and deletions re-fetch from the backend."""

    def test_update_status_refetches(self, state, ad_service):
        asyncio.run(state.mount())
        ad = state.ads[1]

        assert asyncio.run(state.update_status(ad, "active")) is True

        ad_service.update_ad_status.assert_awaited_once_with("2", "active")
        assert ad_service.get_user_ads.await_count == 2
        assert state.notification['type'] == 'success'
        assert "ACTIVE" in state.notification['message']

    def test_failed_update_still_refetches(self, state, ad_service):
        asyncio.run(state.mount())
        ad_service.update_ad_status.side_effect = BackendError("bad transition", status_code=400)

        assert asyncio.run(state.update_status(state.ads[0], "draft")) is False

        assert ad_service.get_user_ads.await_count == 2
        assert state.notification['type'] == 'warning'

    def test_update_then_dispose_before_refetch(self, ad_service, ads):
        state = AdManagementState(ad_service, errors=ErrorHandler())
        asyncio.run(state.mount())

        async def update_and_navigate_away(ad_id, status):
            state.dispose()

        ad_service.update_ad_status.side_effect = update_and_navigate_away
        ad_service.get_user_ads.reset_mock()
        listener = Mock()
        state._on_change = listener

        asyncio.run(state.update_status(ads[0], "paused"))

        ad_service.get_user_ads.assert_not_called()
        listener.assert_not_called()
        assert state.notification is None

    def test_delete_confirmed(self, state, ad_service):
        asyncio.run(state.mount())
        confirm = confirm_with(True)

        assert asyncio.run(state.delete_ad(state.ads[0], confirm)) is True

        assert confirm.calls[0][0] == "Delete Advertisement"
        ad_service.delete_ad.assert_awaited_once_with("1")
        assert ad_service.get_user_ads.await_count == 2

    def test_delete_cancelled(self, state, ad_service):
        asyncio.run(state.mount())

        assert asyncio.run(state.delete_ad(state.ads[0], confirm_with(False))) is False

        ad_service.delete_ad.assert_not_awaited()
        assert ad_service.get_user_ads.await_count == 1

    def test_bulk_update_status(self, state, ad_service):
        asyncio.run(state.mount())
        state.toggle_selection("1")
        state.toggle_selection("3")

        assert asyncio.run(state.bulk_update_status("paused")) is True

        assert [call.args for call in ad_service.update_ad_status.await_args_list] == [
            ("1", "paused"), ("3", "paused")
        ]
        assert state.selected_ids == set()
        assert ad_service.get_user_ads.await_count == 2

    def test_bulk_delete_without_selection(self, state):
        asyncio.run(state.mount())
        assert asyncio.run(state.bulk_delete(confirm_with(True))) is False

    def test_toggle_selection(self, state):
        asyncio.run(state.mount())
        state.toggle_selection("1")
        state.toggle_selection("1")
        assert state.selected_ids == set()


class TestAnalytics:
    """Per-ad analytics loading."""

    @staticmethod
    def analytics_for(ad_id, spend=1.0):
        return AdAnalytics(ad_id=ad_id, title=f"Ad {ad_id}", status="active", spend=spend)

    def test_loads_figures_for_every_ad(self, state, ad_service):
        asyncio.run(state.mount())
        ad_service.get_ad_analytics = AsyncMock(side_effect=lambda ad_id: self.analytics_for(ad_id))

        assert asyncio.run(state.load_analytics()) is True

        assert sorted(state.analytics) == ["1", "2", "3"]
        assert state.analytics_loading is False
        assert state.analytics_error is None
        assert len(state.analytics_frame) == 3

    def test_failed_ad_is_skipped(self, state, ad_service):
        asyncio.run(state.mount())

        async def fetch(ad_id):
            if ad_id == "2":
                raise BackendError("Access denied", status_code=403)
            return self.analytics_for(ad_id)

        ad_service.get_ad_analytics = fetch

        assert asyncio.run(state.load_analytics()) is True
        assert sorted(state.analytics) == ["1", "3"]
        assert state.analytics_error is None

    def test_total_failure_keeps_previous_figures(self, state, ad_service):
        asyncio.run(state.mount())
        ad_service.get_ad_analytics = AsyncMock(side_effect=lambda ad_id: self.analytics_for(ad_id))
        asyncio.run(state.load_analytics())
        previous = dict(state.analytics)

        ad_service.get_ad_analytics = AsyncMock(side_effect=BackendUnavailableError("Connection failed"))

        assert asyncio.run(state.load_analytics()) is False
        assert state.analytics == previous
        assert state.analytics_error
        assert state.analytics_loading is False

    def test_sign_in_required(self, state, ad_service):
        asyncio.run(state.mount())
        ad_service.get_ad_analytics = AsyncMock(side_effect=NotAuthenticatedError("no token"))

        assert asyncio.run(state.load_analytics()) is False
        assert state.requires_sign_in is True
        assert state.analytics_error is None

    def test_results_dropped_after_dispose(self, state, ad_service):
        asyncio.run(state.mount())

        async def fetch_then_navigate_away(ad_id):
            state.dispose()
            return self.analytics_for(ad_id)

        ad_service.get_ad_analytics = fetch_then_navigate_away

        assert asyncio.run(state.load_analytics()) is False
        assert state.analytics == {}
        assert state.analytics_loading is True


class TestReportsState:
    """Reports screen state."""

    @pytest.fixture
    def report_service(self):
        service = Mock()
        service.get_reports_by_user = AsyncMock(return_value=[
            make_report("r1", "pending"), make_report("r2", "resolved")
        ])
        service.create_report = AsyncMock()
        return service

    def test_load_and_filter(self, report_service):
        state = ReportsState(report_service, page_size=5, errors=ErrorHandler())
        asyncio.run(state.mount())

        report_service.get_reports_by_user.assert_awaited_once_with(limit=5)
        state.set_status_filter("resolved")
        assert [r.report_id for r in state.visible_reports] == ["r2"]

    def test_unknown_status_rejected(self, report_service):
        state = ReportsState(report_service, errors=ErrorHandler())
        asyncio.run(state.mount())
        with pytest.raises(ValueError):
            state.set_status_filter("closed")

    def test_submit_report_refetches(self, report_service):
        state = ReportsState(report_service, errors=ErrorHandler())
        asyncio.run(state.mount())

        assert asyncio.run(state.submit_report("video", "v1", "spam", "Spam link")) is True

        report_service.create_report.assert_awaited_once_with("video", "v1", "spam", "Spam link", "")
        assert report_service.get_reports_by_user.await_count == 2

    def test_submit_validation_error(self, report_service):
        report_service.create_report.side_effect = ValueError("Validation failed: a reason is required")
        state = ReportsState(report_service, errors=ErrorHandler())
        asyncio.run(state.mount())

        assert asyncio.run(state.submit_report("video", "v1", "spam", "")) is False
        assert state.notification['message'] == "a reason is required"
