"""
State holder for the ad management screen.
"""

import logging
from typing import Any, Dict, List, Optional, Set

import pandas as pd

from models.data_models import Ad, AdAnalytics, AdStatus
from services.ad_service import AdService
from services.exceptions import NotAuthenticatedError
from . import ad_analytics
from .screen_state import ConfirmCallback, ScreenState

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FILTER_OPTIONS = [ad_analytics.FILTER_ALL] + AdStatus.values()


class AdManagementState(ScreenState):
    """
    Lists the user's ads with filter, search and sort, and applies status
    changes and deletions followed by a full re-fetch.
    """

    screen_name = "AdManagement"

    def __init__(self, ad_service: AdService, **kwargs):
        super().__init__(**kwargs)
        self.ad_service = ad_service
        self.selected_filter = ad_analytics.FILTER_ALL
        self.selected_sort = 'created_desc'
        self.search_query = ''
        self.selected_ids: Set[str] = set()
        self.analytics: Dict[str, AdAnalytics] = {}
        self.analytics_loading = False
        self.analytics_error: Optional[str] = None

    async def fetch(self) -> List[Ad]:
        return await self.ad_service.get_user_ads()

    @property
    def ads(self) -> List[Ad]:
        return self.records

    @property
    def visible_ads(self) -> List[Ad]:
        """Ads after status filter, search and sort."""
        ads = ad_analytics.filter_by_status(self.records, self.selected_filter)
        ads = ad_analytics.search_ads(ads, self.search_query)
        return ad_analytics.sort_ads(ads, self.selected_sort)

    @property
    def summary(self) -> Dict[str, Any]:
        return ad_analytics.summarize(self.records)

    def set_filter(self, value: str):
        if value not in FILTER_OPTIONS:
            raise ValueError(f"Unknown filter '{value}'")
        self._set_state(selected_filter=value)

    def set_sort(self, value: str):
        if value not in ad_analytics.SORT_OPTIONS:
            raise ValueError(f"Unknown sort '{value}'")
        self._set_state(selected_sort=value)

    def set_search_query(self, value: str):
        self._set_state(search_query=value or '')

    async def update_status(self, ad: Ad, new_status: str) -> bool:
        """Change one ad's status, then reload the list."""
        return await self.run_mutation(
            "Update ad status",
            lambda: self.ad_service.update_ad_status(ad.ad_id, new_status),
            f"Ad status updated to {new_status.upper()}"
        )

    async def delete_ad(self, ad: Ad, confirm: ConfirmCallback) -> bool:
        """Delete one ad after the user confirms, then reload the list."""
        confirmed = await confirm(
            "Delete Advertisement",
            f"Are you sure you want to delete \"{ad.title}\"? This action cannot be undone."
        )
        if not confirmed:
            logger.info(f"Delete of ad {ad.ad_id} cancelled")
            return False

        return await self.run_mutation(
            "Delete ad",
            lambda: self.ad_service.delete_ad(ad.ad_id),
            f"Ad \"{ad.title}\" deleted successfully"
        )

    # Multi-select

    def toggle_selection(self, ad_id: str):
        selected = set(self.selected_ids)
        if ad_id in selected:
            selected.remove(ad_id)
        else:
            selected.add(ad_id)
        self._set_state(selected_ids=selected)

    def clear_selection(self):
        self._set_state(selected_ids=set())

    async def bulk_update_status(self, new_status: str) -> bool:
        """Apply one status to every selected ad, sequentially, then reload once."""
        ad_ids = sorted(self.selected_ids)
        if not ad_ids:
            return False

        async def update_all():
            for ad_id in ad_ids:
                await self.ad_service.update_ad_status(ad_id, new_status)

        self.clear_selection()
        return await self.run_mutation(
            "Bulk update ad status",
            update_all,
            f"{len(ad_ids)} ads updated to {new_status.upper()}"
        )

    async def bulk_delete(self, confirm: ConfirmCallback) -> bool:
        ad_ids = sorted(self.selected_ids)
        if not ad_ids:
            return False

        confirmed = await confirm(
            "Delete Multiple Ads",
            f"Are you sure you want to delete {len(ad_ids)} selected ads? This action cannot be undone."
        )
        if not confirmed:
            return False

        async def delete_all():
            for ad_id in ad_ids:
                await self.ad_service.delete_ad(ad_id)

        self.clear_selection()
        return await self.run_mutation(
            "Bulk delete ads",
            delete_all,
            f"{len(ad_ids)} ads deleted successfully"
        )

    # Per-ad analytics

    @property
    def analytics_frame(self) -> pd.DataFrame:
        return ad_analytics.analytics_to_dataframe(self.analytics.values())

    async def load_analytics(self) -> bool:
        """
        Fetch backend analytics for every listed ad, one request at a time.

        An ad whose request fails is skipped. If no ad could be fetched, the
        previous figures stay visible and ``analytics_error`` is set.

        Returns:
            True if fresh analytics were stored
        """
        ads = list(self.records)
        if not self._set_state(analytics_loading=True, analytics_error=None):
            return False

        results: Dict[str, AdAnalytics] = {}
        last_error = None
        for ad in ads:
            try:
                results[ad.ad_id] = await self.ad_service.get_ad_analytics(ad.ad_id)
            except NotAuthenticatedError as e:
                logger.info(f"{self.screen_name}: sign-in required ({str(e)})")
                self._set_state(analytics_loading=False, requires_sign_in=True)
                return False
            except Exception as e:
                logger.warning(f"Analytics for ad {ad.ad_id} failed: {str(e)}")
                last_error = e

        logger.info(f"Fetched analytics for {len(results)} of {len(ads)} ads")
        if last_error is not None and not results:
            error_info = self.errors.classify_error(last_error, "Fetch ad analytics")
            self.errors.log_error(error_info, self.screen_name)
            self._set_state(analytics_loading=False, analytics_error=error_info.user_message)
            return False

        return self._set_state(analytics=results, analytics_loading=False, analytics_error=None)
