"""
Ad campaign operations against the backend.
"""

import logging
from typing import Any, Dict, List, Optional

from models.data_models import Ad, AdAnalytics, AdStatus
from .auth_service import AuthService
from .client import BackendClient
from .exceptions import BackendError
from .parsers import AdAnalyticsParser, AdParser

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class AdService:
    """List, create, update and delete the signed-in user's ads."""

    def __init__(self, client: BackendClient, auth_service: AuthService):
        self.client = client
        self.auth_service = auth_service
        self.parser = AdParser()
        self.analytics_parser = AdAnalyticsParser()

    async def get_user_ads(self) -> List[Ad]:
        """
        Fetch every ad owned by the current user, in backend order.

        Raises:
            NotAuthenticatedError: When nobody is signed in
            BackendError: On unexpected responses
        """
        user = await self.auth_service.require_user()
        logger.info(f"Fetching ads for user ID: {user.user_id}")

        response = await self.client.request('GET', f'/api/ads/user/{user.user_id}', token=user.token)
        body = BackendClient.raise_for_status(response, "Fetch ads")
        try:
            ads = self.parser.parse_list(body)
        except ValueError as e:
            raise BackendError(f"Fetch ads returned malformed data: {str(e)}", response.status_code, body)
        logger.info(f"Successfully fetched {len(ads)} ads")
        return ads

    async def get_active_ads(self) -> List[Ad]:
        """Fetch all currently active ads (public endpoint)."""
        response = await self.client.request('GET', '/api/ads/active')
        body = BackendClient.raise_for_status(response, "Fetch active ads")
        return self.parser.parse_list(body)

    async def create_ad(self, title: str, description: str, ad_type: str, budget: int,
                        target_audience: str = 'all', target_keywords: Optional[List[str]] = None,
                        image_url: Optional[str] = None, video_url: Optional[str] = None,
                        link: Optional[str] = None) -> Ad:
        """
        Create a draft ad.

        Args:
            budget: Budget in minor currency units
        """
        if budget < 0:
            raise ValueError("Validation failed: budget must not be negative")
        user = await self.auth_service.require_user()

        payload: Dict[str, Any] = {
            'title': title,
            'description': description,
            'adType': ad_type,
            'budget': budget,
            'targetAudience': target_audience,
            'targetKeywords': target_keywords or [],
            'status': AdStatus.DRAFT.value,
        }
        for key, value in (('imageUrl', image_url), ('videoUrl', video_url), ('link', link)):
            if value:
                payload[key] = value

        response = await self.client.request('POST', '/api/ads', token=user.token, json=payload)
        body = BackendClient.raise_for_status(response, "Create ad", expected=(200, 201))
        ad = self.parser.parse(body.get('ad', body) if isinstance(body, dict) else body)
        logger.info(f"Created ad {ad.ad_id}")
        return ad

    async def update_ad_status(self, ad_id: str, status: str) -> Ad:
        """
        Change an ad's status; the backend validates the transition.

        Raises:
            ValueError: If status is not a known ad status
        """
        if status not in AdStatus.values():
            raise ValueError(f"Validation failed: unknown ad status '{status}'")
        user = await self.auth_service.require_user()

        response = await self.client.request(
            'PATCH', f'/api/ads/{ad_id}/status', token=user.token, json={'status': status}
        )
        body = BackendClient.raise_for_status(response, "Update ad status")
        logger.info(f"Ad {ad_id} status updated to {status}")
        return self.parser.parse(body.get('ad', body) if isinstance(body, dict) else body)

    async def delete_ad(self, ad_id: str) -> bool:
        """Delete an ad. Returns True when the backend confirmed the deletion."""
        user = await self.auth_service.require_user()
        logger.info(f"Starting delete for ad ID: {ad_id}")

        response = await self.client.request('DELETE', f'/api/ads/{ad_id}', token=user.token)
        BackendClient.raise_for_status(response, "Delete ad", expected=(200, 204))
        logger.info(f"Ad {ad_id} deleted successfully")
        return True

    async def get_ad_analytics(self, ad_id: str) -> AdAnalytics:
        """
        Fetch backend-computed performance figures for one of the user's ads.

        Raises:
            NotAuthenticatedError: When nobody is signed in
            BackendError: On 403/404 and other unexpected responses
        """
        user = await self.auth_service.require_user()

        response = await self.client.request(
            'GET', f'/api/ads/analytics/{ad_id}', token=user.token, params={'userId': user.user_id}
        )
        body = BackendClient.raise_for_status(response, "Fetch ad analytics")
        try:
            return self.analytics_parser.parse(body, ad_id)
        except ValueError as e:
            raise BackendError(f"Fetch ad analytics failed: {str(e)}", response.status_code, body)
