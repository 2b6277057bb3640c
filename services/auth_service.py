"""
Session provider: current user identity and bearer credential.
"""

import logging
from typing import Optional

from models.data_models import DebugResponse, UserProfile
from .client import BackendClient
from .exceptions import NotAuthenticatedError
from .parsers import UserProfileParser, parse_debug_response

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class AuthService:
    """
    Holds the bearer token for the session and resolves it to a profile.

    The profile is cached after the first successful lookup and dropped on
    sign-out or when the backend rejects the token.
    """

    def __init__(self, client: BackendClient, token: Optional[str] = None):
        self.client = client
        self._token = token
        self._profile: Optional[UserProfile] = None
        self.profile_parser = UserProfileParser()

    def sign_in(self, token: str):
        """Store a bearer token obtained from the identity provider."""
        token = (token or '').strip()
        if not token:
            raise ValueError("Token must not be empty")
        self._token = token
        self._profile = None
        logger.info("Session token stored")

    def sign_out(self):
        self._token = None
        self._profile = None
        logger.info("Signed out")

    def is_signed_in(self) -> bool:
        return bool(self._token)

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def get_user_data(self, force_refresh: bool = False) -> Optional[UserProfile]:
        """
        Fetch the current user's profile.

        Returns:
            UserProfile, or None when nobody is signed in or the token was rejected

        Raises:
            BackendError: On backend failures other than 401
            BackendUnavailableError: When the backend cannot be reached
        """
        if not self._token:
            return None
        if self._profile is not None and not force_refresh:
            return self._profile

        response = await self.client.request('GET', '/api/users/profile', token=self._token)
        try:
            body = BackendClient.raise_for_status(response, "Fetch profile")
        except NotAuthenticatedError:
            logger.warning("Stored token rejected by backend, clearing session")
            self.sign_out()
            return None

        self._profile = self.profile_parser.parse(body, self._token)
        logger.info(f"Loaded profile for user {self._profile.user_id}")
        return self._profile

    async def require_user(self) -> UserProfile:
        """Return the signed-in profile or raise NotAuthenticatedError."""
        profile = await self.get_user_data()
        if profile is None:
            raise NotAuthenticatedError("User not authenticated")
        return profile

    async def debug_token(self, token: Optional[str] = None) -> DebugResponse:
        """
        Query the diagnostic endpoint and return status and body as-is.

        HTTP error statuses are reported in the result, not raised.
        """
        token = token if token is not None else self._token
        response = await self.client.request('GET', '/api/ads/debug/check', token=token)
        return parse_debug_response(response.status_code, BackendClient.decode(response))
