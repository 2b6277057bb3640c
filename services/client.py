"""
Thin asynchronous HTTP client for the backend API.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .exceptions import BackendError, BackendUnavailableError, NotAuthenticatedError

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class BackendClient:
    """
    Issues authenticated requests against the backend.

    A fresh ``httpx.AsyncClient`` is opened per request so the client is not
    tied to any particular event loop; Streamlit reruns start a new loop each
    time a screen action executes.
    """

    def __init__(self, base_url: str, timeout: float = 20.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the client.

        Args:
            base_url: Backend root, e.g. ``https://api.example.com``
            timeout: Per-request timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    async def request(self, method: str, path: str, token: Optional[str] = None,
                      json: Any = None, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """
        Send one request and return the raw response.

        Raises:
            BackendUnavailableError: On connection failures and timeouts
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method, url, headers=self._headers(token), json=json, params=params
                )
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out: {str(e)}")
            raise BackendUnavailableError(f"Request timeout: {method} {path}") from e
        except httpx.TransportError as e:
            logger.error(f"{method} {path} connection failed: {str(e)}")
            raise BackendUnavailableError(f"Connection failed: {method} {path}: {str(e)}") from e

        logger.info(f"{method} {path} -> {response.status_code}")
        return response

    @staticmethod
    def decode(response: httpx.Response) -> Any:
        """Return the JSON body, falling back to the raw text."""
        try:
            return response.json()
        except ValueError:
            return {'raw': response.text}

    @classmethod
    def raise_for_status(cls, response: httpx.Response, context: str, expected=(200,)) -> Any:
        """
        Check the status code and return the decoded body.

        Raises:
            NotAuthenticatedError: On 401
            BackendError: On any other unexpected status
        """
        body = cls.decode(response)
        if response.status_code in expected:
            return body
        if response.status_code == 401:
            raise NotAuthenticatedError(f"{context}: credential rejected")
        message = body.get('message') or body.get('error') if isinstance(body, dict) else None
        raise BackendError(
            f"{context} failed with status {response.status_code}: {message or response.text}",
            status_code=response.status_code,
            body=body
        )
