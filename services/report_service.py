"""
Content report operations against the backend.
"""

import logging
from typing import Any, Dict, List, Optional

from models.data_models import REPORT_TYPE_NAMES, Report
from .auth_service import AuthService
from .client import BackendClient
from .exceptions import BackendError
from .parsers import ReportParser

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REPORT_TARGET_FIELDS = {
    'user': 'reportedUser',
    'video': 'reportedVideo',
    'comment': 'reportedComment',
}


class ReportService:
    """Read and submit content reports for the signed-in user."""

    def __init__(self, client: BackendClient, auth_service: AuthService):
        self.client = client
        self.auth_service = auth_service
        self.parser = ReportParser()

    async def get_reports_by_user(self, user_id: Optional[str] = None,
                                  limit: Optional[int] = None) -> List[Report]:
        """
        Fetch reports submitted by a user (defaults to the signed-in user).

        Raises:
            NotAuthenticatedError: When nobody is signed in
            BackendError: On unexpected responses
        """
        user = await self.auth_service.require_user()
        target_id = user_id or user.user_id
        params = {'limit': limit} if limit else None

        response = await self.client.request(
            'GET', f'/api/reports/user/{target_id}', token=user.token, params=params
        )
        body = BackendClient.raise_for_status(response, "Fetch reports")
        try:
            reports = self.parser.parse_envelope(body)
        except ValueError as e:
            raise BackendError(f"Fetch reports failed: {str(e)}", response.status_code, body)
        logger.info(f"Fetched {len(reports)} reports for user {target_id}")
        return reports

    async def get_report(self, report_id: str) -> Report:
        user = await self.auth_service.require_user()
        response = await self.client.request('GET', f'/api/reports/{report_id}', token=user.token)
        body = BackendClient.raise_for_status(response, "Fetch report")
        return self.parser.parse(body.get('data', body) if isinstance(body, dict) else body)

    async def create_report(self, target_kind: str, target_id: str, report_type: str,
                            reason: str, description: str = '') -> Report:
        """
        Submit a report against a user, video or comment.

        Raises:
            ValueError: On an unknown target kind, report type or empty reason
        """
        if target_kind not in REPORT_TARGET_FIELDS:
            raise ValueError(f"Validation failed: unknown report target '{target_kind}'")
        if report_type not in REPORT_TYPE_NAMES:
            raise ValueError(f"Validation failed: unknown report type '{report_type}'")
        if not reason.strip():
            raise ValueError("Validation failed: a reason is required")

        user = await self.auth_service.require_user()
        payload: Dict[str, Any] = {
            REPORT_TARGET_FIELDS[target_kind]: target_id,
            'type': report_type,
            'reason': reason.strip(),
            'description': description.strip(),
        }

        response = await self.client.request('POST', '/api/reports', token=user.token, json=payload)
        body = BackendClient.raise_for_status(response, "Submit report", expected=(200, 201))
        report = self.parser.parse(body.get('data', body) if isinstance(body, dict) else body)
        logger.info(f"Report {report.report_id} submitted")
        return report
