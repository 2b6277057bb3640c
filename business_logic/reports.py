"""
State holder for the "My Reports" screen.
"""

import logging
from typing import List

from models.data_models import Report, ReportStatus
from services.report_service import ReportService
from .screen_state import ScreenState

logger = logging.getLogger(__name__)

STATUS_FILTER_ALL = 'all'


class ReportsState(ScreenState):
    """Lists the signed-in user's reports and submits new ones."""

    screen_name = "Reports"

    def __init__(self, report_service: ReportService, page_size: int = 10, **kwargs):
        super().__init__(**kwargs)
        self.report_service = report_service
        self.page_size = page_size
        self.selected_status = STATUS_FILTER_ALL

    async def fetch(self) -> List[Report]:
        return await self.report_service.get_reports_by_user(limit=self.page_size)

    @property
    def reports(self) -> List[Report]:
        return self.records

    @property
    def visible_reports(self) -> List[Report]:
        if self.selected_status == STATUS_FILTER_ALL:
            return list(self.records)
        return [report for report in self.records if report.status == self.selected_status]

    def set_status_filter(self, value: str):
        if value != STATUS_FILTER_ALL and value not in ReportStatus.values():
            raise ValueError(f"Unknown report status '{value}'")
        self._set_state(selected_status=value)

    async def submit_report(self, target_kind: str, target_id: str, report_type: str,
                            reason: str, description: str = '') -> bool:
        """Submit a report, then reload the list."""
        return await self.run_mutation(
            "Submit report",
            lambda: self.report_service.create_report(
                target_kind, target_id, report_type, reason, description
            ),
            "Report submitted successfully. Our moderators will review it."
        )
