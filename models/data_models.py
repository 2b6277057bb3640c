"""
Core data models for the Ad & Report Console.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class AdStatus(Enum):
    """Lifecycle states of an ad campaign, owned by the backend."""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def values(cls) -> List[str]:
        return [status.value for status in cls]


class ReportStatus(Enum):
    """Moderation states of a content report."""
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
    ESCALATED = "escalated"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def values(cls) -> List[str]:
        return [status.value for status in cls]


REPORT_TYPE_NAMES = {
    'spam': 'Spam',
    'harassment': 'Harassment',
    'hate_speech': 'Hate Speech',
    'inappropriate_content': 'Inappropriate Content',
    'violence': 'Violence',
    'nudity': 'Nudity',
    'copyright_violation': 'Copyright Violation',
    'fake_account': 'Fake Account',
    'scam': 'Scam',
    'underage_user': 'Underage User',
    'other': 'Other',
}

PRIORITY_NAMES = {'low': 'Low', 'medium': 'Medium', 'high': 'High', 'urgent': 'Urgent'}

SEVERITY_NAMES = {'minor': 'Minor', 'moderate': 'Moderate', 'severe': 'Severe', 'critical': 'Critical'}

ACTION_TAKEN_NAMES = {
    'no_action': 'No Action',
    'warning_issued': 'Warning Issued',
    'content_removed': 'Content Removed',
    'user_suspended': 'User Suspended',
    'user_banned': 'User Banned',
    'account_restricted': 'Account Restricted',
    'content_hidden': 'Content Hidden',
    'escalated_to_legal': 'Escalated to Legal',
}


@dataclass
class Ad:
    """Advertisement owned by the signed-in user. Budget is in minor units."""
    ad_id: str
    title: str
    description: str
    ad_type: str
    status: str
    created_at: datetime
    budget: int = 0
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    target_audience: str = "all"
    target_keywords: List[str] = field(default_factory=list)
    uploader_id: str = ""
    uploader_name: str = ""
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    link: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == AdStatus.ACTIVE.value

    @property
    def budget_amount(self) -> float:
        """Budget in major currency units."""
        return self.budget / 100.0

    @property
    def cpm(self) -> float:
        return (self.budget_amount / self.impressions) * 1000 if self.impressions > 0 else 0.0

    @property
    def cpc(self) -> float:
        return self.budget_amount / self.clicks if self.clicks > 0 else 0.0

    @property
    def formatted_budget(self) -> str:
        return f"${self.budget_amount:.2f}"

    @property
    def formatted_ctr(self) -> str:
        return f"{self.ctr * 100:.2f}%"


@dataclass
class AdAnalytics:
    """
    Per-ad performance figures computed by the backend.

    ``ctr`` is a percentage here (2.5 means 2.5%), as the analytics endpoint
    sends it; spend and revenue are in major currency units.
    """
    ad_id: str
    title: str
    status: str
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    spend: float = 0.0
    revenue: float = 0.0
    estimated_impressions: int = 0
    fixed_cpm: float = 0.0

    @property
    def formatted_ctr(self) -> str:
        return f"{self.ctr:.2f}%"

    @property
    def delivery_progress(self) -> float:
        """Share of the estimated impressions delivered so far, capped at 1."""
        if self.estimated_impressions <= 0:
            return 0.0
        return min(self.impressions / self.estimated_impressions, 1.0)


@dataclass
class Evidence:
    """Supporting material attached to a report."""
    url: str
    evidence_type: str
    description: str = ""


@dataclass
class Report:
    """Content report submitted by a user."""
    report_id: str
    reporter_id: str
    reporter_name: str
    report_type: str
    reason: str
    description: str
    status: str
    created_at: datetime
    updated_at: datetime
    priority: str = "medium"
    severity: str = "moderate"
    reported_user_id: Optional[str] = None
    reported_user_name: Optional[str] = None
    reported_video_id: Optional[str] = None
    reported_video_title: Optional[str] = None
    reported_comment_id: Optional[str] = None
    reported_comment_content: Optional[str] = None
    evidence: List[Evidence] = field(default_factory=list)
    assigned_moderator_name: Optional[str] = None
    moderator_notes: Optional[str] = None
    action_taken: Optional[str] = None
    resolution: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    is_repeat_report: bool = False
    related_report_ids: List[str] = field(default_factory=list)

    @property
    def status_display_name(self) -> str:
        try:
            return ReportStatus(self.status).display_name
        except ValueError:
            return 'Unknown'

    @property
    def type_display_name(self) -> str:
        return REPORT_TYPE_NAMES.get(self.report_type, 'Unknown')

    @property
    def priority_display_name(self) -> str:
        return PRIORITY_NAMES.get(self.priority, 'Unknown')

    @property
    def severity_display_name(self) -> str:
        return SEVERITY_NAMES.get(self.severity, 'Unknown')

    @property
    def action_taken_display_name(self) -> str:
        if not self.action_taken:
            return 'Pending'
        return ACTION_TAKEN_NAMES.get(self.action_taken, 'Unknown')

    @property
    def reported_content(self) -> str:
        """Short human-readable description of what was reported."""
        if self.reported_video_title:
            return f"Video: {self.reported_video_title}"
        if self.reported_comment_content:
            return f"Comment: {self.reported_comment_content}"
        if self.reported_user_name:
            return f"User: {self.reported_user_name}"
        return 'Unknown content'


@dataclass
class UserProfile:
    """Signed-in user identity and bearer credential."""
    user_id: str
    name: str
    email: str
    token: str
    profile_pic: Optional[str] = None


@dataclass
class DebugResponse:
    """Raw diagnostic answer for a bearer token."""
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_dict(self) -> Dict[str, Any]:
        return {'status_code': self.status_code, 'body': self.body}
