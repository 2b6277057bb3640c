"""
Parsers translating backend JSON payloads into data models.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models.data_models import Ad, AdAnalytics, DebugResponse, Evidence, Report, UserProfile

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the backend; None on failure."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    # Python < 3.11 does not accept the trailing "Z"
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable timestamp from backend: {value!r}")
        return None
    # Naive timestamps are UTC on the backend
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_minor_units(value: Any, default: int = 0) -> int:
    """Money in minor units; the backend sends major units * 100 as a float."""
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return default


def _nested(payload: Dict[str, Any], key: str, field: str) -> Optional[str]:
    """Read ``payload[key][field]`` where ``payload[key]`` may be missing or a bare id."""
    value = payload.get(key)
    if isinstance(value, dict):
        found = value.get(field)
        return str(found) if found is not None else None
    if field == '_id' and value is not None:
        return str(value)
    return None


class AdParser:
    """
    Parser for ad campaign payloads.

    The backend mixes ``_id`` and ``id`` and omits counters on fresh drafts,
    so every field falls back to a neutral default.
    """

    def parse(self, payload: Dict[str, Any]) -> Ad:
        """
        Build an Ad from one JSON object.

        Raises:
            ValueError: If the payload is not an object
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Invalid ad payload: expected object, got {type(payload).__name__}")

        return Ad(
            ad_id=str(payload.get('_id') or payload.get('id') or ''),
            title=payload.get('title') or '',
            description=payload.get('description') or '',
            ad_type=payload.get('adType') or 'banner',
            status=payload.get('status') or 'draft',
            created_at=parse_datetime(payload.get('createdAt')) or _utcnow(),
            budget=_as_minor_units(payload.get('budget')),
            impressions=_as_int(payload.get('impressions')),
            clicks=_as_int(payload.get('clicks')),
            ctr=_as_float(payload.get('ctr')),
            target_audience=payload.get('targetAudience') or 'all',
            target_keywords=[str(k) for k in payload.get('targetKeywords') or []],
            uploader_id=str(payload.get('uploaderId') or ''),
            uploader_name=payload.get('uploaderName') or '',
            image_url=payload.get('imageUrl'),
            video_url=payload.get('videoUrl'),
            link=payload.get('link'),
            start_date=parse_datetime(payload.get('startDate')),
            end_date=parse_datetime(payload.get('endDate'))
        )

    def parse_list(self, payload: Any) -> List[Ad]:
        """Parse a list of ads, skipping malformed entries."""
        if isinstance(payload, dict):
            payload = payload.get('ads', payload.get('data', []))
        if not isinstance(payload, list):
            raise ValueError(f"Invalid ad list payload: {type(payload).__name__}")

        ads = []
        for item in payload:
            try:
                ads.append(self.parse(item))
            except ValueError as e:
                logger.warning(f"Skipping malformed ad entry: {str(e)}")
        logger.info(f"Parsed {len(ads)} ads")
        return ads


class ReportParser:
    """Parser for content report payloads (populated reporter/target objects)."""

    def parse(self, payload: Dict[str, Any]) -> Report:
        if not isinstance(payload, dict):
            raise ValueError(f"Invalid report payload: expected object, got {type(payload).__name__}")

        now = _utcnow()
        return Report(
            report_id=str(payload.get('_id') or payload.get('id') or ''),
            reporter_id=_nested(payload, 'reporter', '_id') or _nested(payload, 'reporter', 'googleId') or '',
            reporter_name=_nested(payload, 'reporter', 'name') or '',
            report_type=str(payload.get('type') or ''),
            reason=str(payload.get('reason') or ''),
            description=str(payload.get('description') or ''),
            status=str(payload.get('status') or 'pending'),
            priority=str(payload.get('priority') or 'medium'),
            severity=str(payload.get('severity') or 'moderate'),
            created_at=parse_datetime(payload.get('createdAt')) or now,
            updated_at=parse_datetime(payload.get('updatedAt')) or now,
            reported_user_id=_nested(payload, 'reportedUser', '_id'),
            reported_user_name=_nested(payload, 'reportedUser', 'name'),
            reported_video_id=_nested(payload, 'reportedVideo', '_id'),
            reported_video_title=_nested(payload, 'reportedVideo', 'title'),
            reported_comment_id=_nested(payload, 'reportedComment', '_id'),
            reported_comment_content=_nested(payload, 'reportedComment', 'content'),
            evidence=[self._parse_evidence(e) for e in payload.get('evidence') or [] if isinstance(e, dict)],
            assigned_moderator_name=_nested(payload, 'assignedModerator', 'name'),
            moderator_notes=payload.get('moderatorNotes'),
            action_taken=payload.get('actionTaken'),
            resolution=payload.get('resolution'),
            reviewed_at=parse_datetime(payload.get('reviewedAt')),
            resolved_at=parse_datetime(payload.get('resolvedAt')),
            is_repeat_report=bool(payload.get('isRepeatReport', False)),
            related_report_ids=[str(r) for r in payload.get('relatedReports') or []]
        )

    def _parse_evidence(self, payload: Dict[str, Any]) -> Evidence:
        return Evidence(
            url=str(payload.get('url') or ''),
            evidence_type=str(payload.get('type') or ''),
            description=str(payload.get('description') or '')
        )

    def parse_envelope(self, payload: Any) -> List[Report]:
        """
        Unwrap the ``{"success": ..., "data": [...]}`` envelope.

        Raises:
            ValueError: If the backend reported failure or the data is not a list
        """
        if isinstance(payload, dict):
            if payload.get('success') is False:
                raise ValueError(payload.get('message') or 'Backend reported failure')
            payload = payload.get('data', [])
        if not isinstance(payload, list):
            raise ValueError(f"Invalid report list payload: {type(payload).__name__}")
        return [self.parse(item) for item in payload]


class UserProfileParser:
    """Parser for ``/api/users/profile``."""

    def parse(self, payload: Dict[str, Any], token: str) -> UserProfile:
        if not isinstance(payload, dict):
            raise ValueError("Invalid profile payload")
        # Some deployments wrap the profile in {"user": {...}}
        payload = payload.get('user', payload)
        user_id = payload.get('_id') or payload.get('id') or payload.get('googleId')
        if not user_id:
            raise ValueError("User ID not found in profile")
        return UserProfile(
            user_id=str(user_id),
            name=payload.get('name') or '',
            email=payload.get('email') or '',
            token=token,
            profile_pic=payload.get('profilePic')
        )


def parse_debug_response(status_code: int, body: Any) -> DebugResponse:
    return DebugResponse(status_code=status_code, body=body)


class AdAnalyticsParser:
    """Parser for ``/api/ads/analytics/{id}``; figures arrive as fixed-point strings."""

    def parse(self, payload: Any, ad_id: str = '') -> AdAnalytics:
        """
        Build AdAnalytics from the ``{"ad": {...}}`` response.

        Raises:
            ValueError: If the response carries an error or no ``ad`` object
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Invalid analytics payload: {type(payload).__name__}")
        if payload.get('error'):
            raise ValueError(str(payload['error']))
        data = payload.get('ad')
        if not isinstance(data, dict):
            raise ValueError("No ad data in analytics response")

        return AdAnalytics(
            ad_id=str(data.get('id') or data.get('_id') or ad_id),
            title=data.get('title') or '',
            status=data.get('status') or 'draft',
            impressions=_as_int(data.get('impressions')),
            clicks=_as_int(data.get('clicks')),
            ctr=_as_float(data.get('ctr')),
            spend=_as_float(data.get('spend')),
            revenue=_as_float(data.get('revenue')),
            estimated_impressions=_as_int(data.get('estimatedImpressions')),
            fixed_cpm=_as_float(data.get('fixedCpm'))
        )
