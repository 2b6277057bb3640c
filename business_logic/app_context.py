"""
Application context: the explicitly constructed set of collaborators shared
by all screens of one session.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from config.settings import AppConfig
from services.ad_service import AdService
from services.auth_service import AuthService
from services.client import BackendClient
from services.report_service import ReportService
from .playback_coordinator import PlaybackCoordinator

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Services and the playback coordinator for one application session."""
    config: AppConfig
    client: BackendClient
    auth_service: AuthService
    ad_service: AdService
    report_service: ReportService
    playback: PlaybackCoordinator

    @classmethod
    def create(cls, config: AppConfig,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> "AppContext":
        """Wire the service graph from configuration."""
        client = BackendClient(config.api_base_url, timeout=config.request_timeout_seconds,
                               transport=transport)
        auth_service = AuthService(client, token=config.auth_token)
        context = cls(
            config=config,
            client=client,
            auth_service=auth_service,
            ad_service=AdService(client, auth_service),
            report_service=ReportService(client, auth_service),
            playback=PlaybackCoordinator(config.force_play_retry_seconds),
        )
        logger.info(f"Application context created for {config.api_base_url}")
        return context

    def close(self):
        """Tear down at sign-out: pause and drop every playback surface."""
        self.playback.close()
        logger.info("Application context closed")
