# Backend service layer for the ad & report console

from .client import BackendClient
from .auth_service import AuthService
from .ad_service import AdService
from .report_service import ReportService
from .exceptions import BackendError, BackendUnavailableError, NotAuthenticatedError

__all__ = [
    'BackendClient', 'AuthService', 'AdService', 'ReportService',
    'BackendError', 'BackendUnavailableError', 'NotAuthenticatedError',
]
