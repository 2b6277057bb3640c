"""
Centralized error handling and user feedback for the console.

Backend failures are converted into structured ErrorInfo records at the
screen boundary and turned into banner notifications with a retry control.
Playback failures never reach this module's user-facing path.
"""

import logging
from typing import Dict, Any, Optional
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx

from services.exceptions import BackendError, BackendUnavailableError, NotAuthenticatedError

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for better classification."""
    NETWORK_ERROR = "network_error"
    AUTH_ERROR = "auth_error"
    API_ERROR = "api_error"
    VALIDATION_ERROR = "validation_error"
    SYSTEM_ERROR = "system_error"


@dataclass
class ErrorInfo:
    """Structured error information."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    technical_details: Optional[str] = None
    suggested_action: Optional[str] = None
    retry_possible: bool = False
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


class ErrorHandler:
    """
    Classifies exceptions and builds user notifications.

    Keeps a bounded history of logged errors for the diagnostics panel.
    """

    MAX_HISTORY = 100

    def __init__(self):
        self.error_history = []

    def handle_backend_error(self, error: BackendError, context: str = "") -> ErrorInfo:
        """
        Handle an unexpected HTTP status from the backend.

        Args:
            error: The backend exception
            context: Description of the operation that failed

        Returns:
            ErrorInfo object with structured error information
        """
        status_code = error.status_code or 0

        if status_code == 403:
            return ErrorInfo(
                category=ErrorCategory.AUTH_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"Access denied in {context}: {str(error)}",
                user_message="You do not have permission to perform this action.",
                suggested_action="Sign in with the account that owns this item.",
                retry_possible=False
            )

        elif status_code == 404:
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Not found in {context}: {str(error)}",
                user_message="The item no longer exists. It may have been removed elsewhere.",
                suggested_action="Refresh the list to see the current state.",
                retry_possible=True
            )

        elif status_code in (400, 422):
            return ErrorInfo(
                category=ErrorCategory.VALIDATION_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Rejected request in {context}: {str(error)}",
                user_message="The server rejected the request.",
                technical_details=str(error.body) if error.body is not None else None,
                suggested_action="Check the values you entered and try again.",
                retry_possible=False
            )

        elif status_code == 429:
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Rate limited in {context}: {str(error)}",
                user_message="Too many requests. Please wait a moment.",
                suggested_action="Wait a few seconds and retry.",
                retry_possible=True
            )

        elif status_code >= 500:
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"Server error in {context}: {str(error)}",
                user_message="The server encountered an internal error. Please try again.",
                technical_details=str(error),
                suggested_action="Retry the operation. If the problem persists, contact support.",
                retry_possible=True
            )

        return ErrorInfo(
            category=ErrorCategory.API_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Backend error in {context}: {str(error)}",
            user_message="An error occurred while talking to the server.",
            technical_details=str(error),
            suggested_action="Please try again.",
            retry_possible=True
        )

    def handle_network_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle network-related errors.

        Args:
            error: The network exception
            context: Description of the operation that failed

        Returns:
            ErrorInfo object with structured error information
        """
        error_str = str(error).lower()

        if "timeout" in error_str or isinstance(error, httpx.TimeoutException):
            return ErrorInfo(
                category=ErrorCategory.NETWORK_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Network timeout in {context}: {str(error)}",
                user_message="The request timed out. This may be due to slow internet or high server load.",
                suggested_action="Check your internet connection and try again.",
                retry_possible=True
            )

        return ErrorInfo(
            category=ErrorCategory.NETWORK_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Network error in {context}: {str(error)}",
            user_message="Cannot reach the server. Please check your internet connection.",
            technical_details=str(error),
            suggested_action="Check your internet connection and try again.",
            retry_possible=True
        )

    def handle_auth_error(self, error: Exception, context: str = "") -> ErrorInfo:
        return ErrorInfo(
            category=ErrorCategory.AUTH_ERROR,
            severity=ErrorSeverity.INFO,
            message=f"Not authenticated in {context}: {str(error)}",
            user_message="Please sign in to continue.",
            suggested_action="Sign in from the sidebar.",
            retry_possible=False
        )

    def handle_validation_error(self, error: Exception, context: str = "") -> ErrorInfo:
        return ErrorInfo(
            category=ErrorCategory.VALIDATION_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Validation error in {context}: {str(error)}",
            user_message=str(error).replace("Validation failed: ", ""),
            suggested_action="Please correct the highlighted issues and try again.",
            retry_possible=False
        )

    def classify_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Classify an error and return appropriate ErrorInfo.

        Args:
            error: The exception to classify
            context: Description of the operation that failed

        Returns:
            ErrorInfo object with structured error information
        """
        try:
            if isinstance(error, NotAuthenticatedError):
                return self.handle_auth_error(error, context)

            elif isinstance(error, BackendUnavailableError):
                return self.handle_network_error(error, context)

            elif isinstance(error, BackendError):
                return self.handle_backend_error(error, context)

            elif isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
                return self.handle_network_error(error, context)

            elif isinstance(error, ValueError) and "validation" in str(error).lower():
                return self.handle_validation_error(error, context)

            # Generic system error
            return ErrorInfo(
                category=ErrorCategory.SYSTEM_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"Unexpected error in {context}: {str(error)}",
                user_message="An unexpected error occurred. Please try again or contact support.",
                technical_details=str(error),
                suggested_action="Try again. If the problem persists, contact support with the error details.",
                retry_possible=True
            )

        except Exception as e:
            logger.error(f"Error in error classification: {str(e)}")
            return ErrorInfo(
                category=ErrorCategory.SYSTEM_ERROR,
                severity=ErrorSeverity.CRITICAL,
                message=f"Critical error in error handling: {str(e)}",
                user_message="A critical system error occurred. Please contact support immediately.",
                retry_possible=False
            )

    def create_user_notification(self, error_info: ErrorInfo) -> Dict[str, Any]:
        """
        Create a user-friendly notification from error information.

        Args:
            error_info: Structured error information

        Returns:
            Dictionary with notification data for UI display
        """
        notification_type_map = {
            ErrorSeverity.INFO: "info",
            ErrorSeverity.WARNING: "warning",
            ErrorSeverity.ERROR: "error",
            ErrorSeverity.CRITICAL: "error"
        }

        notification = {
            'type': notification_type_map[error_info.severity],
            'title': self._get_error_title(error_info),
            'message': error_info.user_message,
            'timestamp': error_info.timestamp.isoformat(),
            'dismissible': error_info.severity in [ErrorSeverity.INFO, ErrorSeverity.WARNING],
            'retry_possible': error_info.retry_possible
        }

        if error_info.suggested_action:
            notification['action'] = error_info.suggested_action

        if error_info.technical_details and error_info.severity == ErrorSeverity.CRITICAL:
            notification['technical_details'] = error_info.technical_details

        return notification

    def create_success_notification(self, message: str, title: str = "Done") -> Dict[str, Any]:
        return {
            'type': 'success',
            'title': title,
            'message': message,
            'timestamp': datetime.now().isoformat(),
            'dismissible': True,
            'retry_possible': False
        }

    def _get_error_title(self, error_info: ErrorInfo) -> str:
        """Get appropriate title for error notification."""
        title_map = {
            ErrorCategory.NETWORK_ERROR: "Connection Error",
            ErrorCategory.AUTH_ERROR: "Sign-in Required",
            ErrorCategory.API_ERROR: "Server Error",
            ErrorCategory.VALIDATION_ERROR: "Invalid Request",
            ErrorCategory.SYSTEM_ERROR: "System Error"
        }

        return title_map.get(error_info.category, "Error")

    def log_error(self, error_info: ErrorInfo, context: str = ""):
        """
        Log error information for monitoring and debugging.

        Args:
            error_info: Structured error information
            context: Additional context
        """
        self.error_history.append(error_info)

        if len(self.error_history) > self.MAX_HISTORY:
            self.error_history = self.error_history[-self.MAX_HISTORY:]

        log_message = f"{context}: {error_info.message}"

        if error_info.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif error_info.severity == ErrorSeverity.ERROR:
            logger.error(log_message)
        elif error_info.severity == ErrorSeverity.WARNING:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        Get error statistics for the diagnostics panel.

        Returns:
            Dictionary with error statistics
        """
        if not self.error_history:
            return {'total_errors': 0}

        category_counts = {}
        severity_counts = {}

        recent_errors = [
            err for err in self.error_history
            if err.timestamp > datetime.now() - timedelta(hours=24)
        ]

        for error in recent_errors:
            category_counts[error.category.value] = category_counts.get(error.category.value, 0) + 1
            severity_counts[error.severity.value] = severity_counts.get(error.severity.value, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'recent_errors_24h': len(recent_errors),
            'category_breakdown': category_counts,
            'severity_breakdown': severity_counts
        }


# Global error handler instance
error_handler = ErrorHandler()
