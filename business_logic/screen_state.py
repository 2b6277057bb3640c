"""
Base state holder for data-backed screens.

A screen state owns a loading flag, an optional error message and the list of
records last received from the backend. Every write goes through a liveness
guard so that a request completing after the screen was disposed cannot touch
its state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from services.exceptions import NotAuthenticatedError
from .error_handler import ErrorHandler, error_handler

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Asks the user to confirm a destructive action: (title, message) -> confirmed
ConfirmCallback = Callable[[str, str], Awaitable[bool]]


class Refreshable(Protocol):
    """Anything a parent can ask to re-fetch its content."""

    async def refresh(self) -> bool: ...


class ScreenState(ABC):
    """
    Transient per-screen state bound to a mount/dispose lifecycle.

    Concurrent loads are not sequenced: whichever response completes last
    overwrites ``records``.
    """

    screen_name = "screen"

    def __init__(self, on_change: Optional[Callable[["ScreenState"], None]] = None,
                 errors: Optional[ErrorHandler] = None):
        """
        Initialize the state holder.

        Args:
            on_change: Called after every accepted state write (re-render trigger)
            errors: Error handler used to classify failures
        """
        self.is_loading = False
        self.error_message: Optional[str] = None
        self.records: List[Any] = []
        self.requires_sign_in = False
        self.notification: Optional[Dict[str, Any]] = None
        self.mounted = False
        self._on_change = on_change
        self.errors = errors or error_handler

    @abstractmethod
    async def fetch(self) -> List[Any]:
        """Retrieve the screen's records from the backend."""
        pass

    async def mount(self) -> bool:
        """Mark the screen live and run the initial load."""
        self.mounted = True
        logger.info(f"{self.screen_name} mounted")
        return await self.load()

    def dispose(self):
        self.mounted = False
        logger.info(f"{self.screen_name} disposed")

    async def refresh(self) -> bool:
        return await self.load()

    async def load(self) -> bool:
        """
        Fetch records and store them.

        On failure the previous records stay visible and an error message is
        set instead; a missing sign-in is reported through ``requires_sign_in``.

        Returns:
            True if fresh records were stored
        """
        if not self._set_state(is_loading=True, error_message=None):
            return False

        try:
            records = await self.fetch()
        except NotAuthenticatedError as e:
            logger.info(f"{self.screen_name}: sign-in required ({str(e)})")
            self._set_state(is_loading=False, requires_sign_in=True)
            return False
        except Exception as e:
            error_info = self.errors.classify_error(e, f"{self.screen_name} load")
            self.errors.log_error(error_info, self.screen_name)
            self._set_state(
                is_loading=False,
                error_message=error_info.user_message,
                notification=self.errors.create_user_notification(error_info)
            )
            return False

        return self._set_state(
            records=list(records),
            is_loading=False,
            error_message=None,
            requires_sign_in=False
        )

    async def run_mutation(self, context: str, action: Callable[[], Awaitable[Any]],
                           success_message: str) -> bool:
        """
        Run one mutating backend call, then re-fetch regardless of its outcome.

        Returns:
            True if the mutation succeeded
        """
        succeeded = False
        notification = None
        try:
            await action()
            succeeded = True
            notification = self.errors.create_success_notification(success_message)
        except NotAuthenticatedError as e:
            logger.info(f"{context}: sign-in required ({str(e)})")
            self._set_state(requires_sign_in=True)
        except Exception as e:
            error_info = self.errors.classify_error(e, context)
            self.errors.log_error(error_info, self.screen_name)
            notification = self.errors.create_user_notification(error_info)

        await self.load()
        if notification is not None:
            self._set_state(notification=notification)
        return succeeded

    def dismiss_notification(self):
        self._set_state(notification=None)

    def _set_state(self, **changes) -> bool:
        """Apply changes if the screen is still mounted. Returns False otherwise."""
        if not self.mounted:
            logger.debug(f"{self.screen_name}: dropped state update after dispose: {sorted(changes)}")
            return False
        for name, value in changes.items():
            setattr(self, name, value)
        if self._on_change is not None:
            self._on_change(self)
        return True
