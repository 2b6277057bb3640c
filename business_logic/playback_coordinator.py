"""
Playback lifecycle coordination across screens.

A single PlaybackCoordinator lives in the application context and is handed
to every screen that mounts a video surface. It keeps a registry of the
surfaces that are currently mounted and issues play/pause requests to them;
it never owns or disposes a surface. All methods are best-effort: failures
from the media backend are logged and swallowed.
"""

import asyncio
import logging
import weakref
from typing import Dict, List, Optional, Protocol, runtime_checkable

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_FORCE_PLAY_RETRY_SECONDS = 0.120


@runtime_checkable
class PlaybackSurface(Protocol):
    """Capability a video view exposes to its parent and to the coordinator."""

    @property
    def is_playing(self) -> bool: ...

    @property
    def is_disposed(self) -> bool: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...


class SurfaceHandle:
    """
    Lookup handle for one mounted playback surface.

    Only a weak reference to the surface is kept, so a handle never extends
    the surface's lifetime.
    """

    def __init__(self, surface_id: str, surface: PlaybackSurface):
        self.surface_id = surface_id
        self._surface_ref = weakref.ref(surface)

    @property
    def surface(self) -> Optional[PlaybackSurface]:
        return self._surface_ref()

    def live_surface(self) -> Optional[PlaybackSurface]:
        """The surface if it still exists and has not released its media."""
        surface = self._surface_ref()
        if surface is None:
            return None
        try:
            if surface.is_disposed:
                return None
        except Exception as e:
            logger.debug(f"Surface {self.surface_id} state unreadable: {str(e)}")
            return None
        return surface

    def __repr__(self) -> str:
        return f"SurfaceHandle({self.surface_id!r})"


class PlaybackCoordinator:
    """
    Registry of mounted playback surfaces.

    Intended to be driven from the single UI task sequence; registration,
    unregistration and pause/play requests are not synchronized across threads.
    """

    def __init__(self, force_play_retry_seconds: float = DEFAULT_FORCE_PLAY_RETRY_SECONDS):
        self.force_play_retry_seconds = force_play_retry_seconds
        self._surfaces: Dict[str, SurfaceHandle] = {}
        self._closed = False

    @property
    def active_count(self) -> int:
        return len(self._surfaces)

    def surfaces(self) -> List[SurfaceHandle]:
        return list(self._surfaces.values())

    def is_registered(self, handle: SurfaceHandle) -> bool:
        return self._surfaces.get(handle.surface_id) is handle

    def register_surface(self, handle: SurfaceHandle):
        """Add a handle; registering the same id again replaces the earlier entry."""
        if self._closed:
            logger.warning(f"Ignoring registration of {handle.surface_id}: coordinator closed")
            return
        previous = self._surfaces.get(handle.surface_id)
        self._surfaces[handle.surface_id] = handle
        if previous is not None and previous is not handle:
            logger.debug(f"Surface {handle.surface_id} re-registered, replacing earlier handle")
        else:
            logger.info(f"Surface {handle.surface_id} registered ({self.active_count} active)")

    def unregister_surface(self, handle: SurfaceHandle):
        """Remove a handle. Unknown or stale handles are ignored."""
        if self._surfaces.get(handle.surface_id) is handle:
            del self._surfaces[handle.surface_id]
            logger.info(f"Surface {handle.surface_id} unregistered ({self.active_count} active)")

    def force_pause_all(self) -> int:
        """
        Request a pause on every registered surface without waiting for it.

        Safe to call from teardown: never suspends and never raises.

        Returns:
            Number of surfaces a pause request was issued to
        """
        issued = 0
        for handle in list(self._surfaces.values()):
            surface = handle.live_surface()
            if surface is None:
                continue
            try:
                surface.pause()
                issued += 1
            except Exception as e:
                logger.debug(f"Pause request for {handle.surface_id} failed: {str(e)}")
        if issued:
            logger.info(f"Pause requested on {issued} surface(s)")
        return issued

    def force_play_current(self, handle: SurfaceHandle) -> bool:
        """
        Request playback on one surface.

        Returns:
            True if a play request was issued, False if it was skipped or failed
        """
        if not self.is_registered(handle):
            logger.debug(f"Play skipped for {handle.surface_id}: not registered")
            return False
        surface = handle.live_surface()
        if surface is None:
            logger.debug(f"Play skipped for {handle.surface_id}: surface released")
            return False
        try:
            surface.play()
            return True
        except Exception as e:
            logger.debug(f"Play request for {handle.surface_id} failed: {str(e)}")
            return False

    async def ensure_playing(self, handle: SurfaceHandle, retry_delay: Optional[float] = None) -> bool:
        """
        Start playback right away and once more after a short delay.

        The second request compensates for surfaces whose rendering target is
        not attached yet on the first frame; it is only sent if the handle is
        still registered and the surface does not report playing.

        Returns:
            True if the surface reports playing afterwards
        """
        delay = self.force_play_retry_seconds if retry_delay is None else retry_delay
        self.force_play_current(handle)

        await asyncio.sleep(delay)

        if not self.is_registered(handle):
            return False
        surface = handle.live_surface()
        if surface is None:
            return False
        if self._reports_playing(surface):
            return True

        logger.debug(f"Surface {handle.surface_id} not playing after {delay:.3f}s, retrying")
        self.force_play_current(handle)
        return self._reports_playing(surface)

    def close(self):
        """Pause everything and drop the registry at application shutdown."""
        self.force_pause_all()
        self._surfaces.clear()
        self._closed = True
        logger.info("Playback coordinator closed")

    @staticmethod
    def _reports_playing(surface: PlaybackSurface) -> bool:
        try:
            return bool(surface.is_playing)
        except Exception:
            return False
