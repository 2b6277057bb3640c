"""
State holder for the video screen.

The screen owns one playback surface. On mount the surface is registered with
the application's PlaybackCoordinator; after the first render the screen asks
the coordinator to start playback; on dispose every registered surface is
paused and the screen's handle is removed.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from models.data_models import Ad
from .playback_coordinator import PlaybackCoordinator, PlaybackSurface, SurfaceHandle
from .screen_state import ScreenState

logger = logging.getLogger(__name__)

VideoLoader = Callable[[], Awaitable[List[Ad]]]


class VideoScreenState(ScreenState):
    """Video feed backed by active ads that carry a video creative."""

    screen_name = "VideoScreen"

    def __init__(self, coordinator: PlaybackCoordinator, surface: PlaybackSurface,
                 loader: VideoLoader, surface_id: str = "video-screen", **kwargs):
        super().__init__(**kwargs)
        self.coordinator = coordinator
        self.surface = surface
        self.loader = loader
        self.handle = SurfaceHandle(surface_id, surface)
        self.current_index = 0

    async def fetch(self) -> List[Ad]:
        ads = await self.loader()
        return [ad for ad in ads if ad.video_url]

    @property
    def current_video(self) -> Optional[Ad]:
        if 0 <= self.current_index < len(self.records):
            return self.records[self.current_index]
        return None

    async def mount(self) -> bool:
        self.mounted = True
        self.coordinator.register_surface(self.handle)
        logger.info(f"{self.screen_name} mounted")
        return await self.load()

    async def on_first_frame(self) -> bool:
        """Start playback once the first frame has rendered."""
        if not self.mounted:
            return False
        return await self.coordinator.ensure_playing(self.handle)

    def select(self, index: int):
        """Switch to another video in the feed and keep playing."""
        if not 0 <= index < len(self.records):
            raise IndexError(f"No video at position {index}")
        if self._set_state(current_index=index):
            self.coordinator.force_play_current(self.handle)

    def pause(self):
        try:
            self.surface.pause()
        except Exception as e:
            logger.debug(f"Pause on {self.handle.surface_id} failed: {str(e)}")

    def dispose(self):
        """Pause all playback without waiting, then release the handle."""
        self.coordinator.force_pause_all()
        self.coordinator.unregister_surface(self.handle)
        super().dispose()

    async def load(self) -> bool:
        loaded = await super().load()
        if loaded and self.current_index >= len(self.records):
            self._set_state(current_index=0)
        return loaded
