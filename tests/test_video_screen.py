"""
Tests for the video screen lifecycle and its use of the playback coordinator.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from business_logic.error_handler import ErrorHandler
from business_logic.playback_coordinator import PlaybackCoordinator, SurfaceHandle
from business_logic.video_screen import VideoScreenState
from models.data_models import Ad


class FakeSurface:
    """Surface that starts playing after a given number of play() calls."""

    def __init__(self, attach_after_plays=1):
        self.playing = False
        self.disposed = False
        self.play_calls = 0
        self.attach_after_plays = attach_after_plays

    @property
    def is_playing(self):
        return self.playing

    @property
    def is_disposed(self):
        return self.disposed

    def play(self):
        if self.disposed:
            raise RuntimeError("disposed")
        self.play_calls += 1
        if self.play_calls >= self.attach_after_plays:
            self.playing = True

    def pause(self):
        if self.disposed:
            raise RuntimeError("disposed")
        self.playing = False


def make_video_ad(ad_id, video_url):
    return Ad(
        ad_id=ad_id,
        title=f"Video {ad_id}",
        description="",
        ad_type="video",
        status="active",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        video_url=video_url,
    )


@pytest.fixture
def coordinator():
    return PlaybackCoordinator(force_play_retry_seconds=0)


@pytest.fixture
def loader():
    return AsyncMock(return_value=[
        make_video_ad("1", "https://cdn.example.com/1.mp4"),
        make_video_ad("2", None),
        make_video_ad("3", "https://cdn.example.com/3.mp4"),
    ])


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def screen(coordinator, surface, loader):
    return VideoScreenState(coordinator, surface, loader, errors=ErrorHandler())


class TestVideoScreen:
    """Mount, first frame, navigation and disposal."""

    def test_mount_registers_surface_and_loads_videos(self, screen, coordinator):
        assert asyncio.run(screen.mount()) is True

        assert coordinator.is_registered(screen.handle)
        assert [ad.ad_id for ad in screen.records] == ["1", "3"]
        assert screen.current_video.ad_id == "1"

    def test_first_frame_starts_playback(self, screen, surface):
        asyncio.run(screen.mount())

        assert asyncio.run(screen.on_first_frame()) is True
        assert surface.is_playing

    def test_first_frame_retries_once(self, coordinator, loader):
        surface = FakeSurface(attach_after_plays=2)
        screen = VideoScreenState(coordinator, surface, loader, errors=ErrorHandler())
        asyncio.run(screen.mount())

        assert asyncio.run(screen.on_first_frame()) is True
        assert surface.play_calls == 2

    def test_first_frame_after_dispose_does_nothing(self, screen, surface):
        asyncio.run(screen.mount())
        screen.dispose()

        assert asyncio.run(screen.on_first_frame()) is False
        assert surface.play_calls == 0

    def test_dispose_pauses_every_surface_and_unregisters(self, screen, surface, coordinator):
        other = FakeSurface()
        other.play()
        coordinator.register_surface(SurfaceHandle("feed", other))
        asyncio.run(screen.mount())
        asyncio.run(screen.on_first_frame())

        screen.dispose()

        assert not surface.is_playing
        assert not other.is_playing
        assert not coordinator.is_registered(screen.handle)
        assert coordinator.active_count == 1
        assert screen.mounted is False

    def test_select_plays_chosen_video(self, screen, surface):
        asyncio.run(screen.mount())

        screen.select(1)

        assert screen.current_video.ad_id == "3"
        assert surface.is_playing

    def test_select_out_of_range(self, screen):
        asyncio.run(screen.mount())
        with pytest.raises(IndexError):
            screen.select(5)

    def test_pause_ignores_surface_errors(self, screen, surface):
        asyncio.run(screen.mount())
        surface.disposed = True

        screen.pause()

    def test_reload_resets_index_when_feed_shrinks(self, screen, loader):
        asyncio.run(screen.mount())
        screen.select(1)
        loader.return_value = [make_video_ad("9", "https://cdn.example.com/9.mp4")]

        asyncio.run(screen.refresh())

        assert screen.current_index == 0
        assert screen.current_video.ad_id == "9"

    def test_failed_load_keeps_surface_registered(self, coordinator, surface):
        loader = AsyncMock(side_effect=RuntimeError("boom"))
        screen = VideoScreenState(coordinator, surface, loader, errors=ErrorHandler())

        assert asyncio.run(screen.mount()) is False

        assert coordinator.is_registered(screen.handle)
        assert screen.error_message
