"""
Tests for the PlaybackCoordinator.
"""

import asyncio
import gc

import pytest

from business_logic.playback_coordinator import PlaybackCoordinator, PlaybackSurface, SurfaceHandle


class FakeSurface:
    """In-memory playback surface."""

    def __init__(self, attach_after_plays: int = 1):
        self.playing = False
        self.disposed = False
        self.play_calls = 0
        self.pause_calls = 0
        # Number of play() calls needed before the frame is attached
        self.attach_after_plays = attach_after_plays

    @property
    def is_playing(self) -> bool:
        return self.playing

    @property
    def is_disposed(self) -> bool:
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
        self.pause_calls += 1
        self.playing = False


class ExplodingSurface(FakeSurface):
    def play(self):
        raise RuntimeError("surface not ready")

    def pause(self):
        raise RuntimeError("backend gone")


@pytest.fixture
def coordinator():
    return PlaybackCoordinator(force_play_retry_seconds=0)


class TestRegistration:
    """Registration and unregistration semantics."""

    def test_fake_surface_satisfies_protocol(self):
        assert isinstance(FakeSurface(), PlaybackSurface)

    def test_register_and_unregister(self, coordinator):
        surface = FakeSurface()
        handle = SurfaceHandle("a", surface)

        coordinator.register_surface(handle)
        assert coordinator.is_registered(handle)
        assert coordinator.active_count == 1

        coordinator.unregister_surface(handle)
        assert not coordinator.is_registered(handle)
        assert coordinator.active_count == 0

    def test_duplicate_registration_is_idempotent(self, coordinator):
        surface = FakeSurface()
        handle = SurfaceHandle("a", surface)

        coordinator.register_surface(handle)
        coordinator.register_surface(handle)

        assert coordinator.active_count == 1

    def test_last_registration_wins(self, coordinator):
        first_surface, second_surface = FakeSurface(), FakeSurface()
        first = SurfaceHandle("feed", first_surface)
        second = SurfaceHandle("feed", second_surface)

        coordinator.register_surface(first)
        coordinator.register_surface(second)

        assert coordinator.active_count == 1
        assert coordinator.is_registered(second)
        assert not coordinator.is_registered(first)

        # A stale handle cannot remove its replacement
        coordinator.unregister_surface(first)
        assert coordinator.is_registered(second)

    def test_unregister_unknown_handle_is_noop(self, coordinator):
        registered_surface, stranger_surface = FakeSurface(), FakeSurface()
        registered = SurfaceHandle("a", registered_surface)
        coordinator.register_surface(registered)

        coordinator.unregister_surface(SurfaceHandle("never", stranger_surface))

        assert coordinator.surfaces() == [registered]

    def test_handle_does_not_keep_surface_alive(self):
        surface = FakeSurface()
        handle = SurfaceHandle("a", surface)
        del surface
        gc.collect()

        assert handle.surface is None
        assert handle.live_surface() is None


class TestForcePauseAll:
    """Synchronous best-effort pause."""

    def test_pauses_every_live_surface(self, coordinator):
        surfaces = [FakeSurface() for _ in range(3)]
        for index, surface in enumerate(surfaces):
            surface.play()
            coordinator.register_surface(SurfaceHandle(f"s{index}", surface))

        issued = coordinator.force_pause_all()

        assert issued == 3
        assert all(not surface.is_playing for surface in surfaces)

    def test_skips_disposed_and_collected_surfaces(self, coordinator):
        live = FakeSurface()
        disposed = FakeSurface()
        disposed.disposed = True
        collected = FakeSurface()

        coordinator.register_surface(SurfaceHandle("live", live))
        coordinator.register_surface(SurfaceHandle("disposed", disposed))
        coordinator.register_surface(SurfaceHandle("collected", collected))
        del collected
        gc.collect()

        assert coordinator.force_pause_all() == 1
        assert disposed.pause_calls == 0

    def test_never_raises(self, coordinator):
        surface = ExplodingSurface()
        coordinator.register_surface(SurfaceHandle("boom", surface))

        assert coordinator.force_pause_all() == 0

    def test_random_register_unregister_sequences(self, coordinator):
        surfaces = {f"s{i}": FakeSurface() for i in range(5)}
        handles = {key: SurfaceHandle(key, surface) for key, surface in surfaces.items()}
        operations = [
            ('register', 's0'), ('register', 's1'), ('unregister', 's0'), ('dispose', 's1'),
            ('register', 's2'), ('unregister', 's4'), ('register', 's3'), ('dispose', 's3'),
            ('register', 's0'),
        ]

        for op, key in operations:
            if op == 'register':
                coordinator.register_surface(handles[key])
            elif op == 'unregister':
                coordinator.unregister_surface(handles[key])
            else:
                surfaces[key].disposed = True
            coordinator.force_pause_all()

        for handle in coordinator.surfaces():
            surface = handle.live_surface()
            if surface is not None:
                assert not surface.is_playing


class TestForcePlay:
    """Best-effort play requests."""

    def test_force_play_current(self, coordinator):
        surface = FakeSurface()
        handle = SurfaceHandle("a", surface)
        coordinator.register_surface(handle)

        assert coordinator.force_play_current(handle) is True
        assert surface.is_playing

    def test_force_play_unregistered_is_skipped(self, coordinator):
        surface = FakeSurface()
        handle = SurfaceHandle("a", surface)

        assert coordinator.force_play_current(handle) is False
        assert surface.play_calls == 0

    def test_force_play_swallows_errors(self, coordinator):
        surface = ExplodingSurface()
        handle = SurfaceHandle("a", surface)
        coordinator.register_surface(handle)

        assert coordinator.force_play_current(handle) is False

    def test_ensure_playing_retries_when_first_frame_not_attached(self, coordinator):
        surface = FakeSurface(attach_after_plays=2)
        handle = SurfaceHandle("a", surface)
        coordinator.register_surface(handle)

        result = asyncio.run(coordinator.ensure_playing(handle, retry_delay=0))

        assert result is True
        assert surface.play_calls == 2

    def test_ensure_playing_skips_second_request_when_playing(self, coordinator):
        surface = FakeSurface()
        handle = SurfaceHandle("a", surface)
        coordinator.register_surface(handle)

        asyncio.run(coordinator.ensure_playing(handle, retry_delay=0))

        assert surface.play_calls == 1

    def test_ensure_playing_stops_if_unregistered_during_delay(self, coordinator):
        surface = FakeSurface(attach_after_plays=2)
        handle = SurfaceHandle("a", surface)
        coordinator.register_surface(handle)

        async def scenario():
            task = asyncio.ensure_future(coordinator.ensure_playing(handle, retry_delay=0.01))
            await asyncio.sleep(0)
            coordinator.unregister_surface(handle)
            return await task

        assert asyncio.run(scenario()) is False
        assert surface.play_calls == 1

    def test_ensure_playing_uses_configured_delay(self):
        coordinator = PlaybackCoordinator()
        assert coordinator.force_play_retry_seconds == pytest.approx(0.120)

    def test_close_pauses_and_rejects_new_registrations(self, coordinator):
        surface = FakeSurface()
        surface.play()
        coordinator.register_surface(SurfaceHandle("a", surface))

        coordinator.close()

        assert not surface.is_playing
        assert coordinator.active_count == 0
        coordinator.register_surface(SurfaceHandle("b", surface))
        assert coordinator.active_count == 0
