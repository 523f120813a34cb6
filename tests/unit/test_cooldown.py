"""Tests for kubehealer.analyst.cooldown.CooldownTracker."""

from __future__ import annotations

import threading

import pytest

from kubehealer.analyst.cooldown import CooldownTracker


class _FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestCooldownWindow:
    def test_first_acquire_allowed(self) -> None:
        tracker = CooldownTracker(cooldown_s=60.0, clock=_FakeClock())
        assert tracker.try_acquire("uid-1") is True
        assert len(tracker) == 1

    def test_second_acquire_inside_window_suppressed(self) -> None:
        clock = _FakeClock()
        tracker = CooldownTracker(cooldown_s=60.0, clock=clock)

        assert tracker.try_acquire("uid-1") is True
        clock.advance(30)
        assert tracker.try_acquire("uid-1") is False

    def test_acquire_after_window_allowed(self) -> None:
        clock = _FakeClock()
        tracker = CooldownTracker(cooldown_s=60.0, clock=clock)

        tracker.try_acquire("uid-1")
        clock.advance(61)
        assert tracker.try_acquire("uid-1") is True

    def test_suppressed_attempt_does_not_extend_window(self) -> None:
        clock = _FakeClock()
        tracker = CooldownTracker(cooldown_s=60.0, clock=clock)

        tracker.try_acquire("uid-1")
        clock.advance(50)
        tracker.try_acquire("uid-1")
        clock.advance(11)
        assert tracker.try_acquire("uid-1") is True

    def test_keys_are_independent(self) -> None:
        tracker = CooldownTracker(cooldown_s=60.0, clock=_FakeClock())
        assert tracker.try_acquire("uid-1") is True
        assert tracker.try_acquire("uid-2") is True

    def test_release_forgets_entry(self) -> None:
        tracker = CooldownTracker(cooldown_s=60.0, clock=_FakeClock())
        tracker.try_acquire("uid-1")
        tracker.release("uid-1")

        assert len(tracker) == 0
        assert tracker.try_acquire("uid-1") is True

    def test_zero_cooldown_never_suppresses(self) -> None:
        tracker = CooldownTracker(cooldown_s=0.0, clock=_FakeClock())
        assert tracker.try_acquire("uid-1") is True
        assert tracker.try_acquire("uid-1") is True

    def test_invalid_shard_count(self) -> None:
        with pytest.raises(ValueError):
            CooldownTracker(shards=0)


class TestCooldownConcurrency:
    def test_concurrent_acquire_admits_exactly_one(self) -> None:
        tracker = CooldownTracker(cooldown_s=60.0, clock=_FakeClock())
        barrier = threading.Barrier(8)
        admitted: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            ok = tracker.try_acquire("uid-1")
            with lock:
                admitted.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert admitted.count(True) == 1
