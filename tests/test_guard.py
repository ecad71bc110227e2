"""Unit tests for the thread-switch guard."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from modelchat.sessions import SwitchGuard


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestSwitchGuard:
    """Tests for SwitchGuard debounce behaviour."""

    def test_idle_guard_is_not_busy(self):
        assert not SwitchGuard(clock=FakeClock()).busy

    def test_default_cooldown(self):
        assert SwitchGuard().cooldown == 0.1

    def test_busy_while_held(self):
        guard = SwitchGuard(cooldown=0, clock=FakeClock())
        with guard.hold():
            assert guard.busy

    def test_busy_during_cooldown_then_free(self):
        clock = FakeClock(10.0)
        guard = SwitchGuard(cooldown=0.1, clock=clock)

        with guard.hold():
            pass

        clock.now = 10.05
        assert guard.busy
        clock.now = 10.2
        assert not guard.busy

    def test_cooldown_starts_even_when_block_raises(self):
        clock = FakeClock()
        guard = SwitchGuard(cooldown=1.0, clock=clock)

        with pytest.raises(RuntimeError):
            with guard.hold():
                raise RuntimeError("boom")

        assert guard.busy
        clock.now = 1.0
        assert not guard.busy

    def test_reset_clears_cooldown(self):
        guard = SwitchGuard(cooldown=5.0, clock=FakeClock())
        with guard.hold():
            pass
        guard.reset()
        assert not guard.busy

    @given(st.floats(min_value=0.0, max_value=10.0, allow_nan=False))
    def test_never_busy_after_cooldown_elapsed(self, cooldown: float):
        """Property test: the guard frees up once its cooldown has passed."""
        clock = FakeClock(100.0)
        guard = SwitchGuard(cooldown=cooldown, clock=clock)
        with guard.hold():
            pass
        clock.now = 100.0 + cooldown
        assert not guard.busy
