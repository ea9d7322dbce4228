"""
Unit tests for the groove timer, driven by a fake clock.
"""

import pytest

from plugins.lsograding.timer import GrooveTimer, format_groove_time


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer(clock):
    return GrooveTimer(clock=clock)


class TestFormat:

    @pytest.mark.parametrize("seconds,expected", [
        (0, '0:00'),
        (9, '0:09'),
        (18, '0:18'),
        (75, '1:15'),
        (-3, '0:00')
    ])
    def test_format(self, seconds, expected):
        assert format_groove_time(seconds) == expected


class TestGrooveTimer:

    def test_initial_state(self, timer):
        assert not timer.is_running
        assert timer.elapsed_seconds == 0
        assert timer.formatted_time == '0:00'

    def test_elapsed_while_running(self, timer, clock):
        timer.start()
        clock.advance(12.7)
        assert timer.is_running
        assert timer.elapsed_seconds == 12
        assert timer.formatted_time == '0:12'

    def test_stop_freezes_elapsed(self, timer, clock):
        timer.start()
        clock.advance(17.2)
        assert timer.stop() == 17
        clock.advance(30)
        assert not timer.is_running
        assert timer.elapsed_seconds == 17

    def test_start_while_running_is_ignored(self, timer, clock):
        timer.start()
        clock.advance(5)
        timer.start()
        clock.advance(5)
        assert timer.elapsed_seconds == 10

    def test_restart_after_stop(self, timer, clock):
        timer.start()
        clock.advance(8)
        timer.stop()
        timer.start()
        clock.advance(3)
        assert timer.elapsed_seconds == 3

    def test_reset(self, timer, clock):
        timer.start()
        clock.advance(20)
        timer.reset()
        assert not timer.is_running
        assert timer.elapsed_seconds == 0
        assert timer.stop() == 0
