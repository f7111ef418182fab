"""Unit tests for the countdown and stopwatch state machines (no threads, manual clock)."""

import pytest

from dashboard.errors import InvalidDuration, TimerStateError, ValidationError
from dashboard.timer_engine import (
    Countdown,
    DurationSetting,
    Instrument,
    Stopwatch,
    TimerKind,
    TimerState,
    format_hms,
    make_instrument,
    split_hms,
)

TICK_MS = 100


def started_countdown(clock, hours=0, minutes=0, seconds=0) -> Countdown:
    cd = Countdown(clock)
    cd.configure(hours, minutes, seconds)
    cd.start()
    return cd


# ---- H:M:S decomposition ----

class TestSplitHms:
    def test_zero(self):
        hms = split_hms(0)
        assert (hms.hours, hms.minutes, hms.seconds) == (0, 0, 0)

    def test_mixed(self):
        hms = split_hms(1 * 3_600_000 + 2 * 60_000 + 3 * 1000 + 999)
        assert (hms.hours, hms.minutes, hms.seconds) == (1, 2, 3)

    def test_hours_not_wrapped_at_24(self):
        assert split_hms(30 * 3_600_000).hours == 30

    def test_format_pads_and_allows_wide_hours(self):
        assert format_hms(65_000) == "00:01:05"
        assert format_hms(123 * 3_600_000) == "123:00:00"


# ---- Duration setting ----

class TestDurationSetting:
    def test_total_ms(self):
        assert DurationSetting(1, 30, 15).total_ms == (3600 + 1800 + 15) * 1000

    def test_clamped_pins_each_field(self):
        d = DurationSetting.clamped(150, 75, -4)
        assert (d.hours, d.minutes, d.seconds) == (99, 59, 0)

    def test_step_up_wraps_to_zero(self):
        assert DurationSetting(0, 59, 0).stepped("minutes", 1).minutes == 0
        assert DurationSetting(99, 0, 0).stepped("hours", 1).hours == 0

    def test_step_down_wraps_to_max(self):
        assert DurationSetting(0, 0, 0).stepped("seconds", -1).seconds == 59
        assert DurationSetting(0, 0, 0).stepped("hours", -1).hours == 99

    def test_step_leaves_other_fields(self):
        d = DurationSetting(2, 3, 4).stepped("minutes", 1)
        assert (d.hours, d.minutes, d.seconds) == (2, 4, 4)

    def test_step_unknown_unit(self):
        with pytest.raises(ValidationError):
            DurationSetting().stepped("days", 1)


# ---- Stopwatch ----

class TestStopwatch:
    def test_idle_baseline_is_zero(self, clock):
        sw = Stopwatch(clock)
        assert sw.state is TimerState.IDLE
        assert sw.sample() == 0

    def test_counts_from_anchor(self, clock):
        sw = Stopwatch(clock)
        sw.start()
        assert sw.anchor == clock.now
        clock.advance(1234)
        assert sw.sample() == 1234

    def test_irregular_sampling_does_not_drift(self, clock):
        sw = Stopwatch(clock)
        sw.start()
        for step in (7, 130, 1, 999, 45, 3000):
            clock.advance(step)
            sw.sample()
        assert sw.sample() == 7 + 130 + 1 + 999 + 45 + 3000

    def test_pause_excludes_paused_time(self, clock):
        sw = Stopwatch(clock)
        deltas = []

        sw.start()
        t0 = sw.sample()
        clock.advance(2_000)
        deltas.append(sw.sample() - t0)
        sw.pause()

        clock.advance(3_600_000)
        assert sw.sample() == 2_000

        sw.resume()
        t1 = sw.sample()
        clock.advance(500)
        deltas.append(sw.sample() - t1)
        sw.pause()

        assert sw.state is TimerState.PAUSED
        assert sw.accumulated == sum(deltas) == 2_500

    def test_clock_stepping_backwards_never_shrinks(self, clock):
        sw = Stopwatch(clock)
        sw.start()
        clock.advance(1_000)
        sw.pause()
        sw.resume()
        clock.advance(-5_000)
        assert sw.sample() == 1_000

    def test_illegal_commands(self, clock):
        sw = Stopwatch(clock)
        with pytest.raises(TimerStateError):
            sw.pause()
        with pytest.raises(TimerStateError):
            sw.resume()
        sw.start()
        with pytest.raises(TimerStateError):
            sw.start()
        with pytest.raises(TimerStateError):
            sw.resume()

    def test_illegal_command_leaves_state(self, clock):
        sw = Stopwatch(clock)
        sw.start()
        clock.advance(100)
        with pytest.raises(TimerStateError):
            sw.resume()
        assert sw.state is TimerState.RUNNING
        assert sw.sample() == 100

    @pytest.mark.parametrize("setup", ["idle", "running", "paused"])
    def test_reset_from_any_state(self, clock, setup):
        sw = Stopwatch(clock)
        if setup in ("running", "paused"):
            sw.start()
            clock.advance(800)
        if setup == "paused":
            sw.pause()
        sw.reset()
        assert sw.state is TimerState.IDLE
        assert sw.anchor is None
        assert sw.sample() == 0
        sw.start()
        assert sw.state is TimerState.RUNNING


# ---- Countdown ----

class TestCountdown:
    def test_configure_only_while_idle(self, clock):
        cd = started_countdown(clock, seconds=10)
        with pytest.raises(TimerStateError):
            cd.configure(0, 0, 5)
        with pytest.raises(TimerStateError):
            cd.step("seconds", 1)

    def test_idle_sample_is_configured_total(self, clock):
        cd = Countdown(clock)
        cd.configure(0, 1, 30)
        assert cd.sample() == 90_000
        assert cd.state is TimerState.IDLE

    def test_start_with_zero_duration_fails(self, clock):
        cd = Countdown(clock)
        with pytest.raises(InvalidDuration):
            cd.start()
        assert cd.state is TimerState.IDLE
        assert cd.target is None

    def test_start_sets_anchor_and_target(self, clock):
        cd = started_countdown(clock, seconds=10)
        assert cd.anchor == clock.now
        assert cd.target == clock.now + 10_000

    @pytest.mark.parametrize("seconds", [1, 3, 59])
    def test_monotonic_to_zero_then_finished(self, clock, seconds):
        duration = seconds * 1000
        cd = started_countdown(clock, seconds=seconds)

        first = cd.sample()
        assert duration - TICK_MS <= first <= duration

        previous = first
        while cd.state is TimerState.RUNNING:
            clock.advance(TICK_MS)
            value = cd.sample()
            assert 0 <= value <= previous
            previous = value

        assert previous == 0
        assert cd.state is TimerState.FINISHED
        clock.advance(60_000)
        assert cd.sample() == 0
        assert cd.state is TimerState.FINISHED

    def test_late_sample_after_suspension_reflects_real_time(self, clock):
        cd = started_countdown(clock, minutes=5)
        clock.advance(2 * 60_000 + 250)
        assert cd.sample() == 3 * 60_000 - 250

    def test_finished_is_terminal(self, clock):
        cd = started_countdown(clock, seconds=1)
        clock.advance(1_000)
        cd.sample()
        for command in (cd.start, cd.pause, cd.resume):
            with pytest.raises(TimerStateError):
                command()
        assert cd.state is TimerState.FINISHED

    def test_pause_freezes_remaining(self, clock):
        cd = started_countdown(clock, seconds=10)
        clock.advance(4_000)
        cd.pause()
        assert cd.state is TimerState.PAUSED
        assert cd.accumulated == 6_000
        assert cd.target is None
        clock.advance(600_000)
        assert cd.sample() == 6_000

    def test_resume_recomputes_target(self, clock):
        cd = started_countdown(clock, seconds=10)
        clock.advance(4_000)
        cd.pause()
        clock.advance(30_000)
        cd.resume()
        assert cd.target == clock.now + 6_000
        clock.advance(1_000)
        assert cd.sample() == 5_000

    def test_pause_at_zero_finishes_instead(self, clock):
        cd = started_countdown(clock, seconds=2)
        clock.advance(2_500)
        cd.pause()
        assert cd.state is TimerState.FINISHED
        assert cd.sample() == 0

    def test_reset_returns_to_configured_baseline(self, clock):
        cd = started_countdown(clock, minutes=1)
        clock.advance(10_000)
        cd.pause()
        cd.reset()
        assert cd.state is TimerState.IDLE
        assert cd.target is None and cd.anchor is None
        assert cd.sample() == 60_000
        cd.start()
        assert cd.state is TimerState.RUNNING

    def test_reset_after_finish_allows_fresh_start(self, clock):
        cd = started_countdown(clock, seconds=1)
        clock.advance(5_000)
        cd.sample()
        cd.reset()
        cd.start()
        assert cd.sample() == 1_000

    def test_snapshot(self, clock):
        cd = started_countdown(clock, hours=1)
        clock.advance(1_000)
        snap = cd.snapshot()
        assert snap.kind is TimerKind.COUNTDOWN
        assert snap.state is TimerState.RUNNING
        assert snap.value_ms == 3_599_000
        assert snap.display == "00:59:59"


def test_make_instrument(clock):
    assert isinstance(make_instrument(TimerKind.COUNTDOWN, clock), Countdown)
    assert isinstance(make_instrument(TimerKind.STOPWATCH, clock), Stopwatch)


def test_instrument_base_is_abstract(clock):
    with pytest.raises(TypeError):
        Instrument(clock)
