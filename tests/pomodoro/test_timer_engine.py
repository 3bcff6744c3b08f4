import unittest

from contracts.state import (
    MODE_FOCUS,
    MODE_LONG_BREAK,
    MODE_SHORT_BREAK,
    STATUS_IDLE,
    STATUS_PAUSED,
    STATUS_RUNNING,
    TYPE_STOPWATCH,
    TYPE_TIMER,
    Task,
    TimerState,
)
from pomodoro import TimerEngine, current_display_seconds
from storage import MemoryStore, StateRepository

T0 = 1_767_225_600_000  # 2026-01-01T00:00:00Z


class ManualClock:
    def __init__(self, now_ms: int = T0):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class RecordingWakeups:
    def __init__(self):
        self.armed: list[int] = []
        self.disarmed = 0

    def arm_pomodoro(self, fire_at_ms: int) -> None:
        self.armed.append(fire_at_ms)

    def disarm_pomodoro(self) -> None:
        self.disarmed += 1


class CurrentDisplaySecondsTests(unittest.TestCase):
    def test_countdown_is_non_increasing_and_floors_at_zero(self) -> None:
        state = TimerState(status=STATUS_RUNNING, anchor_value_seconds=90.0, started_at_ms=T0)

        values = [
            current_display_seconds(state, T0 + elapsed_ms)
            for elapsed_ms in (0, 1, 500, 30_000, 89_999, 90_000, 90_001, 3_600_000)
        ]

        self.assertEqual(90.0, values[0])
        self.assertEqual(sorted(values, reverse=True), values)
        self.assertEqual(0.0, values[-1])
        self.assertTrue(all(value >= 0 for value in values))

    def test_stopwatch_is_non_decreasing_and_unbounded(self) -> None:
        state = TimerState(
            status=STATUS_RUNNING,
            timer_type=TYPE_STOPWATCH,
            anchor_value_seconds=12.0,
            started_at_ms=T0,
        )

        values = [
            current_display_seconds(state, T0 + elapsed_ms)
            for elapsed_ms in (0, 250, 60_000, 86_400_000)
        ]

        self.assertEqual(sorted(values), values)
        self.assertEqual(12.0 + 86_400, values[-1])

    def test_not_running_returns_anchor_verbatim(self) -> None:
        state = TimerState(status=STATUS_PAUSED, anchor_value_seconds=42.5)
        self.assertEqual(42.5, current_display_seconds(state, T0 + 999_999))

    def test_clock_behind_start_counts_as_zero_elapsed(self) -> None:
        state = TimerState(status=STATUS_RUNNING, anchor_value_seconds=60.0, started_at_ms=T0)
        self.assertEqual(60.0, current_display_seconds(state, T0 - 5_000))


class TimerEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock()
        self.wakeups = RecordingWakeups()
        self.repository = StateRepository(MemoryStore())
        self.repository.ensure_initialized()
        self.engine = TimerEngine(self.repository, self.wakeups, now_fn=self.clock)

    def test_start_persists_anchor_and_arms_completion(self) -> None:
        result = self.engine.start()

        self.assertTrue(result.accepted)
        self.assertEqual("started", result.reason)
        stored = self.repository.load_timer()
        self.assertEqual(STATUS_RUNNING, stored.status)
        self.assertEqual(T0, stored.started_at_ms)
        self.assertEqual(1500.0, stored.anchor_value_seconds)
        self.assertEqual([T0 + 1_500_000], self.wakeups.armed)

    def test_start_while_running_is_rejected_without_side_effects(self) -> None:
        self.engine.start()
        self.clock.advance(30)

        result = self.engine.start()

        self.assertFalse(result.accepted)
        self.assertEqual("already_running", result.reason)
        self.assertEqual(T0, self.repository.load_timer().started_at_ms)
        self.assertEqual(1, len(self.wakeups.armed))

    def test_display_after_ten_minutes_of_focus(self) -> None:
        self.engine.start()
        self.clock.advance(10 * 60)

        self.assertAlmostEqual(900.0, self.engine.display_seconds(), delta=1.0)

    def test_display_is_recomputed_from_storage_by_any_reader(self) -> None:
        self.engine.start()
        self.clock.advance(123.4)
        other = TimerEngine(self.repository, RecordingWakeups(), now_fn=self.clock)

        for _ in range(5):
            self.assertEqual(self.engine.display_seconds(), other.display_seconds())
        self.assertAlmostEqual(1500.0 - 123.4, other.display_seconds(), places=3)

    def test_pause_folds_elapsed_time_into_anchor(self) -> None:
        self.engine.start()
        self.clock.advance(100)

        result = self.engine.pause()

        self.assertTrue(result.accepted)
        stored = self.repository.load_timer()
        self.assertEqual(STATUS_PAUSED, stored.status)
        self.assertIsNone(stored.started_at_ms)
        self.assertEqual(1400.0, stored.anchor_value_seconds)
        self.assertEqual(1, self.wakeups.disarmed)

    def test_pause_then_start_keeps_display(self) -> None:
        self.engine.start()
        self.clock.advance(61.5)
        self.engine.pause()
        before = self.engine.display_seconds()

        self.engine.start()

        self.assertEqual(before, self.engine.display_seconds())
        self.assertEqual(self.clock.now_ms + round(before * 1000), self.wakeups.armed[-1])

    def test_paused_display_does_not_move(self) -> None:
        self.engine.start()
        self.clock.advance(5)
        self.engine.pause()
        self.clock.advance(3600)

        self.assertEqual(1495.0, self.engine.display_seconds())

    def test_pause_when_not_running_is_rejected(self) -> None:
        result = self.engine.pause()

        self.assertFalse(result.accepted)
        self.assertEqual("not_running", result.reason)
        self.assertEqual(0, self.wakeups.disarmed)

    def test_stopwatch_counts_up_and_is_never_armed(self) -> None:
        self.engine.set_type(TYPE_STOPWATCH)
        self.assertEqual(0.0, self.repository.load_timer().anchor_value_seconds)

        self.engine.start()
        self.clock.advance(5 * 60)

        self.assertAlmostEqual(300.0, self.engine.display_seconds(), delta=1.0)
        self.assertEqual([], self.wakeups.armed)

        self.engine.pause()
        self.assertEqual(300.0, self.repository.load_timer().anchor_value_seconds)

    def test_reset_restores_mode_duration(self) -> None:
        self.engine.set_mode(MODE_SHORT_BREAK)
        self.engine.start()
        self.clock.advance(42)

        result = self.engine.reset()

        self.assertEqual(STATUS_IDLE, result.state.status)
        self.assertIsNone(result.state.started_at_ms)
        self.assertEqual(5, result.state.duration_minutes)
        self.assertEqual(300.0, result.state.anchor_value_seconds)

    def test_set_mode_keeps_active_task(self) -> None:
        self.repository.save(tasks=[Task(id="t1", title="Write", created_at_ms=T0)])
        self.engine.start_task("t1")

        result = self.engine.set_mode(MODE_LONG_BREAK)

        self.assertEqual(MODE_LONG_BREAK, result.state.mode)
        self.assertEqual(900.0, result.state.anchor_value_seconds)
        self.assertEqual("t1", result.state.active_task_id)

    def test_set_mode_rejects_unknown_mode(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.set_mode("lunch")

    def test_set_type_rejects_unknown_type(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.set_type("hourglass")

    def test_start_task_uses_custom_duration(self) -> None:
        self.repository.save(
            tasks=[Task(id="t1", title="Deep work", created_at_ms=T0, duration_minutes=50)]
        )
        self.engine.set_type(TYPE_STOPWATCH)
        self.engine.set_mode(MODE_SHORT_BREAK)

        result = self.engine.start_task("t1")

        self.assertTrue(result.accepted)
        self.assertEqual(TYPE_TIMER, result.state.timer_type)
        self.assertEqual(MODE_FOCUS, result.state.mode)
        self.assertEqual(50, result.state.duration_minutes)
        self.assertEqual(3000.0, result.state.anchor_value_seconds)
        self.assertEqual("t1", result.state.active_task_id)

    def test_start_task_unknown_id_is_ignored(self) -> None:
        before = self.repository.load_timer()

        result = self.engine.start_task("missing")

        self.assertFalse(result.accepted)
        self.assertEqual("unknown_task", result.reason)
        self.assertEqual(before, self.repository.load_timer())

    def test_start_task_without_task_clears_binding(self) -> None:
        self.repository.save(tasks=[Task(id="t1", title="Write", created_at_ms=T0)])
        self.engine.start_task("t1")

        result = self.engine.start_task(None)

        self.assertIsNone(result.state.active_task_id)
        self.assertEqual(1500.0, result.state.anchor_value_seconds)

    def test_dismiss_ringing(self) -> None:
        self.repository.save(timer=TimerState(is_ringing=True))

        result = self.engine.dismiss_ringing()

        self.assertTrue(result.accepted)
        self.assertFalse(self.repository.load_timer().is_ringing)
        self.assertFalse(self.engine.dismiss_ringing().accepted)

    def test_resume_rearms_running_countdown(self) -> None:
        self.engine.start()
        self.wakeups.armed.clear()
        self.clock.advance(60)

        self.assertTrue(self.engine.resume())
        self.assertEqual([T0 + 1_500_000], self.wakeups.armed)

    def test_resume_ignores_idle_and_stopwatch(self) -> None:
        self.assertFalse(self.engine.resume())
        self.engine.set_type(TYPE_STOPWATCH)
        self.engine.start()
        self.assertFalse(self.engine.resume())
        self.assertEqual([], self.wakeups.armed)


if __name__ == "__main__":
    unittest.main()
