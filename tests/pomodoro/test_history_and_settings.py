import unittest
from datetime import date, datetime, timezone

from contracts.state import MODE_FOCUS, MODE_SHORT_BREAK, SessionLogEntry
from pomodoro import TimerEngine, summarize_history, update_settings
from storage import MemoryStore, StateRepository


def _ms(*args: int) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


class SummarizeHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now_ms = _ms(2026, 3, 10, 12, 0)
        self.history = [
            SessionLogEntry("a", _ms(2026, 3, 10, 9, 0), 25, MODE_FOCUS, "t1"),
            SessionLogEntry("b", _ms(2026, 3, 10, 9, 30), 5, MODE_SHORT_BREAK),
            SessionLogEntry("c", _ms(2026, 3, 9, 23, 59), 25, MODE_FOCUS),
            SessionLogEntry("d", _ms(2026, 3, 1, 8, 0), 50, MODE_FOCUS),
        ]

    def test_totals_count_focus_only(self) -> None:
        summary = summarize_history(self.history, self.now_ms, tz=timezone.utc)

        self.assertEqual(100, summary.total_focus_minutes)
        self.assertEqual(3, summary.focus_sessions)
        self.assertEqual(25, summary.today_minutes)

    def test_daily_window_ends_today(self) -> None:
        summary = summarize_history(self.history, self.now_ms, tz=timezone.utc)

        self.assertEqual(7, len(summary.daily))
        self.assertEqual(date(2026, 3, 4), summary.daily[0].day)
        self.assertEqual(date(2026, 3, 10), summary.daily[-1].day)
        self.assertEqual([0, 0, 0, 0, 0, 25, 25], [day.minutes for day in summary.daily])

    def test_empty_history(self) -> None:
        summary = summarize_history([], self.now_ms, days=3, tz=timezone.utc)

        self.assertEqual(0, summary.total_focus_minutes)
        self.assertEqual(3, len(summary.daily))

    def test_rejects_empty_window(self) -> None:
        with self.assertRaises(ValueError):
            summarize_history(self.history, self.now_ms, days=0)


class UpdateSettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repository = StateRepository(MemoryStore())
        self.repository.ensure_initialized()

    def test_update_is_persisted_and_used_by_next_reset(self) -> None:
        updated = update_settings(self.repository, focus_minutes=50, auto_start_breaks=True)

        self.assertEqual(50, updated.focus_minutes)
        self.assertTrue(self.repository.load_settings().auto_start_breaks)

        class _NoWakeups:
            def arm_pomodoro(self, fire_at_ms: int) -> None:
                pass

            def disarm_pomodoro(self) -> None:
                pass

        engine = TimerEngine(self.repository, _NoWakeups(), now_fn=lambda: 0)
        self.assertEqual(3000.0, engine.reset().state.anchor_value_seconds)

    def test_rejects_unknown_fields(self) -> None:
        with self.assertRaises(ValueError):
            update_settings(self.repository, pomodoro_count=4)

    def test_rejects_non_positive_durations(self) -> None:
        with self.assertRaises(ValueError):
            update_settings(self.repository, short_break_minutes=0)
        self.assertEqual(5, self.repository.load_settings().short_break_minutes)


if __name__ == "__main__":
    unittest.main()
