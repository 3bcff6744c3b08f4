import unittest
from datetime import datetime, timedelta, timezone

from alarms import add_months, initial_fire_at, next_clock_time

UTC = timezone.utc


def _ms(*args: int, tz=UTC) -> int:
    return int(datetime(*args, tzinfo=tz).timestamp() * 1000)


class AddMonthsTests(unittest.TestCase):
    def test_keeps_day_and_time_of_day(self) -> None:
        self.assertEqual(
            _ms(2026, 4, 15, 7, 30),
            add_months(_ms(2026, 3, 15, 7, 30), 1, tz=UTC),
        )

    def test_clamps_to_last_day_of_shorter_month(self) -> None:
        self.assertEqual(_ms(2026, 2, 28, 9), add_months(_ms(2026, 1, 31, 9), 1, tz=UTC))
        self.assertEqual(_ms(2028, 2, 29, 9), add_months(_ms(2028, 1, 31, 9), 1, tz=UTC))
        self.assertEqual(_ms(2026, 4, 30, 9), add_months(_ms(2026, 3, 31, 9), 1, tz=UTC))

    def test_crosses_year_boundary(self) -> None:
        self.assertEqual(_ms(2027, 1, 31), add_months(_ms(2026, 12, 31), 1, tz=UTC))
        self.assertEqual(_ms(2027, 2, 28), add_months(_ms(2026, 11, 30), 3, tz=UTC))

    def test_keeps_millisecond_remainder(self) -> None:
        self.assertEqual(
            _ms(2026, 2, 1) + 123,
            add_months(_ms(2026, 1, 1) + 123, 1, tz=UTC),
        )

    def test_respects_timezone_wall_clock(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        source = _ms(2026, 1, 31, 0, 30, tz=plus_two)

        shifted = add_months(source, 1, tz=plus_two)

        self.assertEqual(_ms(2026, 2, 28, 0, 30, tz=plus_two), shifted)


class InitialFireAtTests(unittest.TestCase):
    def test_future_alarms_are_unchanged(self) -> None:
        now = _ms(2026, 1, 1)
        for recurrence in ("once", "hourly", "daily", "weekly", "monthly"):
            self.assertEqual(
                now + 60_000,
                initial_fire_at(now + 60_000, recurrence, now, tz=UTC),
            )

    def test_expired_one_shot_is_not_moved(self) -> None:
        now = _ms(2026, 1, 1, 12)
        past = now - 3_600_000
        self.assertEqual(past, initial_fire_at(past, "once", now, tz=UTC))

    def test_daily_moves_to_next_slot_at_same_time(self) -> None:
        fire_at = _ms(2026, 1, 1, 7, 0)
        now = _ms(2026, 1, 5, 9, 0)

        self.assertEqual(_ms(2026, 1, 6, 7, 0), initial_fire_at(fire_at, "daily", now, tz=UTC))

    def test_hourly_and_weekly(self) -> None:
        fire_at = _ms(2026, 1, 1, 7, 15)

        self.assertEqual(
            _ms(2026, 1, 1, 10, 15),
            initial_fire_at(fire_at, "hourly", _ms(2026, 1, 1, 9, 20), tz=UTC),
        )
        self.assertEqual(
            _ms(2026, 1, 15, 7, 15),
            initial_fire_at(fire_at, "weekly", _ms(2026, 1, 10), tz=UTC),
        )

    def test_monthly_offsets_from_original_day(self) -> None:
        fire_at = _ms(2026, 1, 31, 8)
        now = _ms(2026, 3, 5)

        self.assertEqual(_ms(2026, 3, 31, 8), initial_fire_at(fire_at, "monthly", now, tz=UTC))

    def test_result_is_never_in_the_past(self) -> None:
        fire_at = _ms(2025, 5, 31, 23, 59)
        now = _ms(2026, 2, 28, 23, 59, 30)
        for recurrence in ("hourly", "daily", "weekly", "monthly"):
            self.assertGreaterEqual(initial_fire_at(fire_at, recurrence, now, tz=UTC), now)


class NextClockTimeTests(unittest.TestCase):
    def test_later_today(self) -> None:
        now = _ms(2026, 6, 1, 10, 30)
        self.assertEqual(_ms(2026, 6, 1, 11, 0), next_clock_time(11, 0, now, tz=UTC))

    def test_already_past_means_tomorrow(self) -> None:
        now = _ms(2026, 6, 30, 10, 30)
        self.assertEqual(_ms(2026, 7, 1, 9, 0), next_clock_time(9, 0, now, tz=UTC))

    def test_exact_minute_is_today(self) -> None:
        now = _ms(2026, 6, 1, 10, 30)
        self.assertEqual(now, next_clock_time(10, 30, now, tz=UTC))

    def test_rejects_invalid_time(self) -> None:
        with self.assertRaises(ValueError):
            next_clock_time(24, 0, 0, tz=UTC)
        with self.assertRaises(ValueError):
            next_clock_time(12, 60, 0, tz=UTC)


if __name__ == "__main__":
    unittest.main()
