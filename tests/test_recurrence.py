import unittest
from datetime import date, timedelta

from fleet_reservations import Weekday, WeekdaySet, expand_active_dates, iter_active_dates


class TestWeekdaySet(unittest.TestCase):
    def test_bits_follow_sunday_first_order(self) -> None:
        days = WeekdaySet.from_weekdays([Weekday.SUNDAY, Weekday.MONDAY, Weekday.SATURDAY])

        self.assertEqual(days.mask, 0b1000011)
        self.assertEqual(list(days), [Weekday.SUNDAY, Weekday.MONDAY, Weekday.SATURDAY])

    def test_is_active_on_honors_mask(self) -> None:
        mondays = WeekdaySet(2)

        self.assertTrue(mondays.is_active_on(Weekday.MONDAY))
        self.assertFalse(mondays.is_active_on(Weekday.TUESDAY))
        self.assertTrue(mondays.matches(date(2025, 2, 3)))
        self.assertFalse(mondays.matches(date(2025, 2, 4)))

    def test_empty_mask_matches_every_day(self) -> None:
        empty = WeekdaySet()

        self.assertTrue(empty.is_match_all)
        for weekday in Weekday:
            self.assertTrue(empty.is_active_on(weekday))

    def test_membership_agrees_with_is_active_on(self) -> None:
        for days in (WeekdaySet(), WeekdaySet(2), WeekdaySet(127)):
            for weekday in Weekday:
                self.assertEqual(weekday in days, days.is_active_on(weekday))

        self.assertIn(Weekday.MONDAY, WeekdaySet())
        self.assertNotIn(7, WeekdaySet())
        self.assertNotIn(-1, WeekdaySet(127))
        self.assertNotIn("mon", WeekdaySet())

    def test_weekday_of_maps_python_weekday(self) -> None:
        self.assertEqual(Weekday.of(date(2025, 2, 2)), Weekday.SUNDAY)
        self.assertEqual(Weekday.of(date(2025, 2, 8)), Weekday.SATURDAY)

    def test_from_names_accepts_short_and_full_names(self) -> None:
        days = WeekdaySet.from_names(["mon", "Friday"])
        self.assertEqual(days.mask, (1 << 1) | (1 << 5))

        with self.assertRaises(ValueError):
            WeekdaySet.from_names(["someday"])

    def test_mask_out_of_range_raises(self) -> None:
        with self.assertRaises(ValueError):
            WeekdaySet(128)
        with self.assertRaises(ValueError):
            WeekdaySet(-1)


class TestExpandActiveDates(unittest.TestCase):
    def test_without_end_date_returns_anchor_only(self) -> None:
        self.assertEqual(expand_active_dates(date(2025, 2, 5)), [date(2025, 2, 5)])
        self.assertEqual(expand_active_dates(date(2025, 2, 5), None, WeekdaySet(2)), [date(2025, 2, 5)])

    def test_match_all_covers_whole_range_inclusive(self) -> None:
        dates = expand_active_dates(date(2025, 2, 10), date(2025, 2, 20))

        self.assertEqual(len(dates), 11)
        self.assertEqual(dates[0], date(2025, 2, 10))
        self.assertEqual(dates[-1], date(2025, 2, 20))
        self.assertEqual(dates, sorted(dates))

    def test_weekly_monday_mask_yields_only_mondays(self) -> None:
        dates = expand_active_dates(date(2025, 2, 3), date(2025, 2, 28), WeekdaySet.from_weekdays([Weekday.MONDAY]))

        self.assertEqual(dates, [date(2025, 2, 3), date(2025, 2, 10), date(2025, 2, 17), date(2025, 2, 24)])

    def test_raw_integer_mask_is_accepted(self) -> None:
        self.assertEqual(
            expand_active_dates(date(2025, 3, 1), date(2025, 3, 14), 1 << Weekday.FRIDAY),
            [date(2025, 3, 7), date(2025, 3, 14)],
        )

    def test_dates_stay_within_bounds_and_endpoints_follow_mask(self) -> None:
        anchor = date(2025, 2, 1)
        end = date(2025, 3, 15)
        for mask in (0, 1, 2, 65, 127):
            dates = expand_active_dates(anchor, end, mask)
            days = WeekdaySet(mask)
            self.assertTrue(all(anchor <= value <= end for value in dates))
            self.assertEqual(anchor in dates, days.matches(anchor))
            self.assertEqual(end in dates, days.matches(end))

    def test_end_before_anchor_yields_nothing(self) -> None:
        self.assertEqual(expand_active_dates(date(2025, 2, 10), date(2025, 2, 9)), [])

    def test_iterator_is_lazy_and_repeatable(self) -> None:
        anchor = date(2025, 1, 1)
        iterator = iter_active_dates(anchor, anchor + timedelta(days=365))

        self.assertEqual(next(iterator), anchor)
        self.assertEqual(next(iterator), anchor + timedelta(days=1))
        self.assertEqual(
            expand_active_dates(anchor, date(2025, 1, 31), 3),
            expand_active_dates(anchor, date(2025, 1, 31), 3),
        )


if __name__ == "__main__":
    unittest.main()
