import unittest
from datetime import date, time

from fleet_reservations import PayloadError, RecurrenceRule, parse_date_filter, parse_reservation_payload


class TestParseReservationPayload(unittest.TestCase):
    def test_parses_canonical_keys(self) -> None:
        parsed = parse_reservation_payload(
            {
                "resource_id": "car-1",
                "anchor_date": "2025-02-03",
                "start_time": "09:00",
                "end_time": "10:30",
                "recurrence_rule": "weekly",
                "recurrence_end_date": "2025-02-28",
                "days_of_week": ["mon", "wed"],
            }
        )

        self.assertEqual(parsed.resource_id, "car-1")
        self.assertEqual(parsed.anchor_date, date(2025, 2, 3))
        self.assertEqual(parsed.start_time, time(9, 0))
        self.assertEqual(parsed.end_time, time(10, 30))
        self.assertEqual(parsed.recurrence_rule, RecurrenceRule.WEEKLY)
        self.assertEqual(parsed.recurrence_end_date, date(2025, 2, 28))
        self.assertEqual(parsed.days_of_week, (1 << 1) | (1 << 3))

    def test_parses_legacy_booking_aliases(self) -> None:
        parsed = parse_reservation_payload(
            {
                "car_id": " car-9 ",
                "booking_date": "2025-03-07T00:00:00",
                "start_time": "08:00:00",
                "end_time": "10:00:00",
                "repeat_option": "DoesNotRepeat",
                "end_repeat_date": "2025/03/28",
                "days_to_repeat_on": 32,
            }
        )

        self.assertEqual(parsed.resource_id, "car-9")
        self.assertEqual(parsed.anchor_date, date(2025, 3, 7))
        self.assertEqual(parsed.recurrence_rule, RecurrenceRule.NONE)
        self.assertEqual(parsed.recurrence_end_date, date(2025, 3, 28))
        self.assertEqual(parsed.days_of_week, 32)

    def test_rule_codes_and_spellings(self) -> None:
        self.assertEqual(parse_reservation_payload({"repeat_option": 1}).recurrence_rule, RecurrenceRule.DAILY)
        self.assertEqual(parse_reservation_payload({"repeat_option": "2"}).recurrence_rule, RecurrenceRule.WEEKLY)
        self.assertEqual(parse_reservation_payload({"recurrence_rule": "does_not_repeat"}).recurrence_rule, RecurrenceRule.NONE)
        self.assertEqual(parse_reservation_payload({}).recurrence_rule, RecurrenceRule.NONE)

    def test_missing_and_blank_values_become_absent(self) -> None:
        parsed = parse_reservation_payload({"resource_id": "  ", "anchor_date": "", "start_time": None})

        self.assertIsNone(parsed.resource_id)
        self.assertIsNone(parsed.anchor_date)
        self.assertIsNone(parsed.start_time)
        self.assertIsNone(parsed.end_time)

    def test_out_of_range_mask_is_left_for_validation(self) -> None:
        self.assertEqual(parse_reservation_payload({"days_of_week": 200}).days_of_week, 200)
        self.assertEqual(parse_reservation_payload({"days_of_week": "200"}).days_of_week, 200)

    def test_malformed_values_raise(self) -> None:
        with self.assertRaises(PayloadError):
            parse_reservation_payload({"anchor_date": "05-02-2025"})
        with self.assertRaises(PayloadError):
            parse_reservation_payload({"anchor_date": "2025-02-30"})
        with self.assertRaises(PayloadError):
            parse_reservation_payload({"start_time": "25:00"})
        with self.assertRaises(PayloadError):
            parse_reservation_payload({"recurrence_rule": "monthly"})
        with self.assertRaises(PayloadError):
            parse_reservation_payload({"days_of_week": ["funday"]})
        with self.assertRaises(PayloadError):
            parse_reservation_payload(["not", "a", "mapping"])


class TestParseDateFilter(unittest.TestCase):
    def test_blank_filter_is_absent(self) -> None:
        self.assertIsNone(parse_date_filter(None))
        self.assertIsNone(parse_date_filter("  "))

    def test_parses_date(self) -> None:
        self.assertEqual(parse_date_filter("2025-02-10"), date(2025, 2, 10))

        with self.assertRaises(PayloadError):
            parse_date_filter("tomorrow", "start_date")


if __name__ == "__main__":
    unittest.main()
