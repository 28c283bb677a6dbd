import unittest
from datetime import date, datetime

from booking_calendar import Reservation, ResourceRegistry
from booking_calendar.calendar_view import build_month_calendar, holiday_name, resource_status, sort_reservations


def _record(reservation_id: str, day: date, start: str, end: str, resource_id: str = "vehicle-1") -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        kind="vehicle" if resource_id.startswith("vehicle") else "space",
        resource_id=resource_id,
        resource_name=resource_id,
        date=day,
        start_time=start,
        end_time=end,
        reserved_by="tester",
        purpose="",
        created_at=datetime(2026, 4, 1, 9, 0),
    )


class TestMonthCalendar(unittest.TestCase):
    def test_one_cell_per_day_with_sorted_reservations(self) -> None:
        reservations = [
            _record("late", date(2026, 5, 6), "15:00", "16:00"),
            _record("early", date(2026, 5, 6), "08:00", "09:00"),
            _record("june", date(2026, 6, 1), "08:00", "09:00"),
        ]
        cells = build_month_calendar(2026, 5, reservations, today=date(2026, 5, 6))

        self.assertEqual(len(cells), 31)
        may_6 = cells[5]
        self.assertEqual(may_6["date"], "2026-05-06")
        self.assertTrue(may_6["isToday"])
        self.assertEqual([item["id"] for item in may_6["reservations"]], ["early", "late"])
        self.assertEqual(sum(len(cell["reservations"]) for cell in cells), 2)

    def test_marks_weekends_and_holidays(self) -> None:
        cells = build_month_calendar(2026, 5, [], country="KR", today=date(2026, 1, 1))

        childrens_day = cells[4]
        self.assertEqual(childrens_day["date"], "2026-05-05")
        self.assertIsNotNone(childrens_day["holiday"])
        self.assertIsNone(cells[5]["holiday"])
        self.assertTrue(cells[1]["isWeekend"])  # 2026-05-02 is a Saturday
        self.assertFalse(cells[3]["isWeekend"])

    def test_holiday_name_lookup(self) -> None:
        self.assertIsNotNone(holiday_name(date(2026, 1, 1)))
        self.assertIsNone(holiday_name(date(2026, 1, 6)))


class TestResourceStatus(unittest.TestCase):
    def test_counts_bookings_for_the_day(self) -> None:
        day = date(2026, 5, 6)
        reservations = [
            _record("a", day, "08:00", "09:00"),
            _record("b", day, "10:00", "11:00"),
            _record("c", day, "10:00", "11:00", resource_id="space-b"),
            _record("d", date(2026, 5, 7), "10:00", "11:00", resource_id="vehicle-2"),
        ]
        status = resource_status(ResourceRegistry(), reservations, day)

        vehicles = {row["id"]: row for row in status["vehicles"]}
        spaces = {row["id"]: row for row in status["spaces"]}
        self.assertEqual(vehicles["vehicle-1"]["bookingCount"], 2)
        self.assertTrue(vehicles["vehicle-1"]["isBooked"])
        self.assertFalse(vehicles["vehicle-2"]["isBooked"])
        self.assertEqual(vehicles["vehicle-1"]["label"], "라떼")
        self.assertTrue(spaces["space-b"]["isBooked"])
        self.assertFalse(spaces["space-a"]["isBooked"])


class TestSortReservations(unittest.TestCase):
    def test_orders_by_date_then_start(self) -> None:
        records = [
            _record("b", date(2026, 5, 2), "08:00", "09:00"),
            _record("c", date(2026, 5, 1), "13:00", "14:00"),
            _record("a", date(2026, 5, 1), "09:00", "10:00"),
        ]
        self.assertEqual([r.reservation_id for r in sort_reservations(records)], ["a", "c", "b"])


if __name__ == "__main__":
    unittest.main()
