import tempfile
import unittest
from datetime import datetime
from pathlib import Path

import yaml

from booking_calendar import InMemoryReservationStore, ReservationYamlRepository
from booking_calendar.settings import Settings
from booking_calendar.web_app import create_app

NOW = datetime(2026, 5, 4, 9, 0)


def _payload(**overrides: str) -> dict[str, str]:
    payload = {
        "type": "vehicle",
        "resourceId": "vehicle-1",
        "date": "2026-05-06",
        "startTime": "10:00",
        "endTime": "11:00",
        "reservedBy": "홍길동",
        "purpose": "거래처 방문",
    }
    payload.update(overrides)
    return payload


class TestWebApp(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryReservationStore(clock=lambda: NOW)
        self.app = create_app(store=self.store, now_provider=lambda: NOW, settings=Settings(store_backend="memory"))
        self.client = self.app.test_client()

    def test_health_and_cors(self) -> None:
        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "healthy")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")

    def test_resources_grouped_by_kind(self) -> None:
        payload = self.client.get("/api/resources").get_json()

        self.assertTrue(payload["ok"])
        self.assertEqual([row["id"] for row in payload["vehicles"]], ["vehicle-1", "vehicle-2", "vehicle-3", "vehicle-4"])
        self.assertEqual([row["id"] for row in payload["spaces"]], ["space-a", "space-b"])

    def test_create_list_delete_flow(self) -> None:
        created = self.client.post("/api/reservations", json=_payload())
        self.assertEqual(created.status_code, 201)
        reservation = created.get_json()["reservation"]
        self.assertEqual(reservation["resourceName"], "라떼 20노1803")
        self.assertEqual(reservation["createdAt"], "2026-05-04T09:00:00")

        self.client.post("/api/reservations", json=_payload(startTime="08:00", endTime="09:00"))

        listed = self.client.get("/api/reservations?year=2026&month=5").get_json()
        self.assertEqual(listed["count"], 2)
        self.assertEqual([row["startTime"] for row in listed["reservations"]], ["08:00", "10:00"])
        self.assertEqual(self.client.get("/api/reservations?year=2026&month=6").get_json()["count"], 0)

        deleted = self.client.delete(f"/api/reservations/{reservation['id']}")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.get_json()["reservation"]["id"], reservation["id"])

        missing = self.client.delete(f"/api/reservations/{reservation['id']}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.get_json()["error"], "not_found")

    def test_conflict_returns_409_with_details(self) -> None:
        first = self.client.post("/api/reservations", json=_payload(reservedBy="김철수")).get_json()["reservation"]

        response = self.client.post("/api/reservations", json=_payload(startTime="10:30", endTime="11:30"))

        self.assertEqual(response.status_code, 409)
        body = response.get_json()
        self.assertFalse(body["ok"])
        self.assertEqual(body["error"], "conflict")
        self.assertEqual(body["conflicts"], [{"id": first["id"], "time": "10:00~11:00", "reservedBy": "김철수"}])

    def test_validation_errors_return_400(self) -> None:
        cases = [
            (_payload(startTime="11:00", endTime="10:00"), "ordering"),
            (_payload(endTime="10:15"), "minimum_duration"),
            (_payload(resourceId="vehicle-9"), "unknown_resource"),
            (_payload(type="space"), "kind_mismatch"),
            (_payload(reservedBy=""), "missing_field"),
            (_payload(date="2026-02-30"), "parse"),
            (_payload(startTime="10am"), "parse"),
        ]
        for payload, error in cases:
            with self.subTest(error=error):
                response = self.client.post("/api/reservations", json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error"], error)
        self.assertEqual(self.store.list_all(), [])

    def test_non_object_body_returns_400(self) -> None:
        for path in ["/api/reservations", "/api/reservations/check"]:
            with self.subTest(path=path):
                response = self.client.post(path, json=["x"])
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error"], "invalid_payload")
        self.assertEqual(self.store.list_all(), [])

    def test_bad_date_query_returns_400(self) -> None:
        response = self.client.get("/api/availability?resourceId=space-a&date=2026-02-30")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "parse")
        self.assertEqual(self.client.get("/api/status?date=tomorrow").status_code, 400)

    def test_list_requires_valid_year_and_month(self) -> None:
        self.assertEqual(self.client.get("/api/reservations?year=2026").status_code, 400)
        self.assertEqual(self.client.get("/api/reservations?year=2026&month=13").status_code, 400)
        self.assertEqual(self.client.get("/api/reservations?year=abc&month=1").status_code, 400)

    def test_check_endpoint_does_not_write(self) -> None:
        existing = self.client.post("/api/reservations", json=_payload()).get_json()["reservation"]

        clash = self.client.post("/api/reservations/check", json=_payload(startTime="10:30", endTime="11:30")).get_json()
        self.assertFalse(clash["available"])
        self.assertEqual(clash["conflict"]["id"], existing["id"])

        own = self.client.post(
            "/api/reservations/check",
            json={**_payload(startTime="10:30", endTime="11:30"), "excludeId": existing["id"]},
        ).get_json()
        self.assertTrue(own["available"])
        self.assertIsNone(own["conflict"])
        self.assertEqual(len(self.store.list_all()), 1)

        invalid = self.client.post("/api/reservations/check", json=_payload(endTime="10:10"))
        self.assertEqual(invalid.status_code, 400)

    def test_availability(self) -> None:
        self.client.post("/api/reservations", json=_payload(resourceId="space-a", type="space"))

        response = self.client.get("/api/availability?resourceId=space-a&date=2026-05-06&slotDuration=30")
        body = response.get_json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["slotDuration"], 30)
        self.assertNotIn("10:00", body["slots"])
        self.assertNotIn("10:30", body["slots"])
        self.assertIn("11:00", body["slots"])

        self.assertEqual(self.client.get("/api/availability?resourceId=space-a").status_code, 400)
        self.assertEqual(self.client.get("/api/availability?resourceId=space-x&date=2026-05-06").status_code, 400)
        self.assertEqual(
            self.client.get("/api/availability?resourceId=space-a&date=2026-05-06&slotDuration=0").status_code,
            400,
        )

    def test_calendar_marks_holidays_and_reservations(self) -> None:
        self.client.post("/api/reservations", json=_payload())

        body = self.client.get("/api/calendar?year=2026&month=5").get_json()

        self.assertEqual(len(body["days"]), 31)
        self.assertIsNotNone(body["days"][4]["holiday"])
        self.assertTrue(body["days"][3]["isToday"])
        self.assertEqual(len(body["days"][5]["reservations"]), 1)

    def test_status_for_day(self) -> None:
        self.client.post("/api/reservations", json=_payload())

        body = self.client.get("/api/status?date=2026-05-06").get_json()
        booked = {row["id"]: row["isBooked"] for row in body["vehicles"]}
        self.assertTrue(booked["vehicle-1"])
        self.assertFalse(booked["vehicle-2"])

        today = self.client.get("/api/status").get_json()
        self.assertEqual(today["date"], "2026-05-04")


class TestWebAppWithYamlStore(unittest.TestCase):
    def test_data_dir_uses_yaml_repository(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            app = create_app(data_dir, now_provider=lambda: NOW, settings=Settings())
            client = app.test_client()

            response = client.post("/api/reservations", json=_payload())
            self.assertEqual(response.status_code, 201)

            repo = ReservationYamlRepository(data_dir)
            self.assertEqual(len(repo.list_all()), 1)
            self.assertIsInstance(app.extensions["booking_store"], ReservationYamlRepository)

    def test_malformed_stored_row_returns_500(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            app = create_app(data_dir, now_provider=lambda: NOW, settings=Settings())
            client = app.test_client()
            created = client.post("/api/reservations", json=_payload()).get_json()["reservation"]

            row = {
                "id": created["id"],
                "type": "vehicle",
                "resource_id": "vehicle-1",
                "resource_name": created["resourceName"],
                "date": "2026-05-06",
                "start_time": "10시",
                "end_time": "11:00",
                "reserved_by": "홍길동",
                "purpose": "",
                "created_at": "2026-05-04T09:00:00",
            }
            (data_dir / "reservations.yaml").write_text(yaml.safe_dump([row], allow_unicode=True), encoding="utf-8")

            response = client.get("/api/reservations?year=2026&month=5")
            self.assertEqual(response.status_code, 500)
            self.assertEqual(response.get_json()["error"], "data_integrity")


if __name__ == "__main__":
    unittest.main()
