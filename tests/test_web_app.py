import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from djbooth import EventWindowPolicy, InMemoryReservationStore, ReservationEngine, ReservationStorageError
from djbooth.settings import EngineSettings
from djbooth.web_app import create_app


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestWebApp(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = ReservationEngine(
            InMemoryReservationStore(),
            window=EventWindowPolicy(start=utc(2025, 8, 29), end=utc(2025, 8, 31)),
            clock=lambda: utc(2025, 8, 28, 12, 0),
        )
        self.client = create_app(self.engine).test_client()

    def _create(self, start: str, end: str, passcode: str = "1234", dj_name: str = "Kay"):
        return self.client.post(
            "/api/reservations",
            json={"dj_name": dj_name, "start_time": start, "end_time": end, "passcode": passcode},
        )

    def test_create_conflict_and_slots_flow(self) -> None:
        created = self._create("2025-08-29T10:00:00Z", "2025-08-29T10:30:00Z")
        self.assertEqual(created.status_code, 201)
        payload = created.get_json()
        self.assertEqual(payload["dj_name"], "Kay")
        self.assertNotIn("passcode_hash", payload)

        conflict = self._create("2025-08-29T10:15:00Z", "2025-08-29T10:45:00Z")
        self.assertEqual(conflict.status_code, 409)
        self.assertEqual(conflict.get_json()["code"], "TIME_CONFLICT")

        response = self.client.get("/api/slots?startTime=2025-08-29T09:00:00Z&endTime=2025-08-29T11:00:00Z")
        self.assertEqual(response.status_code, 200)
        slots = response.get_json()
        self.assertEqual(len(slots), 8)
        self.assertEqual([slot["available"] for slot in slots], [True, True, True, True, False, False, True, True])
        self.assertEqual(slots[4]["start"], "2025-08-29T10:00:00+00:00")

    def test_validation_errors_carry_distinct_codes(self) -> None:
        cases = [
            (self._create("2025-08-29T10:07:00Z", "2025-08-29T10:30:00Z"), "INVALID_TIME_INTERVAL"),
            (self._create("2025-08-29T10:00:00Z", "2025-08-29T11:15:00Z"), "DURATION_TOO_LONG"),
            (self._create("2025-08-29T10:00:00Z", "2025-08-29T10:30:00Z", passcode="12"), "INVALID_PASSCODE"),
            (self._create("2025-08-29T10:00:00Z", "2025-08-29T10:30:00Z", dj_name=""), "INVALID_INPUT"),
            (self._create("2025-08-29T10:00:00", "2025-08-29T10:30:00"), "INVALID_INPUT"),
            (self._create("2025-08-28T11:00:00Z", "2025-08-28T11:30:00Z"), "PAST_TIME"),
            (self._create("2025-08-28T23:45:00Z", "2025-08-29T00:15:00Z"), "BEFORE_EVENT_START"),
            (self._create("2025-08-30T23:45:00Z", "2025-08-31T00:15:00Z"), "EXCEEDS_EVENT_END"),
        ]
        for response, code in cases:
            with self.subTest(code=code):
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["code"], code)

    def test_invalid_body_is_rejected(self) -> None:
        response = self.client.post("/api/reservations", data="not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["code"], "INVALID_INPUT")

    def test_slot_query_errors(self) -> None:
        missing = self.client.get("/api/slots")
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.get_json()["code"], "INVALID_TIME_RANGE")

        too_large = self.client.get("/api/slots?startTime=2025-08-29T00:00:00Z&endTime=2025-09-02T00:00:00Z")
        self.assertEqual(too_large.status_code, 400)
        self.assertEqual(too_large.get_json()["code"], "RANGE_TOO_LARGE")

        default_end = self.client.get("/api/slots?startTime=2025-08-29T00:00:00Z")
        self.assertEqual(default_end.status_code, 200)
        self.assertEqual(len(default_end.get_json()), 288)

    def test_delete_flow(self) -> None:
        reservation_id = self._create("2025-08-29T10:00:00Z", "2025-08-29T10:30:00Z").get_json()["reservation_id"]

        wrong = self.client.delete(f"/api/reservations/{reservation_id}", json={"passcode": "9999"})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(wrong.get_json()["code"], "INVALID_PASSCODE")

        ok = self.client.delete(f"/api/reservations/{reservation_id}", json={"passcode": "1234"})
        self.assertEqual(ok.status_code, 204)

        again = self.client.delete(f"/api/reservations/{reservation_id}", json={"passcode": "1234"})
        self.assertEqual(again.status_code, 404)
        self.assertEqual(again.get_json()["code"], "NOT_FOUND")

    def test_list_event_config_and_now_playing(self) -> None:
        self._create("2025-08-29T10:00:00Z", "2025-08-29T10:30:00Z")
        self._create("2025-08-30T10:00:00Z", "2025-08-30T10:30:00Z", dj_name="Ren")

        listed = self.client.get("/api/reservations").get_json()
        self.assertEqual([row["dj_name"] for row in listed], ["Kay", "Ren"])
        filtered = self.client.get("/api/reservations?date=2025-08-30").get_json()
        self.assertEqual([row["dj_name"] for row in filtered], ["Ren"])
        bad_date = self.client.get("/api/reservations?date=30-08-2025")
        self.assertEqual(bad_date.status_code, 400)

        config = self.client.get("/api/event-config").get_json()
        self.assertEqual(config["event_start_time"], "2025-08-29T00:00:00+00:00")

        now_playing = self.client.get("/api/now-playing").get_json()
        self.assertIsNone(now_playing["current"])
        self.assertEqual(now_playing["next"]["dj_name"], "Kay")

    def test_cors_headers(self) -> None:
        response = self.client.get("/api/event-config")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")

    def test_app_builds_yaml_backed_engine_from_settings(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            settings = EngineSettings(
                data_dir=Path(temp_dir) / "data",
                event_start_time="2025-08-29",
                event_end_time="2025-08-30",
                event_timezone="UTC",
            )
            app = create_app(settings=settings, now_provider=lambda: utc(2025, 8, 28, 12, 0))
            client = app.test_client()

            response = client.post(
                "/api/reservations",
                json={
                    "dj_name": "Kay",
                    "start_time": "2025-08-29T10:00:00+00:00",
                    "end_time": "2025-08-29T10:30:00+00:00",
                    "passcode": "1234",
                },
            )
            self.assertEqual(response.status_code, 201)
            self.assertTrue((Path(temp_dir) / "data" / "active_reservations.yaml").exists())


class UnavailableStore(InMemoryReservationStore):
    def insert_if_no_conflict(self, new_reservation):
        raise ReservationStorageError("Failed to write YAML file: active_reservations.yaml")

    def list_all(self):
        raise RuntimeError("unexpected failure")


class TestWebAppFailures(unittest.TestCase):
    def setUp(self) -> None:
        engine = ReservationEngine(UnavailableStore(), clock=lambda: utc(2025, 8, 28, 12, 0))
        self.client = create_app(engine).test_client()

    def test_storage_failure_is_reported_as_retryable_infrastructure_error(self) -> None:
        response = self.client.post(
            "/api/reservations",
            json={
                "dj_name": "Kay",
                "start_time": "2025-08-29T10:00:00Z",
                "end_time": "2025-08-29T10:30:00Z",
                "passcode": "1234",
            },
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json(),
            {"code": "STORAGE_ERROR", "message": "Reservation storage is unavailable. Please retry."},
        )

    def test_unclassified_failure_gets_generic_message(self) -> None:
        response = self.client.get("/api/reservations")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json(), {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."})

    def test_unknown_route_keeps_http_status(self) -> None:
        response = self.client.get("/api/missing")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
