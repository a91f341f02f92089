from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .engine import ReservationEngine
from .errors import InvalidInput, InvalidTimeRange, ReservationError, ReservationStorageError
from .settings import EngineSettings
from .yaml_store import ReservationYamlStore

logger = logging.getLogger(__name__)


def create_app(
    engine: ReservationEngine | None = None,
    settings: EngineSettings | None = None,
    now_provider: Callable[[], datetime] | None = None,
) -> Flask:
    app = Flask(__name__)
    if engine is None:
        effective_settings = settings or EngineSettings()
        engine = ReservationEngine(
            ReservationYamlStore(effective_settings.data_dir),
            window=effective_settings.event_window(),
            clock=now_provider,
            max_duration=effective_settings.max_duration,
        )
    app.config["RESERVATION_ENGINE"] = engine

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(ReservationError)
    def handle_reservation_error(error: ReservationError) -> Any:
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ReservationStorageError)
    def handle_storage_error(error: ReservationStorageError) -> Any:
        logger.error("Storage failure: %s", error)
        return jsonify({"code": error.code, "message": "Reservation storage is unavailable. Please retry."}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> Any:
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unhandled error while serving %s", request.path)
        return jsonify({"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."}), 500

    @app.get("/api/event-config")
    def get_event_config() -> Any:
        return jsonify(engine.get_event_config().to_dict())

    @app.get("/api/now-playing")
    def get_now_playing() -> Any:
        return jsonify(engine.get_current_and_next().to_dict())

    @app.get("/api/slots")
    def get_available_slots() -> Any:
        start_raw = str(request.args.get("startTime", "")).strip()
        if not start_raw:
            raise InvalidTimeRange("startTime parameter is required.")
        start = _parse_timestamp(start_raw, InvalidTimeRange, "startTime")
        end_raw = str(request.args.get("endTime", "")).strip()
        end = _parse_timestamp(end_raw, InvalidTimeRange, "endTime") if end_raw else None

        slots = engine.get_available_slots(start, end)
        return jsonify([slot.to_dict() for slot in slots])

    @app.get("/api/reservations")
    def list_reservations() -> Any:
        date_raw = str(request.args.get("date", "")).strip()
        date_filter = None
        if date_raw:
            try:
                date_filter = date.fromisoformat(date_raw)
            except ValueError as error:
                raise InvalidInput("date must be formatted as YYYY-MM-DD.") from error

        records = engine.list_reservations(date_filter)
        return jsonify([record.to_public_dict() for record in records])

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise InvalidInput("Invalid request body.")

        start = _parse_timestamp(payload.get("start_time"), InvalidInput, "start_time")
        end = _parse_timestamp(payload.get("end_time"), InvalidInput, "end_time")
        created = engine.create_reservation(
            payload.get("dj_name"),
            start,
            end,
            payload.get("passcode"),
        )
        return jsonify(created.to_public_dict()), 201

    @app.delete("/api/reservations/<reservation_id>")
    def delete_reservation(reservation_id: str) -> Any:
        payload = request.get_json(silent=True) or {}
        engine.delete_reservation(reservation_id, str(payload.get("passcode", "")))
        return "", 204

    return app


def _parse_timestamp(raw: Any, error_type: type[ReservationError], name: str) -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise error_type(f"{name} is required.")
    try:
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError as error:
        raise error_type(f"Invalid {name} format, must be ISO 8601 with an offset.") from error
    if parsed.tzinfo is None:
        raise error_type(f"{name} must include a UTC offset.")
    return parsed


if __name__ == "__main__":
    from .settings import configure_logging

    settings = EngineSettings()
    configure_logging(settings.log_level)
    app = create_app(settings=settings)
    app.run(host="127.0.0.1", port=5000, debug=False)
