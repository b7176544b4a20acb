from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable
import os

from flask import Flask, jsonify, request

from .booking import ConflictDetail, Reservation, ReservationRejectedError
from .payload import PayloadError, parse_date_filter, parse_reservation_payload
from .yaml_store import ReservationYamlRepository

DATA_DIR_ENV = "FLEET_RESERVATIONS_DATA_DIR"


def create_app(
    data_dir: str | Path = "data",
    now_provider: Callable[[], datetime] | None = None,
) -> Flask:
    app = Flask(__name__)
    repository = ReservationYamlRepository(data_dir)
    clock: Callable[[], datetime] = now_provider or datetime.now

    def _serialize_reservation(record: Reservation) -> dict[str, Any]:
        payload = record.to_dict()
        payload["days_of_week_label"] = str(record.days_of_week) if record.days_of_week is not None else None
        return payload

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get("/api/bookings/list")
    def list_bookings() -> Any:
        resource_id = str(request.args.get("car_id", "")).strip() or None
        try:
            range_start = parse_date_filter(request.args.get("start_date"), "start_date")
            range_end = parse_date_filter(request.args.get("end_date"), "end_date")
        except PayloadError as error:
            return jsonify({"ok": False, "kind": "invalid_payload", "message": str(error)}), 400

        occurrences = repository.list_calendar(resource_id, range_start, range_end)
        return jsonify({"ok": True, "bookings": [occurrence.to_dict() for occurrence in occurrences]})

    @app.post("/api/bookings/create")
    def create_booking() -> Any:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"ok": False, "kind": "invalid_payload", "message": "JSON object body is required."}), 400

        try:
            candidate = parse_reservation_payload(payload)
        except PayloadError as error:
            return jsonify({"ok": False, "kind": "invalid_payload", "message": str(error)}), 400

        try:
            created = repository.add_reservation(candidate, now=clock())
        except ReservationRejectedError as error:
            rejection = error.rejection
            body: dict[str, Any] = {"ok": False, "kind": rejection.kind.value, "message": rejection.message}
            if isinstance(rejection, ConflictDetail):
                body["date"] = rejection.date.isoformat()
                body["resource_id"] = rejection.resource_id
                return jsonify(body), 409
            return jsonify(body), 400

        return jsonify({"ok": True, "reservation": _serialize_reservation(created)}), 201

    @app.get("/api/bookings/seed")
    def seed_bookings() -> Any:
        repository.seed_sample_data(now=clock(), overwrite=False)
        occurrences = repository.list_calendar()
        return jsonify({"ok": True, "bookings": [occurrence.to_dict() for occurrence in occurrences]})

    return app


if __name__ == "__main__":
    app = create_app(os.environ.get(DATA_DIR_ENV, "data"))
    app.run(host="127.0.0.1", port=5000, debug=False)
