from __future__ import annotations

import logging
import shutil
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from .booking import NewReservation, Reservation, can_reserve
from .errors import NotFound, ReservationStorageError, TimeConflict
from .store import ReservationStore, build_reservation

logger = logging.getLogger(__name__)


class ReservationYamlStore(ReservationStore):
    """File-backed store: one YAML list of active reservations plus an event log.

    Writes go to a temp file that replaces the target, so readers see either the old
    or the new list. Check-then-insert and deletes share one lock per store instance;
    run a single store instance per data directory.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.active_file = self.base_dir / "active_reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._lock = threading.RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.active_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise ReservationStorageError(f"Failed to prepare data directory: {self.base_dir}") from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []
        except OSError as error:
            raise ReservationStorageError(f"Failed to read YAML file: {path}") from error

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif path != self.log_file:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        with self._lock:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
            backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
            try:
                if path.exists():
                    shutil.copy2(path, backup_path)
            except OSError:
                logger.warning("Could not back up corrupted file %s", path)

            logger.error("Recovered corrupted YAML file %s: %s", path, error)
            self._write_yaml_list(path, [])
            if path != self.log_file:
                self._log_event(
                    "YAML_RECOVERED",
                    {
                        "file": str(path.name),
                        "backup": str(backup_path.name),
                        "reason": str(error),
                    },
                )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now(timezone.utc)).isoformat(timespec="seconds")
        with self._lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def _log_committed_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        """Audit an already-written change; a log failure must not undo or mask it."""
        try:
            self._log_event(event_type, payload, event_time)
        except ReservationStorageError as error:
            logger.warning("Could not record %s for %s: %s", event_type, payload.get("reservation_id"), error)

    def _load_reservations(self) -> list[Reservation]:
        records: list[Reservation] = []
        for row in self._read_yaml_list(self.active_file):
            try:
                records.append(Reservation.from_dict(row))
            except (KeyError, ValueError) as error:
                logger.warning("Skipping malformed reservation row %r: %s", row.get("reservation_id"), error)
        return sorted(records, key=lambda record: record.start)

    def list_all(self) -> list[Reservation]:
        return self._load_reservations()

    def get(self, reservation_id: str) -> Reservation | None:
        for record in self._load_reservations():
            if record.reservation_id == reservation_id:
                return record
        return None

    def insert_if_no_conflict(self, new_reservation: NewReservation) -> Reservation:
        with self._lock:
            active = self._load_reservations()
            if not can_reserve(new_reservation.time_range, active):
                raise TimeConflict()

            record = build_reservation(new_reservation)
            ordered = sorted([*active, record], key=lambda row: row.start)
            self._write_yaml_list(self.active_file, [row.to_dict() for row in ordered])

            self._log_committed_event(
                "RESERVATION_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "dj_name": record.dj_name,
                    "start": record.start.isoformat(),
                    "end": record.end.isoformat(),
                },
                record.created_at,
            )
        return record

    def delete_by_id(self, reservation_id: str) -> Reservation:
        with self._lock:
            active = self._load_reservations()
            removed = next((record for record in active if record.reservation_id == reservation_id), None)
            if removed is None:
                raise NotFound()

            remaining = [record.to_dict() for record in active if record.reservation_id != reservation_id]
            self._write_yaml_list(self.active_file, remaining)

            self._log_committed_event(
                "RESERVATION_DELETED",
                {
                    "reservation_id": removed.reservation_id,
                    "dj_name": removed.dj_name,
                    "start": removed.start.isoformat(),
                    "end": removed.end.isoformat(),
                },
            )
        return removed
