"""Appointment scheduling: pending requests vs. booked jobs.

Two ordered lists live in memory and are written through to JSON files on
every change. A single lock guards both lists, so moving a request from
pending to booked is never observed half-done.

Start times are compared as instants, not strings:
"2025-03-04T14:00:00.000Z" and "2025-03-04T08:00:00-06:00" are the same slot.
"""
import threading
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from dunesea import config
from dunesea.errors import InvalidFieldError, MissingFieldError, NotFoundError, SlotConflictError
from dunesea.logging_config import get_logger
from dunesea.models import Appointment, make_id
from dunesea.store import JsonStore

logger = get_logger(__name__)


def parse_start(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 start time.

    Args:
        value: "2025-03-04T14:00:00.000Z", an offset form, or a naive form
               (taken as UTC)

    Returns:
        Aware UTC datetime, or None if the value can't be parsed
    """
    text = str(value or "").strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class Schedule:
    """Pending and booked appointments for the business."""

    def __init__(self, store: JsonStore):
        self.store = store
        self.lock = threading.RLock()
        self.booked: List[Appointment] = self._load(config.BOOKED_FILE, "accepted")
        self.pending: List[Appointment] = self._load(config.PENDING_FILE, "pending")

    def _load(self, name: str, status: str) -> List[Appointment]:
        items = []
        for raw in self.store.load_list(name):
            if not isinstance(raw, dict):
                continue
            try:
                items.append(Appointment.model_validate({**raw, "status": status}))
            except ValidationError as e:
                logger.warning("schedule.skipped_record", file=name, error=str(e))
        return items

    def _persist(self):
        self.store.save(config.BOOKED_FILE, [a.to_wire() for a in self.booked])
        self.store.save(config.PENDING_FILE, [a.to_wire() for a in self.pending])

    @staticmethod
    def _has_start(items: List[Appointment], start: Optional[datetime]) -> bool:
        if start is None:
            return False
        return any(parse_start(a.start_iso) == start for a in items)

    def _find(self, appt_id: str) -> Optional[Appointment]:
        return next((a for a in self.pending + self.booked if a.id == appt_id), None)

    def _normalize(self, payload: Dict[str, Any], status: str):
        appt = Appointment.model_validate({**(payload or {}), "status": status})
        if not appt.start_iso:
            raise MissingFieldError("Missing startISO")

        start = parse_start(appt.start_iso)
        if start is None:
            raise InvalidFieldError("Invalid startISO")

        if self._find(appt.id):
            appt = appt.model_copy(update={"id": make_id()})
        return appt, start

    def request(self, payload: Dict[str, Any]) -> Appointment:
        """
        Create a pending request from a customer.

        Raises:
            MissingFieldError: No startISO
            InvalidFieldError: startISO isn't an ISO-8601 time
            SlotConflictError: The slot is already booked or pending
        """
        with self.lock:
            appt, start = self._normalize(payload, "pending")
            if self._has_start(self.booked, start):
                raise SlotConflictError("Slot already booked")
            if self._has_start(self.pending, start):
                raise SlotConflictError("Slot already pending")

            self.pending.append(appt)
            self._persist()

        logger.info("schedule.pending_request", start_iso=appt.start_iso, id=appt.id)
        return appt

    def book(self, payload: Dict[str, Any]) -> Appointment:
        """
        Book a job immediately (admin).

        A pending request for the same slot is dropped in favour of the
        booking. Only an existing booking blocks it.
        """
        with self.lock:
            appt, start = self._normalize(payload, "accepted")
            if self._has_start(self.booked, start):
                raise SlotConflictError("Slot already booked")

            self.pending = [a for a in self.pending if parse_start(a.start_iso) != start]
            self.booked.append(appt)
            self._persist()

        logger.info("schedule.booked", start_iso=appt.start_iso, id=appt.id)
        return appt

    def accept(self, appt_id: str) -> Appointment:
        """
        Move a pending request to booked.

        If the slot got booked in the meantime the request is dropped
        and SlotConflictError is raised.
        """
        if not appt_id:
            raise MissingFieldError("Missing id")

        with self.lock:
            index = next((i for i, a in enumerate(self.pending) if a.id == appt_id), None)
            if index is None:
                raise NotFoundError("Pending id not found")

            requested = self.pending.pop(index)
            if self._has_start(self.booked, parse_start(requested.start_iso)):
                self._persist()
                logger.info("schedule.accept_conflict", start_iso=requested.start_iso, id=appt_id)
                raise SlotConflictError("Slot already booked")

            appt = requested.model_copy(update={"status": "accepted"})
            self.booked.append(appt)
            self._persist()

        logger.info("schedule.accepted", start_iso=appt.start_iso, id=appt.id)
        return appt

    def reject(self, appt_id: str) -> None:
        """Delete a pending request, reopening its slot."""
        if not appt_id:
            raise MissingFieldError("Missing id")

        with self.lock:
            remaining = [a for a in self.pending if a.id != appt_id]
            if len(remaining) == len(self.pending):
                raise NotFoundError("Pending id not found")
            self.pending = remaining
            self._persist()

        logger.info("schedule.rejected", id=appt_id)

    def cancel(self, appt_id: str) -> None:
        """Delete a booked job, reopening its slot."""
        if not appt_id:
            raise MissingFieldError("Missing id")

        with self.lock:
            remaining = [a for a in self.booked if a.id != appt_id]
            if len(remaining) == len(self.booked):
                raise NotFoundError("Booked id not found")
            self.booked = remaining
            self._persist()

        logger.info("schedule.canceled", id=appt_id)

    def delete(self, appt_id: str) -> str:
        """
        Remove an appointment wherever it lives.

        Returns:
            "pending" or "booked", the list it was removed from
        """
        if not appt_id:
            raise MissingFieldError("Missing id")

        with self.lock:
            if any(a.id == appt_id for a in self.pending):
                self.reject(appt_id)
                return "pending"
            if any(a.id == appt_id for a in self.booked):
                self.cancel(appt_id)
                return "booked"
        raise NotFoundError("Not found")

    def by_start(self) -> Dict[datetime, Appointment]:
        """Index of appointments by start instant. Booked wins over pending."""
        with self.lock:
            index = {}
            for appt in self.pending + self.booked:
                start = parse_start(appt.start_iso)
                if start is not None:
                    index[start] = appt
            return index

    def find_by_start(self, start: datetime) -> Optional[Appointment]:
        """Return the pending or booked appointment starting at an instant."""
        return self.by_start().get(start)

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        with self.lock:
            return {
                "booked": [a.to_wire() for a in self.booked],
                "pending": [a.to_wire() for a in self.pending],
            }
