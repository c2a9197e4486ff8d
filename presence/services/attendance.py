"""Attendance rows: the single insert, the teacher's manual edit, and stats."""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from presence.errors import AttendanceError, InvalidStatusError, NotFoundError, StoreError, round_half_up
from presence.utils.logger import logger

log = logger.getChild("attendance")

ATTENDANCE_TABLE = "attendance_records"
VALID_STATUSES = ("Present", "Absent", "Late")


def submit_attendance(store, student_id: str, class_id: str, lecture_id: str,
                      verification_method: str, status: str = "Present",
                      timestamp: Optional[str] = None) -> dict:
    """
    Insert one attendance row.

    There is no upsert and no duplicate check: calling this twice for the same
    student and lecture stores two rows. Store failures abort the flow as an
    AttendanceError and are not retried.
    """
    if status not in VALID_STATUSES:
        raise InvalidStatusError()

    row = {
        "student_id": student_id,
        "class_id": class_id,
        "lecture_id": lecture_id,
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        "verification_method": verification_method,
        "status": status,
    }
    try:
        record = store.insert(ATTENDANCE_TABLE, row)
    except StoreError as e:
        log.exception(f"Attendance insert failed for student {student_id}, lecture {lecture_id}")
        raise AttendanceError() from e

    log.info(f"Attendance recorded: {student_id} | {lecture_id} | {status} | {verification_method}")
    return record


def update_attendance_status(store, record_id: str, status: str) -> dict:
    """Manual status edit by a teacher; the only in-place change to a record."""
    if status not in VALID_STATUSES:
        raise InvalidStatusError()
    try:
        rows = store.update(ATTENDANCE_TABLE, {"status": status}, id=record_id)
    except StoreError as e:
        log.exception(f"Attendance update failed for record {record_id}")
        raise AttendanceError() from e
    if not rows:
        raise NotFoundError("Attendance record not found.")
    log.info(f"Attendance record {record_id} set to {status}")
    return rows[0]


def list_attendance(store, student_id: Optional[str] = None, class_id: Optional[str] = None,
                    lecture_id: Optional[str] = None, limit: Optional[int] = None) -> List[dict]:
    filters = {
        key: value
        for key, value in (("student_id", student_id), ("class_id", class_id), ("lecture_id", lecture_id))
        if value
    }
    return store.select(ATTENDANCE_TABLE, order_by="timestamp", desc=True, limit=limit, **filters)


def attendance_stats(records: Iterable[dict]) -> dict:
    records = list(records)
    total = len(records)
    present = sum(1 for r in records if r.get("status") == "Present")
    percentage = round_half_up(present / total * 100) if total else 0
    return {
        "present": present,
        "absent": total - present,
        "total": total,
        "percentage": percentage,
    }
