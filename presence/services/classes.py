"""Classes, lectures and lecture QR issuance."""
from typing import Optional

from presence.errors import ForbiddenError, NotFoundError
from presence.services.qr import QR_MAX_AGE_MS, build_qr_payload, encode_qr_payload, render_qr_data_url
from presence.utils.logger import logger

log = logger.getChild("classes")


def create_class(store, teacher: dict, name: str, department: str, year: str) -> dict:
    row = store.insert("classes", {
        "teacher_id": teacher["id"],
        "name": name,
        "department": department,
        "year": year,
    })
    log.info(f"Class created: {row['id']} ({name}) by teacher {teacher['id']}")
    return row


def list_classes(store, teacher_id: Optional[str] = None) -> list:
    if teacher_id:
        return store.select("classes", order_by="name", teacher_id=teacher_id)
    return store.select("classes", order_by="name")


def get_class(store, class_id: str) -> dict:
    row = store.select_one("classes", id=class_id)
    if row is None:
        raise NotFoundError("Class not found.")
    return row


def get_owned_class(store, teacher: dict, class_id: str) -> dict:
    row = get_class(store, class_id)
    if row["teacher_id"] != teacher["id"]:
        raise ForbiddenError("This class belongs to another teacher.")
    return row


def create_lecture(store, class_id: str, title: str, date: Optional[str] = None) -> dict:
    row = store.insert("lectures", {"class_id": class_id, "title": title, "date": date})
    log.info(f"Lecture created: {row['id']} ({title}) for class {class_id}")
    return row


def get_lecture(store, lecture_id: str) -> dict:
    row = store.select_one("lectures", id=lecture_id)
    if row is None:
        raise NotFoundError("Lecture not found.")
    return row


def issue_lecture_qr(store, lecture: dict, teacher: dict, location=None, timestamp: Optional[int] = None):
    """
    Build the QR payload for a lecture, store its text on the lecture row and
    render it. Returns (payload, qr_text, qr_image, expires_at).
    """
    payload = build_qr_payload(
        lecture_id=lecture["id"],
        class_id=lecture["class_id"],
        timestamp=timestamp,
        location=location,
        lecture_name=lecture.get("title"),
        teacher_name=teacher.get("full_name"),
    )
    qr_text = encode_qr_payload(payload)
    store.update("lectures", {"qr_code": qr_text}, id=lecture["id"])
    log.info(f"QR issued for lecture {lecture['id']} (location: {'yes' if location else 'no'})")
    return payload, qr_text, render_qr_data_url(qr_text), payload.timestamp + QR_MAX_AGE_MS
