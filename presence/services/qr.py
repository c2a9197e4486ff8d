"""
QR session tokens.

A QR code carries an unsigned JSON payload naming the lecture and class and
the time it was issued (epoch milliseconds). Nothing is signed: whoever scans
the code is trusted to present it as-is, and validity is re-derived from the
embedded timestamp at check-in time.
"""
import base64
import io
import json
import time
from typing import Optional

import qrcode
from pydantic import ValidationError

from presence.errors import InvalidQRPayloadError
from presence.schemas import Location, QRPayload

# Codes older than this are rejected
QR_MAX_AGE_MS = 30 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def is_qr_valid(issued_at_ms: int, current_ms: int) -> bool:
    """True while the code is at most 30 minutes old (inclusive)."""
    return current_ms - issued_at_ms <= QR_MAX_AGE_MS


def build_qr_payload(lecture_id: str, class_id: str, timestamp: Optional[int] = None,
                     location: Optional[Location] = None, lecture_name: Optional[str] = None,
                     teacher_name: Optional[str] = None) -> QRPayload:
    return QRPayload(
        lectureId=lecture_id,
        classId=class_id,
        timestamp=now_ms() if timestamp is None else timestamp,
        lectureName=lecture_name,
        teacherName=teacher_name,
        location=location,
    )


def encode_qr_payload(payload: QRPayload) -> str:
    return json.dumps(payload.model_dump(exclude_none=True), separators=(",", ":"))


def decode_qr_payload(text) -> QRPayload:
    """Parse scanned QR text (or an already-parsed dict) into a payload."""
    if isinstance(text, QRPayload):
        return text
    try:
        data = json.loads(text) if isinstance(text, (str, bytes)) else text
        return QRPayload.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise InvalidQRPayloadError() from e


def render_qr_data_url(text: str, box_size: int = 10, border: int = 4) -> str:
    """Render text as a QR code PNG and return it as a data URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
