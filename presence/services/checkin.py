"""QR check-in: credentials present, code fresh, student inside the geofence."""
from dataclasses import dataclass
from typing import Optional

from presence.errors import (
    GeolocationUnsupportedError,
    LocationPermissionError,
    MissingCredentialsError,
    QRExpiredError,
)
from presence.services.geofence import require_within_geofence
from presence.services.qr import decode_qr_payload, is_qr_valid, now_ms
from presence.utils.logger import logger

log = logger.getChild("checkin")


@dataclass
class CheckInResult:
    lecture_id: str
    class_id: str
    distance: Optional[float] = None


def verify_qr_checkin(qr_text, roll_number: str, password: str, location=None,
                      location_error: Optional[str] = None,
                      current_ms: Optional[int] = None) -> CheckInResult:
    """
    Run the checks a scanned code goes through before face verification.

    ``location`` is the device reading (anything with .lat/.lng) or None;
    ``location_error`` is what the device reported instead of a reading,
    either "permission_denied" or "unsupported".
    """
    if not roll_number or not password:
        raise MissingCredentialsError()

    payload = decode_qr_payload(qr_text)
    current_ms = now_ms() if current_ms is None else current_ms

    if not is_qr_valid(payload.timestamp, current_ms):
        log.info(f"Expired QR for lecture {payload.lectureId} scanned by {roll_number}")
        raise QRExpiredError()

    # No reference point embedded: no location restriction
    if payload.location is None:
        return CheckInResult(payload.lectureId, payload.classId)

    if location_error == "unsupported":
        raise GeolocationUnsupportedError()
    if location_error == "permission_denied" or location is None:
        raise LocationPermissionError()

    result = require_within_geofence(payload.location, location)
    log.info(f"QR check-in passed for {roll_number}: lecture {payload.lectureId}, {result.distance:.1f} m")
    return CheckInResult(payload.lectureId, payload.classId, result.distance)
