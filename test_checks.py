import base64
import math

import pytest

from presence.errors import (
    GeolocationUnsupportedError,
    InvalidQRPayloadError,
    LocationPermissionError,
    MissingCredentialsError,
    OutOfRangeError,
    QRExpiredError,
    round_half_up,
)
from presence.schemas import Location
from presence.services.checkin import verify_qr_checkin
from presence.services.geofence import (
    check_geofence,
    haversine_distance,
    is_within_radius,
    require_within_geofence,
)
from presence.services.qr import (
    QR_MAX_AGE_MS,
    build_qr_payload,
    decode_qr_payload,
    encode_qr_payload,
    is_qr_valid,
    render_qr_data_url,
)

CLASSROOM = Location(lat=12.9716, lng=77.5946)
# About 11 m north of the classroom
NEARBY = Location(lat=12.9717, lng=77.5946)
# About 111 m north of the classroom
FAR = Location(lat=12.9726, lng=77.5946)


# --- QR expiry ---

def test_qr_valid_up_to_thirty_minutes_inclusive():
    assert QR_MAX_AGE_MS == 1_800_000
    assert is_qr_valid(0, 0)
    assert is_qr_valid(0, 1_799_999)
    assert is_qr_valid(0, 1_800_000)
    assert is_qr_valid(5_000, 5_000 + 1_800_000)


def test_qr_invalid_after_thirty_minutes():
    assert not is_qr_valid(0, 1_800_001)
    assert not is_qr_valid(1_000, 1_000 + 1_800_001)


def test_qr_from_the_future_is_not_expired():
    # No clock-skew handling: a negative age is simply within the window
    assert is_qr_valid(10_000, 0)


# --- QR payload ---

def test_payload_text_is_compact_json_without_empty_fields():
    payload = build_qr_payload("lec-1", "cls-1", timestamp=1_700_000_000_000)
    text = encode_qr_payload(payload)

    assert text == '{"lectureId":"lec-1","classId":"cls-1","timestamp":1700000000000}'
    assert decode_qr_payload(text) == payload


def test_payload_keeps_location_and_names():
    payload = build_qr_payload(
        "lec-1", "cls-1", timestamp=1, location=CLASSROOM, lecture_name="Joins", teacher_name="Prof. Mehta"
    )
    decoded = decode_qr_payload(encode_qr_payload(payload))

    assert decoded.location == CLASSROOM
    assert decoded.lectureName == "Joins"
    assert decoded.teacherName == "Prof. Mehta"


def test_payload_defaults_timestamp_to_now():
    payload = build_qr_payload("lec-1", "cls-1")
    assert payload.timestamp > 1_600_000_000_000


@pytest.mark.parametrize("text", [
    "not json",
    "[1, 2, 3]",
    '{"lectureId": "lec-1", "classId": "cls-1"}',
    '{"classId": "cls-1", "timestamp": 1}',
])
def test_malformed_payload_is_rejected(text):
    with pytest.raises(InvalidQRPayloadError):
        decode_qr_payload(text)


def test_render_qr_data_url_is_png():
    url = render_qr_data_url("http://localhost:4000/attendance")

    assert url.startswith("data:image/png;base64,")
    raw = base64.b64decode(url.split(",", 1)[1])
    assert raw[:8] == b"\x89PNG\r\n\x1a\n"


# --- Haversine & geofence ---

def test_distance_between_identical_points_is_zero():
    assert haversine_distance(12.9716, 77.5946, 12.9716, 77.5946) == 0


def test_distance_is_symmetric():
    a = (12.9716, 77.5946)
    b = (13.0827, 80.2707)
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))


def test_one_degree_of_latitude_at_equator():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111_000, abs=500)


def test_near_antipodal_points_give_half_circumference():
    distance = haversine_distance(-20.7, -178.9, 20.7, 1.1)
    assert distance == pytest.approx(math.pi * 6371e3, rel=1e-3)


def test_radius_boundary_is_inclusive():
    assert is_within_radius(0)
    assert is_within_radius(49.99)
    assert is_within_radius(50)
    assert not is_within_radius(50.01)


def test_check_geofence_reports_distance():
    inside = check_geofence(CLASSROOM, NEARBY)
    outside = check_geofence(CLASSROOM, FAR)

    assert inside.valid and 10 < inside.distance < 12
    assert not outside.valid and 110 < outside.distance < 112


def test_out_of_range_message_has_rounded_distance():
    with pytest.raises(OutOfRangeError) as excinfo:
        require_within_geofence(CLASSROOM, FAR)

    assert excinfo.value.message == (
        "You appear to be 111 meters away from the classroom. "
        "You must be within 50 meters to mark attendance."
    )


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2


# --- Check-in flow ---

def _qr(timestamp=0, location=None):
    return encode_qr_payload(build_qr_payload("lec-1", "cls-1", timestamp=timestamp, location=location))


@pytest.mark.parametrize("roll_number,password", [("", "pw"), ("CS-017", ""), ("", "")])
def test_checkin_requires_credentials(roll_number, password):
    with pytest.raises(MissingCredentialsError):
        verify_qr_checkin(_qr(), roll_number, password, current_ms=0)


def test_checkin_without_location_restriction():
    result = verify_qr_checkin(_qr(timestamp=1_000), "CS-017", "pw", current_ms=1_000 + QR_MAX_AGE_MS)

    assert (result.lecture_id, result.class_id, result.distance) == ("lec-1", "cls-1", None)


def test_checkin_rejects_expired_code_before_location():
    with pytest.raises(QRExpiredError) as excinfo:
        verify_qr_checkin(
            _qr(timestamp=0, location=CLASSROOM), "CS-017", "pw",
            location_error="permission_denied", current_ms=QR_MAX_AGE_MS + 1,
        )
    assert excinfo.value.title == "QR Code Expired"


def test_checkin_inside_geofence():
    result = verify_qr_checkin(_qr(location=CLASSROOM), "CS-017", "pw", location=NEARBY, current_ms=60_000)
    assert result.distance == pytest.approx(11.1, abs=0.5)


def test_checkin_outside_geofence():
    with pytest.raises(OutOfRangeError):
        verify_qr_checkin(_qr(location=CLASSROOM), "CS-017", "pw", location=FAR, current_ms=60_000)


def test_checkin_location_errors_are_distinct():
    qr = _qr(location=CLASSROOM)

    with pytest.raises(LocationPermissionError):
        verify_qr_checkin(qr, "CS-017", "pw", location_error="permission_denied", current_ms=0)
    with pytest.raises(GeolocationUnsupportedError):
        verify_qr_checkin(qr, "CS-017", "pw", location_error="unsupported", current_ms=0)
    with pytest.raises(LocationPermissionError):
        verify_qr_checkin(qr, "CS-017", "pw", location=None, current_ms=0)


def test_checkin_from_opposite_side_of_globe_is_out_of_range():
    qr = _qr(location=Location(lat=-20.7, lng=-178.9))
    with pytest.raises(OutOfRangeError):
        verify_qr_checkin(qr, "CS-017", "pw", location=Location(lat=20.7, lng=1.1), current_ms=0)
