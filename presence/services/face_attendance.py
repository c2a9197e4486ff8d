"""Face verification followed by the attendance insert."""
from presence.errors import (
    FaceMismatchError,
    FaceNotRegisteredError,
    InvalidImageError,
    MissingRollNumberError,
    NotFoundError,
    StudentNotFoundError,
)
from presence.services.attendance import submit_attendance
from presence.utils.encoding_utils import is_image_data_url
from presence.utils.logger import logger

log = logger.getChild("face_attendance")

FACE_VERIFICATION_METHOD = "Face Recognition"
STUDENTS_TABLE = "students"


def ensure_face_registered(student: dict) -> None:
    if not student.get("face_registered") or not student.get("face_image"):
        raise FaceNotRegisteredError()


def find_student_by_roll_number(store, roll_number: str) -> dict:
    roll_number = (roll_number or "").strip()
    if not roll_number:
        raise MissingRollNumberError()
    student = store.select_one(STUDENTS_TABLE, roll_number=roll_number)
    if student is None:
        raise StudentNotFoundError()
    return student


def register_face(store, student_id: str, image: str) -> dict:
    """Store the reference image and flag the student as registered."""
    if not is_image_data_url(image):
        raise InvalidImageError()
    rows = store.update(STUDENTS_TABLE, {"face_image": image, "face_registered": True}, id=student_id)
    if not rows:
        raise NotFoundError("Student not found.")
    log.info(f"Face registered for student {student_id}")
    return rows[0]


class FaceAttendanceFlow:
    """
    Capture a frame, compare it with the student's stored face and record
    attendance on a match.
    """

    def __init__(self, store, verifier):
        self.store = store
        self.verifier = verifier

    def run(self, student: dict, class_id: str, lecture_id: str, camera) -> dict:
        # Checked on the already-loaded profile, before the camera or the store is touched
        ensure_face_registered(student)

        with camera:
            frame = camera.capture()

        result = self.verifier.verify(frame, student["face_image"])
        if not result.is_match:
            log.info(f"Face mismatch for student {student['id']} (confidence {result.confidence:.2f})")
            raise FaceMismatchError()

        return submit_attendance(
            self.store,
            student_id=student["id"],
            class_id=class_id,
            lecture_id=lecture_id,
            verification_method=FACE_VERIFICATION_METHOD,
            status="Present",
        )
