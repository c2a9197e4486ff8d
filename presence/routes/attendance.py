from typing import List, Optional

from fastapi import APIRouter, Depends

from presence.dependencies import (
    get_current_student,
    get_current_teacher,
    get_session_context,
    get_settings,
    get_store,
    get_verifier,
)
from presence.face_engine import UploadedFrameCamera
from presence.schemas import (
    AttendanceRecordOut,
    AttendanceStats,
    ExternalHandoffOut,
    ExternalHandoffRequest,
    FaceAttendanceRequest,
    ManualAttendanceIn,
    QRCheckOut,
    QRCheckRequest,
    StatusUpdate,
)
from presence.services import classes
from presence.services.attendance import (
    attendance_stats,
    list_attendance,
    submit_attendance,
    update_attendance_status,
)
from presence.services.checkin import verify_qr_checkin
from presence.services.face_attendance import FaceAttendanceFlow, find_student_by_roll_number
from presence.session import SessionContext

router = APIRouter(prefix="/attendance", tags=["Attendance"])


@router.post("/qr-check", response_model=QRCheckOut)
def qr_check(body: QRCheckRequest):
    """Validate a scanned lecture QR code before face verification."""
    result = verify_qr_checkin(
        body.qr,
        roll_number=body.roll_number.strip(),
        password=body.password,
        location=body.location,
        location_error=body.location_error,
    )
    return QRCheckOut(
        verified=True,
        lecture_id=result.lecture_id,
        class_id=result.class_id,
        distance=result.distance,
        message="You've been verified for this lecture. Continue to face recognition.",
    )


@router.post("/face", response_model=AttendanceRecordOut, status_code=201)
def face_attendance(
    body: FaceAttendanceRequest,
    student: dict = Depends(get_current_student),
    store=Depends(get_store),
    verifier=Depends(get_verifier),
):
    """Verify the captured frame against the stored face and record attendance."""
    flow = FaceAttendanceFlow(store, verifier)
    return flow.run(student, body.class_id, body.lecture_id, UploadedFrameCamera(body.image))


@router.post("/external-handoff", response_model=ExternalHandoffOut)
def external_handoff(body: ExternalHandoffRequest, store=Depends(get_store), settings=Depends(get_settings)):
    """Look up the roll number and return what the external recognition app needs."""
    student = find_student_by_roll_number(store, body.roll_number)
    attendance_data = {
        "studentId": student["id"],
        "classId": body.class_id,
        "lectureId": body.lecture_id,
    }
    if body.timestamp:
        attendance_data["timestamp"] = body.timestamp
    return ExternalHandoffOut(
        attendance_data=attendance_data,
        student_name=student["full_name"],
        external_cv_url=settings.external_cv_url,
    )


@router.post("", response_model=AttendanceRecordOut, status_code=201)
def mark_manually(body: ManualAttendanceIn, teacher: dict = Depends(get_current_teacher), store=Depends(get_store)):
    classes.get_owned_class(store, teacher, body.class_id)
    return submit_attendance(
        store,
        student_id=body.student_id,
        class_id=body.class_id,
        lecture_id=body.lecture_id,
        verification_method=body.verification_method,
        status=body.status,
    )


@router.patch("/{record_id}", response_model=AttendanceRecordOut)
def edit_status(
    record_id: str,
    body: StatusUpdate,
    teacher: dict = Depends(get_current_teacher),
    store=Depends(get_store),
):
    return update_attendance_status(store, record_id, body.status)


def _scoped_student_id(context: SessionContext, student_id: Optional[str]) -> Optional[str]:
    # Students only ever see their own records
    return context.profile["id"] if context.role == "student" else student_id


@router.get("", response_model=List[AttendanceRecordOut])
def get_records(
    student_id: Optional[str] = None,
    class_id: Optional[str] = None,
    lecture_id: Optional[str] = None,
    limit: int = 500,
    context: SessionContext = Depends(get_session_context),
    store=Depends(get_store),
):
    return list_attendance(
        store,
        student_id=_scoped_student_id(context, student_id),
        class_id=class_id,
        lecture_id=lecture_id,
        limit=limit,
    )


@router.get("/stats", response_model=AttendanceStats)
def get_stats(
    student_id: Optional[str] = None,
    class_id: Optional[str] = None,
    context: SessionContext = Depends(get_session_context),
    store=Depends(get_store),
):
    rows = list_attendance(store, student_id=_scoped_student_id(context, student_id), class_id=class_id)
    return attendance_stats(rows)
