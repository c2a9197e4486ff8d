from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AttendanceStatus = Literal["Present", "Absent", "Late"]

# --- QR Schemas ---

class Location(BaseModel):
    """A latitude/longitude pair in degrees."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class QRPayload(BaseModel):
    """What a lecture QR code encodes. Unsigned; trusted at face value."""
    lectureId: str
    classId: str
    timestamp: int = Field(..., description="Issue time, epoch milliseconds.")
    lectureName: Optional[str] = None
    teacherName: Optional[str] = None
    location: Optional[Location] = None


class QRIssueRequest(BaseModel):
    location: Optional[Location] = Field(None, description="Classroom position to embed for the geofence check.")


class QRIssueOut(BaseModel):
    payload: QRPayload
    qr_text: str
    qr_image: str = Field(..., description="PNG data URL of the QR code.")
    expires_at: int


class QRCheckRequest(BaseModel):
    """A scanned code plus the student's credentials and location reading."""
    qr: str = Field(..., description="Raw text read from the QR code.")
    roll_number: str = ""
    password: str = ""
    location: Optional[Location] = None
    location_error: Optional[Literal["permission_denied", "unsupported"]] = None


class QRCheckOut(BaseModel):
    verified: bool
    lecture_id: str
    class_id: str
    distance: Optional[float] = None
    message: str

# --- Account Schemas ---

class StudentSignup(BaseModel):
    email: str = Field(..., examples=["jane.doe@example.com"])
    password: str = Field(..., min_length=6)
    full_name: str
    roll_number: str = Field(..., examples=["CS-2024-017"])
    department: str
    year: str
    division: Optional[str] = None


class TeacherSignup(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    full_name: str
    department: str
    subject_details: Optional[List[Dict[str, Any]]] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class StudentOut(BaseModel):
    """Student profile without the stored face image."""
    id: str
    user_id: str
    full_name: str
    email: str
    roll_number: str
    department: str
    year: str
    division: Optional[str] = None
    face_registered: Optional[bool] = False

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class TeacherOut(BaseModel):
    id: str
    user_id: str
    full_name: str
    email: str
    department: str
    subject_details: Optional[List[Dict[str, Any]]] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class SessionOut(BaseModel):
    access_token: Optional[str] = None
    role: Literal["student", "teacher"]
    profile: Dict[str, Any]


class FaceImage(BaseModel):
    image: str = Field(..., description="Captured frame as a data URL.")


class FaceRegistrationOut(BaseModel):
    face_registered: bool
    external_cv_url: str

# --- Class & Lecture Schemas ---

class ClassCreate(BaseModel):
    name: str
    department: str
    year: str


class ClassOut(BaseModel):
    id: str
    teacher_id: str
    name: str
    department: str
    year: str
    created_at: Optional[str] = None


class LectureCreate(BaseModel):
    title: str
    date: Optional[str] = None


class LectureOut(BaseModel):
    id: str
    class_id: str
    title: str
    date: Optional[str] = None
    qr_code: Optional[str] = None
    created_at: Optional[str] = None

# --- Attendance Schemas ---

class FaceAttendanceRequest(BaseModel):
    class_id: str
    lecture_id: str
    image: str = Field(..., description="Captured frame as a data URL.")


class ExternalHandoffRequest(BaseModel):
    """Roll-number lookup before handing off to the external face recognition app."""
    roll_number: str = ""
    class_id: str
    lecture_id: str
    timestamp: Optional[str] = None


class ExternalHandoffOut(BaseModel):
    attendance_data: Dict[str, Any]
    student_name: str
    external_cv_url: str


class ManualAttendanceIn(BaseModel):
    """A teacher marking a student by hand."""
    student_id: str
    class_id: str
    lecture_id: str
    status: AttendanceStatus = "Present"
    verification_method: str = "Manual"


class StatusUpdate(BaseModel):
    status: AttendanceStatus


class AttendanceRecordOut(BaseModel):
    id: str
    student_id: str
    class_id: str
    lecture_id: str
    timestamp: Optional[str] = None
    status: str
    verification_method: str


class AttendanceStats(BaseModel):
    present: int
    absent: int
    total: int
    percentage: int

# --- Demo server Schemas ---

class StatusSubmission(BaseModel):
    """Any JSON value is accepted; the handler answers 400 for anything but present/absent."""
    status: Optional[Any] = None


class RosterUpdate(BaseModel):
    studentId: int
    isPresent: bool


class RosterStudent(BaseModel):
    id: int
    name: str
    isPresent: bool


class AttendanceSummaryItem(BaseModel):
    name: str
    attendance: int

# --- Utility Schemas ---

class Message(BaseModel):
    """Generic message schema for sending simple status responses."""
    message: str
