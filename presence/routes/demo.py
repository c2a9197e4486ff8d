"""
Demo endpoints: the standalone attendance handler and the mock roster.

Both work on fixed, in-memory data only; nothing here touches the store.
"""
import copy
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from presence.schemas import AttendanceSummaryItem, Message, RosterStudent, RosterUpdate, StatusSubmission
from presence.services.qr import render_qr_data_url
from presence.utils.logger import logger

log = logger.getChild("demo")

ATTENDANCE_URL = "http://localhost:4000/attendance"

DEFAULT_ROSTER = [
    {"id": 1, "name": "John Doe", "isPresent": True},
    {"id": 2, "name": "Jane Smith", "isPresent": False},
]

ATTENDANCE_SUMMARY = [
    {"name": "Student A", "attendance": 95},
    {"name": "Student B", "attendance": 88},
    {"name": "Student C", "attendance": 76},
    {"name": "Student D", "attendance": 89},
]


class MockRoster:
    """In-memory student list for the roster demo."""

    def __init__(self, students=None):
        self.students = copy.deepcopy(DEFAULT_ROSTER if students is None else students)

    def set_presence(self, student_id: int, is_present: bool):
        for student in self.students:
            if student["id"] == student_id:
                student["isPresent"] = is_present
                return self.students
        return None


def get_roster(request: Request) -> MockRoster:
    return request.app.state.roster


# --- Attendance handler ---

handler_router = APIRouter(tags=["Demo"])


@handler_router.post("/submit-attendance", response_model=Message)
def submit_attendance_status(body: StatusSubmission):
    if body.status in ("present", "absent"):
        log.info(f"Attendance marked as: {body.status}")
        return {"message": f"Attendance marked as {body.status}"}
    return JSONResponse(status_code=400, content={"message": "Invalid attendance status"})


@handler_router.get("/generate-qr", response_class=HTMLResponse)
def generate_qr():
    try:
        qr_code = render_qr_data_url(ATTENDANCE_URL)
    except Exception:
        log.exception("QR generation failed")
        return PlainTextResponse("Error generating QR code", status_code=500)
    return HTMLResponse(f'<img src="{qr_code}" alt="QR Code" />')


# --- Roster ---

roster_router = APIRouter(prefix="/api", tags=["Demo"])


@roster_router.post("/attendance", response_model=List[RosterStudent])
def update_roster(body: RosterUpdate, roster: MockRoster = Depends(get_roster)):
    students = roster.set_presence(body.studentId, body.isPresent)
    if students is None:
        return PlainTextResponse("Student not found", status_code=404)
    return students


@roster_router.get("/attendance", response_model=List[AttendanceSummaryItem])
def attendance_summary():
    return ATTENDANCE_SUMMARY
