from typing import List

from fastapi import APIRouter, Depends

from presence.dependencies import get_current_teacher, get_session_context, get_store
from presence.schemas import ClassCreate, ClassOut, LectureCreate, LectureOut, QRIssueOut, QRIssueRequest
from presence.services import classes
from presence.session import SessionContext

router = APIRouter(tags=["Classes & Lectures"])


@router.post("/classes", response_model=ClassOut, status_code=201)
def create_class(body: ClassCreate, teacher: dict = Depends(get_current_teacher), store=Depends(get_store)):
    return classes.create_class(store, teacher, body.name, body.department, body.year)


@router.get("/classes", response_model=List[ClassOut])
def list_classes(context: SessionContext = Depends(get_session_context), store=Depends(get_store)):
    """Teachers see their own classes, students see every class."""
    teacher_id = context.profile["id"] if context.role == "teacher" else None
    return classes.list_classes(store, teacher_id)


@router.post("/classes/{class_id}/lectures", response_model=LectureOut, status_code=201)
def create_lecture(
    class_id: str,
    body: LectureCreate,
    teacher: dict = Depends(get_current_teacher),
    store=Depends(get_store),
):
    classes.get_owned_class(store, teacher, class_id)
    return classes.create_lecture(store, class_id, body.title, body.date)


@router.get("/classes/{class_id}/lectures", response_model=List[LectureOut])
def list_lectures(class_id: str, context: SessionContext = Depends(get_session_context), store=Depends(get_store)):
    classes.get_class(store, class_id)
    return store.select("lectures", order_by="created_at", desc=True, class_id=class_id)


@router.get("/lectures/{lecture_id}", response_model=LectureOut)
def get_lecture(lecture_id: str, context: SessionContext = Depends(get_session_context), store=Depends(get_store)):
    return classes.get_lecture(store, lecture_id)


@router.post("/lectures/{lecture_id}/qr", response_model=QRIssueOut, status_code=201)
def issue_qr(
    lecture_id: str,
    body: QRIssueRequest,
    teacher: dict = Depends(get_current_teacher),
    store=Depends(get_store),
):
    """Issue a fresh QR code for a lecture; valid for 30 minutes."""
    lecture = classes.get_lecture(store, lecture_id)
    classes.get_owned_class(store, teacher, lecture["class_id"])
    payload, qr_text, qr_image, expires_at = classes.issue_lecture_qr(store, lecture, teacher, body.location)
    return QRIssueOut(payload=payload, qr_text=qr_text, qr_image=qr_image, expires_at=expires_at)
