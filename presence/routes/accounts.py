from fastapi import APIRouter, Depends

from presence.dependencies import get_current_student, get_session_context, get_settings, get_store
from presence.schemas import (
    FaceImage,
    FaceRegistrationOut,
    LoginRequest,
    Message,
    SessionOut,
    StudentOut,
    StudentSignup,
    TeacherOut,
    TeacherSignup,
)
from presence.services import accounts
from presence.services.face_attendance import register_face
from presence.session import SessionContext

router = APIRouter(prefix="/auth", tags=["Accounts"])
students_router = APIRouter(prefix="/students", tags=["Accounts"])


def _public_profile(role: str, profile: dict) -> dict:
    model = StudentOut if role == "student" else TeacherOut
    return model.model_validate(profile).model_dump()


@router.post("/signup/student", response_model=StudentOut, status_code=201)
def signup_student(body: StudentSignup, store=Depends(get_store)):
    return accounts.signup_student(store, body)


@router.post("/signup/teacher", response_model=TeacherOut, status_code=201)
def signup_teacher(body: TeacherSignup, store=Depends(get_store)):
    return accounts.signup_teacher(store, body)


@router.post("/login", response_model=SessionOut)
def login(body: LoginRequest, store=Depends(get_store)):
    context = accounts.login(store, body.email, body.password)
    return SessionOut(
        access_token=context.token,
        role=context.role,
        profile=_public_profile(context.role, context.profile),
    )


@router.get("/session", response_model=SessionOut)
def current_session(context: SessionContext = Depends(get_session_context)):
    return SessionOut(role=context.role, profile=_public_profile(context.role, context.profile))


@router.post("/logout", response_model=Message)
def logout(context: SessionContext = Depends(get_session_context)):
    accounts.logout(context)
    return {"message": "Logged out"}


@students_router.get("/me", response_model=StudentOut)
def my_profile(student: dict = Depends(get_current_student)):
    return student


@students_router.post("/me/face", response_model=FaceRegistrationOut)
def register_my_face(
    body: FaceImage,
    student: dict = Depends(get_current_student),
    store=Depends(get_store),
    settings=Depends(get_settings),
):
    """Store the reference image used by face verification."""
    updated = register_face(store, student["id"], body.image)
    return {"face_registered": bool(updated.get("face_registered")), "external_cv_url": settings.external_cv_url}
