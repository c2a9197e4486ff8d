"""Sign up, log in and log out on top of the managed auth."""
from presence.errors import UserAlreadyExistsError
from presence.session import SessionContext
from presence.utils.logger import logger

log = logger.getChild("accounts")


def _ensure_email_free(store, table: str, email: str, who: str) -> None:
    if store.select_one(table, email=email):
        raise UserAlreadyExistsError(
            f"A {who} with this email already exists. Please login or use a different email."
        )


def signup_student(store, data) -> dict:
    """Create the auth user and the student row, then sign out again."""
    email = data.email.strip().lower()
    _ensure_email_free(store, "students", email, "student")

    user_id = store.auth.sign_up(email, data.password, {"full_name": data.full_name, "role": "student"})
    student = store.insert("students", {
        "user_id": user_id,
        "full_name": data.full_name,
        "email": email,
        "roll_number": data.roll_number.strip(),
        "department": data.department,
        "year": data.year,
        "division": data.division,
        "face_registered": False,
    })
    # The user has to log in explicitly after signing up
    store.auth.sign_out(None)
    log.info(f"Student account created: {student['id']} ({student['roll_number']})")
    return student


def signup_teacher(store, data) -> dict:
    email = data.email.strip().lower()
    _ensure_email_free(store, "teachers", email, "teacher")

    user_id = store.auth.sign_up(email, data.password, {"full_name": data.full_name, "role": "teacher"})
    teacher = store.insert("teachers", {
        "user_id": user_id,
        "full_name": data.full_name,
        "email": email,
        "department": data.department,
        "subject_details": data.subject_details or [],
    })
    store.auth.sign_out(None)
    log.info(f"Teacher account created: {teacher['id']}")
    return teacher


def login(store, email: str, password: str) -> SessionContext:
    auth_session = store.auth.sign_in(email.strip().lower(), password)
    context = SessionContext(store)
    context.open(auth_session.access_token, auth_session.user_id)
    log.info(f"{context.role.capitalize()} logged in: {context.profile['id']}")
    return context


def logout(context: SessionContext) -> None:
    context.clear()
