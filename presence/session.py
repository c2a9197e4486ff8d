"""
Per-request session context.

Holds who is logged in (token, role, profile). It is built from the bearer
token on each request by ``load()`` and torn down by ``clear()`` on logout,
and handed to endpoints through FastAPI dependencies.
"""
from typing import Optional

from presence.errors import ForbiddenError, NotAuthenticatedError


class SessionContext:
    def __init__(self, store):
        self.store = store
        self.token: Optional[str] = None
        self.user_id: Optional[str] = None
        self.role: Optional[str] = None
        self.profile: Optional[dict] = None

    @property
    def is_authenticated(self) -> bool:
        return self.profile is not None

    def load(self, token: Optional[str]) -> "SessionContext":
        """Validate a bearer token and attach the matching profile."""
        if not token:
            raise NotAuthenticatedError()
        user_id = self.store.auth.get_user(token)
        if not user_id:
            raise NotAuthenticatedError("Your session has expired. Please log in again.")
        return self.open(token, user_id)

    def open(self, token: str, user_id: str) -> "SessionContext":
        student = self.store.select_one("students", user_id=user_id)
        if student is not None:
            role, profile = "student", student
        else:
            teacher = self.store.select_one("teachers", user_id=user_id)
            if teacher is None:
                # An auth user without a profile row cannot use the app
                self.store.auth.sign_out(token)
                raise NotAuthenticatedError("No profile found for this account. Please sign up first.")
            role, profile = "teacher", teacher

        self.token, self.user_id, self.role, self.profile = token, user_id, role, profile
        return self

    def clear(self) -> None:
        if self.token:
            self.store.auth.sign_out(self.token)
        self.token = self.user_id = self.role = self.profile = None

    def require_student(self) -> dict:
        if self.role != "student":
            raise ForbiddenError("Only students can do this.")
        return self.profile

    def require_teacher(self) -> dict:
        if self.role != "teacher":
            raise ForbiddenError("Only teachers can do this.")
        return self.profile
