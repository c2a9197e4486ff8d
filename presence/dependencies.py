from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from presence.session import SessionContext

bearer = HTTPBearer(auto_error=False)
admin_security = HTTPBearer()


def get_settings(request: Request):
    return request.app.state.settings


def get_store(request: Request):
    return request.app.state.store


def get_verifier(request: Request):
    return request.app.state.verifier


def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    store=Depends(get_store),
) -> SessionContext:
    """Build the session for this request from its bearer token."""
    token = credentials.credentials if credentials else None
    return SessionContext(store).load(token)


def get_current_student(context: SessionContext = Depends(get_session_context)) -> dict:
    return context.require_student()


def get_current_teacher(context: SessionContext = Depends(get_session_context)) -> dict:
    return context.require_teacher()


def verify_admin(token: HTTPAuthorizationCredentials = Depends(admin_security), settings=Depends(get_settings)):
    """Dependency to check if the provided token matches the ADMIN_SECRET."""
    if not settings.admin_secret or token.credentials != settings.admin_secret:
        raise HTTPException(status_code=403, detail="Forbidden: Invalid Admin Key")
    return True
