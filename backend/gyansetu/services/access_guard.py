# gyansetu/services/access_guard.py
from typing import Optional
from fastapi import Request, Response
from ..config import Settings
from ..errors import ErrorKind, PageRedirect, PortalError
from .session_store import SessionStore

LOGIN_PAGES = {"user": "/login", "admin": "/management-login"}
DASHBOARDS = {"user": "/student-dashboard", "admin": "/management-dashboard"}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def session_token(request: Request) -> Optional[str]:
    return request.cookies.get(get_settings(request).SESSION_COOKIE_NAME)


def current_user(request: Request) -> Optional[dict]:
    """User snapshot for the request's session cookie, or None"""
    return get_sessions(request).get(session_token(request))


def require_role(role: Optional[str] = None):
    """API guard: 401 without a live session, 403 on the wrong role"""
    def dependency(request: Request) -> dict:
        user = current_user(request)
        if user is None:
            raise PortalError(ErrorKind.UNAUTHENTICATED, "Please Login")
        if role and user["role"] != role:
            raise PortalError(ErrorKind.FORBIDDEN, "You do not have access to this resource")
        return user
    return dependency


def require_page_role(role: str):
    """Page guard: redirects to the matching login page or the user's own dashboard"""
    def dependency(request: Request) -> dict:
        user = current_user(request)
        if user is None:
            raise PageRedirect(LOGIN_PAGES[role])
        if user["role"] != role:
            raise PageRedirect(DASHBOARDS.get(user["role"], "/"))
        return user
    return dependency


require_authenticated = require_role()
require_student = require_role("user")
require_admin = require_role("admin")


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )
