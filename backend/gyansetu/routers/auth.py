from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from gyansetu.database.session import get_db
from gyansetu.schemas import RegisterIn, LoginIn, ResetPasswordIn
from gyansetu.services.credential_service import CredentialService
from gyansetu.services.access_guard import (
    get_settings, get_sessions, session_token, require_authenticated,
    set_session_cookie, clear_session_cookie
)

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    user = CredentialService.register(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        course=payload.course
    )
    return {"user": user.snapshot()}

@router.post("/login")
def login(payload: LoginIn, request: Request, response: Response, db: Session = Depends(get_db)):
    user = CredentialService.authenticate(db, payload.email, payload.password, payload.expectedRole)

    # Replace any session this browser already had
    sessions = get_sessions(request)
    sessions.destroy(session_token(request))
    token = sessions.create(user.snapshot())

    set_session_cookie(response, token, get_settings(request))
    return {"user": user.snapshot()}

@router.get("/session")
def session(user: dict = Depends(require_authenticated)):
    return {"user": user}

@router.post("/logout")
def logout(request: Request, response: Response):
    get_sessions(request).destroy(session_token(request))
    clear_session_cookie(response, get_settings(request))
    return {"success": True}

@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    CredentialService.reset_password(db, payload.email, payload.newPassword)
    return {"success": True, "message": "Password updated. Please login with the new password."}
