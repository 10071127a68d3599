from html import escape
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from gyansetu.services.access_guard import require_page_role

# Minimal pages: the real front-end lives elsewhere; these exist for the redirect rules
router = APIRouter(tags=["pages"], default_response_class=HTMLResponse)


def _page(title: str, body: str) -> str:
    return (
        "<!doctype html><html><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)} | Gyan Setu</title></head>"
        f"<body><h1>{escape(title)}</h1>{body}</body></html>"
    )

@router.get("/login")
def student_login_page():
    return _page("Student Login", "<p>POST /auth/login with your email and password.</p>")

@router.get("/management-login")
def management_login_page():
    return _page("Management Login", "<p>POST /auth/login with expectedRole=admin.</p>")

@router.get("/student-dashboard")
def student_dashboard(user: dict = Depends(require_page_role("user"))):
    return _page(f"Welcome, {user['name']}!", f"<p>Email: {escape(user['email'])}</p>")

@router.get("/management-dashboard")
def management_dashboard(user: dict = Depends(require_page_role("admin"))):
    return _page("Management Dashboard", f"<p>Signed in as {escape(user['email'])}</p>")
