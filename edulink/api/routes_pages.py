from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["pages"])


def _landing(request: Request) -> dict:
    # Only reachable through the gate, which has already matched the role.
    session = request.state.session
    return {
        "user_id": session.user_id,
        "role": session.role,
        "approval_status": session.approval_status,
    }


@router.get("/student/dashboard")
def student_dashboard(request: Request) -> dict:
    return _landing(request)


@router.get("/writer/dashboard")
def writer_dashboard(request: Request) -> dict:
    return _landing(request)


@router.get("/admin/dashboard")
def admin_dashboard(request: Request) -> dict:
    return _landing(request)


@router.get("/login")
def login_page() -> dict:
    return {"page": "login", "action": "/auth/login"}


@router.get("/pending")
def pending_page() -> dict:
    return {"page": "pending", "message": "Your account is awaiting admin approval."}
