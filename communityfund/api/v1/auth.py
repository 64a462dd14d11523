"""
Authentication routes (login, logout)
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from sqlalchemy.orm import Session

from communityfund.api.deps import get_db
from communityfund.auth import get_user_by_email, verify_password
from communityfund.infrastructure.auditlog.repository import AuditLogRepository


router = APIRouter(tags=["auth"])


@router.post("/login")
def login_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    """
    Form login; stores user_id in the session cookie
    """
    user = get_user_by_email(db, email)

    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    request.session["user_id"] = user.id
    request.session["role"] = user.role

    AuditLogRepository(db).append(
        action="user_logged_in",
        entity="users",
        entity_id=user.id,
        payload={"email": user.email},
        actor_user_id=user.id,
        occurred_at=datetime.now(timezone.utc),
    )
    db.commit()

    return {
        "user_id": user.id,
        "full_name": user.full_name,
        "role": user.role,
        "community_id": user.community_id,
        "commune_id": user.commune_id,
    }


@router.get("/logout")
def logout(request: Request):
    """
    Clear the session
    """
    request.session.clear()
    return {"ok": True}
