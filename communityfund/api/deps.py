"""
FastAPI dependencies (DB session, authentication, permissions)
"""
from contextlib import contextmanager

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from communityfund.application.errors import EntityNotFoundError
from communityfund.auth import AuthProvider, RolePermissionAuthProvider
from communityfund.infrastructure.db.models import User
from communityfund.infrastructure.db.session import get_db as _get_db


# Re-export get_db for routers
get_db = _get_db

_auth_provider = RolePermissionAuthProvider()


def get_auth_provider() -> AuthProvider:
    """Overridable in tests via app.dependency_overrides"""
    return _auth_provider


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Current user from the session

    Raises:
        HTTPException(401): not logged in / user gone
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


def require_permission(action: str):
    """
    Dependency factory: current user, checked against `action`

    Usage:
        @router.post("/plans")
        def create_plan(user: User = Depends(require_permission("create_plan"))):
            ...
    """

    def _dependency(
        user: User = Depends(get_current_user),
        provider: AuthProvider = Depends(get_auth_provider),
    ) -> User:
        if not provider.has_permission(user, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {user.role} may not {action}"
            )
        return user

    return _dependency


def ensure_community_scope(user: User, community_id: int) -> None:
    """
    Raises:
        HTTPException(403): user is bound to another community
    """
    if user.community_id is not None and user.community_id != community_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not your community"
        )


@contextmanager
def translate_errors():
    """
    Map use-case errors to HTTP: validation -> 400, missing row -> 404

    Usage:
        with translate_errors():
            CreatePlanActivityUseCase(db).execute(...)
    """
    try:
        yield
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
