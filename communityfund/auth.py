from abc import ABC, abstractmethod

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from communityfund.infrastructure.db.models import User

# pbkdf2_sha256 - primary (no native deps)
# bcrypt - accepted for hashes imported from older deployments
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated=["bcrypt"])

ROLE_PF = "pf"
ROLE_CMB = "cmb"
ROLE_COMMUNITY_MEMBER = "community_member"
ROLE_FOREST_OWNER = "forest_owner"
ROLE_CPC = "cpc"
ROLE_VIEWER = "viewer"
ROLES = (ROLE_PF, ROLE_CMB, ROLE_COMMUNITY_MEMBER, ROLE_FOREST_OWNER, ROLE_CPC, ROLE_VIEWER)

# Holders of view_all may perform every view_* action
VIEW_ALL = "view_all"

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_PF: frozenset({
        "review_plan",
        "verify_receipt",
        "record_disbursement",
        "review_idea",
        "add_comment",
        VIEW_ALL,
    }),
    ROLE_CMB: frozenset({
        "register_fund",
        "schedule_meeting",
        "upload_minutes",
        "create_plan",
        "create_budget",
        "upload_receipt",
        "upload_photo",
        "write_progress_note",
        "complete_activity",
        "submit_report",
        "generate_final_report",
        VIEW_ALL,
    }),
    ROLE_COMMUNITY_MEMBER: frozenset({
        "submit_idea",
        "view_ideas",
        "view_meetings",
        "view_minutes",
        "view_plan",
        "view_activities",
    }),
    ROLE_FOREST_OWNER: frozenset({
        "view_plan",
        "add_comment",
        "view_activities",
        "view_budget",
    }),
    ROLE_CPC: frozenset({
        "view_plan",
        "add_comment",
        "view_activities",
        "view_budget",
        "view_reports",
    }),
    ROLE_VIEWER: frozenset({
        "view_dashboard",
        "view_monitoring",
        "view_plan",
        "view_reports",
    }),
}


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


class AuthProvider(ABC):
    """Answers "may this user do that?" for the API layer."""

    @abstractmethod
    def has_permission(self, user: User, action: str) -> bool:
        pass


class RolePermissionAuthProvider(AuthProvider):
    """Permission check from a static role -> actions table."""

    def __init__(self, role_permissions: dict[str, frozenset[str]] | None = None):
        self.role_permissions = role_permissions if role_permissions is not None else ROLE_PERMISSIONS

    def has_permission(self, user: User, action: str) -> bool:
        if user is None:
            return False
        allowed = self.role_permissions.get(user.role, frozenset())
        if action in allowed:
            return True
        return action.startswith("view_") and VIEW_ALL in allowed
