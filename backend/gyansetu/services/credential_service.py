# gyansetu/services/credential_service.py
import logging
from typing import Optional
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ..database.models.user import User, UserRole
from ..errors import ErrorKind, PortalError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class CredentialService:
    """User accounts: registration, login check, password reset"""

    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    @staticmethod
    def register(
        db: Session,
        name: str,
        email: str,
        password: str,
        role: str = "user",
        course: Optional[str] = None
    ) -> User:
        name = (name or "").strip()
        email = normalize_email(email)
        role = (role or "user").strip().lower()

        if not name or not email or not password:
            raise PortalError(ErrorKind.VALIDATION_ERROR, "Name, email and password are required.")
        if role not in {r.value for r in UserRole}:
            raise PortalError(ErrorKind.VALIDATION_ERROR, f"Unknown role: {role}")

        if CredentialService.find_by_email(db, email):
            raise PortalError(ErrorKind.CONFLICT, "Email already registered")

        user = User(
            name=name,
            email=email,
            passwd=pwd_context.hash(password),
            role=UserRole(role),
            course=(course or "").strip() or None
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            db.rollback()
            raise PortalError(ErrorKind.CONFLICT, "Email already registered")
        db.refresh(user)

        logger.info(f"Registered {user.email} as {user.role.value}")
        return user

    @staticmethod
    def authenticate(
        db: Session,
        email: str,
        password: str,
        expected_role: Optional[str] = None
    ) -> User:
        """
        Check credentials, optionally pinning the role of the login entry point.
        The same message is used for unknown email and wrong password.
        """
        user = CredentialService.find_by_email(db, email)
        if not user or not password or not pwd_context.verify(password, user.passwd):
            raise PortalError(ErrorKind.INVALID_CREDENTIALS, "Invalid Credentials")

        if expected_role and user.role.value != expected_role.strip().lower():
            raise PortalError(ErrorKind.ROLE_MISMATCH, "Access denied for this login")

        return user

    @staticmethod
    def reset_password(db: Session, email: str, new_password: str) -> User:
        """
        Overwrite the stored password. There is no old-password or token check:
        this is the demo reset flow.
        """
        if not new_password:
            raise PortalError(ErrorKind.VALIDATION_ERROR, "New password is required.")

        user = CredentialService.find_by_email(db, email)
        if not user:
            raise PortalError(ErrorKind.NOT_FOUND, "Account not found")

        user.passwd = pwd_context.hash(new_password)
        db.commit()
        db.refresh(user)

        logger.warning(f"Password reset for {user.email} without prior verification")
        return user

    @staticmethod
    def ensure_admin(db: Session, email: Optional[str], password: Optional[str]) -> Optional[User]:
        """Create the bootstrap admin account if configured and missing"""
        if not email or not password:
            return None
        existing = CredentialService.find_by_email(db, email)
        if existing:
            return existing
        return CredentialService.register(db, "Administrator", email, password, role="admin")
