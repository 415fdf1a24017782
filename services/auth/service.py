"""Authentication and tenant administration.

Passwords are stored as bcrypt hashes. Login failures return the same
generic reason whether the email is unknown or the password is wrong.
Creating a user also creates the tenant's empty issuer profile.
"""

import logging
from datetime import UTC, datetime

import bcrypt
from prometheus_client import Counter
from pydantic import BaseModel

from services.documents.schema import IssuerProfile, User, UserPublic, UserRole
from services.records.base import RecordStore, StoreResult
from services.shared.config import Settings
from services.shared.errors import AuthError, DocumentValidationError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
BCRYPT_MAX_BYTES = 72

login_attempts_total = Counter(
    "login_attempts_total",
    "Total login attempts",
    ["status"],  # success, failed
)


class AuthResult(BaseModel):
    """Result of a login attempt."""

    success: bool
    user: UserPublic | None = None
    error: str | None = None


class UserResult(BaseModel):
    """Result of a user administration operation."""

    success: bool
    user: UserPublic | None = None
    error: str | None = None


class AuthService:
    """Login, password hashing and user administration."""

    def __init__(self, settings: Settings, store: RecordStore) -> None:
        """Initialize auth service.

        Args:
            settings: Application settings
            store: Record store holding users and issuer profiles
        """
        self.settings = settings
        self.store = store

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.settings.password_hash_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    @staticmethod
    def _check_credentials_input(email: str, password: str | None, password_required: bool) -> None:
        problems = []
        if not email.strip():
            problems.append("Email obligatorio")
        if password_required and not password:
            problems.append("Contraseña obligatoria")
        if password and len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            problems.append(f"La contraseña no puede superar {BCRYPT_MAX_BYTES} bytes")
        if problems:
            raise DocumentValidationError(problems)

    def login(self, email: str, password: str) -> AuthResult:
        """Check credentials.

        Args:
            email: Account email
            password: Plain-text password

        Returns:
            AuthResult with the user, or the generic invalid-credentials reason
        """
        user = self.store.get_user_by_email(email.strip())
        if user is None or not self.verify_password(password, user.password_hash):
            login_attempts_total.labels(status="failed").inc()
            logger.warning("Rejected login attempt")
            return AuthResult(success=False, error=INVALID_CREDENTIALS)

        login_attempts_total.labels(status="success").inc()
        logger.info(f"User {user.id} logged in")
        return AuthResult(success=True, user=UserPublic.from_user(user))

    def get_user(self, user_id: str) -> UserPublic | None:
        user = self.store.get_user(user_id)
        return UserPublic.from_user(user) if user else None

    @staticmethod
    def require_admin(user: UserPublic) -> None:
        """Raise unless the user is an administrator.

        Raises:
            AuthError: If the user is not an admin
        """
        if user.role is not UserRole.ADMIN:
            raise AuthError("Administrator role required")

    def list_users(self) -> list[UserPublic]:
        return [UserPublic.from_user(u) for u in self.store.list_users()]

    def create_user(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        logo: str | None = None,
    ) -> UserResult:
        """Create a tenant account and its empty issuer profile.

        Args:
            email: Account email, must be unique
            password: Plain-text password
            role: Account role
            logo: Optional initial logo for the issuer profile

        Returns:
            UserResult with the new user or the failure reason

        Raises:
            DocumentValidationError: If email or password is blank
        """
        email = email.strip()
        self._check_credentials_input(email, password, password_required=True)

        if self.store.get_user_by_email(email) is not None:
            return UserResult(success=False, error="El usuario ya existe")

        user = User(
            email=email,
            password_hash=self.hash_password(password),
            role=role,
            created_at=datetime.now(UTC),
        )
        result = self.store.save_user(user)
        if not result.success:
            return UserResult(success=False, error=f"Error creating user: {result.error}")

        profile = IssuerProfile(email=email, logo=logo or None)
        result = self.store.save_issuer_profile(user.id, profile)
        if not result.success:
            return UserResult(success=False, error=f"Error creating issuer profile: {result.error}")

        logger.info(f"Created {role.value} user {user.id}")
        return UserResult(success=True, user=UserPublic.from_user(user))

    def update_user(
        self,
        user_id: str,
        email: str,
        password: str | None = None,
        role: UserRole | None = None,
    ) -> UserResult:
        """Update email, and optionally password and role.

        An empty password keeps the current one.

        Raises:
            DocumentValidationError: If the email is blank
        """
        email = email.strip()
        self._check_credentials_input(email, password, password_required=False)

        user = self.store.get_user(user_id)
        if user is None:
            return UserResult(success=False, error=f"User not found: {user_id}")

        existing = self.store.get_user_by_email(email)
        if existing is not None and existing.id != user_id:
            return UserResult(success=False, error="El usuario ya existe")

        user.email = email
        if password:
            user.password_hash = self.hash_password(password)
        if role is not None:
            user.role = role

        result = self.store.save_user(user)
        if not result.success:
            return UserResult(success=False, error=f"Error updating user: {result.error}")

        logger.info(f"Updated user {user_id}")
        return UserResult(success=True, user=UserPublic.from_user(user))

    def delete_user(self, user_id: str) -> StoreResult:
        """Delete a user with its issuer profile and documents."""
        return self.store.delete_user(user_id)

    def ensure_admin_user(self) -> UserPublic:
        """Seed the configured administrator account if it does not exist.

        Returns:
            The existing or newly created admin
        """
        existing = self.store.get_user_by_email(self.settings.admin_email)
        if existing is not None:
            return UserPublic.from_user(existing)

        result = self.create_user(
            self.settings.admin_email, self.settings.admin_password, role=UserRole.ADMIN
        )
        if not result.success or result.user is None:
            raise RuntimeError(f"Could not seed admin user: {result.error}")

        logger.info(f"Seeded admin user {self.settings.admin_email}")
        return result.user
