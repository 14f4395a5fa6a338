"""
Access token handling.

Tokens are issued by the school's auth service; this service only decodes
them to learn who is calling. ``create_access_token`` exists for tooling and
tests that need to mint a token with the shared secret.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from schoolfees.config.settings import Settings, settings as default_settings
from schoolfees.core.exceptions import AuthenticationError, AuthorizationError
from schoolfees.core.logging import get_logger
from schoolfees.models.base.enums import UserRole

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity taken from the bearer token."""

    user_id: str
    role: UserRole
    student_id: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.role in UserRole.staff_roles()

    def has_role(self, roles: Iterable[UserRole]) -> bool:
        return self.role in tuple(roles)

    def can_access_student(self, student_id: str) -> bool:
        """Staff see every student; a student sees only their own record."""
        if self.is_staff:
            return True
        return self.role is UserRole.STUDENT and self.student_id == student_id


def create_access_token(
    subject: str,
    role: str,
    student_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    config: Optional[Settings] = None,
) -> str:
    config = config or default_settings
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: Dict[str, Any] = {"sub": subject, "role": role, "exp": expire}
    if student_id:
        to_encode["student_id"] = student_id
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str, config: Optional[Settings] = None) -> CurrentUser:
    """
    Verify and decode a bearer token.

    Raises:
        AuthenticationError: expired, malformed or incomplete token
    """
    config = config or default_settings
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        raise AuthenticationError("Invalid token") from e

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Token has no subject")
    try:
        role = UserRole(payload.get("role"))
    except ValueError as e:
        raise AuthenticationError("Token carries an unknown role") from e

    return CurrentUser(user_id=str(subject), role=role, student_id=payload.get("student_id"))


def ensure_roles(user: CurrentUser, roles: Iterable[UserRole]) -> CurrentUser:
    roles = tuple(roles)
    if not user.has_role(roles):
        raise AuthorizationError(
            "Insufficient permissions",
            required_roles=[r.value for r in roles],
        )
    return user


def ensure_student_access(user: CurrentUser, student_id: str) -> CurrentUser:
    if not user.can_access_student(student_id):
        raise AuthorizationError("Not allowed to access this student's ledger")
    return user
