"""Security utilities for Quantify application."""

from dataclasses import dataclass
from functools import wraps
from flask import abort, current_app, request
from flask_login import current_user
from passlib.context import CryptContext
import re

from quantify.utils.logging_config import log_security_event


ROLE_USER = 'USER'
ROLE_OWNER = 'OWNER'
ROLE_ADMIN = 'ADMIN'
ROLES = (ROLE_USER, ROLE_OWNER, ROLE_ADMIN)

STATUS_ACTIVE = 'ACTIVE'
STATUS_PENDING = 'PENDING'
STATUS_INACTIVE = 'INACTIVE'
STATUS_SUSPENDED = 'SUSPENDED'
STATUSES = (STATUS_ACTIVE, STATUS_PENDING, STATUS_INACTIVE, STATUS_SUSPENDED)


DEFAULT_BCRYPT_ROUNDS = 12

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password):
    """Bcrypt hash using the configured work factor."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)
    return pwd_context.copy(bcrypt__rounds=rounds).hash(password)


def verify_password(password, hashed):
    """True when the plain text matches the stored hash."""
    if not password or not hashed:
        return False
    return pwd_context.verify(password, hashed)


def validate_password_strength(password):
    """Check the password policy and return (ok, message)."""
    if not password or not 8 <= len(password) <= 16:
        return False, "Password must be between 8 and 16 characters"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>?/]", password):
        return False, "Password must contain at least one special character"

    return True, "Password is strong"


@dataclass(frozen=True)
class AuthContext:
    """Identity and role of the caller, checked by every reporting call."""

    user_id: int
    role: str
    status: str = STATUS_ACTIVE

    @classmethod
    def from_user(cls, user):
        return cls(user_id=user.id, role=user.role, status=user.status)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def has_role(self, *roles):
        return self.role in roles


def current_auth_context():
    """Build an AuthContext for the logged-in user."""
    if not current_user.is_authenticated:
        abort(401)
    return AuthContext.from_user(current_user)


def role_required(*roles):
    """Restrict a view to the given roles; logs and 403s anyone else."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)

            if current_user.role not in roles:
                log_security_event(
                    'ROLE_DENIED',
                    user_id=current_user.id,
                    ip_address=request.remote_addr,
                    details=f"{current_user.role} tried {request.method} {request.path}"
                )
                abort(403)

            return f(*args, **kwargs)
        return wrapper
    return decorator


def sanitize_input(input_string):
    """Trim surrounding whitespace and drop control characters."""
    if not input_string:
        return input_string

    return re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f]', '', input_string).strip()
