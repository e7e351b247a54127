"""Security service for Quantify application."""

from quantify.models import User
from quantify.services.users import UserService
from quantify.utils.error_handler import AuthenticationError, ValidationError
from quantify.utils.helpers import remote_addr
from quantify.utils.logging_config import log_security_event
from quantify.utils.security import ROLE_OWNER, ROLE_USER, STATUS_INACTIVE, STATUS_SUSPENDED

SELF_SERVICE_ROLES = (ROLE_USER, ROLE_OWNER)


class SecurityService:
    """Security service handling registration and authentication."""

    @staticmethod
    def register_user(data):
        """Self-registration; only USER and OWNER accounts may sign up."""
        user = UserService.create_user(data, allowed_roles=SELF_SERVICE_ROLES)
        log_security_event('REGISTERED', user_id=user.id, ip_address=remote_addr(),
                           details=f"role={user.role} status={user.status}")
        return user

    @staticmethod
    def authenticate_user(email, password):
        """Authenticate user with email and password."""
        if not isinstance(email, str) or not email or not password:
            raise ValidationError('Email and password are required')

        user = User.query.filter_by(email=email.strip().lower()).first()

        if user is None or not user.check_password(password):
            log_security_event('LOGIN_FAILED', user_id=user.id if user else None,
                               ip_address=remote_addr(), details=f"email={email}")
            raise AuthenticationError('Invalid email or password')

        if user.status in (STATUS_INACTIVE, STATUS_SUSPENDED):
            log_security_event('LOGIN_BLOCKED', user_id=user.id, ip_address=remote_addr(),
                               details=f"status={user.status}")
            raise AuthenticationError('Account is not active. Please contact support.')

        log_security_event('LOGIN_SUCCESS', user_id=user.id, ip_address=remote_addr())
        return user
