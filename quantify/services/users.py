"""User management service for Quantify application."""

from quantify import db
from quantify.models import User, Rating
from quantify.utils.aggregation import summarize_ratings
from quantify.utils.error_handler import Conflict, NotFound, ValidationError
from quantify.utils.helpers import clean_email, clean_text, paginated
from quantify.utils.logging_config import get_logger
from quantify.utils.security import (
    ROLES, ROLE_ADMIN, ROLE_OWNER, STATUSES, STATUS_ACTIVE, STATUS_PENDING,
    validate_password_strength
)
from quantify.utils.sorting import UserSort

logger = get_logger('quantify.users')

TOP_REVIEWER_THRESHOLD = 10
QUALITY_COMMENT_LENGTH = 100


def clean_name(data, required=False):
    return clean_text(data, 'name', max_length=60, min_length=20, required=required)


def clean_password(data, required=False):
    password = data.get('password')
    if password is None and not required:
        return None
    is_valid, message = validate_password_strength(password if isinstance(password, str) else None)
    if not is_valid:
        raise ValidationError(message, {'field': 'password'})
    return password


def clean_status(data):
    status = data.get('status')
    if status is None:
        return None
    if isinstance(status, str):
        status = status.upper()
    if status not in STATUSES:
        raise ValidationError(f'Status must be one of {", ".join(STATUSES)}', {'field': 'status'})
    return status


def ensure_email_free(email, exclude_id=None):
    query = User.query.filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise Conflict('Email already registered', {'field': 'email'})


class UserService:
    """Account creation, admin user management and profiles."""

    @staticmethod
    def get_user_or_404(user_id):
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFound('User not found', {'user_id': user_id})
        return user

    @staticmethod
    def create_user(data, allowed_roles=ROLES):
        """Validate a payload and insert a new user.

        OWNER accounts start PENDING until an admin activates them; every
        other role starts ACTIVE unless the payload says otherwise.
        """
        name = clean_name(data, required=True)
        email = clean_email(data)
        password = clean_password(data, required=True)
        address = clean_text(data, 'address', max_length=400)
        phone = clean_text(data, 'phone', max_length=20)

        role = data.get('role') or 'USER'
        if isinstance(role, str):
            role = role.upper()
        if role not in allowed_roles:
            raise ValidationError(f'Role must be one of {", ".join(allowed_roles)}', {'field': 'role'})

        status = STATUS_PENDING if role == ROLE_OWNER else STATUS_ACTIVE
        if allowed_roles == ROLES:
            status = clean_status(data) or status

        ensure_email_free(email)

        user = User(name=name, email=email, address=address, phone=phone, role=role, status=status)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        logger.info(f"Created {role} account {user.id} ({email})")
        return user

    @staticmethod
    def list_users(search=None, role=None, status=None, sort=None, page=1, limit=10):
        query = User.query

        if search:
            pattern = f'%{search}%'
            query = query.filter(db.or_(
                User.name.ilike(pattern),
                User.email.ilike(pattern),
                User.address.ilike(pattern)
            ))
        if role:
            role = role.upper()
            if role not in ROLES:
                raise ValidationError(f'Role must be one of {", ".join(ROLES)}', {'field': 'role'})
            query = query.filter(User.role == role)
        if status:
            status = status.upper()
            if status not in STATUSES:
                raise ValidationError(f'Status must be one of {", ".join(STATUSES)}', {'field': 'status'})
            query = query.filter(User.status == status)

        total = query.count()
        order = UserSort.parse(sort, UserSort.NEWEST).order_by()
        users = query.order_by(*order).offset((page - 1) * limit).limit(limit).all()
        return paginated([user.to_dict() for user in users], page, limit, total)

    @staticmethod
    def get_user_detail(user_id):
        user = UserService.get_user_or_404(user_id)
        data = user.to_dict()

        if user.role == ROLE_OWNER:
            stores = sorted(user.owned_stores, key=lambda store: store.id)
            data['stores'] = [store.to_dict() for store in stores]
            store_ids = [store.id for store in stores]
            values = [rating.value for rating in Rating.query.filter(Rating.store_id.in_(store_ids)).all()] \
                if store_ids else []
            data['average_rating'] = summarize_ratings(values).average

        ratings = Rating.query.filter_by(user_id=user.id).order_by(Rating.created_at.desc(), Rating.id.desc()).all()
        data['ratings'] = [rating.to_dict(include_store=True) for rating in ratings]
        return data

    @staticmethod
    def update_user(user_id, data):
        """Admin update. Role is fixed at creation."""
        user = UserService.get_user_or_404(user_id)

        role = data.get('role')
        if role is not None and str(role).upper() != user.role:
            raise ValidationError('User role cannot be changed', {'field': 'role'})

        name = clean_name(data)
        email = clean_email(data, required=False)
        address = clean_text(data, 'address', max_length=400)
        phone = clean_text(data, 'phone', max_length=20)
        password = clean_password(data)
        status = clean_status(data)

        if email is not None and email != user.email:
            ensure_email_free(email, exclude_id=user.id)
            user.email = email
        if name:
            user.name = name
        if address is not None:
            user.address = address
        if phone is not None:
            user.phone = phone
        if password is not None:
            user.set_password(password)
        if status is not None:
            user.status = status

        db.session.commit()
        logger.info(f"Updated user {user.id}")
        return user

    @staticmethod
    def delete_user(user_id):
        user = UserService.get_user_or_404(user_id)
        if user.role == ROLE_ADMIN:
            raise Conflict('Admin accounts cannot be deleted', {'user_id': user_id})

        for store in list(user.owned_stores):
            store.owner_id = None

        db.session.delete(user)
        db.session.commit()
        logger.info(f"Deleted user {user_id}")

    @staticmethod
    def get_profile(user):
        """Profile plus review stats and earned badges."""
        ratings = Rating.query.filter_by(user_id=user.id).all()
        summary = summarize_ratings(rating.value for rating in ratings)

        comment_lengths = [len(rating.comment or '') for rating in ratings]
        average_comment_length = sum(comment_lengths) / len(comment_lengths) if comment_lengths else 0

        badges = []
        if summary.count > TOP_REVIEWER_THRESHOLD:
            badges.append('Top Reviewer')
        if average_comment_length > QUALITY_COMMENT_LENGTH:
            badges.append('Quality Reviewer')

        data = user.to_dict()
        data['stats'] = {
            'total_reviews': summary.count,
            'average_rating': summary.average,
            'average_comment_length': round(average_comment_length),
        }
        data['badges'] = badges
        if user.role == ROLE_OWNER:
            data['total_stores'] = len(user.owned_stores)
        return data

    @staticmethod
    def update_profile(user, data):
        """Self-service update of name, address and phone."""
        for field in ('email', 'role', 'status'):
            if field in data:
                raise ValidationError(f'{field} cannot be changed from the profile', {'field': field})

        name = clean_name(data)
        address = clean_text(data, 'address', max_length=400)
        phone = clean_text(data, 'phone', max_length=20)

        if name:
            user.name = name
        if address is not None:
            user.address = address
        if phone is not None:
            user.phone = phone

        db.session.commit()
        return user
