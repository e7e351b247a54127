from quantify import db
from flask_login import UserMixin
from quantify.utils.helpers import utcnow
from quantify.utils.security import (
    hash_password, verify_password, ROLES, STATUSES, STATUS_ACTIVE, STATUS_PENDING
)


class User(db.Model, UserMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(60), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(400), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.Enum(*ROLES, name='user_roles'), nullable=False, default='USER')
    status = db.Column(db.Enum(*STATUSES, name='user_status'), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    owned_stores = db.relationship('Store', back_populates='owner', lazy=True)
    ratings = db.relationship('Rating', back_populates='user', lazy=True, cascade='all, delete-orphan')

    def set_password(self, password):
        """Store a bcrypt hash of the plain text password."""
        self.password_hash = hash_password(password)

    def check_password(self, password):
        """True when the plain text matches the stored bcrypt hash."""
        return verify_password(password, self.password_hash)

    @property
    def is_active(self):
        # Pending owners may sign in to follow their approval
        return self.status in (STATUS_ACTIVE, STATUS_PENDING)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'address': self.address,
            'phone': self.phone,
            'role': self.role,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'
