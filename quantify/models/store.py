from quantify import db
from quantify.utils.helpers import utcnow
from quantify.utils.security import STATUSES, STATUS_ACTIVE


class Store(db.Model):
    __tablename__ = 'stores'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    address = db.Column(db.String(400), nullable=False)
    category = db.Column(db.String(50), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    description = db.Column(db.String(500), nullable=True)
    status = db.Column(db.Enum(*STATUSES, name='store_status'), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    owner = db.relationship('User', back_populates='owned_stores')
    ratings = db.relationship('Rating', back_populates='store', lazy=True, cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'name': self.name,
            'email': self.email,
            'address': self.address,
            'category': self.category,
            'phone': self.phone,
            'description': self.description,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Store {self.name}>'
