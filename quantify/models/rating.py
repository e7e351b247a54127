from quantify import db
from quantify.utils.helpers import utcnow


class Rating(db.Model):
    __tablename__ = 'ratings'
    __table_args__ = (
        db.UniqueConstraint('store_id', 'user_id', name='uq_ratings_store_user'),
        db.CheckConstraint('value >= 1 AND value <= 5', name='ck_ratings_value_range'),
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey('stores.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    value = db.Column(db.Integer, nullable=False)  # 1-5 stars
    comment = db.Column(db.Text, nullable=True)
    is_flagged = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    store = db.relationship('Store', back_populates='ratings')
    user = db.relationship('User', back_populates='ratings')

    def to_dict(self, include_store=False, include_user=False):
        data = {
            'id': self.id,
            'store_id': self.store_id,
            'user_id': self.user_id,
            'rating': self.value,
            'comment': self.comment,
            'is_flagged': self.is_flagged,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_store and self.store is not None:
            data['store'] = {'id': self.store.id, 'name': self.store.name, 'category': self.store.category}
        if include_user and self.user is not None:
            data['user'] = {'id': self.user.id, 'name': self.user.name}
        return data

    def __repr__(self):
        return f'<Rating {self.value} for Store {self.store_id} by User {self.user_id}>'
