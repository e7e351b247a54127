"""Enumerated sort keys for list endpoints.

Query strings pick one of these by value; each maps to a fixed ORM ordering,
so no client-supplied column name ever reaches ``order_by``.
"""

from enum import Enum

from quantify.models import Rating, Store, User
from quantify.utils.error_handler import ValidationError


class SortKey(Enum):

    @classmethod
    def parse(cls, raw, default):
        if raw is None or raw == '':
            return default
        try:
            return cls(raw)
        except ValueError:
            allowed = ', '.join(member.value for member in cls)
            raise ValidationError(f'Unknown sort "{raw}". Allowed: {allowed}', {'field': 'sort'})

    def order_by(self):
        raise NotImplementedError


class UserSort(SortKey):
    NEWEST = 'newest'
    OLDEST = 'oldest'
    NAME = 'name'
    NAME_DESC = 'name_desc'
    EMAIL = 'email'

    def order_by(self):
        return {
            UserSort.NEWEST: (User.created_at.desc(), User.id.desc()),
            UserSort.OLDEST: (User.created_at.asc(), User.id.asc()),
            UserSort.NAME: (User.name.asc(), User.id.asc()),
            UserSort.NAME_DESC: (User.name.desc(), User.id.desc()),
            UserSort.EMAIL: (User.email.asc(),),
        }[self]


class StoreSort(SortKey):
    RECENT = 'recent'
    OLDEST = 'oldest'
    NAME = 'name'
    NAME_DESC = 'name_desc'
    RATING = 'rating'

    def order_by(self, average_column=None):
        if self is StoreSort.RATING:
            if average_column is None:
                raise ValidationError('Sorting by rating is not available here', {'field': 'sort'})
            return (average_column.desc(), Store.name.asc(), Store.id.asc())
        return {
            StoreSort.RECENT: (Store.created_at.desc(), Store.id.desc()),
            StoreSort.OLDEST: (Store.created_at.asc(), Store.id.asc()),
            StoreSort.NAME: (Store.name.asc(), Store.id.asc()),
            StoreSort.NAME_DESC: (Store.name.desc(), Store.id.desc()),
        }[self]


class ReviewSort(SortKey):
    NEWEST = 'newest'
    OLDEST = 'oldest'
    RATING_HIGH = 'rating_high'
    RATING_LOW = 'rating_low'

    def order_by(self):
        return {
            ReviewSort.NEWEST: (Rating.created_at.desc(), Rating.id.desc()),
            ReviewSort.OLDEST: (Rating.created_at.asc(), Rating.id.asc()),
            ReviewSort.RATING_HIGH: (Rating.value.desc(), Rating.created_at.desc()),
            ReviewSort.RATING_LOW: (Rating.value.asc(), Rating.created_at.desc()),
        }[self]


class RatingSort(SortKey):
    """Admin rating listing; STORE and USER need Store and User joined."""

    NEWEST = 'newest'
    OLDEST = 'oldest'
    RATING_HIGH = 'rating_high'
    RATING_LOW = 'rating_low'
    STORE = 'store'
    USER = 'user'

    def order_by(self):
        return {
            RatingSort.NEWEST: (Rating.created_at.desc(), Rating.id.desc()),
            RatingSort.OLDEST: (Rating.created_at.asc(), Rating.id.asc()),
            RatingSort.RATING_HIGH: (Rating.value.desc(), Rating.id.desc()),
            RatingSort.RATING_LOW: (Rating.value.asc(), Rating.id.desc()),
            RatingSort.STORE: (Store.name.asc(), Rating.id.asc()),
            RatingSort.USER: (User.name.asc(), Rating.id.asc()),
        }[self]
