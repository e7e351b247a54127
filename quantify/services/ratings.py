"""Rating service for Quantify application."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from quantify import db
from quantify.models import Rating, Store, User
from quantify.utils.error_handler import AccessDenied, Conflict, NotFound, ValidationError
from quantify.utils.helpers import clean_text, paginated, parse_rating_value, remote_addr
from quantify.utils.logging_config import get_logger, log_security_event
from quantify.utils.security import ROLE_USER, STATUS_ACTIVE
from quantify.utils.sorting import RatingSort, ReviewSort

logger = get_logger('quantify.ratings')

FLAG_MARKER = '\n\n[FLAGGED BY OWNER: {reason}]'
COMMENT_MAX_LENGTH = 500


class RatingService:
    """Submitting, editing, moderating and listing ratings."""

    @staticmethod
    def get_rating_or_404(rating_id):
        rating = db.session.get(Rating, rating_id)
        if rating is None:
            raise NotFound('Rating not found', {'rating_id': rating_id})
        return rating

    @staticmethod
    def create_rating(context, store_id, data):
        """One rating per user and store.

        The pre-insert lookup gives a clear error for the common case; the
        unique constraint settles two requests racing past it.
        """
        if not context.has_role(ROLE_USER):
            raise AccessDenied('Only users can submit ratings')
        if context.status != STATUS_ACTIVE:
            raise AccessDenied('Your account is not active')

        store = db.session.get(Store, store_id)
        if store is None:
            raise NotFound('Store not found', {'store_id': store_id})

        value = parse_rating_value(data.get('rating'))
        comment = clean_text(data, 'comment', max_length=COMMENT_MAX_LENGTH)

        existing = Rating.query.filter_by(store_id=store.id, user_id=context.user_id).first()
        if existing is not None:
            raise Conflict('You have already rated this store', {'rating_id': existing.id})

        rating = Rating(store_id=store.id, user_id=context.user_id, value=value, comment=comment)
        db.session.add(rating)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict('You have already rated this store', {'store_id': store_id})

        logger.info(f"User {context.user_id} rated store {store.id} with {value}")
        return rating

    @staticmethod
    def update_rating(context, rating_id, data):
        rating = RatingService.get_rating_or_404(rating_id)
        if rating.user_id != context.user_id:
            raise AccessDenied('You can only edit your own reviews')

        if 'rating' not in data and 'comment' not in data:
            raise ValidationError('Nothing to update')

        if 'rating' in data:
            rating.value = parse_rating_value(data.get('rating'))
        if 'comment' in data:
            rating.comment = clean_text(data, 'comment', max_length=COMMENT_MAX_LENGTH)

        db.session.commit()
        return rating

    @staticmethod
    def delete_rating(context, rating_id):
        """Creators delete their own ratings; admins may delete any."""
        rating = RatingService.get_rating_or_404(rating_id)
        if not context.is_admin and rating.user_id != context.user_id:
            raise AccessDenied('You can only delete your own reviews')

        db.session.delete(rating)
        db.session.commit()
        logger.info(f"Rating {rating_id} deleted by user {context.user_id}")

    @staticmethod
    def flag_rating(context, rating_id, reason):
        """Mark a review on one of the caller's stores. The review is kept."""
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError('A reason is required to flag a review', {'field': 'reason'})

        rating = RatingService.get_rating_or_404(rating_id)
        if rating.store is None or rating.store.owner_id != context.user_id:
            raise AccessDenied('You can only flag reviews of your own stores')

        rating.comment = (rating.comment or '') + FLAG_MARKER.format(reason=reason.strip())
        rating.is_flagged = True
        db.session.commit()

        log_security_event('REVIEW_FLAGGED', user_id=context.user_id, ip_address=remote_addr(),
                           details=f"rating={rating.id} store={rating.store_id}")
        return rating

    @staticmethod
    def list_ratings(store_id=None, user_id=None, owner_id=None, value=None, search=None,
                     sort=None, sort_type=ReviewSort, page=1, limit=10):
        """Ratings with their store and submitter, filtered and paged."""
        query = Rating.query.join(Store, Store.id == Rating.store_id) \
            .join(User, User.id == Rating.user_id) \
            .options(joinedload(Rating.store), joinedload(Rating.user))

        if store_id is not None:
            query = query.filter(Rating.store_id == store_id)
        if user_id is not None:
            query = query.filter(Rating.user_id == user_id)
        if owner_id is not None:
            query = query.filter(Store.owner_id == owner_id)
        if value is not None:
            query = query.filter(Rating.value == parse_rating_value(value))
        if search:
            pattern = f'%{search}%'
            query = query.filter(db.or_(
                Rating.comment.ilike(pattern),
                Store.name.ilike(pattern),
                User.name.ilike(pattern)
            ))

        total = query.count()
        order = sort_type.parse(sort, sort_type.NEWEST).order_by()
        ratings = query.order_by(*order).offset((page - 1) * limit).limit(limit).all()

        items = [rating.to_dict(include_store=True, include_user=True) for rating in ratings]
        return paginated(items, page, limit, total)

    @staticmethod
    def list_all(sort=None, **filters):
        """Admin listing, which can also sort by store or submitter name."""
        return RatingService.list_ratings(sort=sort, sort_type=RatingSort, **filters)
