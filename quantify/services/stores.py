"""Store management service for Quantify application."""

from flask import current_app
from sqlalchemy import func

from quantify import db
from quantify.models import Store, User, Rating
from quantify.utils.aggregation import round_half_up, summarize_ratings
from quantify.utils.error_handler import AccessDenied, Conflict, NotFound, ValidationError
from quantify.utils.helpers import clean_email, clean_text, paginated
from quantify.utils.logging_config import get_logger
from quantify.utils.security import ROLE_OWNER, STATUSES, STATUS_ACTIVE
from quantify.utils.sorting import StoreSort

logger = get_logger('quantify.stores')


def rating_stats_subquery():
    """Per-store average and count of ratings."""
    return db.session.query(
        Rating.store_id.label('store_id'),
        func.avg(Rating.value).label('average'),
        func.count(Rating.id).label('total')
    ).group_by(Rating.store_id).subquery()


def store_row(store, average, total):
    data = store.to_dict()
    data['average_rating'] = round_half_up(average) if average is not None else 0.0
    data['total_ratings'] = total or 0
    return data


class StoreService:
    """Store creation, ownership rules and listings."""

    @staticmethod
    def get_store_or_404(store_id):
        store = db.session.get(Store, store_id)
        if store is None:
            raise NotFound('Store not found', {'store_id': store_id})
        return store

    @staticmethod
    def get_owned_store(context, store_id):
        """Fetch a store the caller may manage."""
        store = StoreService.get_store_or_404(store_id)
        if not context.is_admin and store.owner_id != context.user_id:
            raise AccessDenied('You can only manage your own stores')
        return store

    @staticmethod
    def check_owner_capacity(owner_id, exclude_store_id=None):
        """Raise Conflict when the owner already holds the maximum number of stores."""
        max_stores = current_app.config['MAX_STORES_PER_OWNER']
        query = Store.query.filter(Store.owner_id == owner_id)
        if exclude_store_id is not None:
            query = query.filter(Store.id != exclude_store_id)
        if query.count() >= max_stores:
            raise Conflict(f'An owner can have at most {max_stores} stores', {'owner_id': owner_id})

    @staticmethod
    def ensure_email_free(email, exclude_id=None):
        query = Store.query.filter(Store.email == email)
        if exclude_id is not None:
            query = query.filter(Store.id != exclude_id)
        if query.first() is not None:
            raise Conflict('A store with this email already exists', {'field': 'email'})

    @staticmethod
    def resolve_owner(owner_id):
        owner = db.session.get(User, owner_id)
        if owner is None:
            raise NotFound('Owner not found', {'owner_id': owner_id})
        if owner.role != ROLE_OWNER:
            raise ValidationError('Stores can only be assigned to OWNER accounts', {'field': 'owner_id'})
        return owner

    @staticmethod
    def _apply_fields(store, data, creating=False):
        name = clean_text(data, 'name', max_length=100, required=creating)
        email = clean_email(data, required=creating)
        address = clean_text(data, 'address', max_length=400, required=creating)
        category = clean_text(data, 'category', max_length=50)
        phone = clean_text(data, 'phone', max_length=20)
        description = clean_text(data, 'description', max_length=500)

        if email is not None and email != store.email:
            StoreService.ensure_email_free(email, exclude_id=store.id)
            store.email = email
        if name:
            store.name = name
        if address:
            store.address = address
        if category is not None:
            store.category = category
        if phone is not None:
            store.phone = phone
        if description is not None:
            store.description = description

    @staticmethod
    def create_store_for_owner(context, data):
        """An ACTIVE owner opens a store, within the per-owner cap."""
        if not context.has_role(ROLE_OWNER):
            raise AccessDenied('Only store owners can create stores')
        if context.status != STATUS_ACTIVE:
            raise AccessDenied('Your account must be approved before you can add stores')

        StoreService.check_owner_capacity(context.user_id)

        store = Store(owner_id=context.user_id, status=STATUS_ACTIVE)
        StoreService._apply_fields(store, data, creating=True)
        db.session.add(store)
        db.session.commit()

        logger.info(f"Owner {context.user_id} created store {store.id}")
        return store

    @staticmethod
    def create_store(data):
        """Admin creation, optionally with an owner."""
        store = Store(status=STATUS_ACTIVE)

        owner_id = data.get('owner_id')
        if owner_id is not None:
            owner = StoreService.resolve_owner(owner_id)
            StoreService.check_owner_capacity(owner.id)
            store.owner_id = owner.id

        status = data.get('status')
        if status is not None:
            store.status = StoreService._clean_status(status)

        StoreService._apply_fields(store, data, creating=True)
        db.session.add(store)
        db.session.commit()

        logger.info(f"Created store {store.id} (owner {store.owner_id})")
        return store

    @staticmethod
    def _clean_status(status):
        status = str(status).upper()
        if status not in STATUSES:
            raise ValidationError(f'Status must be one of {", ".join(STATUSES)}', {'field': 'status'})
        return status

    @staticmethod
    def update_store(context, store_id, data):
        store = StoreService.get_owned_store(context, store_id)

        if 'owner_id' in data and data['owner_id'] != store.owner_id:
            raise ValidationError('Use the owner assignment endpoint to change owners', {'field': 'owner_id'})
        if 'status' in data:
            if not context.is_admin:
                raise AccessDenied('Only administrators can change store status')
            store.status = StoreService._clean_status(data['status'])

        StoreService._apply_fields(store, data)
        db.session.commit()
        return store

    @staticmethod
    def delete_store(context, store_id):
        store = StoreService.get_owned_store(context, store_id)
        db.session.delete(store)
        db.session.commit()
        logger.info(f"Deleted store {store_id}")

    @staticmethod
    def assign_owner(store_id, owner_id):
        store = StoreService.get_store_or_404(store_id)

        if owner_id is None:
            store.owner_id = None
        else:
            owner = StoreService.resolve_owner(owner_id)
            if store.owner_id != owner.id:
                StoreService.check_owner_capacity(owner.id, exclude_store_id=store.id)
                store.owner_id = owner.id

        db.session.commit()
        logger.info(f"Store {store.id} assigned to owner {store.owner_id}")
        return store

    @staticmethod
    def list_stores(search=None, category=None, status=None, owner_id=None, min_rating=None,
                    sort=None, default_sort=StoreSort.RECENT, page=1, limit=10):
        """Stores with average rating and rating count, filtered and paged."""
        stats = rating_stats_subquery()
        average = func.coalesce(stats.c.average, 0)

        query = db.session.query(Store, stats.c.average, stats.c.total) \
            .outerjoin(stats, stats.c.store_id == Store.id)

        if search:
            pattern = f'%{search}%'
            query = query.filter(db.or_(Store.name.ilike(pattern), Store.address.ilike(pattern)))
        if category:
            query = query.filter(Store.category.ilike(category))
        if status:
            query = query.filter(Store.status == StoreService._clean_status(status))
        if owner_id is not None:
            query = query.filter(Store.owner_id == owner_id)
        if min_rating is not None:
            # compare against the one-decimal figure shown in listings
            query = query.filter(func.round(average, 1) >= min_rating)

        total = query.count()
        order = StoreSort.parse(sort, default_sort).order_by(average)
        rows = query.order_by(*order).offset((page - 1) * limit).limit(limit).all()

        return paginated([store_row(*row) for row in rows], page, limit, total)

    @staticmethod
    def get_store_detail(store_id, viewer_id=None):
        """One store with its rating summary and per-star percentages.

        When ``viewer_id`` is given the viewer's own rating, if any, is
        included so clients can offer edit instead of submit.
        """
        store = StoreService.get_store_or_404(store_id)
        summary = summarize_ratings(rating.value for rating in store.ratings)

        data = store.to_dict()
        data['average_rating'] = summary.average
        data['total_ratings'] = summary.count
        data['distribution'] = summary.distribution_list(with_percentage=True)
        if store.owner is not None:
            data['owner'] = {'id': store.owner.id, 'name': store.owner.name}
        if viewer_id is not None:
            own = next((rating for rating in store.ratings if rating.user_id == viewer_id), None)
            data['user_rating'] = own.to_dict() if own else None
        return data
