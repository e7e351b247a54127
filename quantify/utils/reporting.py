import math
from collections import OrderedDict
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from quantify import db
from quantify.models import User, Store, Rating
from quantify.repositories.ratings import RatingFilter, RatingRepository
from quantify.utils.aggregation import (
    TrendUnit, bin_trend, summarize_ratings, top_reviewers, trend_window
)
from quantify.utils.error_handler import AccessDenied, NotFound
from quantify.utils.helpers import remote_addr, utcnow
from quantify.utils.logging_config import get_logger, log_security_event
from quantify.utils.security import ROLES, ROLE_ADMIN, ROLE_OWNER, ROLE_USER, STATUS_ACTIVE

logger = get_logger('quantify.reporting')

ROLE_COLORS = {
    ROLE_USER: '#3b82f6',
    ROLE_OWNER: '#8b5cf6',
    ROLE_ADMIN: '#10b981',
}


class ReportingService:
    """Builds the dashboards. Every call checks the caller before reading data."""

    def __init__(self, repository=None, clock=None):
        self.repository = repository or RatingRepository()
        self.clock = clock or utcnow

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _deny(self, context, reason):
        log_security_event(
            'ACCESS_DENIED',
            user_id=context.user_id,
            ip_address=remote_addr(),
            details=reason
        )
        raise AccessDenied(reason)

    def _require_role(self, context, *roles):
        if not context.has_role(*roles):
            self._deny(context, 'Access denied - insufficient permissions')

    def _require_self_or_admin(self, context, role, target_id):
        self._require_role(context, ROLE_ADMIN, role)
        if not context.is_admin and context.user_id != target_id:
            self._deny(context, 'You can only view your own dashboard')

    def _get_member(self, user_id, role):
        user = db.session.get(User, user_id)
        if user is None or user.role != role:
            raise NotFound(f'{role.title()} not found', {'id': user_id})
        return user

    def _get_store_for(self, context, store_id):
        self._require_role(context, ROLE_ADMIN, ROLE_OWNER)
        store = db.session.get(Store, store_id)
        if store is None:
            raise NotFound('Store not found', {'store_id': store_id})
        if not context.is_admin and store.owner_id != context.user_id:
            self._deny(context, 'You can only access your own stores')
        return store

    # ------------------------------------------------------------------
    # Platform (admin)
    # ------------------------------------------------------------------

    def platform_dashboard(self, context):
        """Get platform-wide totals, role mix and the daily ratings trend"""
        self._require_role(context, ROLE_ADMIN)

        role_counts = dict(
            db.session.query(User.role, func.count(User.id)).group_by(User.role).all()
        )
        role_distribution = [
            {'role': role, 'count': role_counts.get(role, 0), 'color': ROLE_COLORS[role]}
            for role in ROLES
        ]

        return {
            'total_users': User.query.count(),
            'total_stores': Store.query.count(),
            'total_ratings': Rating.query.count(),
            'role_distribution': role_distribution,
            'ratings_trend': self._daily_trend(current_app.config['PLATFORM_TREND_DAYS']),
        }

    def ratings_trend(self, context, days=None):
        """Get the platform daily ratings trend"""
        self._require_role(context, ROLE_ADMIN)
        return self._daily_trend(days or current_app.config['PLATFORM_TREND_DAYS'])

    def ratings_distribution(self, context):
        """Get the star distribution across all ratings"""
        self._require_role(context, ROLE_ADMIN)
        summary = summarize_ratings(self.repository.fetch_values())
        return summary.distribution_list(with_percentage=True)

    def rating_analytics(self, context, store_id=None):
        self._require_role(context, ROLE_ADMIN)
        if store_id is not None and db.session.get(Store, store_id) is None:
            raise NotFound('Store not found', {'store_id': store_id})

        summary = summarize_ratings(self.repository.fetch_values(RatingFilter(store_id=store_id)))
        return {
            'store_id': store_id,
            'total_ratings': summary.count,
            'average_rating': summary.average,
            'distribution': summary.distribution_list(),
        }

    def _daily_trend(self, days):
        now = self.clock()
        start, _ = trend_window(TrendUnit.DAY, days, now)
        ratings = self.repository.fetch_ratings(RatingFilter(created_after=start))
        buckets = bin_trend(((r.created_at, r.value) for r in ratings), TrendUnit.DAY, days, now)
        return [
            {'date': bucket.label, 'ratings': bucket.count, 'average': bucket.average}
            for bucket in buckets
        ]

    def _monthly_trend(self, ratings, months):
        buckets = bin_trend(((r.created_at, r.value) for r in ratings), TrendUnit.MONTH, months, self.clock())
        trend = []
        for bucket in buckets:
            year, month = (int(part) for part in bucket.label.split('-'))
            trend.append({
                'month': bucket.label,
                'label': datetime(year, month, 1).strftime('%b'),
                'count': bucket.count,
                'average_rating': bucket.average,
            })
        return trend

    # ------------------------------------------------------------------
    # Owner
    # ------------------------------------------------------------------

    def owner_dashboard(self, context, owner_id):
        """Get the owner's store totals and per-store averages"""
        self._require_self_or_admin(context, ROLE_OWNER, owner_id)
        owner = self._get_member(owner_id, ROLE_OWNER)

        stores = Store.query.filter_by(owner_id=owner_id).order_by(Store.created_at.asc(), Store.id.asc()).all()
        ratings = self.repository.fetch_ratings(RatingFilter(owner_id=owner_id))

        values_by_store = OrderedDict((store.id, []) for store in stores)
        for rating in ratings:
            values_by_store.setdefault(rating.store_id, []).append(rating.value)

        overall = summarize_ratings(rating.value for rating in ratings)
        max_stores = current_app.config['MAX_STORES_PER_OWNER']

        store_rows = []
        for store in stores:
            summary = summarize_ratings(values_by_store[store.id])
            store_rows.append({
                'id': store.id,
                'name': store.name,
                'average_rating': summary.average,
                'total_reviews': summary.count,
            })

        return {
            'total_stores': len(stores),
            'average_rating': overall.average,
            'total_reviews': overall.count,
            'status': owner.status,
            'can_add_store': owner.status == STATUS_ACTIVE and len(stores) < max_stores,
            'max_stores_reached': len(stores) >= max_stores,
            'stores': store_rows,
        }

    def owner_charts(self, context, owner_id):
        """Get chart series for the owner dashboard"""
        self._require_self_or_admin(context, ROLE_OWNER, owner_id)
        self._get_member(owner_id, ROLE_OWNER)

        stores = Store.query.filter_by(owner_id=owner_id).order_by(Store.created_at.asc(), Store.id.asc()).all()
        ratings = self.repository.fetch_ratings(RatingFilter(owner_id=owner_id))

        store_performance = []
        for store in stores:
            summary = summarize_ratings(r.value for r in ratings if r.store_id == store.id)
            store_performance.append({
                'store_id': store.id,
                'store': store.name,
                'rating': summary.average,
                'reviews': summary.count,
            })

        return {
            'reviews_over_time': self._monthly_trend(ratings, current_app.config['STORE_TREND_MONTHS']),
            'rating_distribution': summarize_ratings(r.value for r in ratings).distribution_list(),
            'store_performance': store_performance,
        }

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------

    def store_insights(self, context, store_id, limit=None):
        """Get distribution, monthly trend and top reviewers for one store"""
        store = self._get_store_for(context, store_id)
        ratings = self.repository.fetch_ratings(RatingFilter(store_id=store.id))
        summary = summarize_ratings(r.value for r in ratings)

        logger.debug(f"Store insights for store {store.id}: {summary.count} ratings")

        return {
            'store': {
                'id': store.id,
                'name': store.name,
                'total_ratings': summary.count,
                'average_rating': summary.average,
            },
            'distribution': summary.distribution_list(),
            'trend': self._monthly_trend(ratings, current_app.config['STORE_TREND_MONTHS']),
            'top_reviewers': self._top_reviewers(ratings, limit),
        }

    def top_reviewers(self, context, store_id, limit=None):
        store = self._get_store_for(context, store_id)
        ratings = self.repository.fetch_ratings(RatingFilter(store_id=store.id))
        return {'store_id': store.id, 'top_reviewers': self._top_reviewers(ratings, limit)}

    def _top_reviewers(self, ratings, limit):
        limit = limit or current_app.config['TOP_REVIEWERS_LIMIT']
        entries = ((r.user_id, r.user.name if r.user else None, r.value) for r in ratings)
        return [tally.to_dict() for tally in top_reviewers(entries, limit)]

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    def user_dashboard(self, context, user_id):
        """Get review stats and recent reviews for one user"""
        self._require_self_or_admin(context, ROLE_USER, user_id)
        user = self._get_member(user_id, ROLE_USER)

        now = self.clock()
        ratings = self.repository.fetch_ratings(RatingFilter(user_id=user_id))
        newest_first = sorted(ratings, key=lambda r: (r.created_at, r.id), reverse=True)
        summary = summarize_ratings(r.value for r in ratings)

        month_start = datetime(now.year, now.month, 1)
        week_ago = now - timedelta(days=7)
        recent_activity = sum(1 for r in ratings if r.created_at >= week_ago)

        recent_reviews = [
            {
                'id': r.id,
                'store_id': r.store_id,
                'store_name': r.store.name if r.store else None,
                'store_category': r.store.category if r.store else None,
                'rating': r.value,
                'comment': r.comment or '',
                'created_at': r.created_at.isoformat(),
            }
            for r in newest_first[:5]
        ]

        return {
            'user': {
                'id': user.id,
                'name': user.name,
                'email': user.email,
                'join_date': user.created_at.isoformat(),
                'member_since': member_since(user.created_at, now),
            },
            'stats': {
                'total_reviews': summary.count,
                'average_rating': summary.average,
                'favorite_stores': sum(1 for r in ratings if r.value >= 4),
                'stores_visited': len({r.store_id for r in ratings}),
                'monthly_reviews': sum(1 for r in ratings if r.created_at >= month_start),
                'recent_activity': recent_activity,
            },
            'recent_reviews': recent_reviews,
            'meta': {
                'current_date': now.isoformat(),
                'activity_timeframe': activity_timeframe(newest_first[:5]),
            },
        }


def member_since(joined, now):
    """Human description of account age."""
    days = max((now - joined).days, 0)
    if days < 30:
        return f'{days} days'
    if days < 365:
        return f'{days // 30} months'
    return f'{days // 365} years'


def activity_timeframe(recent):
    """Span between the newest and oldest of the given reviews (newest first)."""
    if not recent:
        return 'No recent activity'
    span = math.ceil((recent[0].created_at - recent[-1].created_at).total_seconds() / 86400)
    if span <= 1:
        return 'Today'
    if span <= 7:
        return f'Last {span} days'
    return f'Last {-(-span // 7)} weeks'
