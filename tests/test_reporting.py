"""Tests for the dashboard composer."""

from datetime import datetime, timedelta

import pytest

from quantify.utils.error_handler import AccessDenied, NotFound
from quantify.utils.reporting import ReportingService, activity_timeframe, member_since
from quantify.utils.security import AuthContext

NOW = datetime(2024, 6, 15, 12, 0)


class ExplodingRepository:
    """Fails the test if the composer reads data before checking the caller."""

    def fetch_ratings(self, *args, **kwargs):
        raise AssertionError('ratings fetched before authorization')

    def fetch_values(self, *args, **kwargs):
        raise AssertionError('ratings fetched before authorization')


@pytest.fixture
def reporting():
    return ReportingService(clock=lambda: NOW)


@pytest.fixture
def world(make_user, make_store, make_rating):
    """Two owners, three reviewers and a handful of dated ratings."""
    admin = make_user('ADMIN')
    owner = make_user('OWNER')
    rival = make_user('OWNER')
    ann = make_user('USER', created_at=datetime(2024, 1, 1))
    bob = make_user('USER')
    cat = make_user('USER')

    store_a = make_store(owner, name='Alpha Market', created_at=datetime(2023, 1, 1))
    store_b = make_store(owner, name='Beta Bakery', created_at=datetime(2023, 2, 1))
    store_c = make_store(rival, name='Gamma Garage')

    make_rating(store_a, ann, 5, 'Great', created_at=datetime(2024, 6, 10))
    make_rating(store_a, bob, 3, created_at=datetime(2024, 5, 20))
    make_rating(store_a, cat, 4, created_at=datetime(2024, 1, 10))
    make_rating(store_b, ann, 2, 'Meh', created_at=datetime(2024, 6, 14))
    make_rating(store_c, bob, 1, created_at=datetime(2023, 12, 1))

    return {
        'admin': admin, 'owner': owner, 'rival': rival,
        'ann': ann, 'bob': bob, 'cat': cat,
        'store_a': store_a, 'store_b': store_b, 'store_c': store_c,
    }


def ctx(user):
    return AuthContext.from_user(user)


class TestPlatformReports:

    def test_platform_dashboard(self, reporting, world):
        result = reporting.platform_dashboard(ctx(world['admin']))

        assert result['total_users'] == 6
        assert result['total_stores'] == 3
        assert result['total_ratings'] == 5
        assert result['role_distribution'] == [
            {'role': 'USER', 'count': 3, 'color': '#3b82f6'},
            {'role': 'OWNER', 'count': 2, 'color': '#8b5cf6'},
            {'role': 'ADMIN', 'count': 1, 'color': '#10b981'},
        ]

        trend = result['ratings_trend']
        assert len(trend) == 31
        assert trend[0]['date'] == '2024-05-16'
        assert trend[-1]['date'] == '2024-06-15'
        assert sum(day['ratings'] for day in trend) == 3

    def test_role_distribution_lists_roles_without_members(self, reporting, make_user):
        admin = make_user('ADMIN')

        result = reporting.platform_dashboard(ctx(admin))

        assert [row['count'] for row in result['role_distribution']] == [0, 0, 1]
        assert result['total_ratings'] == 0

    @pytest.mark.parametrize('role', ['USER', 'OWNER'])
    def test_admin_only(self, world, role):
        reporting = ReportingService(repository=ExplodingRepository(), clock=lambda: NOW)
        caller = AuthContext(user_id=world['ann'].id, role=role)

        with pytest.raises(AccessDenied):
            reporting.platform_dashboard(caller)
        with pytest.raises(AccessDenied):
            reporting.ratings_distribution(caller)
        with pytest.raises(AccessDenied):
            reporting.ratings_trend(caller, 7)

    def test_ratings_trend_window(self, reporting, world):
        trend = reporting.ratings_trend(ctx(world['admin']), 7)

        assert len(trend) == 8
        assert [day['date'] for day in trend if day['ratings']] == ['2024-06-10', '2024-06-14']

    def test_ratings_distribution(self, reporting, world):
        rows = reporting.ratings_distribution(ctx(world['admin']))

        assert [row['count'] for row in rows] == [1, 1, 1, 1, 1]
        assert [row['percentage'] for row in rows] == [20, 20, 20, 20, 20]

    def test_rating_analytics(self, reporting, world):
        overall = reporting.rating_analytics(ctx(world['admin']))
        store = reporting.rating_analytics(ctx(world['admin']), world['store_a'].id)

        assert overall['total_ratings'] == 5
        assert overall['average_rating'] == 3.0
        assert store['total_ratings'] == 3
        assert store['average_rating'] == 4.0

    def test_rating_analytics_missing_store(self, reporting, world):
        with pytest.raises(NotFound):
            reporting.rating_analytics(ctx(world['admin']), 9999)


class TestOwnerReports:

    def test_owner_dashboard(self, reporting, world):
        result = reporting.owner_dashboard(ctx(world['owner']), world['owner'].id)

        assert result['total_stores'] == 2
        assert result['total_reviews'] == 4
        assert result['average_rating'] == 3.5
        assert result['status'] == 'ACTIVE'
        assert result['can_add_store'] is False
        assert result['max_stores_reached'] is True
        assert result['stores'] == [
            {'id': world['store_a'].id, 'name': 'Alpha Market', 'average_rating': 4.0, 'total_reviews': 3},
            {'id': world['store_b'].id, 'name': 'Beta Bakery', 'average_rating': 2.0, 'total_reviews': 1},
        ]

    def test_admin_may_view_any_owner(self, reporting, world):
        result = reporting.owner_dashboard(ctx(world['admin']), world['rival'].id)

        assert result['total_stores'] == 1
        assert result['can_add_store'] is True

    def test_other_owner_is_denied(self, reporting, world):
        with pytest.raises(AccessDenied):
            reporting.owner_dashboard(ctx(world['rival']), world['owner'].id)

    def test_target_must_be_an_owner(self, reporting, world):
        with pytest.raises(NotFound):
            reporting.owner_dashboard(ctx(world['admin']), world['ann'].id)
        with pytest.raises(NotFound):
            reporting.owner_charts(ctx(world['admin']), 9999)

    def test_pending_owner_cannot_add_stores(self, reporting, make_user):
        pending = make_user('OWNER', status='PENDING')

        result = reporting.owner_dashboard(ctx(pending), pending.id)

        assert result['status'] == 'PENDING'
        assert result['total_stores'] == 0
        assert result['average_rating'] == 0
        assert result['can_add_store'] is False
        assert result['max_stores_reached'] is False

    def test_owner_charts(self, reporting, world):
        result = reporting.owner_charts(ctx(world['owner']), world['owner'].id)

        months = result['reviews_over_time']
        assert [m['month'] for m in months] == ['2024-01', '2024-02', '2024-03', '2024-04', '2024-05', '2024-06']
        assert [m['count'] for m in months] == [1, 0, 0, 0, 1, 2]
        assert months[0]['label'] == 'Jan'
        assert months[-1]['average_rating'] == 3.5

        assert [row['count'] for row in result['rating_distribution']] == [0, 1, 1, 1, 1]
        assert result['store_performance'][0] == {
            'store_id': world['store_a'].id, 'store': 'Alpha Market', 'rating': 4.0, 'reviews': 3
        }


class TestStoreReports:

    def test_store_insights(self, reporting, world):
        result = reporting.store_insights(ctx(world['owner']), world['store_a'].id)

        assert result['store'] == {
            'id': world['store_a'].id, 'name': 'Alpha Market', 'total_ratings': 3, 'average_rating': 4.0
        }
        assert [row['count'] for row in result['distribution']] == [0, 0, 1, 1, 1]
        assert len(result['trend']) == 6
        assert sum(m['count'] for m in result['trend']) == 3
        # equal counts keep the order ratings were made in
        assert [r['user_id'] for r in result['top_reviewers']] == [
            world['cat'].id, world['bob'].id, world['ann'].id
        ]

    def test_missing_store(self, reporting, world):
        with pytest.raises(NotFound):
            reporting.store_insights(ctx(world['owner']), 9999)

    def test_store_of_another_owner(self, reporting, world):
        with pytest.raises(AccessDenied):
            reporting.store_insights(ctx(world['owner']), world['store_c'].id)

    def test_role_is_checked_before_existence(self, world):
        reporting = ReportingService(repository=ExplodingRepository(), clock=lambda: NOW)

        with pytest.raises(AccessDenied):
            reporting.store_insights(ctx(world['ann']), 9999)

    def test_top_reviewers_limit(self, reporting, world, make_user, make_rating):
        for _ in range(3):
            make_rating(world['store_c'], make_user('USER'), 5)

        result = reporting.top_reviewers(ctx(world['admin']), world['store_c'].id, limit=2)

        assert result['store_id'] == world['store_c'].id
        assert len(result['top_reviewers']) == 2


class TestUserReports:

    def test_user_dashboard(self, reporting, world):
        result = reporting.user_dashboard(ctx(world['ann']), world['ann'].id)

        assert result['user']['name'] == world['ann'].name
        assert result['user']['member_since'] == '5 months'
        assert result['stats'] == {
            'total_reviews': 2,
            'average_rating': 3.5,
            'favorite_stores': 1,
            'stores_visited': 2,
            'monthly_reviews': 2,
            'recent_activity': 2,
        }
        assert [r['store_name'] for r in result['recent_reviews']] == ['Beta Bakery', 'Alpha Market']
        assert result['meta']['activity_timeframe'] == 'Last 4 days'

    def test_other_user_is_denied(self, reporting, world):
        with pytest.raises(AccessDenied):
            reporting.user_dashboard(ctx(world['bob']), world['ann'].id)

    def test_owner_cannot_view_user_dashboards(self, reporting, world):
        with pytest.raises(AccessDenied):
            reporting.user_dashboard(ctx(world['owner']), world['ann'].id)

    def test_target_must_be_a_user(self, reporting, world):
        with pytest.raises(NotFound):
            reporting.user_dashboard(ctx(world['admin']), world['owner'].id)

    def test_user_without_ratings(self, reporting, make_user):
        user = make_user('USER')

        result = reporting.user_dashboard(ctx(user), user.id)

        assert result['stats']['total_reviews'] == 0
        assert result['stats']['average_rating'] == 0
        assert result['recent_reviews'] == []
        assert result['meta']['activity_timeframe'] == 'No recent activity'


class TestDescriptions:

    def test_member_since(self):
        assert member_since(datetime(2024, 6, 1), NOW) == '14 days'
        assert member_since(datetime(2024, 1, 1), NOW) == '5 months'
        assert member_since(datetime(2021, 6, 1), NOW) == '3 years'
        assert member_since(datetime(2030, 1, 1), NOW) == '0 days'

    def test_activity_timeframe(self):
        class Review:
            def __init__(self, created_at):
                self.created_at = created_at

        assert activity_timeframe([Review(NOW)]) == 'Today'
        assert activity_timeframe([Review(NOW), Review(datetime(2024, 6, 1))]) == 'Last 3 weeks'
        assert activity_timeframe([Review(NOW), Review(NOW - timedelta(hours=36))]) == 'Last 2 days'
        assert activity_timeframe([Review(NOW), Review(NOW - timedelta(hours=20))]) == 'Today'
