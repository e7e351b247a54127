"""End-to-end tests through the Flask test client."""

import pytest

from quantify import db
from quantify.models import Rating, User


def error_code(response):
    return response.get_json()['error']['code']


class TestAuthRoutes:

    def test_register_login_me_logout(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Morgan Example Reviewer',
            'email': 'morgan@example.com',
            'password': 'Secret@123',
            'address': '1 Main Street',
        })
        assert response.status_code == 201
        assert response.get_json()['user']['status'] == 'ACTIVE'

        response = client.post('/api/auth/login', json={'email': 'morgan@example.com', 'password': 'Secret@123'})
        assert response.status_code == 200

        response = client.get('/api/auth/me')
        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'morgan@example.com'

        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_owner_registration_awaits_approval(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'Morgan Example Shopkeeper',
            'email': 'shop@example.com',
            'password': 'Secret@123',
            'role': 'OWNER',
        })

        assert response.status_code == 201
        assert response.get_json()['user']['status'] == 'PENDING'
        assert 'approval' in response.get_json()['message']

    def test_register_validation_error_shape(self, client):
        response = client.post('/api/auth/register', json={'name': 'Short', 'email': 'x@example.com',
                                                           'password': 'Secret@123'})

        assert response.status_code == 400
        body = response.get_json()
        assert body['error']['code'] == 'VALIDATION_ERROR'
        assert body['error']['details'] == {'field': 'name'}

    def test_non_object_body(self, client):
        response = client.post('/api/auth/register', json=['not', 'an', 'object'])

        assert response.status_code == 400

    def test_bad_credentials(self, client, make_user):
        make_user(email='ann@example.com')

        response = client.post('/api/auth/login', json={'email': 'ann@example.com', 'password': 'Wrong@123'})

        assert response.status_code == 401
        assert error_code(response) == 'UNAUTHORIZED'

    def test_csrf_token(self, client):
        response = client.get('/api/auth/csrf-token')

        assert response.status_code == 200
        assert response.get_json()['csrf_token']


class TestGuards:

    def test_anonymous_gets_json_401(self, client):
        response = client.get('/api/admin/dashboard')

        assert response.status_code == 401
        assert error_code(response) == 'UNAUTHORIZED'

    @pytest.mark.parametrize('path', ['/api/admin/dashboard', '/api/owner/shops', '/api/admin/users'])
    def test_wrong_role_gets_403(self, client, make_user, login_as, path):
        login_as(make_user('USER'))

        response = client.get(path)

        assert response.status_code == 403
        assert error_code(response) == 'FORBIDDEN'

    def test_unknown_route(self, client):
        response = client.get('/api/nothing-here')

        assert response.status_code == 404
        assert error_code(response) == 'NOT_FOUND'

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'


class TestStoreRoutes:

    def test_browse_and_detail(self, client, make_user, make_store, make_rating, login_as):
        viewer = login_as(make_user())
        store = make_store(name='Alpha Market', category='Grocery')
        make_store(name='Hidden Store', status='SUSPENDED')
        make_rating(store, viewer, 4)

        response = client.get('/api/stores/?sort=rating')
        assert response.status_code == 200
        body = response.get_json()
        assert [item['name'] for item in body['items']] == ['Alpha Market']
        assert body['items'][0]['average_rating'] == 4.0

        response = client.get(f'/api/stores/{store.id}')
        detail = response.get_json()
        assert detail['distribution'][3] == {'rating': 4, 'count': 1, 'percentage': 100}
        assert detail['user_rating']['rating'] == 4

    def test_invalid_sort_is_rejected(self, client, make_user, login_as):
        login_as(make_user())

        response = client.get('/api/stores/?sort=password_hash')

        assert response.status_code == 400

    def test_invalid_paging_is_rejected(self, client, make_user, login_as):
        login_as(make_user())

        assert client.get('/api/stores/?limit=1000').status_code == 400
        assert client.get('/api/stores/?page=0').status_code == 400

    def test_submit_review_once(self, client, make_user, make_store, login_as):
        login_as(make_user())
        store = make_store()

        first = client.post(f'/api/stores/{store.id}/reviews', json={'rating': 5, 'comment': 'Great'})
        second = client.post(f'/api/stores/{store.id}/reviews', json={'rating': 1})

        assert first.status_code == 201
        assert second.status_code == 409
        assert error_code(second) == 'CONFLICT'

    def test_review_missing_store(self, client, make_user, login_as):
        login_as(make_user())

        response = client.post('/api/stores/9999/reviews', json={'rating': 5})

        assert response.status_code == 404

    def test_owners_cannot_review(self, client, make_user, make_store, login_as):
        login_as(make_user('OWNER'))

        response = client.post(f'/api/stores/{make_store().id}/reviews', json={'rating': 5})

        assert response.status_code == 403

    def test_store_reviews_listing(self, client, make_user, make_store, make_rating, login_as):
        login_as(make_user())
        store = make_store()
        for value in (3, 4, 5):
            make_rating(store, make_user(), value)

        body = client.get(f'/api/stores/{store.id}/reviews?limit=2').get_json()

        assert body['pagination']['total'] == 3
        assert len(body['items']) == 2
        assert 'email' not in body['items'][0]['user']


class TestOwnerRoutes:

    def test_create_shops_up_to_cap(self, client, make_user, login_as):
        login_as(make_user('OWNER'))

        codes = [
            client.post('/api/owner/shops', json={
                'name': f'Shop {n}', 'email': f'shop{n}@example.com', 'address': f'{n} Road'
            }).status_code
            for n in range(3)
        ]

        assert codes == [201, 201, 409]
        assert client.get('/api/owner/shops').get_json()['pagination']['total'] == 2

    def test_pending_owner_cannot_create(self, client, make_user, login_as):
        login_as(make_user('OWNER', status='PENDING'))

        response = client.post('/api/owner/shops', json={
            'name': 'Shop', 'email': 'shop@example.com', 'address': '1 Road'
        })

        assert response.status_code == 403

    def test_dashboard_and_insights(self, client, make_user, make_store, make_rating, login_as):
        owner = login_as(make_user('OWNER'))
        store = make_store(owner)
        make_rating(store, make_user(), 4)

        dashboard = client.get(f'/api/owner/dashboard/{owner.id}')
        insights = client.get(f'/api/owner/insights/{store.id}')
        reviewers = client.get(f'/api/owner/insights/{store.id}/reviewers?limit=1')

        assert dashboard.get_json()['total_reviews'] == 1
        assert insights.get_json()['store']['average_rating'] == 4.0
        assert len(reviewers.get_json()['top_reviewers']) == 1

    def test_other_owner_dashboard_denied(self, client, make_user, login_as):
        login_as(make_user('OWNER'))
        other = make_user('OWNER')

        assert client.get(f'/api/owner/dashboard/{other.id}').status_code == 403

    def test_insights_for_missing_store(self, client, make_user, login_as):
        login_as(make_user('OWNER'))

        response = client.get('/api/owner/insights/9999')

        assert response.status_code == 404
        assert error_code(response) == 'NOT_FOUND'

    def test_flag_review(self, client, make_user, make_store, make_rating, login_as):
        owner = login_as(make_user('OWNER'))
        rating = make_rating(make_store(owner), make_user(), 1, 'Rude')
        rating_id = rating.id

        missing_reason = client.patch(f'/api/owner/reviews/{rating_id}/flag', json={})
        flagged = client.patch(f'/api/owner/reviews/{rating_id}/flag', json={'reason': 'Abusive'})

        assert missing_reason.status_code == 400
        assert flagged.status_code == 200
        assert flagged.get_json()['review']['comment'].endswith('[FLAGGED BY OWNER: Abusive]')
        assert db.session.get(Rating, rating_id) is not None

    def test_owner_reviews_listing(self, client, make_user, make_store, make_rating, login_as):
        owner = login_as(make_user('OWNER'))
        mine = make_store(owner)
        make_rating(mine, make_user(), 5)
        make_rating(make_store(make_user('OWNER')), make_user(), 1)

        body = client.get('/api/owner/reviews').get_json()

        assert body['pagination']['total'] == 1
        assert body['items'][0]['store_id'] == mine.id


class TestUserRoutes:

    def test_dashboard(self, client, make_user, make_store, make_rating, login_as):
        user = login_as(make_user())
        make_rating(make_store(), user, 5)

        body = client.get(f'/api/user/dashboard/{user.id}').get_json()

        assert body['stats']['total_reviews'] == 1
        assert body['stats']['favorite_stores'] == 1

    def test_other_users_dashboard_denied(self, client, make_user, login_as):
        login_as(make_user())

        assert client.get(f'/api/user/dashboard/{make_user().id}').status_code == 403

    def test_edit_and_delete_own_review(self, client, make_user, make_store, make_rating, login_as):
        user = login_as(make_user())
        rating = make_rating(make_store(), user, 2)
        rating_id = rating.id

        updated = client.patch(f'/api/user/reviews/{rating_id}', json={'rating': 4})
        assert updated.status_code == 200
        assert updated.get_json()['review']['rating'] == 4

        assert client.delete(f'/api/user/reviews/{rating_id}').status_code == 200
        assert db.session.get(Rating, rating_id) is None

    def test_cannot_touch_others_reviews(self, client, make_user, make_store, make_rating, login_as):
        login_as(make_user())
        rating = make_rating(make_store(), make_user(), 2)

        assert client.patch(f'/api/user/reviews/{rating.id}', json={'rating': 4}).status_code == 403
        assert client.delete(f'/api/user/reviews/{rating.id}').status_code == 403

    def test_profile(self, client, make_user, login_as):
        login_as(make_user())

        response = client.patch('/api/user/profile', json={'name': 'A Much Longer Display Name'})

        assert response.status_code == 200
        assert client.get('/api/user/profile').get_json()['name'] == 'A Much Longer Display Name'


class TestAdminRoutes:

    def test_dashboard(self, client, make_user, login_as):
        login_as(make_user('ADMIN'))

        body = client.get('/api/admin/dashboard').get_json()

        assert body['total_users'] == 1
        assert len(body['ratings_trend']) == 31

    def test_trend_days_argument(self, client, make_user, login_as):
        login_as(make_user('ADMIN'))

        assert len(client.get('/api/admin/ratings/trend?days=7').get_json()['trend']) == 8
        assert client.get('/api/admin/ratings/trend?days=0').status_code == 400

    def test_user_management(self, client, make_user, login_as):
        admin = login_as(make_user('ADMIN'))

        created = client.post('/api/admin/users', json={
            'name': 'Administrator Created User',
            'email': 'made@example.com',
            'password': 'Secret@123',
            'role': 'OWNER',
        })
        assert created.status_code == 201
        user_id = created.get_json()['user']['id']

        assert client.patch(f'/api/admin/users/{user_id}', json={'role': 'ADMIN'}).status_code == 400
        assert client.patch(f'/api/admin/users/{user_id}', json={'status': 'ACTIVE'}).status_code == 200
        assert client.get('/api/admin/users?role=OWNER').get_json()['pagination']['total'] == 1

        assert client.delete(f'/api/admin/users/{admin.id}').status_code == 409
        assert client.delete(f'/api/admin/users/{user_id}').status_code == 200
        assert db.session.get(User, user_id) is None

    def test_store_owner_assignment(self, client, make_user, make_store, login_as):
        login_as(make_user('ADMIN'))
        owner = make_user('OWNER')
        make_store(owner)
        make_store(owner)
        orphan = make_store()

        response = client.patch(f'/api/admin/stores/{orphan.id}/owner', json={'owner_id': owner.id})
        assert response.status_code == 409

        assert client.patch(f'/api/admin/stores/{orphan.id}/owner', json={}).status_code == 400

    def test_ratings_listing_and_delete(self, client, make_user, make_store, make_rating, login_as):
        login_as(make_user('ADMIN'))
        rating = make_rating(make_store(name='Zeta Store'), make_user(), 3)
        make_rating(make_store(name='Alpha Store'), make_user(), 4)
        rating_id = rating.id

        body = client.get('/api/admin/ratings?sort=store').get_json()
        assert [item['store']['name'] for item in body['items']] == ['Alpha Store', 'Zeta Store']

        assert client.get(f'/api/admin/ratings/{rating_id}').status_code == 200
        assert client.delete(f'/api/admin/ratings/{rating_id}').status_code == 200
        assert client.get(f'/api/admin/ratings/{rating_id}').status_code == 404
