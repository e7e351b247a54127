"""Pytest configuration and fixtures for Quantify tests."""

import itertools

import pytest

from quantify import create_app, db
from quantify.models import User, Store, Rating


# ============================================================================
# Application
# ============================================================================


@pytest.fixture
def app():
    """Fresh app and in-memory database per test."""
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make_user(role='USER', status='ACTIVE', name=None, email=None,
                   password='Secret@123', created_at=None):
        n = next(counter)
        user = User(
            name=name or f'Test {role.title()} Account Number {n:03d}',
            email=email or f'{role.lower()}{n}@example.com',
            role=role,
            status=status,
        )
        user.set_password(password)
        if created_at is not None:
            user.created_at = created_at
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_store(app):
    counter = itertools.count(1)

    def _make_store(owner=None, name=None, status='ACTIVE', category=None, created_at=None):
        n = next(counter)
        store = Store(
            owner_id=owner.id if owner is not None else None,
            name=name or f'Store {n:03d}',
            email=f'store{n}@example.com',
            address=f'{n} Market Street',
            category=category,
            status=status,
        )
        if created_at is not None:
            store.created_at = created_at
        db.session.add(store)
        db.session.commit()
        return store

    return _make_store


@pytest.fixture
def make_rating(app):

    def _make_rating(store, user, value, comment=None, created_at=None):
        rating = Rating(store_id=store.id, user_id=user.id, value=value, comment=comment)
        if created_at is not None:
            rating.created_at = created_at
        db.session.add(rating)
        db.session.commit()
        return rating

    return _make_rating


# ============================================================================
# Auth helpers
# ============================================================================


@pytest.fixture
def login_as(client):
    """Put a user into the Flask-Login session of the test client."""

    def _login_as(user):
        with client.session_transaction() as session:
            session['_user_id'] = str(user.id)
            session['_fresh'] = True
        return user

    return _login_as
