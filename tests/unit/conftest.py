"""Fixtures for API tests.

Builds an app around explicitly constructed services so each test gets a
fresh store and a fake workflow; requests authenticate with a real JWT.
"""

import pytest

from api.auth.jwt import create_access_token
from api.main import create_app
from newsletter.bootstrap import build_services
from tests.conftest import SyncTestClient

CALLBACK_SECRET = "callback-secret-for-tests"


def auth_headers(user_id) -> dict:
    token = create_access_token({"sub": str(user_id), "email": "writer@example.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def services(store, workflow):
    return build_services(store=store, workflow=workflow)


@pytest.fixture
def app(services):
    return create_app(services=services, callback_secret=None)


@pytest.fixture
def client(app, user_id):
    """Client authenticated as user_id."""
    return SyncTestClient(app, headers=auth_headers(user_id))


@pytest.fixture
def other_client(app, other_user_id):
    """Client authenticated as a second user."""
    return SyncTestClient(app, headers=auth_headers(other_user_id))


@pytest.fixture
def anonymous_client(app):
    return SyncTestClient(app)


@pytest.fixture
def secured_app(services):
    """App that requires the callback secret on webhook calls."""
    return create_app(services=services, callback_secret=CALLBACK_SECRET)
