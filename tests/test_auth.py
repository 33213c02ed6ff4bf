from datetime import timedelta
from types import SimpleNamespace

import pytest

from acceluni.api.v1 import dependencies
from acceluni.api.v1.endpoints import auth_router
from acceluni.core import security
from acceluni.core.errors import AuthenticationError, ConflictError, SubscriptionRequiredError
from acceluni.schemas.user.user_schema import UserCreate

from tests.utils import create_user, grant_trial


class FakeRequest:
    def __init__(self, headers=None, cookies=None, query_params=None):
        self.headers = headers or {}
        self.cookies = cookies or {}
        self.query_params = query_params or {}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Bearer abc.def", "abc.def"),
        ("bearer%20abc.def", "abc.def"),
        ('"abc.def"', "abc.def"),
        ("   ", None),
        (None, None),
    ],
)
def test_normalize_token_value(raw, expected):
    assert dependencies._normalize_token_value(raw) == expected


def test_token_from_header_resolves_user(db_session):
    user = create_user(db_session)
    token = security.create_access_token(subject=user.id)

    request = FakeRequest(headers={"Authorization": f"Bearer {token}"})

    assert dependencies.get_current_user(request, db=db_session).id == user.id


def test_cookie_is_used_when_header_is_missing(db_session):
    user = create_user(db_session)
    token = security.create_access_token(subject=user.id)

    request = FakeRequest(cookies={"access_token": token})

    assert dependencies.get_current_user(request, db=db_session).id == user.id


def test_missing_token_requires_authentication(db_session):
    with pytest.raises(AuthenticationError) as excinfo:
        dependencies.get_current_user(FakeRequest(), db=db_session)

    payload = excinfo.value.to_payload()
    assert excinfo.value.status_code == 401
    assert payload["code"] == "AUTHENTICATION_REQUIRED"
    assert payload["redirect"] == "/"


def test_expired_token_is_rejected(db_session):
    user = create_user(db_session)
    token = security.create_access_token(subject=user.id, expires_delta=timedelta(minutes=-1))

    with pytest.raises(AuthenticationError, match="Token expired"):
        dependencies.get_current_user(FakeRequest(headers={"Authorization": token}), db=db_session)


def test_inactive_user_is_rejected(db_session):
    user = create_user(db_session, is_active=False)
    token = security.create_access_token(subject=user.id)

    with pytest.raises(AuthenticationError):
        dependencies.get_current_user(FakeRequest(headers={"Authorization": token}), db=db_session)


def test_require_subscription_gate(db_session):
    user = create_user(db_session)

    with pytest.raises(SubscriptionRequiredError) as excinfo:
        dependencies.require_subscription(db=db_session, current_user=user)
    assert excinfo.value.to_payload()["redirect"] == "/pay"

    grant_trial(db_session, user)
    assert dependencies.require_subscription(db=db_session, current_user=user) is user


def test_register_and_login(db_session):
    user_in = UserCreate(username="ada", email="ada@example.com", password="s3cret-pass")

    user = auth_router.register(user_in, db=db_session)
    with pytest.raises(ConflictError):
        auth_router.register(user_in, db=db_session)

    response = SimpleNamespace(cookies={})
    response.set_cookie = lambda key, value, **kwargs: response.cookies.__setitem__(key, value)
    form = SimpleNamespace(username="ada@example.com", password="s3cret-pass")
    token = auth_router.login_for_access_token(response, db=db_session, form_data=form)

    assert token["token_type"] == "bearer"
    assert response.cookies["access_token"] == token["access_token"]
    request = FakeRequest(headers={"Authorization": f"Bearer {token['access_token']}"})
    assert dependencies.get_current_user(request, db=db_session).id == user.id


def test_login_with_wrong_password(db_session):
    auth_router.register(UserCreate(username="ada", email="ada@example.com", password="s3cret-pass"), db=db_session)
    form = SimpleNamespace(username="ada", password="nope")

    with pytest.raises(AuthenticationError):
        auth_router.login_for_access_token(SimpleNamespace(), db=db_session, form_data=form)


def test_delete_account_deactivates_user(db_session, monkeypatch):
    user = create_user(db_session, stripe_customer_id="cus_1")
    monkeypatch.setattr(auth_router, "cancel_active_subscriptions_for_customer", lambda customer_id: ["sub_1"])

    result = auth_router.delete_account(db=db_session, current_user=user)

    db_session.refresh(user)
    assert result == {"status": "deleted", "canceled_stripe_subscriptions": ["sub_1"]}
    assert user.is_active is False
