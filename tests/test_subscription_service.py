from datetime import datetime, timedelta, timezone

import pytest

from acceluni.core.errors import ConflictError, SubscriptionRequiredError
from acceluni.models.billing.subscription_model import UserTrial
from acceluni.services.subscription_service import (
    SubscriptionService,
    mark_subscription_deleted,
    upsert_subscription_from_stripe,
)

from tests.utils import create_user, grant_subscription, grant_trial


def test_no_subscription_and_no_trial_denies_generation(db_session):
    user = create_user(db_session)

    access = SubscriptionService(db_session, user.id).check_access()

    assert access.canGenerateContent is False
    assert access.hasActiveSubscription is False
    assert access.hasValidTrial is False


def test_active_subscription_grants_access(db_session):
    user = create_user(db_session)
    grant_subscription(db_session, user)

    access = SubscriptionService(db_session, user.id).check_access()

    assert access.hasActiveSubscription is True
    assert access.canGenerateContent is True


def test_valid_trial_grants_access(db_session):
    user = create_user(db_session)
    grant_trial(db_session, user)

    access = SubscriptionService(db_session, user.id).require_access()

    assert access.hasValidTrial is True
    assert access.canGenerateContent is True


@pytest.mark.parametrize(
    "setup, message",
    [
        (
            lambda db, user: grant_subscription(db, user, cancel_at_period_end=True),
            "Your subscription has been cancelled and will end soon.",
        ),
        (
            lambda db, user: grant_subscription(db, user, status="canceled"),
            "Your subscription has expired.",
        ),
        (
            lambda db, user: grant_trial(db, user, used=True),
            "Your trial period has ended.",
        ),
        (
            lambda db, user: grant_trial(db, user, days=-1),
            "Your trial period has expired.",
        ),
        (
            lambda db, user: None,
            "A subscription is required to generate lessons and degrees.",
        ),
    ],
)
def test_require_access_explains_refusal(db_session, setup, message):
    user = create_user(db_session)
    setup(db_session, user)

    with pytest.raises(SubscriptionRequiredError) as excinfo:
        SubscriptionService(db_session, user.id).require_access()

    assert excinfo.value.message.startswith(message)
    assert excinfo.value.status_code == 403


def test_expired_period_is_not_active(db_session):
    user = create_user(db_session)
    grant_subscription(db_session, user, current_period_end=datetime.now(timezone.utc) - timedelta(days=1))

    assert SubscriptionService(db_session, user.id).check_access().canGenerateContent is False


def test_start_trial_once(db_session):
    user = create_user(db_session)
    service = SubscriptionService(db_session, user.id)

    trial = service.start_trial()

    assert trial.is_trial_used is False
    assert service.check_access().hasValidTrial is True
    with pytest.raises(ConflictError):
        service.start_trial()


def test_stripe_upsert_marks_trial_used(db_session):
    user = create_user(db_session, stripe_customer_id="cus_1")
    grant_trial(db_session, user)
    period_end = int((datetime.now(timezone.utc) + timedelta(days=30)).timestamp())

    subscription = upsert_subscription_from_stripe(
        db_session,
        user,
        {"id": "sub_1", "customer": "cus_1", "status": "active", "current_period_end": period_end},
    )

    trial = db_session.query(UserTrial).filter_by(user_id=user.id).one()
    assert subscription.stripe_customer_id == "cus_1"
    assert trial.is_trial_used is True
    assert SubscriptionService(db_session, user.id).check_access().hasActiveSubscription is True


def test_stripe_upsert_reads_period_from_items_and_updates_in_place(db_session):
    user = create_user(db_session)
    period_end = int((datetime.now(timezone.utc) + timedelta(days=30)).timestamp())
    payload = {
        "id": "sub_2",
        "status": "active",
        "items": {"data": [{"current_period_end": period_end}]},
    }

    first = upsert_subscription_from_stripe(db_session, user, payload)
    second = upsert_subscription_from_stripe(db_session, user, {**payload, "cancel_at_period_end": True})

    assert first.id == second.id
    assert second.current_period_end is not None
    assert second.cancel_at_period_end is True


def test_mark_subscription_deleted(db_session):
    user = create_user(db_session)
    grant_subscription(db_session, user, stripe_subscription_id="sub_3")

    subscription = mark_subscription_deleted(db_session, {"id": "sub_3"})

    assert subscription.status == "canceled"
    assert mark_subscription_deleted(db_session, {"id": "sub_unknown"}) is None
    assert SubscriptionService(db_session, user.id).check_access().canGenerateContent is False


def test_newer_incomplete_subscription_does_not_hide_active_one(db_session):
    user = create_user(db_session)
    grant_subscription(
        db_session,
        user,
        stripe_subscription_id="sub_live",
        current_period_end=datetime.now(timezone.utc) + timedelta(days=20),
    )
    grant_subscription(db_session, user, stripe_subscription_id="sub_retry", status="incomplete")

    access = SubscriptionService(db_session, user.id).check_access()

    assert access.hasActiveSubscription is True
    assert access.canGenerateContent is True
    assert access.subscription.status == "active"


def test_latest_row_of_any_status_explains_refusal(db_session):
    user = create_user(db_session)
    grant_subscription(db_session, user, stripe_subscription_id="sub_old", status="incomplete_expired")

    access = SubscriptionService(db_session, user.id).check_access()

    assert access.canGenerateContent is False
    assert access.subscription.status == "incomplete_expired"
