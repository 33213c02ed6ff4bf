import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from acceluni.core.config import settings
from acceluni.core.errors import ConflictError, SubscriptionRequiredError
from acceluni.models.billing.subscription_model import Subscription, UserTrial
from acceluni.models.user.user_model import User
from acceluni.schemas.billing.subscription_schema import SubscriptionAccess, SubscriptionInfo, TrialInfo

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {"active", "trialing"}
EXPIRED_STATUSES = {"canceled", "incomplete", "incomplete_expired"}


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_active(subscription: Subscription, now: datetime) -> bool:
    period_end = _as_aware(subscription.current_period_end)
    return (
        subscription.status in ACTIVE_STATUSES
        and period_end is not None
        and period_end > now
        and not subscription.cancel_at_period_end
    )


def subscription_error_message(access: SubscriptionAccess) -> str:
    """User facing explanation of why content generation is refused."""
    subscription = access.subscription
    trial = access.trial
    if subscription is not None and subscription.cancel_at_period_end:
        return (
            "Your subscription has been cancelled and will end soon. "
            "Please reactivate your subscription to continue generating content."
        )
    if subscription is not None and subscription.status in EXPIRED_STATUSES:
        return "Your subscription has expired. Please renew your subscription to continue generating content."
    if trial is not None and trial.is_trial_used:
        return "Your trial period has ended. Please subscribe to continue generating content."
    if trial is not None and _as_aware(trial.trial_end_time) <= datetime.now(timezone.utc):
        return "Your trial period has expired. Please subscribe to continue generating content."
    return "A subscription is required to generate lessons and degrees. Please subscribe to continue."


class SubscriptionService:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _latest_subscription(self, statuses: Optional[set] = None) -> Optional[Subscription]:
        query = self.db.query(Subscription).filter(Subscription.user_id == self.user_id)
        if statuses:
            query = query.filter(Subscription.status.in_(statuses))
        return (
            query
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .first()
        )

    def _trial(self) -> Optional[UserTrial]:
        return self.db.query(UserTrial).filter(UserTrial.user_id == self.user_id).first()

    def check_access(self) -> SubscriptionAccess:
        now = datetime.now(timezone.utc)
        # A newer incomplete or canceled row must not hide a live subscription.
        active = self._latest_subscription(ACTIVE_STATUSES)
        if active is not None and _is_active(active, now):
            return SubscriptionAccess(
                hasActiveSubscription=True,
                hasValidTrial=False,
                canGenerateContent=True,
                subscription=SubscriptionInfo.model_validate(active),
            )

        # Only used to explain the refusal.
        subscription = active or self._latest_subscription()
        subscription_info = SubscriptionInfo.model_validate(subscription) if subscription else None

        trial = self._trial()
        has_valid_trial = (
            trial is not None
            and not trial.is_trial_used
            and _as_aware(trial.trial_end_time) > now
        )
        return SubscriptionAccess(
            hasActiveSubscription=False,
            hasValidTrial=has_valid_trial,
            canGenerateContent=has_valid_trial,
            subscription=subscription_info,
            trial=TrialInfo.model_validate(trial) if trial else None,
        )

    def require_access(self) -> SubscriptionAccess:
        access = self.check_access()
        if not access.canGenerateContent:
            logger.info("Generation refused for user %s: no active subscription or trial", self.user_id)
            raise SubscriptionRequiredError(subscription_error_message(access))
        return access

    def start_trial(self) -> UserTrial:
        if self._trial() is not None:
            raise ConflictError("Trial already started")
        trial = UserTrial(
            user_id=self.user_id,
            trial_end_time=datetime.now(timezone.utc) + timedelta(days=settings.TRIAL_DURATION_DAYS),
            is_trial_used=False,
        )
        self.db.add(trial)
        self.db.commit()
        self.db.refresh(trial)
        logger.info("🎁 Trial started for user %s until %s", self.user_id, trial.trial_end_time)
        return trial


# --- Stripe synchronisation ---------------------------------------------


def _timestamp_to_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Invalid Stripe timestamp: %r", value)
        return None


def upsert_subscription_from_stripe(db: Session, user: User, stripe_subscription: Dict[str, Any]) -> Subscription:
    """Mirror a Stripe subscription object into the ``subscriptions`` table."""
    stripe_id = stripe_subscription.get("id")
    subscription = None
    if stripe_id:
        subscription = (
            db.query(Subscription).filter(Subscription.stripe_subscription_id == stripe_id).first()
        )
    if subscription is None:
        subscription = Subscription(user_id=user.id, stripe_subscription_id=stripe_id)
        db.add(subscription)

    subscription.stripe_customer_id = stripe_subscription.get("customer") or user.stripe_customer_id
    subscription.status = stripe_subscription.get("status") or subscription.status or "incomplete"
    period_end = stripe_subscription.get("current_period_end")
    if period_end is None:
        # Newer API versions only expose the period on subscription items.
        items = (stripe_subscription.get("items") or {}).get("data") or []
        if items:
            period_end = items[0].get("current_period_end")
    subscription.current_period_end = _timestamp_to_datetime(period_end)
    subscription.cancel_at_period_end = bool(stripe_subscription.get("cancel_at_period_end"))

    trial = db.query(UserTrial).filter(UserTrial.user_id == user.id).first()
    if trial is not None and subscription.status in ACTIVE_STATUSES and not trial.is_trial_used:
        trial.is_trial_used = True

    db.commit()
    db.refresh(subscription)
    logger.info(
        "Stripe subscription %s for user %s is now '%s'",
        stripe_id,
        user.id,
        subscription.status,
    )
    return subscription


def mark_subscription_deleted(db: Session, stripe_subscription: Dict[str, Any]) -> Optional[Subscription]:
    stripe_id = stripe_subscription.get("id")
    subscription = (
        db.query(Subscription).filter(Subscription.stripe_subscription_id == stripe_id).first()
        if stripe_id
        else None
    )
    if subscription is None:
        logger.warning("Stripe deletion for unknown subscription %s ignored", stripe_id)
        return None
    subscription.status = "canceled"
    subscription.cancel_at_period_end = False
    db.commit()
    db.refresh(subscription)
    logger.info("❌ Subscription %s canceled for user %s", stripe_id, subscription.user_id)
    return subscription
