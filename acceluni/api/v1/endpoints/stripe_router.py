import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from acceluni.core.config import settings
from acceluni.core.errors import InvalidRequestError
from acceluni.api.v1.dependencies import get_db, get_current_user
from acceluni.models.user.user_model import User
from acceluni.crud import user_crud
from acceluni.services import subscription_service

router = APIRouter()
stripe.api_key = settings.STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)


# --- Stripe helpers -------------------------------------------------------

def _parse_user_id(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Cannot convert '%s' to a user id.", value)
        return None


def _extract_user_id_from_metadata(metadata: Dict[str, Any] | None) -> Optional[int]:
    if not metadata:
        return None
    for key in ("user_id", "userId", "user-id"):
        user_id = _parse_user_id(metadata.get(key))
        if user_id is not None:
            return user_id
    return None


def _link_customer_to_user(db: Session, user: User | None, customer_id: Optional[str]) -> None:
    if not user or not customer_id or user.stripe_customer_id == customer_id:
        return

    if user.stripe_customer_id:
        logger.warning(
            "User %s already linked to Stripe customer %s (got %s)",
            user.id,
            user.stripe_customer_id,
            customer_id,
        )
        return

    user.stripe_customer_id = customer_id
    db.commit()
    db.refresh(user)
    logger.info("Linked Stripe customer %s to user %s", customer_id, user.id)


def _find_user_for_event(
    db: Session,
    *,
    customer_id: Optional[str],
    metadata: Dict[str, Any] | None = None,
    client_reference_id: Optional[str] = None,
    customer_email: Optional[str] = None,
) -> Optional[User]:
    if customer_id:
        user = user_crud.get_user_by_stripe_id(db, stripe_id=customer_id)
        if user:
            return user

    user_id = _extract_user_id_from_metadata(dict(metadata) if metadata else None)
    if user_id is None and client_reference_id:
        user_id = _parse_user_id(client_reference_id)

    if user_id is not None:
        user = db.get(User, user_id)
        if user:
            _link_customer_to_user(db, user, customer_id)
            return user

    if customer_email:
        user = user_crud.get_user_by_email(db, email=customer_email)
        if user:
            _link_customer_to_user(db, user, customer_id)
            return user

    logger.warning(
        "Could not match Stripe event (customer=%s, email=%s) to a user.",
        customer_id,
        customer_email,
    )
    return None


def _sync_subscription(db: Session, subscription_id: Optional[str], user: Optional[User]) -> None:
    """Fetch the subscription from Stripe and mirror it locally."""
    if not subscription_id or user is None:
        return
    subscription = stripe.Subscription.retrieve(subscription_id)
    subscription_service.upsert_subscription_from_stripe(db, user, subscription)


def cancel_active_subscriptions_for_customer(customer_id: str) -> list[str]:
    """Cancel every live Stripe subscription of a customer; returns their ids."""
    canceled: list[str] = []
    try:
        subscriptions = stripe.Subscription.list(customer=customer_id, status="all")
        for subscription in subscriptions.auto_paging_iter():
            if subscription.get("status") in {"canceled", "incomplete_expired"}:
                continue
            stripe.Subscription.cancel(subscription["id"])
            canceled.append(subscription["id"])
    except stripe.StripeError as exc:
        logger.warning("Stripe cancellation failed for customer %s: %s", customer_id, exc)
    return canceled


@router.post("/create-checkout-session", summary="Start a Stripe checkout for the subscription")
def create_checkout_session(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        if not current_user.stripe_customer_id:
            customer = stripe.Customer.create(email=current_user.email, name=current_user.username)
            current_user.stripe_customer_id = customer.id
            db.commit()
            db.refresh(current_user)

        metadata = {"user_id": str(current_user.id)}
        frontend = str(settings.FRONTEND_BASE_URL).rstrip("/")
        checkout_session = stripe.checkout.Session.create(
            customer=current_user.stripe_customer_id,
            payment_method_types=["card"],
            line_items=[{"price": settings.STRIPE_PRICE_ID, "quantity": 1}],
            mode="subscription",
            client_reference_id=str(current_user.id),
            metadata=metadata,
            subscription_data={"metadata": metadata},
            success_url=f"{frontend}/payment-success",
            cancel_url=f"{frontend}/pay",
        )
    except stripe.StripeError as exc:
        raise InvalidRequestError(str(exc)) from exc
    return {"sessionId": checkout_session.id, "checkout_url": checkout_session.url}


@router.post("/webhook", summary="Stripe webhook receiver")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError):
        raise InvalidRequestError("Invalid webhook signature")

    handle_stripe_event(db, event)
    return {"status": "success"}


def handle_stripe_event(db: Session, event: Dict[str, Any]) -> None:
    event_type = event.get("type")
    data = event["data"]["object"]
    logger.info("Stripe webhook received: %s", event_type)

    if event_type == "checkout.session.completed":
        customer_details = data.get("customer_details") or {}
        user = _find_user_for_event(
            db,
            customer_id=data.get("customer"),
            metadata=data.get("metadata"),
            client_reference_id=data.get("client_reference_id"),
            customer_email=customer_details.get("email"),
        )
        _sync_subscription(db, data.get("subscription"), user)

    elif event_type in {"invoice.payment_succeeded", "invoice.paid"}:
        user = _find_user_for_event(
            db,
            customer_id=data.get("customer"),
            metadata=data.get("metadata"),
            customer_email=data.get("customer_email"),
        )
        _sync_subscription(db, data.get("subscription"), user)

    elif event_type in {"customer.subscription.created", "customer.subscription.updated"}:
        user = _find_user_for_event(
            db,
            customer_id=data.get("customer"),
            metadata=data.get("metadata"),
        )
        if user is not None:
            subscription_service.upsert_subscription_from_stripe(db, user, data)

    elif event_type == "customer.subscription.deleted":
        subscription_service.mark_subscription_deleted(db, data)
