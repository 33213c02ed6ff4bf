import logging

from fastapi import APIRouter, Depends, status, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from acceluni.schemas.user import user_schema
from acceluni.crud import user_crud
from acceluni.core import security
from acceluni.core.config import settings
from acceluni.core.errors import AuthenticationError, ConflictError
from acceluni.api.v1.dependencies import get_db, get_current_user
from acceluni.api.v1.endpoints.stripe_router import cancel_active_subscriptions_for_customer
from acceluni.models.user.user_model import User

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def register(user_in: user_schema.UserCreate, db: Session = Depends(get_db)):
    if user_crud.get_user_by_email(db, email=user_in.email):
        raise ConflictError("Email already registered")
    if user_crud.get_user_by_username(db, username=user_in.username):
        raise ConflictError("Username already taken")

    user = user_crud.create_user(db=db, user=user_in)
    logger.info("New account %s (%s)", user.id, user.username)
    return user


@router.post("/login", response_model=user_schema.Token)
def login_for_access_token(
    response: Response,
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    user = user_crud.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise AuthenticationError("Incorrect username or password")

    access_token = security.create_access_token(subject=str(user.id))
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        samesite="none",
        secure=settings.ENVIRONMENT == "production",
        path="/",
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=user_schema.User)
def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.delete("/me")
def delete_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Deactivate the account after cancelling its Stripe subscriptions."""
    canceled: list[str] = []
    if current_user.stripe_customer_id:
        canceled = cancel_active_subscriptions_for_customer(current_user.stripe_customer_id)

    current_user.is_active = False
    db.commit()
    logger.info("Account %s deactivated (%s subscriptions canceled)", current_user.id, len(canceled))
    return {"status": "deleted", "canceled_stripe_subscriptions": canceled}
