from sqlalchemy.orm import Session
from acceluni.models.user.user_model import User
from acceluni.schemas.user.user_schema import UserCreate
from acceluni.core.security import get_password_hash, verify_password
from typing import Optional


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Fetch a user by email address.

    Args:
        db: The database session.
        email: The email to look for.

    Returns:
        The User if found, otherwise None.
    """
    return db.query(User).filter(User.email == email).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, user: UserCreate) -> User:
    """
    Create a new user with a hashed password.

    Args:
        db: The database session.
        user: The registration payload.

    Returns:
        The freshly created User.
    """
    db_user = User(
        email=user.email,
        username=user.username,
        full_name=user.full_name,
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate(db: Session, login: str, password: str) -> Optional[User]:
    """Return the active user matching ``login`` (username or email) and ``password``."""
    user = get_user_by_username(db, login) or get_user_by_email(db, login)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def get_user_by_stripe_id(db: Session, stripe_id: str) -> Optional[User]:
    return db.query(User).filter(User.stripe_customer_id == stripe_id).first()
