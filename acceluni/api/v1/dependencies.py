import logging
import re
from urllib.parse import unquote

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from jose import JWTError, ExpiredSignatureError, jwt

from acceluni.db import session as db_session
from acceluni.core import security
from acceluni.core.errors import AuthenticationError
from acceluni.models.user.user_model import User
from acceluni.services.subscription_service import SubscriptionService

log = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """One session per request; FastAPI caches it for every dependency of the request."""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _normalize_token_value(raw_token: str | None) -> str | None:
    """Return a clean JWT string extracted from various transport formats.

    Browsers can percent-encode cookie values (``Bearer%20...``) and some
    frontends send quoted strings. Case-insensitive ``Bearer`` prefixes are
    accepted too.
    """

    if raw_token is None:
        return None

    token = raw_token.strip().strip('"').strip("'")
    if not token:
        return None

    token = unquote(token)

    match = re.match(r"^(bearer|token)[\s,:]+(.+)$", token, flags=re.IGNORECASE)
    if match:
        token = match.group(2)

    token = token.strip()
    return token or None


def _decode_user_from_token(token: str | None, db: Session) -> User:
    token = _normalize_token_value(token)
    if not token:
        log.warning("Authentication failed: no token provided.")
        raise AuthenticationError("Authorization header missing")

    try:
        payload = jwt.decode(token, security.SECRET_KEY, algorithms=[security.ALGORITHM])
        user_id_str = payload.get("sub")
        if user_id_str is None:
            log.warning("Authentication failed: token has no 'sub'.")
            raise AuthenticationError("Invalid token or user not found")
        user_id = int(user_id_str)
    except ExpiredSignatureError:
        log.warning("Authentication failed: token expired.")
        raise AuthenticationError("Token expired")
    except (JWTError, ValueError, TypeError):
        log.warning("Authentication failed: malformed token.")
        raise AuthenticationError("Invalid token or user not found")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        log.warning(f"Authentication failed: user {user_id} not found or inactive.")
        raise AuthenticationError("Invalid token or user not found")

    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token_sources = (
        request.headers.get("Authorization"),
        request.cookies.get("access_token"),
        request.query_params.get("access_token"),
    )

    last_error: AuthenticationError | None = None
    for candidate in token_sources:
        token = _normalize_token_value(candidate)
        if not token:
            continue
        try:
            return _decode_user_from_token(token, db)
        except AuthenticationError as exc:
            last_error = exc

    if last_error is not None:
        raise last_error
    return _decode_user_from_token(None, db)


def require_subscription(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    """Gate for content generation: an active subscription or a valid trial."""
    SubscriptionService(db=db, user_id=current_user.id).require_access()
    return current_user
