"""
Access layer: registration, login and stateless token verification.

Tokens are signed JWTs carrying the user id, username and email. Nothing is
stored server side, so tokens cannot be revoked before they expire.
"""
from typing import Optional, Tuple

import pydantic
from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from emotion_recognition.core import security
from emotion_recognition.core.exceptions import ConflictError, InternalError, UnauthorizedError
from emotion_recognition.core.logging import get_logger
from emotion_recognition.models.users import User
from emotion_recognition.schemas.token_schema import TokenPayload
from emotion_recognition.schemas.user_schema import UserCreate, UserUpdate
from emotion_recognition.utils.time_utils import utc_now

logger = get_logger(__name__)

# Same message for unknown email, wrong password and inactive account
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Could not validate credentials"


def issue_token(user: User) -> str:
    return security.create_access_token(
        subject=user.id,
        claims={"username": user.username, "email": user.email},
    )


def register(db: Session, user_in: UserCreate) -> Tuple[User, str]:
    """
    Creates an account and returns it with a fresh token.

    Raises:
        ConflictError: the email (checked first) or the username is taken.
    """
    email = user_in.email.lower()

    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User already exists with this email")

    if db.query(User).filter(User.username == user_in.username).first():
        raise ConflictError("Username already taken")

    new_user = User(
        username        = user_in.username,
        email           = email,
        hashed_password = security.get_password_hash(user_in.password),
        full_name       = user_in.full_name,
    )

    try:
        db.add(new_user)
        db.commit()
    except IntegrityError as e:
        # Lost a race against a concurrent registration with the same identity
        db.rollback()
        raise ConflictError("User already exists with this email or username") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Registration failed: {e}", exc_info=True)
        raise InternalError("Registration failed") from e

    db.refresh(new_user)

    logger.info(f"User registered. username={new_user.username}", extra={"user_id": new_user.id})

    return new_user, issue_token(new_user)


def login(db: Session, email: str, password: str) -> Tuple[User, str]:
    """
    Checks credentials, stamps last_login and returns a fresh token.

    Raises:
        UnauthorizedError: always with the same message, whatever was wrong.
    """
    user = db.query(User).filter(User.email == (email or "").lower()).first()

    if (
        user is None
        or not user.is_active
        or not security.verify_password(password, user.hashed_password)
    ):
        logger.warning("Failed login attempt.")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    user.last_login = utc_now()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Could not update last_login: {e}", extra={"user_id": user.id}, exc_info=True)
        raise InternalError("Login failed") from e

    db.refresh(user)

    logger.info("User logged in.", extra={"user_id": user.id})

    return user, issue_token(user)


def verify(db: Session, token: Optional[str]) -> User:
    """
    Resolves a bearer token to an active user. Read only.

    Raises:
        UnauthorizedError: malformed, expired or foreign-signed token, or the
                           user is gone or inactive.
    """
    if not token:
        raise UnauthorizedError(INVALID_TOKEN)

    try:
        payload = TokenPayload.model_validate(security.decode_access_token(token))
        user_id = int(payload.sub)
    except (JWTError, pydantic.ValidationError, ValueError):
        raise UnauthorizedError(INVALID_TOKEN)

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError(INVALID_TOKEN)

    return user


def update_profile(db: Session, user: User, user_in: UserUpdate) -> User:
    changes = user_in.model_dump(exclude_unset=True)

    password = changes.pop("password", None)
    if password:
        user.hashed_password = security.get_password_hash(password)

    for field, value in changes.items():
        setattr(user, field, value)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Profile update failed: {e}", extra={"user_id": user.id}, exc_info=True)
        raise InternalError("Profile update failed") from e

    db.refresh(user)
    return user


def deactivate(db: Session, user: User) -> None:
    """Soft delete: the row and its session history are kept."""
    user.is_active = False
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deactivation failed: {e}", extra={"user_id": user.id}, exc_info=True)
        raise InternalError("An error occurred while attempting to deactivate the account.") from e

    logger.info("User deactivated.", extra={"user_id": user.id})
