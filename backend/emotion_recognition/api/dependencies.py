from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from emotion_recognition.core.database import get_db
from emotion_recognition.core.exceptions import UnauthorizedError
from emotion_recognition.models.users import User
from emotion_recognition.services import auth_service

# OAuth2 setup pointing to the login endpoint.
# This integration allows Swagger UI to automatically append the Bearer token
# to protected endpoints during manual API testing.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False
)


def get_current_user(
    db: Session = Depends(get_db), token: Optional[str] = Depends(oauth2_scheme)
) -> User:
    """
    Dependency function to extract and validate the JWT token from the incoming request.

    Args:
        db (Session): The active database session injected by FastAPI.
        token (str): The Bearer token extracted from the Authorization header.

    Returns:
        User: The active User the token was issued to.

    Raises:
        UnauthorizedError: If the token is missing, invalid, expired, or the
                           user no longer exists or was deactivated.
    """
    if not token:
        raise UnauthorizedError("Not authenticated")
    return auth_service.verify(db, token)


def get_optional_user(
    db: Session = Depends(get_db), token: Optional[str] = Depends(oauth2_scheme)
) -> Optional[User]:
    """
    Like get_current_user, but anonymous callers get None instead of a 401.
    A token that is present but invalid is still rejected.
    """
    if not token:
        return None
    return auth_service.verify(db, token)
