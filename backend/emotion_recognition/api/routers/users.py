from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from emotion_recognition.api.dependencies import get_current_user
from emotion_recognition.core.database import get_db
from emotion_recognition.models.users import User
from emotion_recognition.schemas.user_schema import UserResponse, UserUpdate
from emotion_recognition.services import auth_service

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def read_current_user(
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Retrieve the profile of the currently authenticated user.

    The get_current_user dependency decodes the bearer token, loads the
    user and injects it here; FastAPI serializes it through UserResponse,
    which never exposes the password hash.
    """
    return current_user


@router.put("/me", response_model=UserResponse)
def update_current_user(
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Update the display name, avatar or password of the authenticated user.
    Fields left out of the payload keep their current value.
    """
    return auth_service.update_profile(db, current_user, user_in)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_current_user(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> None:
    """
    Deactivate the authenticated account.

    The user row is kept (is_active=False) so the recorded sessions keep
    their owner; the account can no longer log in or use its tokens.
    """
    auth_service.deactivate(db, current_user)
    return None
