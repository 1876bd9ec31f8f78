from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from emotion_recognition.api.dependencies import get_current_user
from emotion_recognition.core.database import get_db
from emotion_recognition.models.users import User
from emotion_recognition.schemas.user_schema import AuthResponse, UserCreate, UserResponse, VerifyResponse
from emotion_recognition.services import auth_service


router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user in the system.

    Email and username must both be unused (409 otherwise, email checked first).
    The password is hashed with bcrypt before it is stored; the response
    carries a bearer token valid for 7 days.
    """
    user, token = auth_service.register(db, user_in)

    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=token,
    )


@router.post("/login", response_model=AuthResponse)
def login_access_token(
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends()
):
    """
    OAuth2 compatible token login, required for Swagger UI integration.

    The form's `username` field carries the account email. Unknown email,
    wrong password and deactivated account all answer the same 401.
    """
    user, token = auth_service.login(db, form_data.username, form_data.password)

    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=token,
    )


@router.post("/verify", response_model=VerifyResponse)
def verify_token(current_user: User = Depends(get_current_user)):
    """
    Validates the bearer token in the Authorization header and returns its user.
    Stateless: repeated calls have no side effects.
    """
    return VerifyResponse(user=UserResponse.model_validate(current_user))
