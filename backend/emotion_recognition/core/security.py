from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from jose import jwt, JWTError
from passlib.context import CryptContext

from emotion_recognition.core.config import settings

# Initialize the password hashing context.
# The "deprecated=auto" flag allows passlib to handle older hashes gracefully
# if the algorithm is updated in the future.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# HS256 requires a single secret key for both signing and verification.
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifies a plain text password against a stored bcrypt hash.

    Args:
        plain_password (str): The raw password provided by the user during login.
        hashed_password (str): The bcrypt hash retrieved from the database.

    Returns:
        bool: True if the password matches the hash, False otherwise.
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Generates a salted bcrypt hash for a given password.

    Args:
        password (str): The raw password provided during registration.

    Returns:
        str: The hashed password string ready to be stored in the database.
    """
    return pwd_context.hash(password)


def create_access_token(
    subject: Union[str, Any],
    claims: Optional[Dict[str, Any]] = None,
    expires_delta: timedelta = None
) -> str:
    """
    Creates a JSON Web Token (JWT) using the HS256 algorithm.

    Args:
        subject (Union[str, Any]): The subject of the token, the user ID.
        claims (dict, optional): Additional identity claims (username, email).
        expires_delta (timedelta, optional): Custom expiration time. If not provided,
                                             defaults to ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        str: The encoded JWT string.
    """
    if expires_delta:

        expire = datetime.now(timezone.utc) + expires_delta

    else:

        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = dict(claims or {})
    to_encode.update({"exp": expire, "sub": str(subject)})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodes and validates a JWT. Signature and expiry are checked by python-jose.

    Raises:
        JWTError: If the token is malformed, expired or signed with another key.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("sub") is None:
        raise JWTError("Token has no subject claim")
    return payload
