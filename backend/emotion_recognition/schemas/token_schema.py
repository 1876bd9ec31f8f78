from pydantic import BaseModel
from typing import Optional


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    """Claims carried by an identity token."""
    sub: str
    username: Optional[str] = None
    email: Optional[str] = None
