"""Account contract payloads."""

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """Request body to register a user."""

    username: str = Field(min_length=1, max_length=255)


class SignupResponse(BaseModel):
    """New user and its API key. The raw key is only returned here."""

    user_id: str
    username: str
    api_key: str
    key_prefix: str


class MeResponse(BaseModel):
    """Identity that owns tests submitted with the current credentials."""

    owner_id: str
    username: str | None = None
    is_admin: bool = False
    authenticated: bool


__all__ = [
    "MeResponse",
    "SignupRequest",
    "SignupResponse",
]
