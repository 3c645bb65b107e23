"""Account routes: self-service signup and identity lookup."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from stampede.auth import Principal, require_owner
from stampede.contracts import MeResponse, SignupRequest, SignupResponse
from stampede.db.repositories import AuthRepository
from stampede.db.session import Database
from stampede.routes.depends import require_database

logger = logging.getLogger(__name__)

# Signup is public; identity lookup sits behind the API key check.
router = APIRouter(prefix="/auth", tags=["auth"])
account_router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def signup(
    body: SignupRequest,
    db: Database = Depends(require_database),
):
    """Create a user and return its first API key."""
    async with db.session() as session:
        repo = AuthRepository(session)
        try:
            user = await repo.create_user(body.username)
        except ValueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        api_key, raw_key = await repo.create_api_key(user.id)

    logger.info("Registered user %s", user.username)
    return SignupResponse(
        user_id=user.id,
        username=user.username,
        api_key=raw_key,
        key_prefix=api_key.key_prefix,
    )


@account_router.get("/me", response_model=MeResponse)
async def me(principal: Principal = Depends(require_owner)):
    """Who the current credentials act as."""
    return MeResponse(
        owner_id=principal.owner_id,
        username=principal.username,
        is_admin=principal.is_admin,
        authenticated=principal.authenticated,
    )
