"""Authentication dependencies and owner resolution."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi import Depends, HTTPException, Request

from stampede.config import get_settings
from stampede.db.repositories import AuthRepository, hash_api_key
from stampede.db.session import get_database
from stampede.db.tables import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The identity tests are owned by for the current request."""

    owner_id: str
    username: str | None = None
    is_admin: bool = False
    authenticated: bool = False


async def require_api_key(
    request: Request,
) -> User | None:
    """FastAPI dependency that enforces API key auth when enabled.

    When ``STAMPEDE_AUTH_ENABLED`` is False the dependency is a no-op and
    returns None.

    When enabled, expects an ``Authorization: Bearer <key>`` header.
    """
    settings = get_settings()
    if not settings.auth_enabled:
        return None

    raw_key: str | None = None
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        raw_key = auth_header.removeprefix("Bearer ").strip()

    if not raw_key:
        raise HTTPException(
            status_code=401, detail="Missing or invalid Authorization header"
        )

    key_hash = hash_api_key(raw_key)

    # Lazy DB access
    db = get_database()

    async with db.session() as session:
        repo = AuthRepository(session)
        api_key = await repo.get_api_key_by_hash(key_hash)

        if api_key is None:
            raise HTTPException(status_code=401, detail="Invalid API key")

        if not api_key.is_active:
            raise HTTPException(status_code=403, detail="API key is disabled")

        api_key.last_used_at = datetime.now(UTC)

        user = await repo.get_user_by_id(api_key.user_id)
        if user is None:
            raise HTTPException(status_code=401, detail="Invalid API key")

    return user


async def require_owner(
    user: User | None = Depends(require_api_key),
) -> Principal:
    """Resolve who owns the tests touched by this request.

    With auth disabled every request acts as the configured anonymous
    owner, so a single-user deployment still gets consistent ownership.
    """
    if user is None:
        return Principal(owner_id=get_settings().anonymous_owner_id)
    return Principal(
        owner_id=user.id,
        username=user.username,
        is_admin=user.is_admin,
        authenticated=True,
    )
