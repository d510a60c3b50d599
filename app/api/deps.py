"""API dependencies for authentication, authorization and snapshots."""

from typing import Annotated

import asyncpg
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.database import get_db
from app.core.logging_config import audit_logger
from app.core.security import decode_access_token, user_from_claims
from app.services.models import User
from app.services.snapshot import Snapshot, SnapshotFeed
from app.services.visibility import Page, can_access

security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> User:
    """
    Dependency to get the current authenticated user.

    Validates the JWT and returns the typed user carried by its claims.
    """
    payload = decode_access_token(credentials.credentials)
    user = user_from_claims(payload) if payload is not None else None

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_page(page: Page):
    """Dependency factory requiring the current user's role to open ``page``."""

    def _check(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if not can_access(current_user, page):
            audit_logger.log_unauthorized_access(
                resource=page,
                user_id=current_user.id,
                role=current_user.role,
                reason="role not allowed",
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Vous n'avez pas les autorisations nécessaires pour accéder à cette page.",
            )
        return current_user

    return _check


def get_snapshot_feed(request: Request) -> SnapshotFeed:
    feed = getattr(request.app.state, "snapshot_feed", None)
    if feed is None:
        feed = SnapshotFeed()
        request.app.state.snapshot_feed = feed
    return feed


async def get_snapshot(
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    conn: Annotated[asyncpg.Connection, Depends(get_db)],
) -> Snapshot:
    """Current store snapshot, loaded on demand when the feed has none."""
    if feed.current is not None:
        return feed.current
    return await feed.refresh(conn)
