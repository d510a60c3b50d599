"""Polling station API routes."""

from typing import Annotated

import asyncpg
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.deps import get_current_user, get_snapshot, get_snapshot_feed, require_page
from app.core.database import get_db
from app.core.responses import error_response, success_response
from app.services import store
from app.services.models import User
from app.services.snapshot import Snapshot, SnapshotFeed

router = APIRouter(prefix="/stations", tags=["Polling Stations"])


class PollingStationCreate(BaseModel):
    """Create polling station request model."""

    name: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    district: str = Field(..., min_length=1, max_length=255)


@router.get("")
async def list_stations(
    current_user: Annotated[User, Depends(get_current_user)],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
):
    """List polling stations."""
    return success_response(data=[s.model_dump() for s in snapshot.stations])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_station(
    payload: PollingStationCreate,
    current_user: Annotated[User, Depends(require_page("stations"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    conn: Annotated[asyncpg.Connection, Depends(get_db)],
):
    """
    Register a polling station (super admins only).

    Results are matched to stations by name, so names must be unique.
    """
    if any(s.name == payload.name for s in snapshot.stations):
        error_response(
            message="A polling station with this name already exists",
            errors={"name": "duplicate"},
            status_code=status.HTTP_409_CONFLICT,
        )

    station = await store.create_polling_station(
        conn, name=payload.name, city=payload.city, district=payload.district
    )
    feed.invalidate()
    return success_response(
        data=station.model_dump(), message="Polling station created successfully"
    )
