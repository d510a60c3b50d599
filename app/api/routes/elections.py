"""Elections and candidates API routes."""

from datetime import datetime
from typing import Annotated

import asyncpg
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.deps import get_current_user, get_snapshot, get_snapshot_feed, require_page
from app.core.database import get_db
from app.core.responses import not_found_response, success_response
from app.services import store
from app.services.models import User
from app.services.snapshot import Snapshot, SnapshotFeed

router = APIRouter(tags=["Elections"])


# ============================================
# PYDANTIC MODELS
# ============================================


class ElectionCreate(BaseModel):
    """Create election request model."""

    name: str = Field(..., min_length=1, max_length=255)
    date: datetime


class CandidateCreate(BaseModel):
    """Create candidate request model."""

    election_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    party: str = Field("", max_length=255)
    photo_url: str = ""


# ============================================
# ELECTIONS
# ============================================


@router.get("/elections")
async def list_elections(
    current_user: Annotated[User, Depends(get_current_user)],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
):
    """List elections."""
    return success_response(data=[e.model_dump(mode="json") for e in snapshot.elections])


@router.post("/elections", status_code=status.HTTP_201_CREATED)
async def create_election(
    payload: ElectionCreate,
    current_user: Annotated[User, Depends(require_page("elections"))],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    conn: Annotated[asyncpg.Connection, Depends(get_db)],
):
    """Create an election (super admins only)."""
    election = await store.create_election(conn, name=payload.name, date=payload.date)
    feed.invalidate()
    return success_response(
        data=election.model_dump(mode="json"), message="Election created successfully"
    )


# ============================================
# CANDIDATES
# ============================================


@router.get("/elections/{election_id}/candidates")
async def list_election_candidates(
    election_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
):
    """List the candidates of an election in registration order."""
    if not any(e.id == election_id for e in snapshot.elections):
        not_found_response("Election")

    candidates = [c for c in snapshot.candidates if c.election_id == election_id]
    return success_response(data=[c.model_dump(mode="json") for c in candidates])


@router.post("/candidates", status_code=status.HTTP_201_CREATED)
async def create_candidate(
    payload: CandidateCreate,
    current_user: Annotated[User, Depends(require_page("candidates"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    conn: Annotated[asyncpg.Connection, Depends(get_db)],
):
    """Add a candidate to an election (super admins only)."""
    if not any(e.id == payload.election_id for e in snapshot.elections):
        not_found_response("Election")

    candidate = await store.create_candidate(
        conn,
        election_id=payload.election_id,
        name=payload.name,
        party=payload.party,
        photo_url=payload.photo_url,
    )
    feed.invalidate()
    return success_response(
        data=candidate.model_dump(mode="json"), message="Candidate created successfully"
    )
