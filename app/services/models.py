"""Domain models for elections, polling stations, candidates and submissions."""

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# ============================================
# REGISTRY ENTITIES
# ============================================


class Election(BaseModel):
    """An election; owns candidates and result submissions."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    date: datetime


class PollingStation(BaseModel):
    """A polling station. ``name`` is the key results are joined on."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    city: str
    district: str


class Candidate(BaseModel):
    """A candidate standing in exactly one election."""

    model_config = ConfigDict(frozen=True)

    id: str
    election_id: str
    name: str
    party: str = ""
    photo_url: str = ""


# ============================================
# SUBMISSIONS
# ============================================


class CandidateResult(BaseModel):
    """Votes for one candidate, referenced by name."""

    model_config = ConfigDict(frozen=True)

    name: str
    votes: int


class ReportInfo(BaseModel):
    """The official tally sheet (procès-verbal) attached to a submission."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    data_uri: str


def as_instant(value: datetime) -> datetime:
    """Read naive timestamps as UTC so every timestamp is comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class ElectionResult(BaseModel):
    """One submission for an (election, polling station) pair.

    Submissions are never mutated; a correction is a newer submission with
    the same key.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    election_id: str
    polling_station: str
    registered_voters: int
    turnout: int
    candidate_results: tuple[CandidateResult, ...] = ()
    invalid_ballots: int = 0
    blank_ballots: int = 0
    timestamp: datetime
    submitted_by: str
    report_info: ReportInfo | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_as_instant(cls, value: datetime) -> datetime:
        return as_instant(value)


# ============================================
# USERS (role-gated fields)
# ============================================

Role = Literal["Super Admin", "Admin", "Bureau de Vote", "Observateur"]


class _UserBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str = ""


class SuperAdmin(_UserBase):
    role: Literal["Super Admin"] = "Super Admin"


class StationAdmin(_UserBase):
    """Administrator bound to one polling station."""

    role: Literal["Admin"] = "Admin"
    polling_station_id: str


class StationAgent(_UserBase):
    """Polling station agent, optionally bound to one election."""

    role: Literal["Bureau de Vote"] = "Bureau de Vote"
    polling_station_id: str
    election_id: str | None = None


class Observer(_UserBase):
    role: Literal["Observateur"] = "Observateur"


User = Annotated[
    SuperAdmin | StationAdmin | StationAgent | Observer,
    Field(discriminator="role"),
]

user_adapter: TypeAdapter[User] = TypeAdapter(User)


def station_bound(user: SuperAdmin | StationAdmin | StationAgent | Observer) -> str | None:
    """Return the polling station id a user is bound to, if any."""
    if isinstance(user, (StationAdmin, StationAgent)):
        return user.polling_station_id
    return None
