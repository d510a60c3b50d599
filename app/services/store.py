"""Submission store backed by PostgreSQL.

Elections, polling stations and candidates form the registry; result
submissions are append-only. Every read returns domain models so the
aggregation code never sees raw records.
"""

import json
from typing import Any

import asyncpg

from app.services.models import (
    Candidate,
    Election,
    ElectionResult,
    PollingStation,
)
from app.services.validation import ResultSubmission


def _parse_row(row: asyncpg.Record | dict | None) -> dict[str, Any] | None:
    """Parse a database row into a dict with JSONB fields decoded."""
    if not row:
        return None

    result = dict(row)

    if result.get("id") is not None:
        result["id"] = str(result["id"])

    for field in ("candidate_results", "report_info"):
        if isinstance(result.get(field), str):
            result[field] = json.loads(result[field])

    return result


# ============================================
# ELECTIONS
# ============================================


async def create_election(conn: asyncpg.Connection, *, name: str, date: Any) -> Election:
    """Create a new election."""
    row = await conn.fetchrow(
        """
        INSERT INTO elections (name, date)
        VALUES ($1, $2)
        RETURNING id, name, date
        """,
        name,
        date,
    )
    return Election.model_validate(_parse_row(row))


async def list_elections(conn: asyncpg.Connection) -> list[Election]:
    rows = await conn.fetch(
        "SELECT id, name, date FROM elections ORDER BY created_at ASC"
    )
    return [Election.model_validate(_parse_row(row)) for row in rows]


# ============================================
# POLLING STATIONS
# ============================================


async def create_polling_station(
    conn: asyncpg.Connection, *, name: str, city: str, district: str
) -> PollingStation:
    """Register a polling station. Names are unique: results join on them."""
    row = await conn.fetchrow(
        """
        INSERT INTO polling_stations (name, city, district)
        VALUES ($1, $2, $3)
        RETURNING id, name, city, district
        """,
        name,
        city,
        district,
    )
    return PollingStation.model_validate(_parse_row(row))


async def list_polling_stations(conn: asyncpg.Connection) -> list[PollingStation]:
    rows = await conn.fetch(
        "SELECT id, name, city, district FROM polling_stations ORDER BY created_at ASC"
    )
    return [PollingStation.model_validate(_parse_row(row)) for row in rows]


# ============================================
# CANDIDATES
# ============================================


async def create_candidate(
    conn: asyncpg.Connection,
    *,
    election_id: str,
    name: str,
    party: str = "",
    photo_url: str = "",
) -> Candidate:
    """Add a candidate to an election."""
    row = await conn.fetchrow(
        """
        INSERT INTO candidates (election_id, name, party, photo_url)
        VALUES ($1, $2, $3, $4)
        RETURNING id, election_id, name, party, photo_url
        """,
        election_id,
        name,
        party,
        photo_url,
    )
    return Candidate.model_validate(_parse_row(row))


async def list_candidates(
    conn: asyncpg.Connection, election_id: str | None = None
) -> list[Candidate]:
    """List candidates in registration order, optionally for one election."""
    query = "SELECT id, election_id, name, party, photo_url FROM candidates"
    params: list[Any] = []

    if election_id:
        query += " WHERE election_id = $1"
        params.append(election_id)

    query += " ORDER BY created_at ASC"

    rows = await conn.fetch(query, *params)
    return [Candidate.model_validate(_parse_row(row)) for row in rows]


# ============================================
# RESULT SUBMISSIONS (append-only)
# ============================================

_RESULT_COLUMNS = """
    id, election_id, polling_station, registered_voters, turnout,
    candidate_results, invalid_ballots, blank_ballots, timestamp,
    submitted_by, report_info
"""


async def create_result(
    conn: asyncpg.Connection, submission: ResultSubmission, *, submitted_by: str
) -> ElectionResult:
    """Append a result submission, timestamped by the database."""
    report_info = submission.report_info.model_dump() if submission.report_info else None
    row = await conn.fetchrow(
        f"""
        INSERT INTO election_results (
            election_id, polling_station, registered_voters, turnout,
            candidate_results, invalid_ballots, blank_ballots,
            submitted_by, report_info
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
        RETURNING {_RESULT_COLUMNS}
        """,
        submission.election_id,
        submission.polling_station,
        submission.registered_voters,
        submission.turnout,
        json.dumps([cr.model_dump() for cr in submission.candidate_results]),
        submission.invalid_ballots,
        submission.blank_ballots,
        submitted_by,
        json.dumps(report_info) if report_info else None,
    )
    return ElectionResult.model_validate(_parse_row(row))


async def list_results(
    conn: asyncpg.Connection, election_id: str | None = None
) -> list[ElectionResult]:
    """List submissions in insertion order, oldest first.

    Deduplication keeps the last of tied timestamps, so the latest insert
    wins a tie.
    """
    query = f"SELECT {_RESULT_COLUMNS} FROM election_results"
    params: list[Any] = []

    if election_id:
        query += " WHERE election_id = $1"
        params.append(election_id)

    query += " ORDER BY timestamp ASC, seq ASC"

    rows = await conn.fetch(query, *params)
    return [ElectionResult.model_validate(_parse_row(row)) for row in rows]
