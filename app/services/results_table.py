"""Per-station detailed results table.

Rows are built from already-deduplicated submissions, enriched with station
location and derived rates, and sorted on a fixed column or on a
candidate's vote count.
"""

from collections.abc import Sequence
from typing import Literal
import unicodedata

from pydantic import BaseModel, ConfigDict

from app.services.models import Candidate, ElectionResult, PollingStation

Direction = Literal["ascending", "descending"]

NOT_AVAILABLE = "N/A"

# Column name -> row attribute; camelCase aliases match the dashboard client
SORTABLE_FIELDS: dict[str, str] = {
    "polling_station": "polling_station",
    "registered_voters": "registered_voters",
    "turnout": "turnout",
    "turnout_rate": "turnout_rate",
    "pollingStation": "polling_station",
    "registeredVoters": "registered_voters",
    "turnoutRate": "turnout_rate",
}


def canonical_key(key: str) -> str:
    """Fixed columns map to their attribute name; candidate names pass through."""
    return SORTABLE_FIELDS.get(key, key)


class CandidateScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    votes: int = 0
    percentage: float = 0.0


class EnrichedRow(ElectionResult):
    """A submission with location and derived per-station figures."""

    city: str = NOT_AVAILABLE
    district: str = NOT_AVAILABLE
    turnout_rate: float = 0.0
    valid_votes: int = 0
    null_and_blank_percentage: float = 0.0
    candidate_scores: dict[str, CandidateScore] = {}


class SortState(BaseModel):
    """Active sort column and direction of the table."""

    model_config = ConfigDict(frozen=True)

    key: str = "turnout_rate"
    direction: Direction = "descending"

    def request(self, key: str) -> "SortState":
        """Toggle on the active column, otherwise sort ascending on the new one.

        Column aliases resolve to the canonical key before comparing.
        """
        key = canonical_key(key)
        if key == canonical_key(self.key):
            direction: Direction = "descending" if self.direction == "ascending" else "ascending"
            return SortState(key=key, direction=direction)
        return SortState(key=key, direction="ascending")


def _rate(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


def project(
    results: Sequence[ElectionResult],
    stations: Sequence[PollingStation],
    candidates: Sequence[Candidate],
) -> list[EnrichedRow]:
    """Build one enriched row per (already deduplicated) submission.

    Stations are matched on name; a submission whose station is not in the
    registry gets ``"N/A"`` for city and district. Candidate percentages are
    relative to the row's own valid votes.
    """
    locations = {s.name: (s.city, s.district) for s in stations}
    rows = []

    for result in results:
        city, district = locations.get(result.polling_station, (NOT_AVAILABLE, NOT_AVAILABLE))
        valid_votes = sum(cr.votes for cr in result.candidate_results)
        votes_by_name: dict[str, int] = {}
        for cr in result.candidate_results:
            # First entry wins when a name repeats
            votes_by_name.setdefault(cr.name, cr.votes)

        candidate_scores = {}
        for candidate in candidates:
            votes = votes_by_name.get(candidate.name, 0)
            candidate_scores[candidate.name] = CandidateScore(
                votes=votes, percentage=_rate(votes, valid_votes)
            )

        rows.append(
            EnrichedRow(
                **dict(result),
                city=city,
                district=district,
                turnout_rate=_rate(result.turnout, result.registered_voters),
                valid_votes=valid_votes,
                null_and_blank_percentage=_rate(
                    result.invalid_ballots + result.blank_ballots, result.turnout
                ),
                candidate_scores=candidate_scores,
            )
        )

    return rows


def collation_key(value: str) -> tuple[str, str, str]:
    """Locale-style ordering: accents and case only break ties."""
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), value.casefold(), value.swapcase()


def sort_value(row: EnrichedRow, key: str) -> str | int | float:
    """Resolve a column key on a row; candidate names take precedence."""
    if key in row.candidate_scores:
        return row.candidate_scores[key].votes
    attribute = SORTABLE_FIELDS.get(key)
    if attribute is None:
        return 0
    return getattr(row, attribute)


def sort_rows(
    rows: Sequence[EnrichedRow], key: str, direction: Direction = "ascending"
) -> list[EnrichedRow]:
    """Stable sort on a column or candidate name.

    Strings compare with ``collation_key``, everything else numerically.
    Rows with equal keys keep their input order in both directions.
    """

    def _key(row: EnrichedRow):
        value = sort_value(row, key)
        if isinstance(value, str):
            return collation_key(value)
        return value

    return sorted(rows, key=_key, reverse=direction == "descending")


def sort_table(rows: Sequence[EnrichedRow], state: SortState) -> list[EnrichedRow]:
    return sort_rows(rows, state.key, state.direction)
