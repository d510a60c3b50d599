"""CSV import of polling station results.

Expected columns (case-insensitive, quotes ignored):

    electionId,pollingStation,registeredVoters,turnout,invalidBallots,blankBallots,
    candidate_1_name,candidate_1_votes,...,reportDataUri

``reportDataUri`` is optional and must be a ``data:`` URI.
"""

import csv
import io
import re
from collections.abc import Sequence

from pydantic import BaseModel

from app.core.logging_config import get_logger
from app.services.models import CandidateResult, Election, ReportInfo
from app.services.validation import ResultSubmission, validate_submission

logger = get_logger(__name__)

REQUIRED_HEADERS = (
    "electionid",
    "pollingstation",
    "registeredvoters",
    "turnout",
    "invalidballots",
    "blankballots",
)

NUMERIC_COLUMNS = {
    "registeredvoters": "registered_voters",
    "turnout": "turnout",
    "invalidballots": "invalid_ballots",
    "blankballots": "blank_ballots",
}

_CANDIDATE_VOTES = re.compile(r"^candidate_(.+)_votes$")
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


class CSVImportError(ValueError):
    """The file cannot be imported at all (empty or wrong header)."""


class ImportLineError(BaseModel):
    line: int
    errors: dict[str, str]


class ImportResult(BaseModel):
    submissions: list[ResultSubmission] = []
    errors: list[ImportLineError] = []


def _normalize_header(value: str) -> str:
    return value.strip().lower().replace('"', "")


def _parse_count(value: str | None) -> int | None:
    """Blank cells count as 0; anything non-integer is rejected."""
    if value is None or value.strip() == "":
        return 0
    try:
        return int(value.strip())
    except ValueError:
        return None


def sanitize_filename_part(text: str) -> str:
    return _UNSAFE_CHARS.sub("_", text)


def report_info_from_data_uri(
    data_uri: str, election_name: str, polling_station: str
) -> ReportInfo | None:
    """Build the attached report of a CSV line from a ``data:`` URI."""
    if not data_uri.startswith("data:"):
        return None
    try:
        media_type = data_uri.split(";")[0].split(":")[1]
    except IndexError:
        logger.warning(f"Malformed report data URI for station: {polling_station}")
        return None
    extension = media_type.split("/")[1] if "/" in media_type else ""
    name = (
        f"PV_{sanitize_filename_part(election_name)}_"
        f"{sanitize_filename_part(polling_station)}.{extension or 'bin'}"
    )
    return ReportInfo(name=name, type=media_type, data_uri=data_uri)


def _candidate_results(header: list[str], row: dict[str, str]) -> list[CandidateResult]:
    results = []
    for column in header:
        match = _CANDIDATE_VOTES.match(column)
        if not match:
            continue
        name = (row.get(f"candidate_{match.group(1)}_name") or "").strip()
        votes = (row.get(column) or "").strip()
        try:
            count = int(votes)
        except ValueError:
            continue
        if name:
            results.append(CandidateResult(name=name, votes=count))
    return results


def parse_results_csv(text: str, elections: Sequence[Election]) -> ImportResult:
    """
    Parse and validate a results CSV.

    Args:
        text: Decoded file content
        elections: Known elections, used to name attached reports

    Returns:
        Valid submissions plus per-line errors (line numbers are 1-based,
        the header being line 1)

    Raises:
        CSVImportError: If the header is missing or lacks required columns
    """
    reader = csv.reader(io.StringIO(text))
    header: list[str] | None = None
    for raw_header in reader:
        if any(cell.strip() for cell in raw_header):
            header = [_normalize_header(cell) for cell in raw_header]
            break

    if header is None:
        raise CSVImportError("Le fichier CSV ne contient pas d'en-tête.")

    missing = [h for h in REQUIRED_HEADERS if h not in header]
    if missing:
        raise CSVImportError(
            f"L'en-tête du CSV est incorrect. Requis: {', '.join(REQUIRED_HEADERS)}"
        )

    election_names = {e.id: e.name for e in elections}
    result = ImportResult()

    for values in reader:
        if not any(cell.strip() for cell in values):
            continue

        line = reader.line_num
        row = {
            column: values[i].strip() if i < len(values) else ""
            for i, column in enumerate(header)
        }

        errors: dict[str, str] = {}
        counts: dict[str, int] = {}
        for column, field in NUMERIC_COLUMNS.items():
            parsed = _parse_count(row.get(column))
            if parsed is None:
                errors[field] = "Valeur numérique invalide."
            else:
                counts[field] = parsed

        if errors:
            result.errors.append(ImportLineError(line=line, errors=errors))
            continue

        election_id = row["electionid"]
        polling_station = row["pollingstation"]
        submission = ResultSubmission(
            election_id=election_id,
            polling_station=polling_station,
            candidate_results=_candidate_results(header, row),
            report_info=report_info_from_data_uri(
                row.get("reportdatauri", ""),
                election_names.get(election_id, "election"),
                polling_station,
            ),
            **counts,
        )

        errors = validate_submission(submission)
        if errors:
            logger.debug(f"CSV line {line} rejected: {errors}")
            result.errors.append(ImportLineError(line=line, errors=errors))
        else:
            result.submissions.append(submission)

    return result
