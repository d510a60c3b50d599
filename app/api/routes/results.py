"""Result submission API routes: entry, CSV import and history."""

from typing import Annotated

import asyncpg
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.api.deps import get_snapshot, get_snapshot_feed, require_page
from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import audit_logger, get_logger
from app.core.responses import forbidden_response, success_response, validation_error_response
from app.services import store
from app.services.models import User
from app.services.snapshot import Snapshot, SnapshotFeed
from app.services.validation import ResultSubmission, validate_submission
from app.services.visibility import submission_denial, visible_results
from app.utils.csv_import import CSVImportError, parse_results_csv

router = APIRouter(prefix="/results", tags=["Results"])
logger = get_logger(__name__)


@router.get("/history")
async def get_history(
    current_user: Annotated[User, Depends(require_page("history"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
):
    """
    Get submission history, newest first.

    Station admins and agents only see their own station's submissions.
    """
    results = visible_results(current_user, snapshot.results, snapshot.stations)
    return success_response(
        data=[r.model_dump(mode="json", exclude={"report_info"}) for r in results]
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_result(
    submission: ResultSubmission,
    current_user: Annotated[User, Depends(require_page("input_results"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    conn: Annotated[asyncpg.Connection, Depends(get_db)],
):
    """Submit the results of a polling station. A resubmission supersedes it."""
    denial = submission_denial(
        current_user, submission.election_id, submission.polling_station, snapshot.stations
    )
    if denial:
        audit_logger.log_unauthorized_access(
            resource="results", user_id=current_user.id, role=current_user.role, reason=denial
        )
        forbidden_response(denial)

    errors = validate_submission(submission)
    if errors:
        validation_error_response(errors)

    result = await store.create_result(conn, submission, submitted_by=current_user.name)
    feed.invalidate()

    audit_logger.log_result_submitted(
        result_id=result.id,
        election_id=result.election_id,
        polling_station=result.polling_station,
        submitted_by=result.submitted_by,
    )

    return success_response(
        data=result.model_dump(mode="json"), message="Résultats soumis avec succès"
    )


@router.post("/import")
async def import_results(
    current_user: Annotated[User, Depends(require_page("import_results"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
    feed: Annotated[SnapshotFeed, Depends(get_snapshot_feed)],
    conn: Annotated[asyncpg.Connection, Depends(get_db)],
    file: UploadFile = File(...),
):
    """
    Import results from a CSV file.

    Required columns: ``electionId, pollingStation, registeredVoters, turnout,
    invalidBallots, blankBallots`` followed by ``candidate_N_name`` /
    ``candidate_N_votes`` pairs and an optional ``reportDataUri``. Invalid
    lines are skipped and reported.
    """
    content = await file.read()
    if len(content) > settings.MAX_IMPORT_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="La taille maximale du fichier est dépassée.",
        )

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Impossible de lire le fichier.",
        )

    try:
        parsed = parse_results_csv(text, snapshot.elections)
    except CSVImportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    async with conn.transaction():
        for submission in parsed.submissions:
            result = await store.create_result(
                conn, submission, submitted_by=current_user.name
            )
            audit_logger.log_result_submitted(
                result_id=result.id,
                election_id=result.election_id,
                polling_station=result.polling_station,
                submitted_by=result.submitted_by,
                source="csv",
            )

    if parsed.submissions:
        feed.invalidate()

    imported = len(parsed.submissions)
    error_count = len(parsed.errors)
    audit_logger.log_csv_import(current_user.name, imported, error_count, file.filename)

    return success_response(
        data={
            "imported": imported,
            "errors": [e.model_dump() for e in parsed.errors],
        },
        message=f"{imported} résultats ajoutés, {error_count} erreurs.",
    )
