"""Official report (procès-verbal) API routes."""

from datetime import datetime
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api.deps import get_snapshot, require_page
from app.core.config import settings
from app.core.logging_config import audit_logger
from app.core.responses import success_response
from app.services.models import User
from app.services.reports import latest_reports
from app.services.snapshot import Snapshot
from app.utils.csv_export import report_export_filename, reports_to_csv

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("")
async def list_reports(
    current_user: Annotated[User, Depends(require_page("reports"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
):
    """Latest report per election and polling station, newest first."""
    reports = latest_reports(snapshot.results, snapshot.elections)
    return success_response(data=[r.model_dump(mode="json") for r in reports])


@router.get("/export")
async def export_reports(
    current_user: Annotated[User, Depends(require_page("reports"))],
    snapshot: Annotated[Snapshot, Depends(get_snapshot)],
):
    """Download the report list as CSV."""
    reports = latest_reports(snapshot.results, snapshot.elections)
    csv_content = reports_to_csv(reports, settings.REPORT_TIMEZONE)
    audit_logger.log_report_export(current_user.name, len(reports))

    today = datetime.now(ZoneInfo(settings.REPORT_TIMEZONE)).date()
    return Response(
        content=csv_content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename={report_export_filename(today)}"
        },
    )
