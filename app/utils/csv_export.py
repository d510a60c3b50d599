"""CSV export utilities for the report list."""

import csv
import io
from collections.abc import Sequence
from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.services.reports import ProcessedReport

REPORT_CSV_HEADER = "Nom du fichier,Bureau de vote,Élection,Soumis par,Date de soumission"
UNNAMED_REPORT = "Sans nom"


def report_export_filename(day: date) -> str:
    """Download name of the report list, e.g. ``proces-verbaux-2025-10-12.csv``."""
    return f"proces-verbaux-{day.isoformat()}.csv"


def format_submission_date(timestamp: datetime, timezone: str = "UTC") -> str:
    """Render a submission instant as ``YYYY-MM-DD HH:MM:SS`` in ``timezone``."""
    return timestamp.astimezone(ZoneInfo(timezone)).strftime("%Y-%m-%d %H:%M:%S")


def reports_to_csv(reports: Sequence[ProcessedReport], timezone: str = "UTC") -> str:
    """
    Convert processed reports to CSV.

    The header is written verbatim; every data field is wrapped in double
    quotes with embedded quotes doubled. Lines are separated by ``\\n`` and
    there is no trailing newline, so two reports give exactly three lines.

    Args:
        reports: Reports already sorted for display (newest first)
        timezone: IANA zone used to render submission dates

    Returns:
        CSV string
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")

    for report in reports:
        file_name = report.report_info.name if report.report_info else UNNAMED_REPORT
        writer.writerow(
            [
                file_name,
                report.polling_station,
                report.election_name,
                report.submitted_by,
                format_submission_date(report.timestamp, timezone),
            ]
        )

    rows = output.getvalue()
    if not rows:
        return REPORT_CSV_HEADER
    return REPORT_CSV_HEADER + "\n" + rows.rstrip("\n")
