"""Official report (procès-verbal) listing."""

from collections.abc import Sequence

from app.services.deduplication import election_station_key, latest
from app.services.models import Election, ElectionResult

UNKNOWN_ELECTION = "Inconnue"


class ProcessedReport(ElectionResult):
    """Latest submission carrying a report, with its election name."""

    election_name: str = UNKNOWN_ELECTION


def latest_reports(
    results: Sequence[ElectionResult], elections: Sequence[Election]
) -> list[ProcessedReport]:
    """Newest report per (election, station), most recent first."""
    names = {e.id: e.name for e in elections}
    with_report = [r for r in results if r.report_info is not None]

    reports = [
        ProcessedReport(
            **dict(result),
            election_name=names.get(result.election_id, UNKNOWN_ELECTION),
        )
        for result in latest(with_report, election_station_key)
    ]
    reports.sort(key=lambda report: report.timestamp, reverse=True)
    return reports
