"""Latest-submission views over append-only result submissions.

Submissions are never deleted; a correction is a newer submission for the
same key. These helpers build the view that keeps only the newest one.
"""

from collections.abc import Callable, Hashable, Iterable

from app.services.models import ElectionResult

KeyFn = Callable[[ElectionResult], Hashable]


def station_key(result: ElectionResult) -> str:
    """Dashboard key: the station name (results are already election-scoped)."""
    return result.polling_station


def election_station_key(result: ElectionResult) -> str:
    """Reports key: a station name reused across elections must not collide."""
    return f"{result.election_id}|{result.polling_station}"


def latest(results: Iterable[ElectionResult], key_fn: KeyFn = station_key) -> list[ElectionResult]:
    """Keep the submission with the greatest timestamp for each key.

    Timestamps are compared as instants. On identical timestamps the last
    submission encountered wins, so the outcome is deterministic for a given
    input order. Keys keep the order in which they were first seen.
    """
    latest_by_key: dict[Hashable, ElectionResult] = {}
    for result in results:
        key = key_fn(result)
        existing = latest_by_key.get(key)
        if existing is None or result.timestamp >= existing.timestamp:
            latest_by_key[key] = result
    return list(latest_by_key.values())
