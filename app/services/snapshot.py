"""In-memory snapshots of the submission store.

Dashboard figures are always rederived from a full snapshot. The feed
reloads the snapshot when PostgreSQL signals a change on the store tables
(``LISTEN``/``NOTIFY``) and memoises metrics per election filter for the
current snapshot version.
"""

import asyncio
from collections.abc import Callable

import asyncpg
from pydantic import BaseModel, ConfigDict

from app.core.logging_config import get_logger
from app.services import store
from app.services.aggregation import Metrics, aggregate
from app.services.models import Candidate, Election, ElectionResult, PollingStation

logger = get_logger(__name__)

Subscriber = Callable[["Snapshot"], None]


class Snapshot(BaseModel):
    """Immutable view of every collection the dashboard reads."""

    model_config = ConfigDict(frozen=True)

    version: int = 0
    elections: tuple[Election, ...] = ()
    stations: tuple[PollingStation, ...] = ()
    candidates: tuple[Candidate, ...] = ()
    results: tuple[ElectionResult, ...] = ()


async def load_snapshot(conn: asyncpg.Connection, version: int = 0) -> Snapshot:
    """Read the full store in one repeatable-read transaction."""
    async with conn.transaction(isolation="repeatable_read", readonly=True):
        elections = await store.list_elections(conn)
        stations = await store.list_polling_stations(conn)
        candidates = await store.list_candidates(conn)
        results = await store.list_results(conn)

    return Snapshot(
        version=version,
        elections=tuple(elections),
        stations=tuple(stations),
        candidates=tuple(candidates),
        results=tuple(results),
    )


class SnapshotFeed:
    """Holds the latest snapshot and tells subscribers when it changes."""

    def __init__(self, channel: str = "results_changed") -> None:
        self.channel = channel
        self._snapshot: Snapshot | None = None
        self._version = 0
        self._subscribers: list[Subscriber] = []
        self._metrics: dict[tuple[str, int], Metrics] = {}
        self._pool: asyncpg.Pool | None = None
        self._listener: asyncpg.Connection | None = None
        self._reload_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    @property
    def current(self) -> Snapshot | None:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(
        self,
        *,
        elections=(),
        stations=(),
        candidates=(),
        results=(),
    ) -> Snapshot:
        """Install a new snapshot built from in-memory collections."""
        self._version += 1
        snapshot = Snapshot(
            version=self._version,
            elections=tuple(elections),
            stations=tuple(stations),
            candidates=tuple(candidates),
            results=tuple(results),
        )
        self._install(snapshot)
        return snapshot

    def invalidate(self) -> None:
        """Drop the current snapshot so the next read reloads it."""
        self._snapshot = None
        self._metrics.clear()

    async def refresh(self, conn: asyncpg.Connection) -> Snapshot:
        """Reload the snapshot from the store."""
        async with self._reload_lock:
            self._version += 1
            snapshot = await load_snapshot(conn, version=self._version)
            self._install(snapshot)
        logger.debug(
            f"Snapshot v{snapshot.version} loaded: {len(snapshot.results)} submissions"
        )
        return snapshot

    def metrics(self, snapshot: Snapshot, election_filter: str) -> Metrics:
        """Metrics for ``snapshot``, memoised per filter and snapshot version."""
        cache_key = (election_filter, snapshot.version)
        if cache_key not in self._metrics:
            self._metrics[cache_key] = aggregate(
                snapshot.results, election_filter, snapshot.candidates
            )
        return self._metrics[cache_key]

    def _install(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._metrics.clear()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot subscriber failed")

    # ============================================
    # POSTGRES CHANGE NOTIFICATIONS
    # ============================================

    async def start(self, pool: asyncpg.Pool) -> None:
        """Load the first snapshot and listen for store changes."""
        self._pool = pool
        self._listener = await pool.acquire()
        await self._listener.add_listener(self.channel, self._on_notify)
        await self.refresh(self._listener)
        logger.info(f"Listening for store changes on channel: {self.channel}")

    async def stop(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._listener is not None and self._pool is not None:
            await self._listener.remove_listener(self.channel, self._on_notify)
            await self._pool.release(self._listener)
        self._listener = None

    def _on_notify(self, connection, pid, channel, payload) -> None:
        logger.debug(f"Store change on {channel}: {payload}")
        task = asyncio.get_running_loop().create_task(self._reload())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _reload(self) -> None:
        if self._pool is None:
            return
        try:
            async with self._pool.acquire() as conn:
                await self.refresh(conn)
        except (asyncpg.PostgresError, OSError):
            # Readers fall back to loading on demand
            logger.exception("Snapshot reload failed")
            self.invalidate()
