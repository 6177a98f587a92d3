"""
Lifecycle owner for the process-wide catalogue index.

``CatalogIndexManager`` holds at most one ``IndexSnapshot``. The
snapshot is built lazily by the first caller that needs it and is then
served to every reader until it is invalidated. Builds are serialised
through a single lock (the build gate) and published by swapping one
reference, so readers never see a half-built index.

Waiting policy
--------------
* No snapshot yet: callers block on the gate, for at most
  ``build_timeout`` seconds, while the first build runs. A caller that
  waited on a build does not start another one when it gets the gate;
  it takes whatever that build produced (possibly nothing). Under N
  simultaneous first calls the builder therefore runs once.
* A snapshot exists but is stale: the caller that wins the gate
  rebuilds; everyone else is served the stale snapshot meanwhile.

A failed build is never cached: the next caller to find no usable
snapshot simply tries again. There is no background retry.

Record fetches run on a daemon thread bounded by ``build_timeout``. A
fetch that hangs past the deadline is abandoned, not interrupted; it
keeps its thread until the store returns or the process exits.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from ..models import Record
from .errors import BuildFailure, FetchTimeout
from .index import IndexSnapshot, build

logger = logging.getLogger(__name__)

RecordFetcher = Callable[[int], Iterable[Record]]
IndexBuilder = Callable[[Iterable[Record]], IndexSnapshot]


def fetch_with_timeout(fetch: RecordFetcher, max_count: int, timeout: float) -> List[Record]:
    """Run ``fetch(max_count)`` on a worker thread, waiting at most ``timeout`` seconds.

    The worker is a daemon thread: a fetch that never returns is
    abandoned and does not hold up interpreter exit. Errors raised by
    ``fetch`` are re-raised here; ``FetchTimeout`` is raised when the
    deadline passes first.
    """
    outcome = {}

    def run() -> None:
        try:
            outcome["records"] = list(fetch(max_count))
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=run, name="catalog-record-fetch", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise FetchTimeout(f"record fetch timed out after {timeout}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["records"]


class IndexState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class IndexStatus:
    state: IndexState
    stale: bool
    built_at: Optional[float]
    record_count: int
    term_count: int
    build_count: int
    last_error: Optional[str]


class CatalogIndexManager:
    """Builds, publishes and invalidates the catalogue index.

    Parameters
    ----------
    fetch_records : Callable[[int], Iterable[Record]]
        Bulk fetch of the primary catalogue, called with ``max_records``.
    max_records : int
        Upper bound on the number of records fetched per build.
    build_timeout : float
        Seconds a build may spend fetching records, and the longest a
        caller waits on somebody else's first build.
    builder : Callable
        Turns records into a snapshot; ``index.build`` by default.
    """

    def __init__(
        self,
        fetch_records: RecordFetcher,
        max_records: int = 500,
        build_timeout: float = 10.0,
        builder: IndexBuilder = build,
    ) -> None:
        self._fetch_records = fetch_records
        self._max_records = max_records
        self._build_timeout = build_timeout
        self._builder = builder

        self._gate = threading.Lock()
        self._version_lock = threading.Lock()
        self._snapshot: Optional[IndexSnapshot] = None
        self._state = IndexState.UNINITIALIZED
        # Bumped on invalidate(); a snapshot is stale when it was built
        # from an older content version.
        self._content_version = 0
        self._snapshot_version = 0
        # Completed build attempts, successful or not.
        self._generation = 0
        self._build_count = 0
        self._last_error: Optional[BuildFailure] = None

    # -- inspection ----------------------------------------------------------

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def snapshot(self) -> Optional[IndexSnapshot]:
        """The published snapshot, without triggering a build."""
        return self._snapshot

    @property
    def stale(self) -> bool:
        return self._snapshot is not None and self._snapshot_version != self._content_version

    @property
    def build_timeout(self) -> float:
        return self._build_timeout

    @property
    def build_count(self) -> int:
        return self._build_count

    def status(self) -> IndexStatus:
        snapshot = self._snapshot
        return IndexStatus(
            state=self._state,
            stale=self.stale,
            built_at=snapshot.built_at if snapshot is not None else None,
            record_count=snapshot.record_count if snapshot is not None else 0,
            term_count=snapshot.term_count if snapshot is not None else 0,
            build_count=self._build_count,
            last_error=str(self._last_error) if self._last_error is not None else None,
        )

    # -- lifecycle -------------------------------------------------------------

    def get_snapshot(self) -> Optional[IndexSnapshot]:
        """Return a usable snapshot, building one if needed.

        Returns ``None`` when no snapshot exists and the build failed,
        timed out, or could not be waited for in time. Never raises.
        """
        generation = self._generation
        snapshot = self._snapshot
        if snapshot is not None:
            if not self.stale:
                return snapshot
            if not self._gate.acquire(blocking=False):
                return snapshot
            try:
                if self.stale:
                    self._try_build()
                return self._snapshot
            finally:
                self._gate.release()

        if not self._gate.acquire(timeout=self._build_timeout):
            logger.warning(
                "Gave up waiting %.1fs for the catalogue index build", self._build_timeout
            )
            return self._snapshot
        try:
            if self._generation != generation or self._snapshot is not None:
                return self._snapshot
            self._try_build()
            return self._snapshot
        finally:
            self._gate.release()

    def invalidate(self) -> None:
        """Mark the current snapshot stale; it keeps serving until replaced."""
        with self._version_lock:
            self._content_version += 1
            version = self._content_version
        logger.info("Catalogue index invalidated (content version %d)", version)

    def rebuild(self) -> IndexSnapshot:
        """Build and publish a fresh snapshot now.

        Raises ``BuildFailure`` if the build fails; the previous snapshot,
        if any, stays published.
        """
        with self._gate:
            return self._build_locked()

    # -- internals -------------------------------------------------------------

    def _try_build(self) -> None:
        try:
            self._build_locked()
        except BuildFailure:
            # Logged in _build_locked; callers fall back.
            pass

    def _build_locked(self) -> IndexSnapshot:
        """Run one build attempt. Caller must hold the gate."""
        version = self._content_version
        self._state = IndexState.BUILDING
        self._build_count += 1
        started = time.monotonic()
        logger.info("Building catalogue index (attempt %d)", self._build_count)
        try:
            try:
                records = self._fetch()
                snapshot = self._builder(records)
            except BuildFailure:
                raise
            except Exception as exc:
                raise BuildFailure(f"index build failed: {exc}", exc) from exc
        except BuildFailure as exc:
            self._last_error = exc
            self._state = IndexState.FAILED
            logger.warning("Catalogue index build failed: %s", exc, exc_info=exc.cause)
            raise
        finally:
            self._generation += 1

        self._snapshot = snapshot
        self._snapshot_version = version
        self._last_error = None
        self._state = IndexState.READY
        logger.info(
            "Catalogue index ready: %d records, %d terms in %.3fs",
            snapshot.record_count,
            snapshot.term_count,
            time.monotonic() - started,
        )
        return snapshot

    def _fetch(self) -> List[Record]:
        try:
            return fetch_with_timeout(self._fetch_records, self._max_records, self._build_timeout)
        except FetchTimeout as exc:
            raise BuildFailure(str(exc), exc) from exc
        except Exception as exc:
            raise BuildFailure(f"record fetch failed: {exc}", exc) from exc
