"""Generation progress tracking.

A ProgressStore keeps one record per running generation so that clients can
poll it while the generation request is still being processed. A
generation starts under a provisional key (its generation id) and moves to
the Spotify playlist id once the playlist shell exists; the provisional key
keeps resolving to the same record afterwards.

Pipeline stages that report progress (the collector) publish ProgressEvents
on a ProgressChannel; the orchestrator subscribes and forwards them to the
store, so emitters never know about storage or transport.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import threading
import time
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from ai_playlist.config import PROGRESS_TTL_SECONDS
from ai_playlist.core import GenerationValidationError

from .modes import get_time_budget

logger = logging.getLogger(__name__)


class GenerationStage(str, Enum):
    INITIALIZING = "initializing"
    ANALYZING = "analyzing"
    CREATING = "creating"
    COLLECTING = "collecting"
    PROCESSING = "processing"
    SELECTING = "selecting"
    FINALIZING = "finalizing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class GenerationProgress:
    stage: str
    progress: int
    message: str
    remaining_time_estimate_seconds: float
    failed: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "stage": self.stage,
            "progress": self.progress,
            "message": self.message,
            "remainingTimeEstimate": self.remaining_time_estimate_seconds,
            "failed": self.failed,
        }


DEFAULT_PROGRESS = GenerationProgress(
    stage=GenerationStage.INITIALIZING.value,
    progress=5,
    message="Initializing playlist generation...",
    remaining_time_estimate_seconds=60,
)


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    progress: int
    message: str


ProgressListener = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Synchronous fan-out of progress events to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: List[ProgressListener] = []

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def publish(self, stage: str, progress: int, message: str) -> None:
        event = ProgressEvent(stage=stage, progress=progress, message=message)
        for listener in self._listeners:
            listener(event)


@dataclass
class _ProgressRecord:
    stage: str
    progress: int
    message: str
    mode: str
    started_at: float
    finished_at: Optional[float] = None
    failed: bool = False


class ProgressStore:
    """
    Thread-safe progress records keyed by generation id, then playlist id.

    Finished records (complete or failed) are evicted `ttl_seconds` after
    they finished; eviction runs on every access.
    """

    def __init__(
        self,
        ttl_seconds: float = PROGRESS_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Dict[str, _ProgressRecord] = {}
        self._aliases: Dict[str, str] = {}
        self._lock = threading.Lock()

    def begin(
        self, mode: str, generation_id: Optional[str] = None
    ) -> "ProvisionalGenerationHandle":
        key = generation_id or uuid4().hex
        with self._lock:
            self._evict_expired()
            existing = self._records.get(self._resolve(key))
            if existing is not None and existing.finished_at is None:
                raise GenerationValidationError(
                    f"Generation id {key!r} is already in use."
                )
            self._aliases.pop(key, None)
            self._records[key] = _ProgressRecord(
                stage=GenerationStage.INITIALIZING.value,
                progress=0,
                message="Starting playlist generation...",
                mode=mode,
                started_at=self._clock(),
            )
        return ProvisionalGenerationHandle(self, key, mode)

    def update(
        self,
        key: str,
        stage: str,
        progress: int,
        message: str,
        mode: Optional[str] = None,
    ) -> None:
        now = self._clock()
        with self._lock:
            self._evict_expired()
            real_key = self._resolve(key)
            record = self._records.get(real_key)
            if record is None:
                record = _ProgressRecord(
                    stage=stage,
                    progress=0,
                    message=message,
                    mode=mode or "standard",
                    started_at=now,
                )
                self._records[real_key] = record

            record.stage = stage
            record.progress = max(record.progress, min(100, max(0, int(progress))))
            record.message = message
            if stage == GenerationStage.COMPLETE.value:
                record.finished_at = now
        logger.debug("Progress %s: %s - %d%%", key, stage, progress)

    def fail(self, key: str, message: str) -> None:
        with self._lock:
            record = self._records.get(self._resolve(key))
            if record is None:
                return
            record.failed = True
            record.message = message
            record.finished_at = self._clock()

    def promote(self, provisional_key: str, playlist_id: str) -> None:
        """Move a record from its provisional key to the playlist id."""
        with self._lock:
            record = self._records.pop(provisional_key, None)
            if record is not None:
                self._records[playlist_id] = record
            self._aliases[provisional_key] = playlist_id

    def get(self, key: str) -> GenerationProgress:
        """
        Current progress for a generation or playlist id. Never raises;
        unknown keys get the initializing placeholder.
        """
        with self._lock:
            self._evict_expired()
            record = self._records.get(self._resolve(key))
            if record is None:
                return DEFAULT_PROGRESS
            stage, progress, message = record.stage, record.progress, record.message
            mode, started_at, failed = record.mode, record.started_at, record.failed

        total = get_time_budget(mode)
        remaining = max(0.0, total - (self._clock() - started_at))
        if progress < 20:
            remaining = max(remaining, total * 0.8)
        if stage == GenerationStage.COMPLETE.value or failed:
            remaining = 0.0

        return GenerationProgress(
            stage=stage,
            progress=progress,
            message=message,
            remaining_time_estimate_seconds=round(remaining, 1),
            failed=failed,
        )

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return self._resolve(key) in self._records

    def _resolve(self, key: str) -> str:
        return self._aliases.get(key, key)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, record in self._records.items()
            if record.finished_at is not None
            and now - record.finished_at > self.ttl_seconds
        ]
        for key in expired:
            del self._records[key]
        if expired:
            self._aliases = {
                alias: target
                for alias, target in self._aliases.items()
                if target not in expired
            }


class PlaylistGenerationHandle:
    """Progress handle of a generation whose playlist exists on Spotify."""

    def __init__(self, store: ProgressStore, key: str, mode: str) -> None:
        self.store = store
        self.key = key
        self.mode = mode

    def update(self, stage: GenerationStage | str, progress: int, message: str) -> None:
        self.store.update(self.key, GenerationStage(stage).value, progress, message, self.mode)

    def fail(self, message: str) -> None:
        self.store.fail(self.key, message)


class ProvisionalGenerationHandle(PlaylistGenerationHandle):
    """Progress handle used before the playlist id is known."""

    def promote(self, playlist_id: str) -> PlaylistGenerationHandle:
        self.store.promote(self.key, playlist_id)
        return PlaylistGenerationHandle(self.store, playlist_id, self.mode)


default_progress_store = ProgressStore()
