from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ai_playlist.config import GENERATED_PLAYLISTS_FILE
from ai_playlist.core import log_warning, read_json, write_json


@dataclass
class GeneratedPlaylistRecord:
    playlist_id: str
    name: str
    description: str
    prompt: str
    track_ids: List[str]
    total_duration_seconds: float
    ai_analysis: Dict[str, Any]
    genres_used: List[str]
    processing_mode: str
    source_stats: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def track_count(self) -> int:
        return len(self.track_ids)


def _serialize_record(record: GeneratedPlaylistRecord) -> Dict[str, Any]:
    return {
        "playlist_id": record.playlist_id,
        "name": record.name,
        "description": record.description,
        "prompt": record.prompt,
        "track_ids": list(record.track_ids),
        "track_count": record.track_count,
        "total_duration_seconds": record.total_duration_seconds,
        "ai_analysis": record.ai_analysis,
        "genres_used": list(record.genres_used),
        "processing_mode": record.processing_mode,
        "source_stats": record.source_stats,
        "created_at": record.created_at.isoformat(),
    }


def _parse_dt(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _deserialize_record(data: Dict[str, Any]) -> GeneratedPlaylistRecord:
    return GeneratedPlaylistRecord(
        playlist_id=data["playlist_id"],
        name=data.get("name", ""),
        description=data.get("description", ""),
        prompt=data.get("prompt", ""),
        track_ids=list(data.get("track_ids") or []),
        total_duration_seconds=float(data.get("total_duration_seconds") or 0),
        ai_analysis=dict(data.get("ai_analysis") or {}),
        genres_used=list(data.get("genres_used") or []),
        processing_mode=data.get("processing_mode", "standard"),
        source_stats=dict(data.get("source_stats") or {}),
        created_at=_parse_dt(data.get("created_at")),
    )


class GeneratedPlaylistRepository:
    """JSON-file store of the playlists generated by this service, keyed by playlist id."""

    def __init__(self, path: str = GENERATED_PLAYLISTS_FILE) -> None:
        self.path = path

    def load_all(self) -> Dict[str, GeneratedPlaylistRecord]:
        raw = read_json(
            self.path,
            default={},
            on_error=lambda e: log_warning(f"Unreadable {self.path}: {e}"),
        )
        if not isinstance(raw, dict):
            return {}

        records: Dict[str, GeneratedPlaylistRecord] = {}
        for playlist_id, payload in raw.items():
            if not isinstance(payload, dict):
                continue
            payload = dict(payload)
            payload.setdefault("playlist_id", playlist_id)
            try:
                record = _deserialize_record(payload)
            except (KeyError, TypeError, ValueError):
                # Ignore malformed entries
                continue
            records[record.playlist_id] = record
        return records

    def get(self, playlist_id: str) -> Optional[GeneratedPlaylistRecord]:
        return self.load_all().get(playlist_id)

    def save(self, record: GeneratedPlaylistRecord) -> None:
        records = self.load_all()
        records[record.playlist_id] = record
        write_json(
            self.path,
            {playlist_id: _serialize_record(r) for playlist_id, r in records.items()},
        )
