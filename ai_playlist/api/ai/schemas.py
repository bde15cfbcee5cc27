from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ai_playlist.core import SourceSelection
from ai_playlist.pipeline import ProcessingMode


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProgressPayload(CamelModel):
    stage: str
    progress: int
    message: str
    remaining_time_estimate: float
    failed: bool = False


class ProgressResponse(BaseModel):
    progress: ProgressPayload


class EstimateRequest(CamelModel):
    sources: SourceSelection = Field(default_factory=SourceSelection)
    processing_mode: ProcessingMode = ProcessingMode.STANDARD


class ModeEstimate(CamelModel):
    mode: ProcessingMode
    config: Dict[str, Any]
    estimated_seconds: int
    warning_level: str
    estimated_time: str


class PlaylistInfo(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    track_count: int = 0
    image_url: str = ""
    is_collaborative: bool = False
    is_public: Optional[bool] = None


class EstimateResponse(CamelModel):
    playlists: List[PlaylistInfo]
    playlist_sizes: Dict[str, int]
    selected_mode: ModeEstimate
    available_modes: List[ModeEstimate]
