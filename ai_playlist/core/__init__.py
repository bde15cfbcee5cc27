"""Public façade for the ai_playlist.core package.

Cross-cutting helpers (logging, JSON files), the domain models shared by the
pipeline stages and the error taxonomy. Other packages import these from
here rather than from the submodules.
"""

from .errors import (
    AuthRequiredError,
    GenerationValidationError,
    PlaylistCreationError,
    PlaylistGenerationError,
)
from .fs_utils import ensure_parent_dir, read_json, write_json
from .logging_config import configure_logging
from .logging_utils import (
    log_error,
    log_info,
    log_progress,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from .models import (
    FEATURE_DIMENSIONS,
    AudioFeatures,
    CandidateTrack,
    PromptAnalysis,
    SourceSelection,
)

__all__ = [
    "configure_logging",
    "log_section",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "log_progress",
    "ensure_parent_dir",
    "write_json",
    "read_json",
    "FEATURE_DIMENSIONS",
    "AudioFeatures",
    "CandidateTrack",
    "PromptAnalysis",
    "SourceSelection",
    "PlaylistGenerationError",
    "AuthRequiredError",
    "GenerationValidationError",
    "PlaylistCreationError",
]
