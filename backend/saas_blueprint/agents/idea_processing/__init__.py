from .pipeline import (
    STAGES,
    IdeaProcessingError,
    IdeaProcessingService,
    InvalidProjectIdError,
    StageSpec,
    UsageTotals,
)

__all__ = [
    "STAGES",
    "IdeaProcessingError",
    "IdeaProcessingService",
    "InvalidProjectIdError",
    "StageSpec",
    "UsageTotals",
]
