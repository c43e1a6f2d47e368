# Schemas package
from .idea_processing_schema import IdeaProcessingRequest, ProcessedIdeaResult, ProcessingMetrics
from .results_schema import (
    BusinessAnalysisResult,
    FeatureGenerationResult,
    MarketValidationResult,
    TechStackResult,
)
