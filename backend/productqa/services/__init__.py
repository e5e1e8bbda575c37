"""Services module for Q&A generation.

This module contains the pipeline coordinator that drives a single run and
the external capabilities it depends on (image analysis, Q&A generation).
"""

from productqa.services.generation import (
    ClaudeImageAnalyzer,
    ClaudeQAGenerator,
    GeneratedItem,
    ImageAnalysis,
    SourceScope,
    SourceTag,
)
from productqa.services.pipeline import (
    PipelineCoordinator,
    PipelineRequest,
    PipelineState,
)

__all__ = [
    "ClaudeImageAnalyzer",
    "ClaudeQAGenerator",
    "GeneratedItem",
    "ImageAnalysis",
    "SourceScope",
    "SourceTag",
    "PipelineCoordinator",
    "PipelineRequest",
    "PipelineState",
]
