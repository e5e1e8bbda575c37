"""FastAPI dependency injection providers."""

from functools import lru_cache

from productqa.services.generation import ClaudeQAGenerator
from productqa.services.pipeline import PipelineCoordinator


@lru_cache
def get_qa_generator() -> ClaudeQAGenerator:
    """Return the process-wide Q&A generator (also used for external research)."""
    return ClaudeQAGenerator()


@lru_cache
def get_pipeline_coordinator() -> PipelineCoordinator:
    """Return the process-wide pipeline coordinator.

    The coordinator holds no per-run state, so one instance serves every
    request. Tests replace it through ``app.dependency_overrides``.
    """
    return PipelineCoordinator(generator=get_qa_generator())
