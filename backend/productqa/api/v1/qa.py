"""Q&A generation (newline-delimited JSON stream) and external research endpoints."""

import json
from typing import AsyncIterator

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from productqa.config import settings
from productqa.core.exceptions import GenerationError, ValidationError
from productqa.dependencies import get_pipeline_coordinator, get_qa_generator
from productqa.schemas import GenerateQARequest, ResearchRequest, ResearchResponse
from productqa.services.generation import ClaudeQAGenerator
from productqa.services.pipeline import PipelineCoordinator, PipelineRequest

logger = structlog.get_logger(__name__)

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"


async def _ndjson(
    coordinator: PipelineCoordinator, request: PipelineRequest
) -> AsyncIterator[str]:
    # Starlette cancels this generator when the client disconnects
    async for event in coordinator.run(request):
        yield json.dumps(event.to_dict(), ensure_ascii=False) + "\n"


@router.post("/generate")
async def generate_qa(
    body: GenerateQARequest,
    coordinator: PipelineCoordinator = Depends(get_pipeline_coordinator),
):
    """Generate product Q&A and stream pipeline events.

    One JSON object per line, each with a ``type`` of progress, item, error
    or complete. The stream always ends with exactly one error or complete
    event. Bad requests are rejected with 400 before streaming starts.
    """
    try:
        request = PipelineRequest(
            url=body.url,
            qa_count=body.qa_count,
            scope=body.source_type,
            source_code=body.source_code,
            api_key=body.api_key,
        )
    except ValidationError as e:
        logger.info("generate_request_rejected", reason=e.message)
        raise HTTPException(status_code=400, detail=e.message)

    return StreamingResponse(
        _ndjson(coordinator, request),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/research", response_model=ResearchResponse)
async def research(
    body: ResearchRequest,
    generator: ClaudeQAGenerator = Depends(get_qa_generator),
):
    """Answer one product question from general knowledge.

    The answer is always tagged ``external``. Requires an API key in the
    body unless the server has one configured.
    """
    if not (body.api_key or settings.ANTHROPIC_API_KEY):
        raise HTTPException(status_code=400, detail="クエリとAPIキーが必要です")

    try:
        item = await generator.research(body.query, api_key=body.api_key)
    except GenerationError as e:
        logger.warning("research_request_failed", error=e.message)
        raise HTTPException(
            status_code=500,
            detail={"error": "外部情報の取得に失敗しました", "details": e.message},
        )

    return ResearchResponse(answer=item.answer)
