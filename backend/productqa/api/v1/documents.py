"""Q&A document download endpoints."""

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from productqa.core.exceptions import ValidationError
from productqa.documents import QADocument, attachment_filename, get_renderer
from productqa.schemas import DocumentRequest

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/{fmt}")
async def download_document(fmt: str, body: DocumentRequest):
    """Render submitted Q&A as a downloadable document.

    Supported formats:
    - pdf: fixed layout
    - docx: Word
    - rtf: rich text
    """
    try:
        renderer = get_renderer(fmt)
        document = QADocument(
            title=body.title,
            url=body.url,
            items=[item.to_item() for item in body.qa],
            include_source_labels=body.include_labels,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    # Layout is CPU-bound; keep it off the event loop
    content = await run_in_threadpool(renderer.render, document)
    filename = attachment_filename(renderer.extension)
    logger.info(
        "document_rendered",
        format=renderer.extension,
        items=len(document.items),
        bytes=len(content),
    )
    return Response(
        content=content,
        media_type=renderer.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
