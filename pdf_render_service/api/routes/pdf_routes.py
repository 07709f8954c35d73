"""
API routes for PDF generation.

This module defines the `/generate-pdf` endpoint. The temporary file manager is
created once, when this module is imported at application startup; the
orchestrator is provided through FastAPI's dependency injection so tests can
swap it out.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from starlette.background import BackgroundTask

from pdf_render_service.api.models import PdfErrorResponse
from pdf_render_service.components.storage.temp_file_manager import EphemeralFileManager
from pdf_render_service.core.config import config_manager
from pdf_render_service.core.logger import get_logger
from pdf_render_service.core.orchestrator import PdfRenderOrchestrator

logger = get_logger(__name__)

PDF_FILENAME = "generated.pdf"

router = APIRouter()

file_manager = EphemeralFileManager(config=config_manager)
_orchestrator = PdfRenderOrchestrator(file_manager=file_manager, config=config_manager)


def get_orchestrator() -> PdfRenderOrchestrator:
    """Dependency provider for the shared, stateless orchestrator."""
    return _orchestrator


@router.get(
    "/generate-pdf",
    response_class=Response,
    status_code=status.HTTP_200_OK,
    summary="Render a web page to PDF",
    description="Loads the page at `url` in a fresh headless browser, prints it to an A4 PDF "
                "and returns the file as an attachment.",
    responses={
        200: {"content": {"application/pdf": {}}, "description": "The generated PDF document."},
        500: {"model": PdfErrorResponse, "description": "PDF generation failed."},
    },
)
async def generate_pdf(
    url: Optional[str] = Query(None, description="Address of the page to render."),
    orchestrator: PdfRenderOrchestrator = Depends(get_orchestrator),
):
    """
    Handles PDF generation requests.

    Failures are raised as `PdfGenerationError` subclasses and turned into the
    JSON error envelope by the exception handler registered in `api.main`.
    Deletion of the temporary file runs as a background task, i.e. only once
    the response has been fully sent.
    """
    document = await orchestrator.render_to_document(url)

    logger.info(f"Sending PDF response ({document.size} bytes)...")
    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={PDF_FILENAME}"},
        background=BackgroundTask(orchestrator.release_artifact, document),
    )
