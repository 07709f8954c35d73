"""
Orchestrates the conversion of a web page into a PDF document.

`PdfRenderOrchestrator` ties the renderer and the temporary file storage
together for a single request: it allocates a temporary file, drives a fresh
browser session through navigation and export, reads the result back and makes
sure both the browser and the file are released on every exit path.
"""
import asyncio
import os
from dataclasses import dataclass
from typing import Callable, Optional, TYPE_CHECKING

from pdf_render_service.components.renderer.playwright_manager import PlaywrightManager
from pdf_render_service.components.storage.temp_file_manager import EphemeralFileManager
from pdf_render_service.core.exceptions import (
    EmptyOutputError,
    InvalidInputError,
    PdfGenerationError,
    UnexpectedRenderError,
)
from pdf_render_service.core.logger import get_logger

if TYPE_CHECKING:
    from pdf_render_service.core.config import ConfigurationManager

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedDocument:
    """PDF bytes for one request and the temporary file they were read from."""
    content: bytes
    artifact_path: str

    @property
    def size(self) -> int:
        return len(self.content)


class PdfRenderOrchestrator:
    """
    Runs the PDF generation workflow for one target URL at a time.

    The orchestrator itself holds no per-request state, so a single instance can
    serve concurrent requests. Every call to `render_to_document` launches its
    own browser through `renderer_factory`.
    """
    def __init__(
        self,
        file_manager: EphemeralFileManager,
        config: Optional['ConfigurationManager'] = None,
        renderer_factory: Optional[Callable[..., PlaywrightManager]] = None,
    ):
        """
        Args:
            file_manager (EphemeralFileManager): Allocates and deletes temporary PDF files.
            config (Optional[ConfigurationManager]): Passed to each renderer.
            renderer_factory (Optional[Callable]): Builds a renderer context manager from
                `config`. Defaults to `PlaywrightManager`.
        """
        self.config = config
        self.file_manager = file_manager
        self.renderer_factory = renderer_factory or PlaywrightManager

    async def render_to_document(self, target_address: Optional[str]) -> RenderedDocument:
        """
        Renders `target_address` to PDF and returns the document bytes.

        The temporary file is not deleted on success: the caller hands the bytes
        off and then calls `release_artifact`. On failure its deletion is
        scheduled immediately.

        Raises:
            InvalidInputError: If `target_address` is missing or blank. Nothing is allocated.
            NavigationTimeoutError, UpstreamPageError, ExportFailedError, EmptyOutputError:
                For the corresponding step failures.
            UnexpectedRenderError: For any other fault, including browser launch failures.
        """
        if not target_address or not target_address.strip():
            raise InvalidInputError("URL parameter is required")

        logger.info(f"[1] Starting PDF generation for URL: {target_address}")
        artifact_path = self.file_manager.allocate_path()
        logger.info(f"[1.1] Will use temporary file: {artifact_path}")

        try:
            renderer = self.renderer_factory(config=self.config)
            async with renderer:
                content = await self._render(renderer, target_address, artifact_path)
        except asyncio.CancelledError:
            logger.warning(f"[ERROR] PDF generation cancelled for {target_address}")
            self.file_manager.schedule_deletion(artifact_path, 0)
            raise
        except PdfGenerationError as e:
            logger.error(f"[ERROR] PDF generation failed ({e.error_kind}) for {target_address}: {e.message}")
            self.file_manager.schedule_deletion(artifact_path, 0)
            raise
        except Exception as e:
            logger.error(f"[ERROR] Unexpected error in PDF generation for {target_address}: {e}", exc_info=True)
            self.file_manager.schedule_deletion(artifact_path, 0)
            raise UnexpectedRenderError(str(e), original_exception=e) from e

        return RenderedDocument(content=content, artifact_path=artifact_path)

    async def _render(self, renderer: PlaywrightManager, target_address: str, artifact_path: str) -> bytes:
        page = await renderer.new_page()
        logger.info("[2] New page created with fixed viewport")

        logger.info(f"[3] Navigating to URL: {target_address}")
        await renderer.navigate(page, target_address)

        logger.info("[4] Waiting for dynamic content...")
        await renderer.wait_until_ready(page)

        logger.info("[5] Generating PDF...")
        await renderer.export_pdf(page, artifact_path)

        stats = await asyncio.to_thread(os.stat, artifact_path)
        logger.info(f"[6] PDF file size: {stats.st_size} bytes")
        if stats.st_size == 0:
            raise EmptyOutputError("Generated PDF file is empty")

        def _read() -> bytes:
            with open(artifact_path, 'rb') as f:
                return f.read()

        return await asyncio.to_thread(_read)

    async def release_artifact(self, document: RenderedDocument, delay_seconds: Optional[float] = None) -> None:
        """
        Schedules deletion of a delivered document's temporary file.

        A coroutine so Starlette runs it as a background task on the event loop,
        after the response body has been sent.

        Args:
            document (RenderedDocument): The document returned by `render_to_document`.
            delay_seconds (Optional[float]): Grace delay. Defaults to the file manager's
                `cleanup_delay_seconds`.
        """
        delay = self.file_manager.cleanup_delay_seconds if delay_seconds is None else delay_seconds
        self.file_manager.schedule_deletion(document.artifact_path, delay)
