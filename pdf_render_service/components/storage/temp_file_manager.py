"""
Ephemeral file storage for generated PDF documents.

This module provides the `EphemeralFileManager` class, which owns the temporary
directory PDFs are exported into. It hands out collision-free file paths and
deletes those files asynchronously once a request no longer needs them.
"""
import asyncio
import os
import secrets
from typing import Optional, Set, TYPE_CHECKING

from pdf_render_service.core.exceptions import StorageError
if TYPE_CHECKING:
    from pdf_render_service.core.config import ConfigurationManager
from pdf_render_service.core.logger import get_logger

logger = get_logger(__name__)


class EphemeralFileManager:
    """
    Allocates short-lived files inside a dedicated temporary directory and
    schedules their removal.

    The directory is created once, when the manager is constructed, and is never
    removed by this class. Operators manage its lifecycle externally.

    Attributes:
        base_path (str): Absolute path of the temporary directory.
        cleanup_delay_seconds (float): Grace delay used for successfully delivered files.
    """
    DEFAULT_BASE_PATH = "temp"
    DEFAULT_CLEANUP_DELAY_SECONDS = 5.0
    TOKEN_BYTES = 16  # 128 bits -> 32 hex characters

    def __init__(self, config: Optional['ConfigurationManager'] = None):
        """
        Initializes the EphemeralFileManager.

        Args:
            config (Optional[ConfigurationManager]): Source of
                `components.temp_file_manager.base_path` and `.cleanup_delay_seconds`.
                If None, defaults are used.

        Raises:
            StorageError: If the temporary directory cannot be created.
        """
        configured_base_path = None
        configured_delay = None
        if config:
            configured_base_path = config.get('components.temp_file_manager.base_path')
            configured_delay = config.get('components.temp_file_manager.cleanup_delay_seconds')

        # Relative paths live under the process working directory.
        self.base_path = os.path.abspath(configured_base_path or self.DEFAULT_BASE_PATH)
        self.cleanup_delay_seconds = float(
            configured_delay if configured_delay is not None else self.DEFAULT_CLEANUP_DELAY_SECONDS
        )
        self._pending: Set[asyncio.Task] = set()

        try:
            os.makedirs(self.base_path, exist_ok=True)
            logger.info(f"Temporary PDF directory ensured at: {self.base_path}")
        except OSError as e:
            logger.error(f"Failed to create temporary directory '{self.base_path}': {e}", exc_info=True)
            raise StorageError(message=f"Failed to create or access temporary directory '{self.base_path}': {e}")

    def allocate_path(self, extension: str = ".pdf") -> str:
        """
        Returns a fresh path inside the temporary directory.

        The file name is a 32 character random hex token, so concurrent requests
        never need to coordinate. The file itself is not created.
        """
        filename = f"{secrets.token_hex(self.TOKEN_BYTES)}{extension}"
        path = os.path.join(self.base_path, filename)
        logger.debug(f"Allocated temporary file path: {path}")
        return path

    def schedule_deletion(self, path: str, delay_seconds: float) -> asyncio.Task:
        """
        Deletes `path` after `delay_seconds` on the running event loop.

        Failures are logged and swallowed: a leaked temporary file is an
        operational concern, not a request failure.

        Args:
            path (str): File to delete.
            delay_seconds (float): Seconds to wait before deleting. 0 deletes on the next loop turn.

        Returns:
            asyncio.Task: The scheduled deletion task.
        """
        logger.debug(f"Scheduling deletion of {path} in {delay_seconds}s.")
        task = asyncio.get_running_loop().create_task(self._delete_after(path, delay_seconds))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _delete_after(self, path: str, delay_seconds: float) -> None:
        if delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        try:
            await asyncio.to_thread(os.remove, path)
            logger.info(f"[CLEANUP] Deleted temporary file: {path}")
        except FileNotFoundError:
            # Failure before export leaves nothing on disk.
            logger.debug(f"[CLEANUP] Temporary file already absent: {path}")
        except OSError as e:
            logger.error(f"[CLEANUP] Failed to delete temporary file '{path}': {e}", exc_info=True)

    @property
    def pending_deletions(self) -> int:
        """Number of deletions scheduled but not finished yet."""
        return len(self._pending)

    async def wait_for_pending_deletions(self) -> None:
        """Waits until every scheduled deletion has run."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
