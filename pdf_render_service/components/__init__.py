"""
Components sub-package for the PDF Render Service.

The `__all__` variable defines the public API of this sub-package,
making the components directly importable from `pdf_render_service.components`.
"""
from .renderer.playwright_manager import PlaywrightManager
from .storage.temp_file_manager import EphemeralFileManager

__all__ = [
    "PlaywrightManager",
    "EphemeralFileManager",
]
