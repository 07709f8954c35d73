"""
Renderer component for the PDF Render Service.

This sub-package drives a headless browser to load web pages and print them
to PDF.
"""
from .playwright_manager import PlaywrightManager

__all__ = [
    "PlaywrightManager",
]
