"""
Storage component for the PDF Render Service.

This sub-package manages the short-lived files PDFs are exported into.
"""
from .temp_file_manager import EphemeralFileManager

__all__ = [
    "EphemeralFileManager",
]
