"""
API sub-package for the PDF Render Service.

This package contains the FastAPI application, its routes and Pydantic models.
Import the application from `pdf_render_service.api.main`.
"""

__all__ = []
