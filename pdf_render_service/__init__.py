"""
PDF Render Service.

Converts a web page into a downloadable PDF by driving a headless Chromium
browser through Playwright, behind a small FastAPI application.
"""

__version__ = "0.1.0"
