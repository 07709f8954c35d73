from typing import Optional
from pydantic import BaseModel

GENERATION_FAILED = "Failed to generate PDF"


class PdfErrorResponse(BaseModel):
    """
    Error envelope returned for every failed PDF generation request.

    `stack` carries the formatted traceback and is only set outside production.
    """
    error: str = GENERATION_FAILED
    message: str
    stack: Optional[str] = None
