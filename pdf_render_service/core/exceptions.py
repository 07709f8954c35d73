"""
Custom exception classes for the PDF Render Service.
"""
from typing import Optional


class PdfRenderServiceError(Exception):
    """
    Base class for all custom exceptions in the PDF Render Service.

    Attributes:
        message (str): A human-readable description of the error.
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


# --- Component Related Exceptions ---
class ComponentError(PdfRenderServiceError):
    """
    A general base class for errors originating from within a specific component
    (Renderer or Storage).

    Attributes:
        component_name (str): Name of the component where the error originated.
    """
    def __init__(self, component_name: str, message: str):
        full_message = f"Error in component '{component_name}': {message}"
        super().__init__(full_message)
        self.component_name = component_name


class RendererError(ComponentError):
    """Raised for errors specific to the Renderer component (e.g., browser launch, unsupported browser type)."""
    def __init__(self, message: str):
        super().__init__(component_name="Renderer", message=message)


class StorageError(ComponentError):
    """Raised for errors specific to the Storage component (e.g., temporary directory creation)."""
    def __init__(self, message: str):
        super().__init__(component_name="Storage", message=message)


class OriginNotAllowedError(PdfRenderServiceError):
    """
    Raised for a request whose Origin header is not in `cors.allowed_origins`.

    Attributes:
        origin (str): The rejected Origin header value.
    """
    def __init__(self, origin: str):
        super().__init__("Not allowed by CORS")
        self.origin = origin


# --- PDF Generation (request level) Exceptions ---
class PdfGenerationError(PdfRenderServiceError):
    """
    Base class for every failure of a single PDF generation request.

    All subclasses are reported to the caller with the same HTTP status (500);
    `error_kind` distinguishes them in logs and tests.

    Attributes:
        error_kind (str): Stable identifier of the failure kind.
    """
    error_kind = "Unexpected"


class InvalidInputError(PdfGenerationError):
    """Raised when the target URL is missing or empty."""
    error_kind = "InvalidInput"


class NavigationTimeoutError(PdfGenerationError):
    """Raised when navigation to the target URL does not finish within its timeout."""
    error_kind = "NavigationTimeout"


class UpstreamPageError(PdfGenerationError):
    """
    Raised when the target page answers with a non-success HTTP status.

    Attributes:
        status_code (int): The HTTP status returned by the target page.
    """
    error_kind = "UpstreamPageError"

    def __init__(self, status_code: int):
        super().__init__(f"Failed to load page: {status_code}")
        self.status_code = status_code


class ExportFailedError(PdfGenerationError):
    """Raised when the browser fails (or times out) while printing the page to PDF."""
    error_kind = "ExportFailed"


class EmptyOutputError(PdfGenerationError):
    """Raised when the export reported success but produced a zero-byte file."""
    error_kind = "EmptyOutput"


class UnexpectedRenderError(PdfGenerationError):
    """
    Wraps any fault not anticipated by the other kinds, including browser
    launch failures and crashes of the rendering engine.

    Attributes:
        original_exception (Optional[Exception]): The underlying exception, if any.
    """
    error_kind = "Unexpected"

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception
