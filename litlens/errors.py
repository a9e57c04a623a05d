"""Custom exception types for the LitLens application."""


class LitLensError(Exception):
    """Base class for exceptions in LitLens."""
    status_code = 500


class ValidationError(LitLensError):
    """Raised when a required input (question, book id, filename, upload) is missing or invalid."""
    status_code = 400


class NotFoundError(LitLensError):
    """Raised when a referenced book does not exist in any known storage location."""
    status_code = 404


class ExtractionError(LitLensError):
    """Raised when text cannot be extracted from a PDF buffer."""
    pass


class ExternalServiceError(LitLensError):
    """Raised when the completion, embedding or vector-store collaborator fails or is unreachable."""
    pass


class ParseError(LitLensError):
    """Raised when the completion service returns content that does not fit the expected shape."""
    pass
