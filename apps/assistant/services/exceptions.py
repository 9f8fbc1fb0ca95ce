"""Domain-specific exceptions for assistant services."""


class AssistantServiceError(Exception):
    """Base exception for assistant services."""
    pass


class InferenceError(AssistantServiceError):
    """Raised when the inference endpoint fails or returns unusable output."""
    pass


class InferenceOverloadedError(InferenceError):
    """Raised when the inference endpoint reports it is overloaded (HTTP 503)."""
    pass


class ExtractionError(AssistantServiceError):
    """Raised when text could not be extracted from a document."""
    pass


class InvalidImageError(AssistantServiceError):
    """Raised when a photo is not a base64 image data URI."""
    pass
