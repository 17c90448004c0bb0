class EvaluationError(Exception):
    """Base class for failures of the conversion and grading collaborators."""


class ConversionError(EvaluationError):
    """Raised when a PDF cannot be rendered to an image."""


class AIServiceError(EvaluationError):
    """Raised when the grading API call fails or returns something unusable."""
