"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when the call to the external model fails."""

    pass


class UnparseableResponseError(AIServiceError):
    """
    Raised when the model's answer cannot be recovered as a JSON object.

    Carries the raw model text unchanged so it can be shown for diagnosis.
    """

    kind = "unparseable response"

    def __init__(self, raw_response: str, message: str | None = None):
        self.raw_response = raw_response
        super().__init__(message or "The AI response could not be parsed as a JSON object")
