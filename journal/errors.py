"""Domain errors raised by the journal core and mapped to HTTP by the API."""

from __future__ import annotations


class LucidlyError(Exception):
    """Base class; ``message`` is safe to show to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingAPIKeyError(LucidlyError):
    def __init__(self, message: str = "Missing Hugging Face API key") -> None:
        super().__init__(message)


class AllModelsFailedError(LucidlyError):
    pass


class TranscriptionTimeoutError(LucidlyError):
    def __init__(
        self,
        message: str = "Transcription took too long. Please try again with a shorter recording.",
    ) -> None:
        super().__init__(message)


class DreamNotFoundError(LucidlyError):
    def __init__(self, message: str = "Dream not found") -> None:
        super().__init__(message)


class StorageError(LucidlyError):
    pass


class AuthenticationError(LucidlyError):
    pass


class ValidationError(LucidlyError):
    pass
