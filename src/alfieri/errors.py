"""Exception hierarchy for the newsletter ingestion pipeline."""


class AlfieriError(Exception):
    """Base class for every error raised by the pipeline."""


class AuthError(AlfieriError):
    """The inbound request could not be authenticated."""


class MalformedPayloadError(AlfieriError):
    """A required webhook field is missing or has the wrong type."""


class ExtractionError(AlfieriError):
    """A film section of the newsletter HTML has an unexpected structure."""


class ParseError(AlfieriError):
    """A film block yielded no recognisable date entries."""

    def __init__(self, title: str, message: str | None = None) -> None:
        self.title = title
        super().__init__(message or f"No date entries found for '{title}'")


class MalformedDateError(AlfieriError):
    """A date entry resolved to a date or time that does not exist."""


class StorageError(AlfieriError):
    """The dedup store could not be reached or refused the write."""


class PublicationError(AlfieriError):
    """The publication collaborator failed to deliver a showtime."""
