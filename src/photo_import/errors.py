"""Error taxonomy shared by adapters, services and the API."""


class PhotoImportError(Exception):
    """Base error for the photo import service."""


class AuthError(PhotoImportError):
    """Missing, invalid or expired credential. Never retried automatically."""


class TransientError(PhotoImportError):
    """A remote collaborator returned a non-success result.

    The current step is abandoned and the next external trigger retries it.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DataError(PhotoImportError):
    """An expected field was absent or malformed."""
