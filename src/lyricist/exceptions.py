class LyricistError(Exception):
    """Base exception for lyricist."""


class NotFoundError(LyricistError):
    """Raised when an operation references an item id absent from the song."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"No item with id {item_id!r}")


class InvalidArgumentError(LyricistError):
    """Raised when a mutation receives malformed input."""


class InvalidItemError(InvalidArgumentError):
    """Raised when an item or chord cannot be constructed from its fields."""


class MalformedInputError(LyricistError):
    """Raised when persisted or imported song data cannot be read."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed song data: {reason}")


class ValidationFailedError(LyricistError):
    """Raised when a save is attempted without a name or required identifiers."""


class RemoteFailureError(LyricistError):
    """Raised when a remote API call fails or returns a non-2xx status."""

    def __init__(self, url: str, status_code: int, message: str = ""):
        self.url = url
        self.status_code = status_code
        self.message = message
        detail = f"HTTP {status_code} from {url}" if status_code else f"Could not reach {url}"
        super().__init__(f"{detail}: {message}" if message else detail)
