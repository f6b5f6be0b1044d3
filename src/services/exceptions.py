"""Shared exceptions for service and repository operations."""


class NotFoundError(Exception):
    """Raised when a referenced bookmark does not exist."""

    def __init__(self, entity_id: str, entity_name: str = "Bookmark") -> None:
        self.entity_id = entity_id
        self.entity_name = entity_name
        super().__init__(f"{entity_name} not found")


class ConflictError(Exception):
    """Raised when a write would violate a uniqueness rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class DuplicateUrlError(ConflictError):
    """Raised when a bookmark with the same URL already exists."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__("A bookmark with this URL already exists")


class InternalError(Exception):
    """
    Raised when storage fails unexpectedly.

    The message is safe to show to clients; the underlying exception is chained via
    `raise ... from` and logged where it is translated.
    """

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
