"""Exception types used across monday_archive."""

from __future__ import annotations


class ArchiveError(Exception):
    """Base class for every error raised by monday_archive."""


class ConfigError(ArchiveError):
    """Configuration is missing or malformed."""


class UpstreamError(ArchiveError):
    """A call to the monday API failed."""

    retryable = False


class TransportError(UpstreamError):
    """Connection failure or unsuccessful HTTP status."""

    def __init__(self, message: str, status: int | None = None, retryable: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.retryable = retryable


class ForbiddenError(UpstreamError):
    """The token is not allowed to read the resource. Never retried."""


class GraphQLError(UpstreamError):
    """The response envelope carried a non-empty ``errors`` array."""

    def __init__(self, errors: list, retryable: bool = False) -> None:
        super().__init__(f"GraphQL Error: {errors}")
        self.errors = errors
        self.retryable = retryable


class NotFoundError(UpstreamError):
    """A board or group requested by id does not exist upstream."""


class BoardNotFoundError(NotFoundError):
    def __init__(self, board_id: str) -> None:
        super().__init__("Board not found")
        self.board_id = board_id


class GroupNotFoundError(NotFoundError):
    def __init__(self, board_id: str, group_id: str) -> None:
        super().__init__("Group not found")
        self.board_id = board_id
        self.group_id = group_id
