"""Error taxonomy for Questboard.

Every error raised by the task store, the state machine and the HTTP
client derives from QuestboardError and carries the HTTP status code the
web layer answers with. The client maps status codes back to the same
classes, so agents see identical exceptions whether they call the store
in-process or over HTTP.
"""

from __future__ import annotations


class QuestboardError(Exception):
    """Base exception for Questboard errors.

    Attributes:
        status_code: HTTP status code used when surfacing the error.
        message: Human-readable error message.
    """

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(QuestboardError):
    """Raised when required input is missing or malformed (e.g. empty title)."""

    status_code = 400


class NotFoundError(QuestboardError):
    """Raised when an operation targets a task id absent from the store.

    Attributes:
        task_id: The id that did not resolve.
    """

    status_code = 404

    def __init__(self, task_id: str, message: str | None = None):
        self.task_id = task_id
        super().__init__(message or f"Task {task_id} not found")


class UnauthorizedError(QuestboardError):
    """Raised when the shared-secret token is required and missing or wrong."""

    status_code = 401

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message)


class InvalidFormatError(QuestboardError):
    """Raised when an import payload fails the version or shape check."""

    status_code = 400


class BackingStoreUnavailableError(QuestboardError):
    """Raised when the persistence layer fails or is not configured."""

    status_code = 500


_BY_STATUS: dict[int, type[QuestboardError]] = {
    401: UnauthorizedError,
    500: BackingStoreUnavailableError,
}


def error_for_status(status_code: int, message: str) -> QuestboardError:
    """Rebuild the Questboard error matching an HTTP error response.

    Args:
        status_code: HTTP status code of the failed response.
        message: Error text from the response body.

    Returns:
        A QuestboardError instance of the matching subclass. Unmapped 4xx
        codes become ValidationError; any other status becomes the base
        class with that status code.
    """
    if status_code == 404:
        return NotFoundError("", message)
    cls = _BY_STATUS.get(status_code)
    if cls is not None:
        return cls(message)
    if 400 <= status_code < 500:
        return ValidationError(message)
    error = QuestboardError(message)
    error.status_code = status_code
    return error
