"""Error taxonomy shared by every workflow.

Entry points (the Flask task runners, the orchestrator, the storyboard loop,
the CLI) catch failures and reduce them to an :class:`ErrorCategory` with
:func:`classify_error`, so callers only ever see one of a few categories.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    INVALID_INPUT = "invalid_input"
    MISSING_CREDENTIAL = "missing_credential"
    NOT_FOUND = "not_found"
    REQUEST_FAILED = "request_failed"
    EMPTY_RESULT = "empty_result"
    BUSY = "busy"
    UNKNOWN = "unknown"


class CreatorBoostError(Exception):
    category = ErrorCategory.UNKNOWN


class ValidationError(CreatorBoostError):
    """A required input is empty or missing."""

    category = ErrorCategory.VALIDATION


class InvalidInputError(CreatorBoostError):
    """An input could not be parsed into a video identifier."""

    category = ErrorCategory.INVALID_INPUT


class MissingCredentialError(CreatorBoostError):
    category = ErrorCategory.MISSING_CREDENTIAL


class NotFoundError(CreatorBoostError):
    """The remote API answered with zero results."""

    category = ErrorCategory.NOT_FOUND


class RequestFailedError(CreatorBoostError):
    """The remote API answered with a non-success status."""

    category = ErrorCategory.REQUEST_FAILED


class EmptyResultError(CreatorBoostError):
    """An AI call that must return a non-empty sequence returned nothing."""

    category = ErrorCategory.EMPTY_RESULT


class BusyError(CreatorBoostError):
    """A workflow was started while a previous invocation is still running."""

    category = ErrorCategory.BUSY


# Checked in order; the first substring found in the lowercased message wins.
_MESSAGE_PATTERNS: list[tuple[str, ErrorCategory]] = [
    ("invalid url", ErrorCategory.INVALID_INPUT),
    ("not found", ErrorCategory.NOT_FOUND),
    ("failed to fetch", ErrorCategory.REQUEST_FAILED),
    ("no videos found", ErrorCategory.NOT_FOUND),
]

USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.VALIDATION: "Please fill in the required field.",
    ErrorCategory.INVALID_INPUT: "That doesn't look like a valid YouTube URL or video ID.",
    ErrorCategory.MISSING_CREDENTIAL: "Set your YouTube API key in the settings first.",
    ErrorCategory.NOT_FOUND: "Nothing was found for that input.",
    ErrorCategory.REQUEST_FAILED: "The request to YouTube failed. Check your API key and quota.",
    ErrorCategory.EMPTY_RESULT: "The AI returned no results. Please try again.",
    ErrorCategory.BUSY: "Another request is still running. Wait for it to finish.",
    ErrorCategory.UNKNOWN: "Something went wrong. Please try again.",
}


def classify_error(exc: BaseException) -> ErrorCategory:
    if isinstance(exc, CreatorBoostError):
        return exc.category

    message = str(exc).lower()
    for needle, category in _MESSAGE_PATTERNS:
        if needle in message:
            return category
    return ErrorCategory.UNKNOWN


def user_message(category: ErrorCategory) -> str:
    return USER_MESSAGES.get(category, USER_MESSAGES[ErrorCategory.UNKNOWN])
