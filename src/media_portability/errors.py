"""Error taxonomy for media imports.

Destinations raise subclasses of :class:`MediaImportError`. Skippable errors
affect a single item and are recorded while the batch continues; fatal errors
stop the category they occur in and every category that depends on it.
"""


class MediaImportError(Exception):
    """Base exception for destination import errors."""

    pass


class SkippableItemError(MediaImportError):
    """A single item failed; the rest of the batch can continue."""

    pass


class TransientDestinationError(SkippableItemError):
    """The destination failed temporarily; the call may be retried."""

    pass


class RateLimitError(TransientDestinationError):
    """Exception raised when hitting rate limits."""

    pass


class ServerError(TransientDestinationError):
    """Exception raised for 5xx server errors and network failures."""

    pass


class ItemValidationError(SkippableItemError):
    """The destination rejected the item itself."""

    pass


class MissingAlbumError(SkippableItemError):
    """A media item references an album that was never imported."""

    pass


class FatalCategoryError(MediaImportError):
    """Nothing more can be imported in this category."""

    pass


class AuthorizationError(FatalCategoryError):
    """Credentials were rejected or revoked."""

    pass


class QuotaExceededError(FatalCategoryError):
    """The destination account has no room left."""

    pass


class MalformedBatchError(FatalCategoryError):
    """The destination rejected the batch as a whole."""

    pass


def is_skippable(exc: BaseException) -> bool:
    """Decide whether a failed item lets the batch continue.

    Only :class:`FatalCategoryError` stops a category. Unexpected exceptions
    raised by a destination are treated as item failures.
    """
    return not isinstance(exc, FatalCategoryError)
