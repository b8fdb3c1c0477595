"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    ShortLinkNotFoundError:
        Raised when a ShortLinkModel is not found in the data store.

    ShortLinkAlreadyExistsError:
        Raised when attempting to insert a ShortLinkModel whose token is taken.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues, timeouts, OOM, etc.).

    TransientStoreError:
        Raised when an atomic operation was aborted before commit (lock contention,
        optimistic transaction conflict). Nothing was written; safe to retry.

    CommitOutcomeUnknownError:
        Raised when the store connection failed while a commit was in flight.
        The write may or may not have been applied, so it must NOT be retried.

Example:
    >>> from linkgate.dao.exceptions import ShortLinkNotFoundError
    >>> raise ShortLinkNotFoundError("Short link with token 'abc' not found.")
    Traceback (most recent call last):
        ...
    linkgate.dao.exceptions.ShortLinkNotFoundError: Short link with token 'abc' not found.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class ShortLinkNotFoundError(DAOError):
    """Exception raised when a ShortLinkModel is not found in the data store."""

    pass


class ShortLinkAlreadyExistsError(DAOError):
    """Exception raised when attempting to insert a ShortLinkModel whose token already exists."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, OOM, etc.
    """

    pass


class TransientStoreError(DataStoreError):
    """Exception raised when an atomic operation was aborted before commit."""

    pass


class CommitOutcomeUnknownError(DataStoreError):
    """Exception raised when a commit may or may not have been applied."""

    pass
