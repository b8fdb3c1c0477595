"""Abstract base class for ShortLink data access objects (DAOs).

This class establishes a consistent contract for all ShortLink DAO implementations,
regardless of the underlying storage mechanism (e.g., Redis, in-process memory).

Responsibilities:
    - Provide an interface for inserting and retrieving ShortLinkModel objects.
    - Provide the atomic evaluate-and-consume operation used by genuine accesses.
    - Provide the owner-facing terminal operations (disable, delete).
    - Standardize transient-failure handling: bounded retries with exponential backoff,
      then a generic TRANSIENT_ERROR block instead of hanging or double-applying.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from linkgate.dao.redis import ShortLinkRedisDAO

        >>> dao = ShortLinkRedisDAO(...)
        >>> dao.insert(link)

        >>> dao.resolve_and_consume('Kq7mZp2xRt', now=datetime.now(UTC))
        Redirect(target_url='https://example.com/offer')
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from linkgate.constants import Resolution
from linkgate.models import ShortLinkModel
from linkgate.resolution.lifecycle import LinkLifecycle
from linkgate.resolution.outcomes import Block, BlockReason, ConsumeResult
from linkgate.dao.exceptions import CommitOutcomeUnknownError, DataStoreError
from linkgate.utils.passwords import verify_password


logger = logging.getLogger(__name__)


class ShortLinkBaseDAO(ABC):
    """Interface for ShortLink data access objects (DAOs).

    Methods:
        insert(link: ShortLinkModel, **kwargs) -> ShortLinkBaseDAO:
            Insert a new ShortLinkModel into the data store.
            Raises ShortLinkAlreadyExistsError if the token already exists.
            Raises DataStoreError on connection or write failure.

        get(token: str, **kwargs) -> ShortLinkModel:
            Retrieve a ShortLinkModel by token (read-only, no locking).
            Raises ShortLinkNotFoundError if the entry does not exist.
            Raises DataStoreError on connection or read failure.

        resolve_and_consume(token: str, now: datetime, password: str | None) -> Redirect | Block:
            Evaluate and, if allowed, consume one access as a single indivisible unit per token.
            Never raises for store failures: returns Block(TRANSIENT_ERROR) instead.

        disable(token: str, owner_id: str, **kwargs) -> ShortLinkBaseDAO:
            Owner action: set active=false (idempotent).
            Raises ShortLinkNotFoundError if the token is unknown or not owned by owner_id.

        delete(token: str, owner_id: str, **kwargs) -> ShortLinkBaseDAO:
            Owner action: remove the row (idempotent with respect to its effect).
            Raises ShortLinkNotFoundError if the token is unknown or not owned by owner_id.

    Subclassing:
        Implementations provide `_consume_once()`, which must run evaluate + increment +
        lifecycle write inside one per-token critical section and raise
        TransientStoreError (safe to retry) or CommitOutcomeUnknownError (not safe to retry)
        on failure, and `_password_hash()`, a lock-free read of the stored hash.
    """

    def __init__(
        self,
        lifecycle: Optional[LinkLifecycle] = None,
        max_attempts: int = Resolution.MAX_ATTEMPTS,
        backoff_seconds: float = Resolution.BACKOFF_SECONDS,
    ):
        if max_attempts < 1:
            raise ValueError(f'max_attempts must be at least 1 (given value: {max_attempts}).')

        self.lifecycle = lifecycle or LinkLifecycle()
        self.max_attempts = int(max_attempts)
        self.backoff_seconds = float(backoff_seconds)

    @abstractmethod
    def insert(self, link: ShortLinkModel, **kwargs) -> 'ShortLinkBaseDAO':
        """Insert a new ShortLinkModel into the data store.

        Args:
            link (ShortLinkModel):
                The ShortLinkModel instance to be inserted.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            ShortLinkBaseDAO: self (for method chaining)

        Raises:
            ShortLinkAlreadyExistsError:
                If a ShortLinkModel with the same token already exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, token: str, **kwargs) -> ShortLinkModel:
        """Retrieve a ShortLinkModel from the data store by its token.

        Raises:
            ShortLinkNotFoundError:
                If no ShortLinkModel with the given token exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def disable(self, token: str, owner_id: str, **kwargs) -> 'ShortLinkBaseDAO':
        pass

    @abstractmethod
    def delete(self, token: str, owner_id: str, **kwargs) -> 'ShortLinkBaseDAO':
        pass

    @abstractmethod
    def _password_hash(self, token: str) -> Optional[str]:
        """Return the stored password hash of `token` (None if unprotected or missing)."""
        pass

    @abstractmethod
    def _consume_once(self, token: str, now: datetime, password_verified: bool) -> ConsumeResult:
        """Run one attempt of evaluate-and-consume inside the per-token critical section."""
        pass

    def _verify_password(self, token: str, password: Optional[str]) -> bool:
        # Runs outside the per-token lock: a stored hash never changes
        if not password:
            return False
        password_hash = self._password_hash(token)
        return password_hash is not None and verify_password(password, password_hash)

    def resolve_and_consume(self, token: str, now: datetime, password: Optional[str] = None) -> ConsumeResult:
        """Evaluate and consume one genuine access atomically

        Retries aborted attempts (nothing was written) up to `max_attempts` times with
        exponential backoff. An attempt whose commit outcome is unknown is not retried:
        a possibly-applied increment must never be applied twice.

        Args:
            token (str):
                Token of the link being accessed.
            now (datetime):
                Evaluation instant.
            password (Optional[str]):
                Password supplied with the request, if any.

        Returns:
            Redirect | Block:
                Redirect(target_url) if the access was granted and counted,
                Block(reason) otherwise (including Block(TRANSIENT_ERROR) on store failure).
        """
        password_verified = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                if password_verified is None:
                    password_verified = self._verify_password(token, password)
                return self._consume_once(token, now, password_verified)
            except CommitOutcomeUnknownError:
                logger.error(
                    'Store failed while committing a consuming access. Not retrying.',
                    extra={'token': token, 'attempt': attempt},
                    exc_info=True,
                )
                return Block(BlockReason.TRANSIENT_ERROR)
            except DataStoreError as e:
                logger.warning(
                    'Transient store failure while consuming access.',
                    extra={'token': token, 'attempt': attempt, 'reason': str(e)},
                )
                if attempt < self.max_attempts:
                    time.sleep(self.backoff_seconds * 2 ** (attempt - 1))

        logger.error(
            'Giving up on consuming access after %s attempts.',
            self.max_attempts,
            extra={'token': token},
        )
        return Block(BlockReason.TRANSIENT_ERROR)
