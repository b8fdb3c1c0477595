"""Data Access Object (DAO) implementation for managing gated short links in Redis

This module provides a Redis-based implementation of ShortLinkBaseDAO. Each link is
one Redis hash (`<prefix>:links:<token>`); optional fields absent from the model
are absent from the hash.

Responsibilities:
    - Insert links with a uniqueness guarantee on the token;
    - Retrieve links for read-only (speculative) evaluation;
    - Evaluate-and-consume genuine accesses atomically per token;
    - Persist terminal lifecycle writes (deactivate / delete);
    - Translate Redis failures into DAO exceptions.

Atomicity of evaluate-and-consume:
    Every consuming access of a token runs inside a per-token Redis lock
    (`<prefix>:links:<token>:lock`), so accesses of one token are serialized while
    different tokens never contend. Inside the lock the hash is WATCHed, evaluated
    and written back in a MULTI/EXEC transaction. The lock alone would be enough
    while it is held; the WATCH makes a late writer (whose lock already timed out)
    abort instead of overwriting a newer click_count.

Classes:
    ShortLinkRedisDAO:
        DAO for storing, retrieving and consuming ShortLinkModel in a Redis datastore.

Example:
    >>> from linkgate.dao.redis import ShortLinkRedisDAO

    >>> dao = ShortLinkRedisDAO(prefix="linkgate:dev")
    >>> dao.insert(link)
    <ShortLinkRedisDAO>

    >>> dao.resolve_and_consume(link.token, now=datetime.now(UTC))
    Redirect(target_url='https://example.com/offer')
"""

import logging
from datetime import datetime
from typing import Optional

import redis
from beartype import beartype

from linkgate.constants import Resolution
from linkgate.models import ShortLinkModel
from linkgate.dao.base import ShortLinkBaseDAO
from linkgate.dao.redis.mixins import RedisClientMixin
from linkgate.dao.redis.helpers import handle_redis_connection_error, link_to_hash, hash_to_link, FALSE
from linkgate.dao.exceptions import (
    CommitOutcomeUnknownError,
    ShortLinkAlreadyExistsError,
    ShortLinkNotFoundError,
    TransientStoreError,
)
from linkgate.resolution.lifecycle import LinkLifecycle, TerminalWrite, Transition, link_state
from linkgate.resolution.outcomes import Block, BlockReason, ConsumeResult, Redirect
from linkgate.resolution.policy import evaluate


logger = logging.getLogger(__name__)


class ShortLinkRedisDAO(RedisClientMixin, ShortLinkBaseDAO):
    """Redis-based Data Access Object (DAO) for gated short links

    Attributes (see RedisClientMixin and ShortLinkBaseDAO):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.
        lifecycle (LinkLifecycle):
            Decides terminal writes after consuming accesses and owner actions.
        lock_timeout (float):
            Seconds after which a per-token lock auto-releases.
        lock_blocking_timeout (float):
            Seconds to wait for a per-token lock before the attempt is aborted.

    Methods:
        insert(link: ShortLinkModel, **kwargs) -> ShortLinkRedisDAO
        get(token: str, **kwargs) -> ShortLinkModel
        resolve_and_consume(token: str, now: datetime, password: str | None) -> Redirect | Block
        disable(token: str, owner_id: str, **kwargs) -> ShortLinkRedisDAO
        delete(token: str, owner_id: str, **kwargs) -> ShortLinkRedisDAO
    """

    def __init__(
        self,
        *,
        lifecycle: Optional[LinkLifecycle] = None,
        max_attempts: int = Resolution.MAX_ATTEMPTS,
        backoff_seconds: float = Resolution.BACKOFF_SECONDS,
        **redis_kwargs,
    ):
        RedisClientMixin.__init__(self, **redis_kwargs)
        ShortLinkBaseDAO.__init__(self, lifecycle=lifecycle, max_attempts=max_attempts, backoff_seconds=backoff_seconds)

    @handle_redis_connection_error
    @beartype
    def insert(self, link: ShortLinkModel, **kwargs) -> 'ShortLinkRedisDAO':
        """Insert a link hash into Redis

        The existence check and the write run in one optimistic transaction, so two
        concurrent inserts of the same token can't both succeed.

        Raises:
            ShortLinkAlreadyExistsError:
                If a link with the same token already exists (or was written concurrently).
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        link_key = self.keys.link_key(link.token)

        with self.redis.pipeline(transaction=True) as pipe:
            try:
                pipe.watch(link_key)
                if pipe.exists(link_key):
                    raise ShortLinkAlreadyExistsError(f"Short link with token '{link.token}' already exists.")
                pipe.multi()
                pipe.hset(link_key, mapping=link_to_hash(link))
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise ShortLinkAlreadyExistsError(f"Short link with token '{link.token}' was written concurrently.") from e

        return self

    @handle_redis_connection_error
    @beartype
    def get(self, token: str, **kwargs) -> ShortLinkModel:
        """Retrieve a stored link by token (no locking)

        Raises:
            ShortLinkNotFoundError:
                If the link does not exist in Redis.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        data = self.redis.hgetall(self.keys.link_key(token))
        if not data:
            raise ShortLinkNotFoundError(f"Short link with token '{token}' not found.")
        return hash_to_link(data)

    @handle_redis_connection_error
    def _password_hash(self, token: str) -> Optional[str]:
        return self.redis.hget(self.keys.link_key(token), 'password_hash')

    @handle_redis_connection_error
    def _consume_once(self, token: str, now: datetime, password_verified: bool) -> ConsumeResult:
        lock = self.link_lock(token)
        if not lock.acquire():
            raise TransientStoreError(f"Timed out waiting for the lock of short link '{token}'.")

        try:
            return self._consume_locked(token, now, password_verified)
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                # The transaction was guarded by WATCH, so an expired lock doesn't affect the result
                logger.warning('Per-token lock expired before release.', extra={'token': token})
            except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError):
                # Must not mask the attempt's outcome: the lock times out on its own
                logger.warning('Failed to release per-token lock.', extra={'token': token}, exc_info=True)

    def _consume_locked(self, token: str, now: datetime, password_verified: bool) -> ConsumeResult:
        link_key = self.keys.link_key(token)

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.watch(link_key)
            data = pipe.hgetall(link_key)
            if not data:
                return Block(BlockReason.NOT_FOUND)

            link = hash_to_link(data)
            decision = evaluate(link, now, password_verified=password_verified)
            if isinstance(decision, Block):
                logger.debug(
                    'Consume blocked.',
                    extra={'token': token, 'state': link_state(link, now), 'reason': decision.reason},
                )
                return decision

            click_count = link.click_count + 1
            transition = self.lifecycle.after_consume(link, click_count)

            pipe.multi()
            pipe.hset(link_key, 'click_count', str(click_count))
            if transition is not None:
                self._queue_transition(pipe, link_key, transition)

            try:
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise TransientStoreError(f"Short link '{token}' changed during consume.") from e
            except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
                raise CommitOutcomeUnknownError(f"Lost connection while committing consume of short link '{token}'.") from e

        if transition is not None:
            logger.info(
                'Short link reached a terminal state.',
                extra={'token': token, 'state': transition.state, 'write': transition.write},
            )
        return Redirect(link.target_url)

    @handle_redis_connection_error
    @beartype
    def disable(self, token: str, owner_id: str, **kwargs) -> 'ShortLinkRedisDAO':
        """Owner action: set active=false. Re-disabling is a no-op.

        Raises:
            ShortLinkNotFoundError:
                If the link doesn't exist or belongs to another owner.
            TransientStoreError:
                If the link changed while being disabled.
        """
        return self._apply_owner_transition(token, owner_id, self.lifecycle.disable())

    @handle_redis_connection_error
    @beartype
    def delete(self, token: str, owner_id: str, **kwargs) -> 'ShortLinkRedisDAO':
        """Owner action: remove the link hash.

        Raises:
            ShortLinkNotFoundError:
                If the link doesn't exist or belongs to another owner.
            TransientStoreError:
                If the link changed while being deleted.
        """
        return self._apply_owner_transition(token, owner_id, self.lifecycle.delete())

    def _apply_owner_transition(self, token: str, owner_id: str, transition: Transition) -> 'ShortLinkRedisDAO':
        link_key = self.keys.link_key(token)

        with self.redis.pipeline(transaction=True) as pipe:
            try:
                pipe.watch(link_key)
                # Unknown and foreign tokens are indistinguishable to the caller
                if pipe.hget(link_key, 'owner_id') != owner_id:
                    raise ShortLinkNotFoundError(f"Short link with token '{token}' not found.")
                pipe.multi()
                self._queue_transition(pipe, link_key, transition)
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise TransientStoreError(f"Short link '{token}' changed during owner update.") from e

        return self

    @staticmethod
    def _queue_transition(pipe: redis.client.Pipeline, link_key: str, transition: Transition) -> None:
        # Constant target values: repeated or concurrent writes converge
        if transition.write is TerminalWrite.DELETE:
            pipe.delete(link_key)
        else:
            pipe.hset(link_key, 'active', FALSE)
