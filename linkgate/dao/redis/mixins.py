"""Shared Redis plumbing for the link store

Every Redis-backed DAO in linkgate talks to one logical store: link hashes under
`<prefix>:links:<token>` and one lock key per token next to them. This mixin owns
the pieces that don't depend on what a DAO does with a link:

    - the client (built from connection settings or injected by tests);
    - the key schema bound to the app/env prefix;
    - the per-token lock factory that serializes consuming accesses;
    - the startup PING, so an unreachable store fails the request before any
      link is read (the resolver then fails closed).

Classes:
    - RedisClientMixin: client, key schema and per-token locks for link DAOs.

Example:
    >>> class ShortLinkRedisDAO(RedisClientMixin, ShortLinkBaseDAO):
    ...     pass
    ...
    >>> dao = ShortLinkRedisDAO(prefix="linkgate:prod")
    >>> dao.link_lock('Kq7mZp2xRt').name
    'linkgate:prod:links:Kq7mZp2xRt:lock'
"""

from typing import Optional

import redis
from redis.lock import Lock

from linkgate.constants import Resolution
from linkgate.dao.redis.redis_key_schema import RedisKeySchema
from linkgate.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Redis client, key schema and per-token locks for link DAOs.

    Attributes:
        redis (redis.Redis):
            Client of the link store.
        keys (RedisKeySchema):
            Link and lock key names under the app/env prefix.
        lock_timeout (float):
            Seconds after which a per-token lock auto-releases. Bounds how long a
            crashed resolver can keep a token's accesses waiting.
        lock_blocking_timeout (float):
            Seconds an access waits for a token's lock before giving up.
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int] = 6379,
        redis_db: Optional[int] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_client: Optional[redis.Redis] = None,
        prefix: Optional[str] = None,
        lock_timeout: float = Resolution.LOCK_TIMEOUT_SECONDS,
        lock_blocking_timeout: float = Resolution.LOCK_BLOCKING_TIMEOUT_SECONDS,
    ):
        """Connect to the link store

        Connection settings come from the `redis` section of the lambda configuration;
        `redis_client` replaces them entirely. Link hashes are decoded to str, which
        the hash <-> model converters rely on.

        Raises:
            DataStoreError:
                If the store doesn't answer the startup PING.
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)
        self.lock_timeout = float(lock_timeout)
        self.lock_blocking_timeout = float(lock_blocking_timeout)

        self._healthcheck()

    def link_lock(self, token: str) -> Lock:
        """Lock serializing the consuming accesses of one token. Other tokens never contend."""
        return self.redis.lock(
            self.keys.link_lock_key(token),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_blocking_timeout,
        )

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING the link store

        Returns:
            bool:
                True if the store answered. False only when raise_error=False.

        Raises:
            DataStoreError:
                If the store is unreachable and raise_error=True.
        """
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            if raise_error:
                info = self.redis.connection_pool.connection_kwargs
                redis_host = info.get('host')
                redis_port = info.get('port')
                redis_db = info.get('db')
                raise DataStoreError(
                    f"Can't connect to Redis at {redis_host}:{redis_port}/{redis_db}. Check the provided configuration parameters."
                ) from e
            return False
        else:
            return True
