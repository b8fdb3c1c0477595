import functools
from datetime import datetime
from typing import TypeVar, Any
from collections.abc import Callable

import redis

from linkgate.models import ShortLinkModel
from linkgate.dao.exceptions import DataStoreError


__all__ = []

F = TypeVar('F', bound=Callable[..., Any])

TRUE, FALSE = '1', '0'


def handle_redis_connection_error[F](method: F) -> F:
    """Wrap Redis-interacting DAO methods to handle connection errors

    Args:
        method (Callable[..., Any]):
            DAO method performing Redis operations which may raise redis.exceptions.ConnectionError
            or redis.exceptions.TimeoutError.

    Returns:
        Callable[..., Any]:
            Wrapped method which raises DataStoreError on connectivity issues with Redis.

    Example:
        >>> @handle_redis_connection_error
        ... def get_link(self, token):
        ...     return self.redis.hgetall(token)
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            info = self.redis.connection_pool.connection_kwargs
            redis_host = info.get('host')
            redis_port = info.get('port')
            redis_db = info.get('db')
            raise DataStoreError(f"Can't connect to Redis at {redis_host}:{redis_port}/{redis_db}.") from e

    return wrapper


def _encode_datetime(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _decode_datetime(value: str | None) -> datetime | None:
    return None if value in (None, '') else datetime.fromisoformat(value)


def link_to_hash(link: ShortLinkModel) -> dict[str, str]:
    """Serialize a ShortLinkModel into a flat Redis hash mapping

    Optional fields that are None are left out of the hash entirely, so a field is
    either present with a value or absent.
    """
    # fmt: off
    mapping = {
        'token':         link.token,
        'owner_id':      link.owner_id,
        'target_url':    link.target_url,
        'created_at':    _encode_datetime(link.created_at),
        'active':        TRUE if link.active else FALSE,
        'label':         link.label,
        'expires_at':    _encode_datetime(link.expires_at),
        'reveal_at':     _encode_datetime(link.reveal_at),
        'max_clicks':    None if link.max_clicks is None else str(link.max_clicks),
        'click_count':   str(link.click_count),
        'is_phantom':    TRUE if link.is_phantom else FALSE,
        'password_hash': link.password_hash,
    }
    # fmt: on
    return {field: value for field, value in mapping.items() if value is not None}


def hash_to_link(data: dict[str, str]) -> ShortLinkModel:
    """Deserialize a Redis hash (decoded responses) into a ShortLinkModel."""
    max_clicks = data.get('max_clicks')
    return ShortLinkModel(
        token=data['token'],
        owner_id=data['owner_id'],
        target_url=data['target_url'],
        created_at=_decode_datetime(data['created_at']),
        active=data.get('active', TRUE) == TRUE,
        label=data.get('label'),
        expires_at=_decode_datetime(data.get('expires_at')),
        reveal_at=_decode_datetime(data.get('reveal_at')),
        max_clicks=None if max_clicks in (None, '') else int(max_clicks),
        click_count=int(data.get('click_count', 0)),
        is_phantom=data.get('is_phantom', FALSE) == TRUE,
        password_hash=data.get('password_hash'),
    )
