from linkgate.dao.redis.redis_key_schema import RedisKeySchema
from linkgate.dao.redis.mixins import RedisClientMixin
from linkgate.dao.redis.short_link_redis_dao import ShortLinkRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'ShortLinkRedisDAO',
]
