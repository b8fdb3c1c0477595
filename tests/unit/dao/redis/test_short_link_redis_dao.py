"""Unit tests for the ShortLinkRedisDAO

Test coverage includes:

1. Insertion behavior
   - Validates inserting a link writes one hash inside a WATCHed transaction.
   - Ensures invalid types raise TypeError or BeartypeCallHintParamViolation.
   - Confirms duplicate (or concurrently written) tokens raise ShortLinkAlreadyExistsError.
   - Confirms Redis connection errors raise DataStoreError.

2. Retrieval behavior
   - Ensures fetching a stored token returns a populated ShortLinkModel.
   - Confirms missing keys raise ShortLinkNotFoundError.

3. Evaluate-and-consume
   - Allowed accesses increment click_count; exhausting ones also deactivate.
   - Blocked accesses never open a transaction.
   - Lock contention and WATCH conflicts are retried.
   - A connection lost during EXEC is not retried.
   - The per-token lock is always released; a failed release never masks the outcome.
   - Passwords are verified once, before the lock is taken.

4. Owner actions
   - disable / delete write their terminal value; foreign tokens look missing.
"""

import logging
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import redis
from beartype.roar import BeartypeCallHintParamViolation

from linkgate.dao.exceptions import (
    DataStoreError,
    ShortLinkAlreadyExistsError,
    ShortLinkNotFoundError,
    TransientStoreError,
)
from linkgate.dao.redis import ShortLinkRedisDAO
from linkgate.dao.redis.helpers import link_to_hash
from linkgate.resolution import Block, BlockReason, LinkLifecycle, LinkState, Redirect
from linkgate.utils.passwords import hash_password


LINK_KEY = 'testapp:test:links:Kq7mZp2xRt'
LOCK_KEY = 'testapp:test:links:Kq7mZp2xRt:lock'


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def dao(redis_client, app_prefix) -> ShortLinkRedisDAO:
    return ShortLinkRedisDAO(redis_client=redis_client, prefix=app_prefix, backoff_seconds=0)


@pytest.fixture
def lock(redis_client):
    return redis_client.lock.return_value


# -------------------------------
# 1. Insertion behavior
# -------------------------------


def test_insert_link(dao, redis_client, make_link):
    link = make_link(max_clicks=3, label='Spring campaign')

    assert dao.insert(link) is dao

    redis_client.watch.assert_called_once_with(LINK_KEY)
    redis_client.exists.assert_called_once_with(LINK_KEY)
    redis_client.multi.assert_called_once()
    redis_client.hset.assert_called_once_with(LINK_KEY, mapping=link_to_hash(link))
    redis_client.execute.assert_called_once()


def test_insert_link_with_invalid_type(dao):
    with pytest.raises((TypeError, BeartypeCallHintParamViolation)):
        dao.insert('https://example.com/notamodel')


def test_insert_existing_token(dao, redis_client, make_link):
    redis_client.exists.return_value = True

    with pytest.raises(ShortLinkAlreadyExistsError):
        dao.insert(make_link())
    redis_client.execute.assert_not_called()


def test_insert_concurrently_written_token(dao, redis_client, make_link):
    redis_client.execute.side_effect = redis.exceptions.WatchError()

    with pytest.raises(ShortLinkAlreadyExistsError):
        dao.insert(make_link())


def test_insert_with_redis_connection_error(dao, redis_client, make_link):
    redis_client.execute.side_effect = redis.exceptions.ConnectionError()

    with pytest.raises(DataStoreError, match="Can't connect to Redis at redis.test:6379/0."):
        dao.insert(make_link())


# -------------------------------
# 2. Retrieval behavior
# -------------------------------


def test_get_link(dao, redis_client, make_link, now):
    link = make_link(max_clicks=3, click_count=1, expires_at=now + timedelta(days=1))
    redis_client.hgetall.return_value = link_to_hash(link)

    assert dao.get('Kq7mZp2xRt') == link
    redis_client.hgetall.assert_called_once_with(LINK_KEY)


def test_get_missing_link(dao, redis_client):
    redis_client.hgetall.return_value = {}

    with pytest.raises(ShortLinkNotFoundError):
        dao.get('Kq7mZp2xRt')


def test_get_with_invalid_type(dao):
    with pytest.raises((TypeError, BeartypeCallHintParamViolation)):
        dao.get(12345)


def test_get_with_redis_connection_error(dao, redis_client):
    redis_client.hgetall.side_effect = redis.exceptions.TimeoutError()

    with pytest.raises(DataStoreError):
        dao.get('Kq7mZp2xRt')


# -------------------------------
# 3. Evaluate-and-consume
# -------------------------------


def test_consume_allowed_access(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link(max_clicks=3, click_count=1))

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')

    redis_client.lock.assert_called_once_with(LOCK_KEY, timeout=dao.lock_timeout, blocking_timeout=dao.lock_blocking_timeout)
    redis_client.watch.assert_called_once_with(LINK_KEY)
    redis_client.multi.assert_called_once()
    redis_client.hset.assert_called_once_with(LINK_KEY, 'click_count', '2')
    redis_client.execute.assert_called_once()
    lock.release.assert_called_once()


def test_consume_exhausting_access_deactivates(dao, redis_client, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link(max_clicks=3, click_count=2))

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')

    assert redis_client.hset.call_args_list[0].args == (LINK_KEY, 'click_count', '3')
    assert redis_client.hset.call_args_list[1].args == (LINK_KEY, 'active', '0')


def test_consume_phantom_in_delete_mode(redis_client, app_prefix, make_link, now):
    dao = ShortLinkRedisDAO(redis_client=redis_client, prefix=app_prefix, lifecycle=LinkLifecycle(delete_consumed_phantoms=True))
    redis_client.hgetall.return_value = link_to_hash(make_link(is_phantom=True, max_clicks=1))

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')
    redis_client.delete.assert_called_once_with(LINK_KEY)


def test_consume_blocked_access_writes_nothing(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link(expires_at=now - timedelta(minutes=1)))

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.EXPIRED)

    redis_client.multi.assert_not_called()
    redis_client.hset.assert_not_called()
    redis_client.execute.assert_not_called()
    lock.release.assert_called_once()


def test_consume_missing_link(dao, redis_client, now):
    redis_client.hgetall.return_value = {}

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.NOT_FOUND)
    redis_client.execute.assert_not_called()


def test_consume_lock_contention_is_retried(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link())
    lock.acquire.side_effect = [False, True]

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')
    assert lock.acquire.call_count == 2
    lock.release.assert_called_once()


def test_consume_gives_up_after_max_attempts(dao, redis_client, lock, now):
    lock.acquire.return_value = False

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.TRANSIENT_ERROR)
    assert lock.acquire.call_count == dao.max_attempts
    redis_client.hgetall.assert_not_called()


def test_consume_watch_conflict_is_retried(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link())
    redis_client.execute.side_effect = [redis.exceptions.WatchError(), [1]]

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')
    assert redis_client.execute.call_count == 2
    assert lock.release.call_count == 2


def test_consume_connection_lost_before_commit_is_retried(dao, redis_client, make_link, now):
    redis_client.hgetall.side_effect = [redis.exceptions.ConnectionError(), link_to_hash(make_link())]

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')
    redis_client.execute.assert_called_once()


def test_consume_connection_lost_during_commit_is_not_retried(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link())
    redis_client.execute.side_effect = redis.exceptions.ConnectionError()

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.TRANSIENT_ERROR)
    redis_client.execute.assert_called_once()
    lock.release.assert_called_once()


def test_consume_survives_expired_lock_release(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link())
    lock.release.side_effect = redis.exceptions.LockNotOwnedError('expired')

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')


def test_consume_release_failure_keeps_unknown_commit_outcome(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link())
    redis_client.execute.side_effect = [redis.exceptions.TimeoutError(), None]
    lock.release.side_effect = [redis.exceptions.ConnectionError(), None]

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.TRANSIENT_ERROR)
    redis_client.execute.assert_called_once()
    assert lock.acquire.call_count == 1


def test_consume_release_failure_keeps_redirect(dao, redis_client, lock, make_link, now):
    redis_client.hgetall.return_value = link_to_hash(make_link())
    lock.release.side_effect = redis.exceptions.TimeoutError()

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Redirect('https://example.com/offer')
    redis_client.execute.assert_called_once()


@pytest.fixture
def gated_link(make_link):
    return make_link(password_hash=hash_password('s3cret', rounds=4))


def test_consume_verifies_password_before_locking(dao, redis_client, lock, gated_link, now):
    redis_client.hget.return_value = gated_link.password_hash
    redis_client.hgetall.return_value = link_to_hash(gated_link)
    calls = MagicMock()
    calls.attach_mock(redis_client.hget, 'hget')
    calls.attach_mock(lock.acquire, 'acquire')

    assert dao.resolve_and_consume('Kq7mZp2xRt', now, password='s3cret') == Redirect('https://example.com/offer')

    redis_client.hget.assert_called_once_with(LINK_KEY, 'password_hash')
    assert [c[0] for c in calls.mock_calls] == ['hget', 'acquire']
    redis_client.execute.assert_called_once()


def test_consume_wrong_password_writes_nothing(dao, redis_client, lock, gated_link, now):
    redis_client.hget.return_value = gated_link.password_hash
    redis_client.hgetall.return_value = link_to_hash(gated_link)

    assert dao.resolve_and_consume('Kq7mZp2xRt', now, password='guess') == Block(BlockReason.PASSWORD_REQUIRED)
    redis_client.execute.assert_not_called()
    lock.release.assert_called_once()


def test_consume_password_is_verified_once_across_retries(dao, redis_client, lock, gated_link, now):
    redis_client.hget.return_value = gated_link.password_hash
    redis_client.hgetall.return_value = link_to_hash(gated_link)
    redis_client.execute.side_effect = [redis.exceptions.WatchError(), [1]]

    assert dao.resolve_and_consume('Kq7mZp2xRt', now, password='s3cret') == Redirect('https://example.com/offer')
    redis_client.hget.assert_called_once()
    assert lock.acquire.call_count == 2


def test_consume_without_password_skips_hash_read(dao, redis_client, gated_link, now):
    redis_client.hgetall.return_value = link_to_hash(gated_link)

    assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.PASSWORD_REQUIRED)
    redis_client.hget.assert_not_called()


def test_consume_blocked_access_logs_link_state(dao, redis_client, make_link, now, caplog):
    redis_client.hgetall.return_value = link_to_hash(make_link(max_clicks=2, click_count=2))

    with caplog.at_level(logging.DEBUG, logger='linkgate.dao.redis.short_link_redis_dao'):
        assert dao.resolve_and_consume('Kq7mZp2xRt', now) == Block(BlockReason.QUOTA_EXCEEDED)

    record = next(r for r in caplog.records if r.getMessage() == 'Consume blocked.')
    assert record.state is LinkState.EXHAUSTED
    assert record.reason is BlockReason.QUOTA_EXCEEDED


# -------------------------------
# 4. Owner actions
# -------------------------------


def test_disable_link(dao, redis_client):
    redis_client.hget.return_value = 'user123'

    assert dao.disable('Kq7mZp2xRt', 'user123') is dao

    redis_client.hget.assert_called_once_with(LINK_KEY, 'owner_id')
    redis_client.hset.assert_called_once_with(LINK_KEY, 'active', '0')
    redis_client.execute.assert_called_once()


def test_delete_link(dao, redis_client):
    redis_client.hget.return_value = 'user123'

    assert dao.delete('Kq7mZp2xRt', 'user123') is dao

    redis_client.delete.assert_called_once_with(LINK_KEY)
    redis_client.execute.assert_called_once()


@pytest.mark.parametrize('action', ['disable', 'delete'])
@pytest.mark.parametrize('stored_owner', [None, 'someone-else'])
def test_owner_action_on_missing_or_foreign_link(dao, redis_client, action, stored_owner):
    redis_client.hget.return_value = stored_owner

    with pytest.raises(ShortLinkNotFoundError):
        getattr(dao, action)('Kq7mZp2xRt', 'user123')
    redis_client.execute.assert_not_called()


def test_owner_action_conflict(dao, redis_client):
    redis_client.hget.return_value = 'user123'
    redis_client.execute.side_effect = redis.exceptions.WatchError()

    with pytest.raises(TransientStoreError):
        dao.disable('Kq7mZp2xRt', 'user123')
