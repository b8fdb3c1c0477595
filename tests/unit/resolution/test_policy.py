"""Unit tests for the access policy evaluator in policy.py.

Test coverage includes:

1. Each check in isolation
2. Check ordering (first failing check wins)
3. Time boundaries (reveal_at inclusive, expires_at exclusive)
4. Password gating
5. Purity (no mutation of the link)
"""

from datetime import timedelta

import pytest

from linkgate.resolution import Allow, Block, BlockReason, evaluate
from linkgate.utils.passwords import hash_password


@pytest.fixture(scope='module')
def password_hash() -> str:
    return hash_password('s3cret', rounds=4)


# -------------------------------
# 1. Each check in isolation
# -------------------------------


def test_plain_link_is_allowed(make_link, now):
    assert evaluate(make_link(), now) == Allow()


def test_inactive_link_is_disabled(make_link, now):
    assert evaluate(make_link(active=False), now) == Block(BlockReason.DISABLED)


def test_inactive_link_with_spent_quota_reports_quota_exceeded(make_link, now):
    link = make_link(active=False, max_clicks=3, click_count=3)
    assert evaluate(link, now) == Block(BlockReason.QUOTA_EXCEEDED)


def test_inactive_link_with_quota_left_is_disabled(make_link, now):
    link = make_link(active=False, max_clicks=3, click_count=1)
    assert evaluate(link, now) == Block(BlockReason.DISABLED)


def test_scheduled_link_is_not_yet_available(make_link, now):
    reveal_at = now + timedelta(hours=1)
    decision = evaluate(make_link(reveal_at=reveal_at), now)

    assert decision == Block(BlockReason.NOT_YET_AVAILABLE, reveal_at=reveal_at)
    assert decision.reveal_at == reveal_at


def test_expired_link(make_link, now):
    link = make_link(expires_at=now - timedelta(seconds=1))
    assert evaluate(link, now) == Block(BlockReason.EXPIRED)


def test_exhausted_active_link(make_link, now):
    link = make_link(max_clicks=2, click_count=2)
    assert evaluate(link, now) == Block(BlockReason.QUOTA_EXCEEDED)


def test_link_with_quota_left_is_allowed(make_link, now):
    link = make_link(max_clicks=2, click_count=1)
    assert evaluate(link, now) == Allow()


# -------------------------------
# 2. Check ordering
# -------------------------------


def test_inactive_wins_over_every_other_check(make_link, now, password_hash):
    link = make_link(
        active=False,
        reveal_at=now + timedelta(days=1),
        expires_at=now + timedelta(days=2),
        password_hash=password_hash,
    )
    assert evaluate(link, now).reason is BlockReason.DISABLED


def test_reveal_wins_over_expiry_and_quota(make_link, now):
    link = make_link(
        reveal_at=now + timedelta(minutes=5),
        expires_at=now + timedelta(minutes=10),
        max_clicks=1,
        click_count=1,
    )
    assert evaluate(link, now).reason is BlockReason.NOT_YET_AVAILABLE


def test_expiry_wins_over_quota(make_link, now):
    link = make_link(expires_at=now, max_clicks=1, click_count=1)
    assert evaluate(link, now).reason is BlockReason.EXPIRED


def test_quota_wins_over_password(make_link, now, password_hash):
    link = make_link(max_clicks=1, click_count=1, password_hash=password_hash)
    assert evaluate(link, now, password='s3cret').reason is BlockReason.QUOTA_EXCEEDED


# -------------------------------
# 3. Time boundaries
# -------------------------------


def test_reveal_boundary_is_inclusive(make_link, now):
    """At exactly reveal_at the link is available."""
    link = make_link(reveal_at=now)
    assert evaluate(link, now) == Allow()
    assert evaluate(link, now - timedelta(microseconds=1)).reason is BlockReason.NOT_YET_AVAILABLE


def test_expiry_boundary_is_exclusive(make_link, now):
    """At exactly expires_at the link is expired."""
    link = make_link(expires_at=now)
    assert evaluate(link, now).reason is BlockReason.EXPIRED
    assert evaluate(link, now - timedelta(microseconds=1)) == Allow()


# -------------------------------
# 4. Password gating
# -------------------------------


@pytest.mark.parametrize('password', [None, '', 'guess', 'S3CRET'])
def test_password_required(make_link, now, password_hash, password):
    link = make_link(password_hash=password_hash)
    assert evaluate(link, now, password=password) == Block(BlockReason.PASSWORD_REQUIRED)


def test_correct_password_is_allowed(make_link, now, password_hash):
    link = make_link(password_hash=password_hash)
    assert evaluate(link, now, password='s3cret') == Allow()


def test_pre_verified_password_is_allowed(make_link, now, password_hash):
    link = make_link(password_hash=password_hash)
    assert evaluate(link, now, password_verified=True) == Allow()


def test_failed_verification_wins_over_supplied_password(make_link, now, password_hash):
    link = make_link(password_hash=password_hash)
    assert evaluate(link, now, password='s3cret', password_verified=False) == Block(BlockReason.PASSWORD_REQUIRED)


def test_verification_result_is_ignored_for_open_links(make_link, now):
    assert evaluate(make_link(), now, password_verified=False) == Allow()


# -------------------------------
# 5. Purity
# -------------------------------


def test_evaluate_does_not_change_the_link(make_link, now):
    link = make_link(max_clicks=3, click_count=1)
    snapshot = make_link(max_clicks=3, click_count=1)

    for _ in range(5):
        evaluate(link, now)

    assert link == snapshot
