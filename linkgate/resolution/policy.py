"""Access policy evaluator

Pure decision over a link's state and the current time. No I/O, safe to call
any number of times: the speculative path calls it read-only, and the atomic
store calls it as the first half of evaluate-and-consume.

Check order (reasons are user-visible internally and asserted by tests):
    1. inactive                        -> QUOTA_EXCEEDED if the quota is spent, else DISABLED
    2. now < reveal_at                 -> NOT_YET_AVAILABLE (carries reveal_at)
    3. now >= expires_at               -> EXPIRED
    4. click_count >= max_clicks       -> QUOTA_EXCEEDED
    5. password set, not verified      -> PASSWORD_REQUIRED
    6. otherwise                       -> Allow

Example:
    >>> evaluate(link, datetime.now(UTC))
    Allow()
"""

from datetime import datetime
from typing import Optional

from linkgate.models import ShortLinkModel
from linkgate.resolution.outcomes import Allow, Block, BlockReason, Decision
from linkgate.utils.passwords import verify_password


def evaluate(
    link: ShortLinkModel,
    now: datetime,
    password: Optional[str] = None,
    password_verified: Optional[bool] = None,
) -> Decision:
    """Decide whether `link` may be followed at `now`.

    Args:
        link (ShortLinkModel):
            Current link state.
        now (datetime):
            Timezone-aware evaluation instant.
        password (Optional[str]):
            Password supplied with this request, if any.
        password_verified (Optional[bool]):
            Result of checking the supplied password against the link hash ahead of
            time. When given, `password` is ignored and no hashing happens here.

    Returns:
        Allow | Block: Block carries the first failing check's reason.
    """
    if not link.active:
        return Block(BlockReason.QUOTA_EXCEEDED if link.quota_spent else BlockReason.DISABLED)

    if link.reveal_at is not None and now < link.reveal_at:
        return Block(BlockReason.NOT_YET_AVAILABLE, reveal_at=link.reveal_at)

    if link.expires_at is not None and now >= link.expires_at:
        return Block(BlockReason.EXPIRED)

    if link.quota_spent:
        return Block(BlockReason.QUOTA_EXCEEDED)

    if link.password_protected:
        if password_verified is None:
            password_verified = verify_password(password, link.password_hash)
        if not password_verified:
            return Block(BlockReason.PASSWORD_REQUIRED)

    return Allow()
