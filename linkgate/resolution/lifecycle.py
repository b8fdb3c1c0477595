"""Link lifecycle authority

Owns the terminal-state transitions of a link. The atomic store asks it, inside
its critical section, what (if anything) must be written after a consuming
access; owners go through it to disable a link. The written values are constants
(active=false, or row absent), so concurrent or repeated writes converge.

Expiry and reveal are never written: they are observed lazily by the evaluator
on the next access.

State machine:
    Scheduled --(now >= reveal_at)--> Active
    Active --(consuming access reaches max_clicks)--> Exhausted
    Active --(now >= expires_at, observed on access)--> Expired
    Active(phantom) --(one consuming access)--> PhantomConsumed
    any --(owner action)--> Disabled

Classes:
    LinkState:
        Observable lifecycle state of a link at a given instant.
    TerminalWrite:
        The persisted effect of a transition (deactivate or delete the row).
    Transition:
        A state change paired with its persisted effect.
    LinkLifecycle:
        Decides transitions; `delete_consumed_phantoms` selects delete over deactivate.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from linkgate.models import ShortLinkModel


class LinkState(StrEnum):
    SCHEDULED = 'scheduled'
    ACTIVE = 'active'
    EXHAUSTED = 'exhausted'
    EXPIRED = 'expired'
    PHANTOM_CONSUMED = 'phantom-consumed'
    DISABLED = 'disabled'


class TerminalWrite(StrEnum):
    DEACTIVATE = 'deactivate'
    DELETE = 'delete'


@dataclass(frozen=True)
class Transition:
    state: LinkState
    write: TerminalWrite


def link_state(link: ShortLinkModel, now: datetime) -> LinkState:
    """Derive the lifecycle state of `link` as observed at `now`."""
    if not link.active:
        if link.is_phantom and link.quota_spent:
            return LinkState.PHANTOM_CONSUMED
        if link.quota_spent:
            return LinkState.EXHAUSTED
        return LinkState.DISABLED

    if link.reveal_at is not None and now < link.reveal_at:
        return LinkState.SCHEDULED
    if link.expires_at is not None and now >= link.expires_at:
        return LinkState.EXPIRED
    if link.quota_spent:
        return LinkState.EXHAUSTED
    return LinkState.ACTIVE


class LinkLifecycle:
    """Decide terminal transitions for links.

    Attributes:
        delete_consumed_phantoms (bool):
            If True, a consumed phantom row is deleted instead of deactivated.

    Example:
        >>> lifecycle = LinkLifecycle()
        >>> lifecycle.after_consume(phantom_link, click_count=1)
        Transition(state=<LinkState.PHANTOM_CONSUMED: 'phantom-consumed'>, write=<TerminalWrite.DEACTIVATE: 'deactivate'>)
    """

    def __init__(self, delete_consumed_phantoms: bool = False):
        self.delete_consumed_phantoms = delete_consumed_phantoms

    def after_consume(self, link: ShortLinkModel, click_count: int) -> Transition | None:
        """Return the transition triggered by a consuming access, if any.

        Args:
            link (ShortLinkModel):
                Link state loaded before the access (pre-increment).
            click_count (int):
                Post-increment click count.
        """
        if link.is_phantom:
            write = TerminalWrite.DELETE if self.delete_consumed_phantoms else TerminalWrite.DEACTIVATE
            return Transition(LinkState.PHANTOM_CONSUMED, write)

        if link.max_clicks is not None and click_count >= link.max_clicks:
            return Transition(LinkState.EXHAUSTED, TerminalWrite.DEACTIVATE)

        return None

    def disable(self) -> Transition:
        return Transition(LinkState.DISABLED, TerminalWrite.DEACTIVATE)

    def delete(self) -> Transition:
        return Transition(LinkState.DISABLED, TerminalWrite.DELETE)
