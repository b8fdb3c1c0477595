"""Plan tiers and the server-side max_clicks policy

The owner's plan comes from the `custom:plan` JWT claim. Anything other than
'pro' (including a missing claim) is treated as 'free'.

Example:
    >>> resolve_max_clicks(Plan.FREE, requested=None, is_phantom=False)
    3
    >>> resolve_max_clicks(Plan.PRO, requested=None, is_phantom=False) is None
    True
    >>> resolve_max_clicks(Plan.FREE, requested=5, is_phantom=False)
    PlanLimitError: max_clicks: the free plan allows 1 to 3 clicks per link
"""

from enum import StrEnum
from typing import Optional

from linkgate.constants import PlanLimits
from linkgate.exceptions import PlanLimitError


class Plan(StrEnum):
    FREE = 'free'
    PRO = 'pro'

    @classmethod
    def from_claim(cls, claim: Optional[str]) -> 'Plan':
        return cls.PRO if (claim or '').strip().lower() == cls.PRO else cls.FREE


def resolve_max_clicks(plan: Plan, requested: Optional[int], is_phantom: bool) -> Optional[int]:
    """Return the max_clicks value to store for a new link

    Args:
        plan (Plan):
            Owner's plan tier.
        requested (Optional[int]):
            Value from the creation request (already validated as a positive integer).
        is_phantom (bool):
            Phantom links are always single-use, whatever the plan.

    Returns:
        Optional[int]: None means unlimited (pro only).

    Raises:
        PlanLimitError:
            If the requested value exceeds what the plan allows.
    """
    if is_phantom:
        return PlanLimits.PHANTOM_MAX_CLICKS

    if plan is Plan.PRO:
        return requested

    if requested is None:
        return PlanLimits.FREE_DEFAULT_MAX_CLICKS
    if requested > PlanLimits.FREE_MAX_CLICKS_CEILING:
        raise PlanLimitError(
            'max_clicks',
            f'the free plan allows 1 to {PlanLimits.FREE_MAX_CLICKS_CEILING} clicks per link',
        )
    return requested
