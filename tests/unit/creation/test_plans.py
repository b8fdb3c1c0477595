"""Unit tests for plan tiers and the max_clicks policy in plans.py."""

import pytest

from linkgate.creation import Plan, resolve_max_clicks
from linkgate.exceptions import PlanLimitError


@pytest.mark.parametrize(
    'claim, expected',
    [
        ('pro', Plan.PRO),
        ('PRO', Plan.PRO),
        (' pro ', Plan.PRO),
        ('free', Plan.FREE),
        ('enterprise', Plan.FREE),
        ('', Plan.FREE),
        (None, Plan.FREE),
    ],
)
def test_plan_from_claim(claim, expected):
    assert Plan.from_claim(claim) is expected


@pytest.mark.parametrize(
    'plan, requested, is_phantom, expected',
    [
        (Plan.FREE, None, False, 3),
        (Plan.FREE, 1, False, 1),
        (Plan.FREE, 3, False, 3),
        (Plan.PRO, None, False, None),
        (Plan.PRO, 1000, False, 1000),
        (Plan.FREE, None, True, 1),
        (Plan.PRO, None, True, 1),
        (Plan.PRO, 1, True, 1),
    ],
)
def test_resolve_max_clicks(plan, requested, is_phantom, expected):
    assert resolve_max_clicks(plan, requested, is_phantom) == expected


@pytest.mark.parametrize('requested', [4, 10, 1000])
def test_free_plan_ceiling(requested):
    with pytest.raises(PlanLimitError) as exc_info:
        resolve_max_clicks(Plan.FREE, requested, is_phantom=False)
    assert exc_info.value.field == 'max_clicks'
