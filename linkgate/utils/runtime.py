import os
import random

from linkgate.types import LambdaEvent
from linkgate.constants import ENV


PLAN_CLAIM = 'custom:plan'


def running_locally() -> bool:
    """Return True if running in SAM local invoke/api, False otherwise."""
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(ENV.App.AWS_SAM_LOCAL) == 'true'


def _claims(event: LambdaEvent) -> dict:
    return ((event.get('requestContext') or {}).get('authorizer') or {}).get('claims') or {}


def get_user_id(event: LambdaEvent) -> str | None:
    user_id = _claims(event).get('sub')

    # This is an ugly workaround to test lambdas locally with sam local api,
    # because we can't pass our own user id in the event.
    if user_id is None and running_locally():
        return f'lambda{random.randint(100, 999)}'  # noqa: S311
    return user_id


def get_user_plan(event: LambdaEvent) -> str | None:
    """Return the raw plan claim of the caller (None if absent)."""
    return _claims(event).get(PLAN_CLAIM)
