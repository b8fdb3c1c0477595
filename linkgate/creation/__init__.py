from linkgate.creation.plans import Plan, resolve_max_clicks
from linkgate.creation.request import CreateLinkRequest
from linkgate.creation.factory import build_link, issue_link


__all__ = [
    'Plan',
    'resolve_max_clicks',
    'CreateLinkRequest',
    'build_link',
    'issue_link',
]
