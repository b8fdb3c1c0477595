"""Creation request parsing and field validation

`CreateLinkRequest.from_body()` turns the JSON body of a create request into a
validated value. Every rule violation raises LinkValidationError naming the
offending field; plan limits are checked later (see plans.py).

Accepted body:
    {
        "target_url": "https://example.com/offer",       (required, http/https)
        "label": "Spring campaign",                      (optional, <= 120 chars)
        "max_clicks": 3,                                 (optional, positive integer)
        "expires_at": "2026-11-01T00:00:00Z",            (optional, ISO-8601, future)
        "reveal_at": "2026-10-20T09:00:00+02:00",        (optional, ISO-8601, future, < expires_at)
        "is_phantom": false,                             (optional)
        "password": "s3cret"                             (optional)
    }
"""

import urllib.parse
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Optional

from linkgate.constants import LABEL_MAX_LENGTH, PlanLimits
from linkgate.exceptions import LinkValidationError
from linkgate.utils.passwords import MAX_PASSWORD_BYTES


@dataclass(frozen=True)
class CreateLinkRequest:
    target_url: str
    label: Optional[str] = None
    max_clicks: Optional[int] = None
    expires_at: Optional[datetime] = None
    reveal_at: Optional[datetime] = None
    is_phantom: bool = False
    password: Optional[str] = None

    @classmethod
    def from_body(cls, body: Any, now: datetime) -> 'CreateLinkRequest':
        """Validate a decoded JSON body against the creation rules

        Raises:
            LinkValidationError:
                If any field is missing, malformed or inconsistent.
        """
        if not isinstance(body, dict):
            raise LinkValidationError('body', 'must be a JSON object')

        target_url = _target_url(body.get('target_url'))
        label = _label(body.get('label'))
        max_clicks = _max_clicks(body.get('max_clicks'))
        expires_at = _future_datetime('expires_at', body.get('expires_at'), now)
        reveal_at = _future_datetime('reveal_at', body.get('reveal_at'), now)

        is_phantom = body.get('is_phantom', False)
        if not isinstance(is_phantom, bool):
            raise LinkValidationError('is_phantom', 'must be a boolean')

        password = body.get('password')
        if password is not None and not isinstance(password, str):
            raise LinkValidationError('password', 'must be a string')
        if password and len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise LinkValidationError('password', f'must be at most {MAX_PASSWORD_BYTES} bytes')

        if reveal_at is not None and expires_at is not None and reveal_at >= expires_at:
            raise LinkValidationError('reveal_at', 'must be earlier than expires_at')
        if is_phantom and max_clicks not in (None, PlanLimits.PHANTOM_MAX_CLICKS):
            raise LinkValidationError('max_clicks', 'phantom links are single-use')

        return cls(
            target_url=target_url,
            label=label,
            max_clicks=max_clicks,
            expires_at=expires_at,
            reveal_at=reveal_at,
            is_phantom=is_phantom,
            password=password or None,
        )


def _target_url(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise LinkValidationError('target_url', 'is required')

    value = value.strip()
    components = urllib.parse.urlsplit(value)
    if components.scheme not in {'http', 'https'} or not components.hostname:
        raise LinkValidationError('target_url', 'must be an absolute http(s) URL')
    return value


def _label(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise LinkValidationError('label', 'must be a string')

    value = value.strip()
    if len(value) > LABEL_MAX_LENGTH:
        raise LinkValidationError('label', f'must be at most {LABEL_MAX_LENGTH} characters')
    return value or None


def _max_clicks(value: Any) -> Optional[int]:
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise LinkValidationError('max_clicks', 'must be a positive integer')
    return value


def _future_datetime(field: str, value: Any, now: datetime) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise LinkValidationError(field, 'must be an ISO-8601 string')

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise LinkValidationError(field, 'must be an ISO-8601 string') from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    if parsed <= now:
        raise LinkValidationError(field, 'must be in the future')
    return parsed.astimezone(UTC)
