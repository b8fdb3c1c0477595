"""Unit tests for creation request parsing in request.py."""

from datetime import datetime, timedelta, UTC

import pytest

from linkgate.creation import CreateLinkRequest
from linkgate.exceptions import LinkValidationError


def test_minimal_request(now):
    request = CreateLinkRequest.from_body({'target_url': 'https://example.com/offer'}, now)

    assert request == CreateLinkRequest(target_url='https://example.com/offer')


def test_full_request(now):
    body = {
        'target_url': '  https://example.com/offer  ',
        'label': '  Spring campaign ',
        'max_clicks': 2,
        'expires_at': '2025-11-01T00:00:00Z',
        'reveal_at': '2025-10-20T09:00:00+02:00',
        'is_phantom': False,
        'password': 's3cret',
    }

    request = CreateLinkRequest.from_body(body, now)

    assert request.target_url == 'https://example.com/offer'
    assert request.label == 'Spring campaign'
    assert request.max_clicks == 2
    assert request.expires_at == datetime(2025, 11, 1, tzinfo=UTC)
    assert request.reveal_at == datetime(2025, 10, 20, 7, 0, tzinfo=UTC)
    assert request.password == 's3cret'


def test_naive_datetimes_are_read_as_utc(now):
    request = CreateLinkRequest.from_body({'target_url': 'https://example.com', 'expires_at': '2025-11-01T00:00:00'}, now)
    assert request.expires_at == datetime(2025, 11, 1, tzinfo=UTC)


def test_empty_optional_values_are_dropped(now):
    body = {'target_url': 'https://example.com', 'label': '   ', 'password': '', 'expires_at': '', 'max_clicks': None}

    request = CreateLinkRequest.from_body(body, now)

    assert request.label is None
    assert request.password is None
    assert request.expires_at is None
    assert request.max_clicks is None


def test_phantom_request_without_max_clicks(now):
    request = CreateLinkRequest.from_body({'target_url': 'https://example.com', 'is_phantom': True}, now)
    assert request.is_phantom is True
    assert request.max_clicks is None


@pytest.mark.parametrize(
    'body, field',
    [
        ([], 'body'),
        ('https://example.com', 'body'),
        ({}, 'target_url'),
        ({'target_url': ''}, 'target_url'),
        ({'target_url': 42}, 'target_url'),
        ({'target_url': 'example.com/offer'}, 'target_url'),
        ({'target_url': 'ftp://example.com/file'}, 'target_url'),
        ({'target_url': 'javascript:alert(1)'}, 'target_url'),
        ({'target_url': 'https://'}, 'target_url'),
        ({'target_url': 'https://example.com', 'label': 'x' * 121}, 'label'),
        ({'target_url': 'https://example.com', 'label': 7}, 'label'),
        ({'target_url': 'https://example.com', 'max_clicks': 0}, 'max_clicks'),
        ({'target_url': 'https://example.com', 'max_clicks': -1}, 'max_clicks'),
        ({'target_url': 'https://example.com', 'max_clicks': 2.5}, 'max_clicks'),
        ({'target_url': 'https://example.com', 'max_clicks': '3'}, 'max_clicks'),
        ({'target_url': 'https://example.com', 'max_clicks': True}, 'max_clicks'),
        ({'target_url': 'https://example.com', 'expires_at': 'tomorrow'}, 'expires_at'),
        ({'target_url': 'https://example.com', 'expires_at': 1760000000}, 'expires_at'),
        ({'target_url': 'https://example.com', 'expires_at': '2025-10-15T12:00:00Z'}, 'expires_at'),
        ({'target_url': 'https://example.com', 'reveal_at': '2025-01-01T00:00:00Z'}, 'reveal_at'),
        ({'target_url': 'https://example.com', 'is_phantom': 'yes'}, 'is_phantom'),
        ({'target_url': 'https://example.com', 'password': 1234}, 'password'),
        ({'target_url': 'https://example.com', 'password': 'x' * 73}, 'password'),
        (
            {'target_url': 'https://example.com', 'reveal_at': '2025-11-02T00:00:00Z', 'expires_at': '2025-11-01T00:00:00Z'},
            'reveal_at',
        ),
        (
            {'target_url': 'https://example.com', 'reveal_at': '2025-11-01T00:00:00Z', 'expires_at': '2025-11-01T00:00:00Z'},
            'reveal_at',
        ),
        ({'target_url': 'https://example.com', 'is_phantom': True, 'max_clicks': 3}, 'max_clicks'),
    ],
)
def test_invalid_requests(now, body, field):
    with pytest.raises(LinkValidationError) as exc_info:
        CreateLinkRequest.from_body(body, now)
    assert exc_info.value.field == field


def test_label_at_maximum_length(now):
    request = CreateLinkRequest.from_body({'target_url': 'https://example.com', 'label': 'x' * 120}, now)
    assert len(request.label) == 120


def test_future_boundary(now):
    """A timestamp one microsecond after now is accepted."""
    future = (now + timedelta(microseconds=1)).isoformat()
    request = CreateLinkRequest.from_body({'target_url': 'https://example.com', 'expires_at': future}, now)
    assert request.expires_at > now
