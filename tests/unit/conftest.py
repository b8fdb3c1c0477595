from collections.abc import Callable
from datetime import datetime, UTC

import pytest

from linkgate.models import ShortLinkModel


NOW = datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_link() -> Callable[..., ShortLinkModel]:
    """Build ShortLinkModel instances with sensible defaults (override any field)."""

    def _make_link(**overrides) -> ShortLinkModel:
        fields = {
            'token': 'Kq7mZp2xRt',
            'owner_id': 'user123',
            'target_url': 'https://example.com/offer',
            'created_at': datetime(2025, 10, 1, tzinfo=UTC),
        }
        fields.update(overrides)
        return ShortLinkModel(**fields)

    return _make_link
