from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ShortLinkModel:
    """Represent one gated short link (one row per token).

    Optional fields are either present or None; defaults are resolved once when
    the link is built at the creation boundary, never at read sites.

    Attributes:
        token (str):
            Opaque URL-safe identifier, immutable once issued.
        owner_id (str):
            Identity of the owner who created the link.
        target_url (str):
            Absolute http(s) destination.
        created_at (datetime):
            Creation timestamp (UTC).
        active (bool):
            False is terminal. Only the resolution engine and owner disable flip it.
        label (Optional[str]):
            Owner-facing free text.
        expires_at (Optional[datetime]):
            No access is granted at or after this instant.
        reveal_at (Optional[datetime]):
            No access is granted before this instant.
        max_clicks (Optional[int]):
            Quota of consuming accesses; None means unlimited.
        click_count (int):
            Consuming accesses so far, never above max_clicks.
        is_phantom (bool):
            One-shot link; implies max_clicks == 1.
        password_hash (Optional[str]):
            Encoded bcrypt hash of the access password, if any.

    Example:
        >>> from datetime import datetime, UTC
        >>> link = ShortLinkModel(
        ...     token='Kq7mZp2xRt',
        ...     owner_id='user-123',
        ...     target_url='https://example.com/offer',
        ...     created_at=datetime.now(UTC),
        ...     max_clicks=3,
        ... )
        >>> link.quota_spent
        False
    """

    token: str
    owner_id: str
    target_url: str
    created_at: datetime
    active: bool = True
    label: Optional[str] = None
    expires_at: Optional[datetime] = None
    reveal_at: Optional[datetime] = None
    max_clicks: Optional[int] = None
    click_count: int = 0
    is_phantom: bool = False
    password_hash: Optional[str] = None

    def __post_init__(self):
        if self.click_count < 0:
            raise ValueError(f'click_count must be non-negative (given value: {self.click_count}).')
        if self.max_clicks is not None and self.max_clicks < 1:
            raise ValueError(f'max_clicks must be a positive integer (given value: {self.max_clicks}).')
        if self.is_phantom and self.max_clicks != 1:
            raise ValueError(f'Phantom links must have max_clicks == 1 (given value: {self.max_clicks}).')

    @property
    def quota_spent(self) -> bool:
        return self.max_clicks is not None and self.click_count >= self.max_clicks

    @property
    def password_protected(self) -> bool:
        return self.password_hash is not None
