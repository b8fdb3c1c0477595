"""Building and issuing new short links

Functions:
    build_link(request, token, owner_id, plan, now, password_hash=None) -> ShortLinkModel
        Resolve creation-time defaults (plan policy) into a complete record.
    issue_link(dao, request, owner_id, plan, now, token_factory, attempts) -> ShortLinkModel
        Build and insert a link, retrying token generation on collisions.

Example:
    >>> link = issue_link(dao, CreateLinkRequest(target_url='https://example.com'), 'user-123', Plan.FREE)
    >>> link.max_clicks
    3
"""

import logging
from collections.abc import Callable
from datetime import datetime, UTC
from typing import Optional

from linkgate.constants import Token
from linkgate.models import ShortLinkModel
from linkgate.dao.base import ShortLinkBaseDAO
from linkgate.dao.exceptions import ShortLinkAlreadyExistsError
from linkgate.exceptions import TokenGenerationError
from linkgate.creation.plans import Plan, resolve_max_clicks
from linkgate.creation.request import CreateLinkRequest
from linkgate.utils.passwords import hash_password
from linkgate.utils.shortener import generate_token


logger = logging.getLogger(__name__)


def build_link(
    request: CreateLinkRequest,
    token: str,
    owner_id: str,
    plan: Plan,
    now: datetime,
    password_hash: Optional[str] = None,
) -> ShortLinkModel:
    """Build the record stored for a creation request

    Raises:
        PlanLimitError:
            If the request exceeds the owner's plan.
    """
    return ShortLinkModel(
        token=token,
        owner_id=owner_id,
        target_url=request.target_url,
        created_at=now,
        label=request.label,
        expires_at=request.expires_at,
        reveal_at=request.reveal_at,
        max_clicks=resolve_max_clicks(plan, request.max_clicks, request.is_phantom),
        is_phantom=request.is_phantom,
        password_hash=password_hash,
    )


def issue_link(
    dao: ShortLinkBaseDAO,
    request: CreateLinkRequest,
    owner_id: str,
    plan: Plan,
    now: Optional[datetime] = None,
    token_factory: Callable[[], str] = generate_token,
    attempts: int = Token.MAX_ATTEMPTS,
) -> ShortLinkModel:
    """Insert a new link under a freshly generated token

    Args:
        dao (ShortLinkBaseDAO):
            Store the link is inserted into.
        request (CreateLinkRequest):
            Validated creation request.
        owner_id (str):
            Identity of the creating owner.
        plan (Plan):
            Owner's plan tier (drives max_clicks).
        now (Optional[datetime]):
            Creation instant. Defaults to the current UTC time.
        token_factory (Callable[[], str]):
            Token generator. Defaults to `generate_token`.
        attempts (int):
            Generation attempts before giving up. Defaults to 3.

    Returns:
        ShortLinkModel: the inserted link.

    Raises:
        PlanLimitError:
            If the request exceeds the owner's plan.
        TokenGenerationError:
            If every generated token already existed.
        DataStoreError:
            If the store is unreachable.
    """
    now = now or datetime.now(UTC)
    # Hash once: the digest doesn't depend on the token
    password_hash = hash_password(request.password) if request.password else None

    for attempt in range(1, attempts + 1):
        link = build_link(request, token_factory(), owner_id, plan, now, password_hash=password_hash)
        try:
            dao.insert(link)
        except ShortLinkAlreadyExistsError:
            logger.warning('Generated token already exists. Retrying.', extra={'token': link.token, 'attempt': attempt})
        else:
            return link

    raise TokenGenerationError(f'Failed to generate a unique token after {attempts} attempts.')
