"""Token resolver

Public entry point of link resolution. Composes the prefetch classifier, the access
policy evaluator and the atomic counter store (a ShortLinkBaseDAO handle passed in
by the caller) into `resolve(token, request)`.

Flow:
    - malformed token                -> blocked (NOT_FOUND), store untouched
    - speculative request            -> read-only get() + evaluate(), never mutates
    - real request                   -> store.resolve_and_consume()
    - unknown token                  -> blocked, indistinguishable from expired
    - any store failure              -> blocked (TRANSIENT_ERROR), logged

Example:
    >>> resolver = TokenResolver(store=ShortLinkRedisDAO(**redis_config, prefix=app_prefix()))
    >>> outcome = resolver.resolve('Kq7mZp2xRt', RequestMetadata(headers={'Accept': 'text/html'}))
    >>> outcome.signal, outcome.target_url
    (<ExternalSignal.REDIRECT: 'redirect'>, 'https://example.com/offer')
"""

import logging
import re
from collections.abc import Callable
from datetime import datetime, UTC

from linkgate.constants import Token
from linkgate.dao.base import ShortLinkBaseDAO
from linkgate.dao.exceptions import DataStoreError, ShortLinkNotFoundError
from linkgate.resolution.outcomes import (
    AccessKind,
    Block,
    BlockReason,
    ConsumeResult,
    Redirect,
    RedirectOutcome,
    RequestMetadata,
)
from linkgate.resolution.lifecycle import link_state
from linkgate.resolution.policy import evaluate
from linkgate.resolution.prefetch import classify


logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def utc_now() -> datetime:
    return datetime.now(UTC)


def is_well_formed(token: str | None) -> bool:
    return bool(token) and len(token) <= Token.MAX_LENGTH and TOKEN_PATTERN.fullmatch(token) is not None


class TokenResolver:
    """Resolve tokens to redirect-or-block outcomes.

    Attributes:
        store (ShortLinkBaseDAO):
            Atomic counter store handle. Owned by the caller (request scope).
        clock (Callable[[], datetime]):
            Source of the evaluation instant. Defaults to the current UTC time.
    """

    def __init__(self, store: ShortLinkBaseDAO, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def resolve(self, token: str, request: RequestMetadata | None = None) -> RedirectOutcome:
        request = request or RequestMetadata()
        access = classify(request.headers)

        if not is_well_formed(token):
            result = Block(BlockReason.NOT_FOUND)
        elif access is AccessKind.SPECULATIVE:
            result = self._peek(token, request.password)
        else:
            result = self.store.resolve_and_consume(token, self.clock(), password=request.password)

        outcome = RedirectOutcome.from_result(result, access)
        logger.info(
            'Resolved short link.',
            extra={'token': token, 'access': access, 'signal': outcome.signal, 'reason': outcome.reason},
        )
        return outcome

    def _peek(self, token: str, password: str | None) -> ConsumeResult:
        """Read-only evaluation for speculative requests (no mutation, no lock)."""
        try:
            link = self.store.get(token)
        except ShortLinkNotFoundError:
            return Block(BlockReason.NOT_FOUND)
        except DataStoreError:
            logger.warning('Store failure during speculative read.', extra={'token': token}, exc_info=True)
            return Block(BlockReason.TRANSIENT_ERROR)

        now = self.clock()
        decision = evaluate(link, now, password=password)
        if isinstance(decision, Block):
            logger.debug(
                'Speculative access blocked.',
                extra={'token': token, 'state': link_state(link, now), 'reason': decision.reason},
            )
            return decision
        return Redirect(link.target_url)
