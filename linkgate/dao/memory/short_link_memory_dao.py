"""In-process ShortLink DAO

Implements ShortLinkBaseDAO over a plain dict for local runs and tests. Mutating
operations take one of a fixed set of token-sharded locks, so accesses of one token
are serialized while tokens in other shards proceed in parallel. Reads are lock-free:
rows are immutable ShortLinkModel instances that are replaced, never mutated.

Example:
    >>> dao = ShortLinkMemoryDAO()
    >>> dao.insert(link).resolve_and_consume(link.token, now=datetime.now(UTC))
    Redirect(target_url='https://example.com/offer')
"""

import dataclasses
import threading
from datetime import datetime
from typing import Optional

import xxhash

from linkgate.constants import Resolution
from linkgate.models import ShortLinkModel
from linkgate.dao.base import ShortLinkBaseDAO
from linkgate.dao.exceptions import ShortLinkAlreadyExistsError, ShortLinkNotFoundError
from linkgate.resolution.lifecycle import LinkLifecycle, TerminalWrite, Transition
from linkgate.resolution.outcomes import Block, BlockReason, ConsumeResult, Redirect
from linkgate.resolution.policy import evaluate


DEFAULT_SHARDS = 64


class ShortLinkMemoryDAO(ShortLinkBaseDAO):
    def __init__(
        self,
        shards: int = DEFAULT_SHARDS,
        lifecycle: Optional[LinkLifecycle] = None,
        max_attempts: int = Resolution.MAX_ATTEMPTS,
        backoff_seconds: float = Resolution.BACKOFF_SECONDS,
    ):
        super().__init__(lifecycle=lifecycle, max_attempts=max_attempts, backoff_seconds=backoff_seconds)
        if shards < 1:
            raise ValueError(f'shards must be at least 1 (given value: {shards}).')

        self._rows: dict[str, ShortLinkModel] = {}
        self._locks = tuple(threading.Lock() for _ in range(shards))

    def _lock_for(self, token: str) -> threading.Lock:
        return self._locks[xxhash.xxh64_intdigest(token.encode('utf-8')) % len(self._locks)]

    def insert(self, link: ShortLinkModel, **kwargs) -> 'ShortLinkMemoryDAO':
        with self._lock_for(link.token):
            if link.token in self._rows:
                raise ShortLinkAlreadyExistsError(f"Short link with token '{link.token}' already exists.")
            self._rows[link.token] = link
        return self

    def get(self, token: str, **kwargs) -> ShortLinkModel:
        link = self._rows.get(token)
        if link is None:
            raise ShortLinkNotFoundError(f"Short link with token '{token}' not found.")
        return link

    def _password_hash(self, token: str) -> Optional[str]:
        link = self._rows.get(token)
        return None if link is None else link.password_hash

    def _consume_once(self, token: str, now: datetime, password_verified: bool) -> ConsumeResult:
        with self._lock_for(token):
            link = self._rows.get(token)
            if link is None:
                return Block(BlockReason.NOT_FOUND)

            decision = evaluate(link, now, password_verified=password_verified)
            if isinstance(decision, Block):
                return decision

            click_count = link.click_count + 1
            self._rows[token] = dataclasses.replace(link, click_count=click_count)

            transition = self.lifecycle.after_consume(link, click_count)
            if transition is not None:
                self._apply(token, transition)

        return Redirect(link.target_url)

    def disable(self, token: str, owner_id: str, **kwargs) -> 'ShortLinkMemoryDAO':
        return self._apply_owner_transition(token, owner_id, self.lifecycle.disable())

    def delete(self, token: str, owner_id: str, **kwargs) -> 'ShortLinkMemoryDAO':
        return self._apply_owner_transition(token, owner_id, self.lifecycle.delete())

    def _apply_owner_transition(self, token: str, owner_id: str, transition: Transition) -> 'ShortLinkMemoryDAO':
        with self._lock_for(token):
            link = self._rows.get(token)
            if link is None or link.owner_id != owner_id:
                raise ShortLinkNotFoundError(f"Short link with token '{token}' not found.")
            self._apply(token, transition)
        return self

    def _apply(self, token: str, transition: Transition) -> None:
        # Caller holds the token's lock
        if transition.write is TerminalWrite.DELETE:
            self._rows.pop(token, None)
        else:
            self._rows[token] = dataclasses.replace(self._rows[token], active=False)
