"""Value types flowing through link resolution.

Classes:
    AccessKind:
        REAL or SPECULATIVE, as decided by the prefetch classifier.
    BlockReason:
        Internal reason carried by every Block. Only ExternalSignal leaves the service.
    ExternalSignal:
        The stable, externally visible outcome (redirect / blocked / not-yet-available).
    Allow, Block, Redirect:
        Evaluator and atomic store results.
    RequestMetadata:
        What the resolver needs from an incoming request (headers, supplied password).
    RedirectOutcome:
        Final result of TokenResolver.resolve().
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Optional

from linkgate.types import Headers


class AccessKind(StrEnum):
    REAL = 'real'
    SPECULATIVE = 'speculative'


class BlockReason(StrEnum):
    DISABLED = 'disabled-or-exhausted'
    NOT_YET_AVAILABLE = 'not-yet-available'
    EXPIRED = 'expired'
    QUOTA_EXCEEDED = 'quota-exceeded'
    PASSWORD_REQUIRED = 'password-required'
    NOT_FOUND = 'not-found'
    TRANSIENT_ERROR = 'transient-error'


class ExternalSignal(StrEnum):
    REDIRECT = 'redirect'
    BLOCKED = 'blocked'
    NOT_YET_AVAILABLE = 'not-yet-available'


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Block:
    reason: BlockReason
    reveal_at: Optional[datetime] = None  # only set for NOT_YET_AVAILABLE

    @property
    def signal(self) -> ExternalSignal:
        # Everything except a pending reveal collapses into "blocked" (no token-existence oracle)
        if self.reason is BlockReason.NOT_YET_AVAILABLE:
            return ExternalSignal.NOT_YET_AVAILABLE
        return ExternalSignal.BLOCKED


@dataclass(frozen=True)
class Redirect:
    target_url: str


type Decision = Allow | Block
type ConsumeResult = Redirect | Block


@dataclass(frozen=True)
class RequestMetadata:
    headers: Headers = field(default_factory=dict)
    password: Optional[str] = None


@dataclass(frozen=True)
class RedirectOutcome:
    """Result of resolving a token for one request.

    `reason` is internal (logging, tests) and must never be rendered to the visitor.
    """

    signal: ExternalSignal
    access: AccessKind
    target_url: Optional[str] = None
    reveal_at: Optional[datetime] = None
    reason: Optional[BlockReason] = None

    @classmethod
    def from_result(cls, result: ConsumeResult, access: AccessKind) -> 'RedirectOutcome':
        if isinstance(result, Redirect):
            return cls(signal=ExternalSignal.REDIRECT, access=access, target_url=result.target_url)
        return cls(signal=result.signal, access=access, reveal_at=result.reveal_at, reason=result.reason)

    @property
    def redirected(self) -> bool:
        return self.signal is ExternalSignal.REDIRECT
