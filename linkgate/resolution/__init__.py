from linkgate.resolution.outcomes import (
    AccessKind,
    Allow,
    Block,
    BlockReason,
    ExternalSignal,
    Redirect,
    RedirectOutcome,
    RequestMetadata,
)
from linkgate.resolution.prefetch import classify
from linkgate.resolution.policy import evaluate
from linkgate.resolution.lifecycle import LinkLifecycle, LinkState, link_state


# TokenResolver: import from linkgate.resolution.resolver (depends on the DAO layer)
__all__ = [
    'AccessKind',
    'Allow',
    'Block',
    'BlockReason',
    'ExternalSignal',
    'Redirect',
    'RedirectOutcome',
    'RequestMetadata',
    'classify',
    'evaluate',
    'LinkLifecycle',
    'LinkState',
    'link_state',
]
