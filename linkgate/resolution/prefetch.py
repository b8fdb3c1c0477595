"""Prefetch classifier

Decides whether an incoming access is a genuine visit or a speculative fetch
issued by a browser, router or middleware in anticipation of navigation.

The heuristic leans towards SPECULATIVE: a real visit misread as a prefetch costs
the owner one uncounted click, while a prefetch counted as a visit can burn a
strict quota (or a phantom link) before anyone clicked.

Functions:
    classify(headers) -> AccessKind
        Pure function over request headers (names are case-insensitive).

Example:
    >>> classify({'Sec-Purpose': 'prefetch;prerender'})
    <AccessKind.SPECULATIVE: 'speculative'>
    >>> classify({'Accept': 'text/html'})
    <AccessKind.REAL: 'real'>
"""

from linkgate.resolution.outcomes import AccessKind
from linkgate.types import Headers


PURPOSE_HEADERS = ('purpose', 'sec-purpose', 'x-purpose', 'x-moz')
SPECULATIVE_PURPOSES = frozenset({'prefetch', 'prerender', 'preview'})

# Presence alone marks a speculative fetch
MARKER_HEADERS = ('next-router-prefetch', 'x-middleware-prefetch')

FETCH_MODE_HEADER = 'sec-fetch-mode'
SPECULATIVE_FETCH_MODES = frozenset({'no-cors'})


def _normalize(headers: Headers | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(name).lower(): '' if value is None else str(value) for name, value in headers.items()}


def _purposes(value: str) -> set[str]:
    # Structured header values: "prefetch;prerender", "prefetch, anonymous-client-ip"
    parts = value.replace(',', ';').split(';')
    return {part.strip().lower() for part in parts if part.strip()}


def classify(headers: Headers | None) -> AccessKind:
    """Classify a request as REAL or SPECULATIVE from its headers.

    Rules (any one is sufficient):
        - a purpose header ('purpose', 'sec-purpose', ...) names prefetch/prerender
        - a router or middleware prefetch marker header is present
        - 'sec-fetch-mode' is a no-credentials speculative mode ('no-cors')

    Args:
        headers (Headers | None):
            Request header names mapped to values.

    Returns:
        AccessKind: SPECULATIVE if any rule matches, REAL otherwise.
    """
    normalized = _normalize(headers)

    for name in PURPOSE_HEADERS:
        if name in normalized and _purposes(normalized[name]) & SPECULATIVE_PURPOSES:
            return AccessKind.SPECULATIVE

    if any(name in normalized for name in MARKER_HEADERS):
        return AccessKind.SPECULATIVE

    if normalized.get(FETCH_MODE_HEADER, '').strip().lower() in SPECULATIVE_FETCH_MODES:
        return AccessKind.SPECULATIVE

    return AccessKind.REAL
