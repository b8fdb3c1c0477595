import json
import logging

from botocore.exceptions import BotoCoreError, ClientError

from linkgate.types import LambdaEvent, LambdaContext, LambdaResponse
from linkgate.constants import Pages
from linkgate.exceptions import ConfigurationError
from linkgate.dao.redis import ShortLinkRedisDAO
from linkgate.dao.exceptions import DataStoreError
from linkgate.resolution import ExternalSignal, LinkLifecycle, RedirectOutcome, RequestMetadata
from linkgate.resolution.resolver import TokenResolver
from linkgate.utils import load_config, redis_settings, resolution_settings, page_paths, app_prefix, page_url
from linkgate.utils.helpers import guarantee_blocked_redirect, request_headers, request_password
from linkgate.lambdas.resolve_link.constants import (
    MISSING_TOKEN,
    CONFIGURATION_ERROR,
    REDIRECT_SUCCESS,
    LINK_BLOCKED,
    LINK_NOT_YET_AVAILABLE,
    STORE_UNAVAILABLE,
)


logger = logging.getLogger(__name__)


def response_302(*, location: str) -> LambdaResponse:
    return {
        'statusCode': 302,
        'headers': {
            'Location': location,
            # Never cached: every hit has to reach the resolver
            'Cache-Control': 'no-store',
        },
        'body': json.dumps({}),  # no body needed for redirects
    }


def outcome_location(outcome: RedirectOutcome, token: str, event: LambdaEvent, pages: dict[str, str]) -> str:
    """Map a resolution outcome to the Location of the redirect

    Only the three external signals are distinguishable here: the target URL,
    the not-yet-available page (with `token` and `reveal_at`) and the blocked page.
    """
    if outcome.signal is ExternalSignal.REDIRECT:
        return outcome.target_url
    if outcome.signal is ExternalSignal.NOT_YET_AVAILABLE:
        reveal_at = outcome.reveal_at.isoformat() if outcome.reveal_at else None
        return page_url(pages['not_yet_available'], event, token=token, reveal_at=reveal_at)
    return page_url(pages['blocked'], event)


@guarantee_blocked_redirect
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to resolve gated short links

    This Lambda handler follows this procedure to resolve links:
    - Step 1: Load configuration (fail closed on any error)
    - Step 2: Extract token from request path
    - Step 3: Resolve the token (classify, evaluate, consume)
    - Step 4: Redirect client to target URL or an outcome page

    HTTP responses (always 302, never an error page):
        302 -> target URL:
            access granted (and counted, unless the request was speculative)
        302 -> not-yet-available page (?token=...&reveal_at=...):
            link exists but its reveal time hasn't come yet
        302 -> blocked page:
            unknown, disabled, expired, exhausted, password-gated link or any failure

    Args:
        event (dict):
            API Gateway event payload containing the token path parameter.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'pathParameters': {'token': 'Kq7mZp2xRt'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/offer'
    """
    # 1- Get application's config
    try:
        app_config = load_config('resolve_link')
        redis_config = redis_settings(app_config)
        resolution_config = resolution_settings(app_config)
        pages = page_paths(app_config)
    except (ConfigurationError, KeyError, BotoCoreError, ClientError):
        logger.exception(
            'Failed to load configuration for resolve link function. Redirecting to the blocked page.',
            extra={'event': CONFIGURATION_ERROR},
        )
        return response_302(location=page_url(Pages.BLOCKED, event))

    # 2- Extract token from request's path
    token = (event.get('pathParameters') or {}).get('token')
    if not token:
        logger.info(
            'Missing "token" in path. Redirecting to the blocked page.',
            extra={'event': MISSING_TOKEN},
        )
        return response_302(location=page_url(pages['blocked'], event))

    # 3- Resolve the token against the atomic store
    lifecycle = LinkLifecycle(delete_consumed_phantoms=resolution_config.pop('delete_consumed_phantoms'))
    try:
        store = ShortLinkRedisDAO(**redis_config, **resolution_config, lifecycle=lifecycle, prefix=app_prefix())
    except DataStoreError:
        logger.exception(
            'Redis is unreachable. Redirecting to the blocked page.',
            extra={'token': token, 'event': STORE_UNAVAILABLE},
        )
        return response_302(location=page_url(pages['blocked'], event))

    request = RequestMetadata(headers=request_headers(event), password=request_password(event))
    outcome = TokenResolver(store=store).resolve(token, request)

    # 4- Redirect client to the target URL or an outcome page
    if outcome.signal is ExternalSignal.REDIRECT:
        event_code = REDIRECT_SUCCESS
    elif outcome.signal is ExternalSignal.NOT_YET_AVAILABLE:
        event_code = LINK_NOT_YET_AVAILABLE
    else:
        event_code = LINK_BLOCKED

    logger.info(
        'Responding with 302.',
        extra={'token': token, 'event': event_code, 'reason': outcome.reason, 'access': outcome.access},
    )
    return response_302(location=outcome_location(outcome, token, event, pages))
