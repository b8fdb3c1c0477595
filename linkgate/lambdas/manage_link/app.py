import json
import logging

from botocore.exceptions import BotoCoreError, ClientError

from linkgate.types import LambdaEvent, LambdaContext, LambdaResponse
from linkgate.exceptions import ConfigurationError
from linkgate.dao.redis import ShortLinkRedisDAO
from linkgate.dao.exceptions import DataStoreError, ShortLinkNotFoundError
from linkgate.utils import load_config, redis_settings, resolution_settings, app_prefix
from linkgate.utils.helpers import guarantee_500_response
from linkgate.utils.runtime import get_user_id
from linkgate.resolution import LinkLifecycle
from linkgate.lambdas.manage_link.constants import (
    CONFIGURATION_ERROR,
    MISSING_USER_ID,
    MISSING_TOKEN,
    METHOD_NOT_ALLOWED,
    LINK_NOT_FOUND,
    STORE_UNAVAILABLE,
    LINK_DISABLED,
    LINK_DELETED,
)


logger = logging.getLogger(__name__)

ACTIONS = {
    'PATCH': ('disable', LINK_DISABLED),
    'DELETE': ('delete', LINK_DELETED),
}


def response_error(status_code: int, message: str, error_code: str) -> LambdaResponse:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps({'message': message, 'errorCode': error_code}),
    }


def response_200(*, token: str, action: str) -> LambdaResponse:
    return {
        'statusCode': 200,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps({'message': f'Successfully applied {action} to link {token}', 'token': token, 'action': action}),
    }


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle owner requests to disable (PATCH) or delete (DELETE) a link

    Both actions are idempotent. A token owned by someone else is reported
    exactly like an unknown token.

    HTTP responses:
        200: Action applied
        401: Unauthorized (missing user id)
        404: Link not found (or not owned by the caller)
        405: Unsupported HTTP method
        500: Internal server error
        503: Datastore unavailable or busy, safe to retry
    """
    # 0- Get application's config
    try:
        app_config = load_config('manage_link')
        redis_config = redis_settings(app_config)
        resolution_config = resolution_settings(app_config)
    except (ConfigurationError, KeyError, BotoCoreError, ClientError):
        logger.exception('Failed to load configuration for manage link function. Responding with 500.', extra={'event': CONFIGURATION_ERROR})
        return response_error(500, 'Internal Server Error', CONFIGURATION_ERROR)

    # 1- Extract user id, token and action
    user_id = get_user_id(event)
    if user_id is None:
        logger.info("Missing 'sub' in JWT claims. Responding with 401.", extra={'event': MISSING_USER_ID})
        return response_error(401, "Unauthorized (missing 'sub' in JWT claims)", MISSING_USER_ID)

    token = (event.get('pathParameters') or {}).get('token')
    if not token:
        logger.info('Missing "token" in path. Responding with 400.', extra={'event': MISSING_TOKEN})
        return response_error(400, "Bad Request (missing 'token' in path)", MISSING_TOKEN)

    method = (event.get('httpMethod') or '').upper()
    if method not in ACTIONS:
        logger.info('Unsupported method. Responding with 405.', extra={'event': METHOD_NOT_ALLOWED, 'method': method})
        return response_error(405, f'Method Not Allowed ({method or "none"})', METHOD_NOT_ALLOWED)
    action, event_code = ACTIONS[method]

    # 2- Apply the owner action
    lifecycle = LinkLifecycle(delete_consumed_phantoms=resolution_config['delete_consumed_phantoms'])
    try:
        dao = ShortLinkRedisDAO(**redis_config, lifecycle=lifecycle, prefix=app_prefix())
        getattr(dao, action)(token, user_id)
    except ShortLinkNotFoundError:
        logger.info('Link not found for owner. Responding with 404.', extra={'token': token, 'event': LINK_NOT_FOUND})
        return response_error(404, f"Not Found (link '{token}' doesn't exist)", LINK_NOT_FOUND)
    except DataStoreError:
        logger.exception('Datastore unavailable. Responding with 503.', extra={'token': token, 'event': STORE_UNAVAILABLE})
        return response_error(503, 'Service Unavailable', STORE_UNAVAILABLE)

    logger.info('Applied owner action. Responding with 200.', extra={'token': token, 'event': event_code, 'action': action})
    return response_200(token=token, action=action)
