import json
import logging
from datetime import datetime, UTC

from botocore.exceptions import BotoCoreError, ClientError

from linkgate.types import LambdaEvent, LambdaContext, LambdaResponse
from linkgate.exceptions import ConfigurationError, LinkValidationError, PlanLimitError, TokenGenerationError
from linkgate.models import ShortLinkModel
from linkgate.dao.redis import ShortLinkRedisDAO
from linkgate.dao.exceptions import DataStoreError
from linkgate.creation import CreateLinkRequest, Plan, issue_link
from linkgate.utils import load_config, redis_settings, get_short_url, app_prefix
from linkgate.utils.helpers import guarantee_500_response
from linkgate.utils.runtime import get_user_id, get_user_plan
from linkgate.lambdas.create_link.constants import (
    CONFIGURATION_ERROR,
    MISSING_USER_ID,
    INVALID_JSON,
    INVALID_FIELD,
    PLAN_LIMIT_EXCEEDED,
    TOKEN_GENERATION_FAILED,
    STORE_UNAVAILABLE,
    LINK_CREATED,
)


logger = logging.getLogger(__name__)


def response_error(status_code: int, message: str, error_code: str, **extra) -> LambdaResponse:
    body = {'message': message, 'errorCode': error_code}
    body.update(extra)
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body),
    }


def response_201(link: ShortLinkModel, event: LambdaEvent) -> LambdaResponse:
    short_url = get_short_url(link.token, event)
    return {
        'statusCode': 201,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(
            {
                'message': f'Successfully shortened {link.target_url} to {short_url}',
                'token': link.token,
                'short_url': short_url,
                'target_url': link.target_url,
                'label': link.label,
                'max_clicks': link.max_clicks,
                'expires_at': link.expires_at.isoformat() if link.expires_at else None,
                'reveal_at': link.reveal_at.isoformat() if link.reveal_at else None,
                'is_phantom': link.is_phantom,
                'password_protected': link.password_protected,
            }
        ),
    }


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to create gated short links

    This Lambda handler follows this procedure to create links:
    - Step 1: Extract Amazon Cognito user id and plan from Lambda event
    - Step 2: Parse and validate the JSON request body
    - Step 3: Apply plan policy, generate a token and store the link
    - Step 4: Respond to user with 201 created

    HTTP responses:
        201: Link created
            token, short_url, target_url and the stored rules
        400: Bad client request
            errorCode INVALID_JSON or INVALID_FIELD (with `field`)
        401: Unauthorized
            errorCode MISSING_USER_ID
        403: Forbidden by plan
            errorCode PLAN_LIMIT_EXCEEDED (with `field`)
        500: Internal server error
        503: Datastore unavailable

    Example:
        >>> event = {'body': '{"target_url": "https://example.com", "max_clicks": 2}', ...}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
    """
    # 0- Get application's config
    try:
        app_config = load_config('create_link')
        redis_config = redis_settings(app_config)
    except (ConfigurationError, KeyError, BotoCoreError, ClientError):
        logger.exception('Failed to load configuration for create link function. Responding with 500.', extra={'event': CONFIGURATION_ERROR})
        return response_error(500, 'Internal Server Error', CONFIGURATION_ERROR)

    # 1- Extract user id and plan from Cognito claims
    user_id = get_user_id(event)
    if user_id is None:
        logger.info("Missing 'sub' in JWT claims. Responding with 401.", extra={'event': MISSING_USER_ID})
        return response_error(401, "Unauthorized (missing 'sub' in JWT claims)", MISSING_USER_ID)
    plan = Plan.from_claim(get_user_plan(event))

    # 2- Parse and validate request body
    try:
        body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON})
        return response_error(400, 'Bad Request (invalid JSON body)', INVALID_JSON)

    now = datetime.now(UTC)
    try:
        request = CreateLinkRequest.from_body(body, now)
    except LinkValidationError as e:
        logger.info('Invalid creation request. Responding with 400.', extra={'event': INVALID_FIELD, 'field': e.field})
        return response_error(400, f'Bad Request ({e})', INVALID_FIELD, field=e.field)

    # 3- Apply plan policy, generate token and store link
    try:
        dao = ShortLinkRedisDAO(**redis_config, prefix=app_prefix())
        link = issue_link(dao, request, user_id, plan, now=now)
    except PlanLimitError as e:
        logger.info(
            'Creation request exceeds plan. Responding with 403.',
            extra={'event': PLAN_LIMIT_EXCEEDED, 'field': e.field, 'plan': plan},
        )
        return response_error(403, f'Forbidden ({e})', PLAN_LIMIT_EXCEEDED, field=e.field)
    except TokenGenerationError:
        logger.exception('Failed to generate a unique token. Responding with 500.', extra={'event': TOKEN_GENERATION_FAILED})
        return response_error(500, 'Internal Server Error', TOKEN_GENERATION_FAILED)
    except DataStoreError:
        logger.exception('Datastore unavailable. Responding with 503.', extra={'event': STORE_UNAVAILABLE})
        return response_error(503, 'Service Unavailable', STORE_UNAVAILABLE)

    # 4- Return successful response to user
    logger.info(
        'Created short link. Responding with 201.',
        extra={'token': link.token, 'event': LINK_CREATED, 'plan': plan, 'max_clicks': link.max_clicks},
    )
    return response_201(link, event)
