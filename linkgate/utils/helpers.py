"""Helper utilities for AWS lambda functions.

Functions:
    base_url() -> str
        Extract correct public base URL from API Gateway event
    get_short_url() -> str
        Get string representation of short URL for a given token
    page_url() -> str
        Build the public URL of a static outcome page
    request_headers() -> dict
        Extract request headers from API Gateway event
    request_password() -> str | None
        Extract the link password supplied with a request
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(handler) -> Callable
        Decorator: Turn unhandled errors into a JSON 500 response
    guarantee_blocked_redirect(handler) -> Callable
        Decorator: Turn unhandled errors into a redirect to the blocked page

Example:
    Typical usage inside a Lambda handler:

        >>> from linkgate.utils.helpers import base_url
        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "abc123.execute-api.us-east-1.amazonaws.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod'

        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "go.example.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://go.example.com'

        >>> base_url({})
        'http://localhost:3000'
"""

import os
import json
import logging
import functools
import urllib.parse
from collections.abc import Callable

from linkgate.types import LambdaEvent, LambdaContext, LambdaResponse
from linkgate.constants import Pages, UNKNOWN_INTERNAL_SERVER_ERROR
from linkgate.exceptions import MissingEnvironmentVariableError
from linkgate.utils.runtime import running_locally


logger = logging.getLogger(__name__)

PASSWORD_HEADER = 'x-link-password'
PASSWORD_QUERY_PARAMETER = 'password'


def base_url(event: LambdaEvent) -> str:
    """Extract public base URL from API Gateway event

    Works seamlessly with both custom and default AWS API Gateway domains.
    If a custom domain is configured, the stage name is omitted.
    If using the default AWS execute-api domain, the stage name is included.

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: Base URL, e.g.:
             - "https://go.example.com"
             - "https://abc123.execute-api.us-east-1.amazonaws.com/Prod"
    """
    request_context = event.get('requestContext') or {}
    domain = request_context.get('domainName', '')
    stage = request_context.get('stage', '')

    if domain and 'execute-api' not in domain:
        # If the domain is a custom domain (no execute-api), skip stage
        return f'https://{domain}'
    elif domain:
        # Otherwise include the stage (for AWS default domains)
        return f'https://{domain}/{stage}'
    else:
        # Fallback: local invocation (SAM CLI, tests, etc.)
        return 'http://localhost:3000'


def get_short_url(token: str, event: LambdaEvent) -> str:
    """Get string representation of a short link

    Args:
        token (str): short link token
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: short url string representation
    """
    return f'{base_url(event).rstrip("/")}/{token}'


def page_url(path: str, event: LambdaEvent, **params: str | None) -> str:
    """Build the public URL of a static outcome page

    Parameters whose value is None are left out of the query string.

    Example:
        >>> page_url('/not-yet-available', {}, token='Kq7mZp2xRt', reveal_at=None)
        'http://localhost:3000/not-yet-available?token=Kq7mZp2xRt'
    """
    url = f'{base_url(event).rstrip("/")}/{path.lstrip("/")}'
    query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
    return f'{url}?{query}' if query else url


def request_headers(event: LambdaEvent) -> dict[str, str]:
    """Return the request headers of an API Gateway event (lower-cased names)"""
    headers = event.get('headers') or {}
    return {str(name).lower(): str(value) for name, value in headers.items() if value is not None}


def request_password(event: LambdaEvent) -> str | None:
    """Return the link password supplied via `X-Link-Password` header or `password` query parameter"""
    password = request_headers(event).get(PASSWORD_HEADER)
    if not password:
        password = (event.get('queryStringParameters') or {}).get(PASSWORD_QUERY_PARAMETER)
    return password or None


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {", ".join(missing)}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(handler: Callable[[LambdaEvent, LambdaContext], LambdaResponse]) -> Callable:
    """Decorator: respond with a generic JSON 500 if the handler raises

    When running locally, the error is re-raised so SAM shows the traceback.
    """

    @functools.wraps(handler)
    def wrapper(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
        try:
            return handler(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception('Unhandled error in lambda handler. Responding with 500.')
            return {
                'statusCode': 500,
                'body': json.dumps(
                    {
                        'message': 'Internal Server Error',
                        'error_code': UNKNOWN_INTERNAL_SERVER_ERROR,
                    }
                ),
            }

    return wrapper


def guarantee_blocked_redirect(handler: Callable[[LambdaEvent, LambdaContext], LambdaResponse]) -> Callable:
    """Decorator: redirect to the blocked page if the handler raises

    Public link visitors never see an error page: every failure is
    indistinguishable from an expired link. Re-raised when running locally.
    """

    @functools.wraps(handler)
    def wrapper(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
        try:
            return handler(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception('Unhandled error in lambda handler. Redirecting to the blocked page.')
            return {
                'statusCode': 302,
                'headers': {
                    'Location': page_url(Pages.BLOCKED, event),
                    'Cache-Control': 'no-store',
                },
                'body': '',
            }

    return wrapper
