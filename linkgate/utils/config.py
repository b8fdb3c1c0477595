"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to access
configuration data stored in **AWS AppConfig**. Each environment (`APP_ENV`) has
a dedicated AppConfig *Environment* within the shared AppConfig *Application*
identified by `APP_NAME`. Configuration data is stored as a JSON document under
a configuration profile (typically `backend-config`) and deployed to the
corresponding environment.

The configuration JSON follows this structure:

    {
        "build": 7,
        "active_backend": "redis",
        "configs": {
            "resolve_link": {
                "redis": { "host": ..., "port": ..., "db": ... },
                "resolution": { "max_attempts": 3, "delete_consumed_phantoms": false },
                "pages": { "blocked": "/expired", "not_yet_available": "/not-yet-available" }
            },
            "create_link": { "redis": { ... } },
            "manage_link": { "redis": { ... } }
        }
    }

Each Lambda loads its own section (e.g., `"resolve_link"`) from this AppConfig
document. Only the active backend's block is kept, next to the backend-agnostic
`resolution` and `pages` blocks.

Typical usage inside a Lambda handler:
    >>> from linkgate.utils.config import load_config, redis_settings
    >>> config = load_config('resolve_link')
    >>> redis_settings(config)
    {'redis_host': 'redis.internal', 'redis_port': 6379, 'redis_db': 0}
"""

import os
import json
import functools
import urllib.parse
import urllib.request
import logging
from pathlib import Path
from collections.abc import Callable
from typing import Any

import boto3

from linkgate.types import LambdaConfiguration
from linkgate.constants import ENV, Pages, Resolution
from linkgate.utils.helpers import require_environment
from linkgate.utils.runtime import running_locally
from linkgate.exceptions import BadConfigurationError


logger = logging.getLogger(__name__)

SHARED_SECTIONS = ('resolution', 'pages')


def app_env() -> str:
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def project_root() -> Path:
    return Path(os.environ.get(ENV.App.PROJECT_ROOT, os.path.dirname(__file__)))


def app_prefix() -> str | None:
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _lambda_section(document: dict[str, Any], lambda_name: str) -> LambdaConfiguration:
    backend = document['active_backend']
    section = document['configs'][lambda_name]
    data = {backend: section[backend]}
    data.update({name: section[name] for name in SHARED_SECTIONS if name in section})
    return data


def _sam_load_local_appconfig(func: Callable) -> Callable:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM.

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local
          AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     : Base URL of the local AppConfig Agent (e.g., http://appconfig-agent:2772).
        APPCONFIG_PROFILE_NAME  : Optional profile name (default: "backend-config").
    """

    def __validate_appconfig_url(url: str | None) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise BadConfigurationError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal', 'appconfig-agent'}:
            raise BadConfigurationError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise BadConfigurationError(f'Bad port {url}')
        return url

    @functools.wraps(func)
    def wrapper(lambda_name: str) -> LambdaConfiguration:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(lambda_name)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            document = json.load(r)

        data = _lambda_section(document, lambda_name)
        logger.debug('Loaded AppConfig from local agent.', extra={'lambdaName': lambda_name, 'build': document.get('build')})
        return data

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(lambda_name: str) -> LambdaConfiguration:
    """Load configuration for a given Lambda from AWS AppConfig.

    Fetches the AppConfig JSON once and returns the section relevant
    to the requested Lambda function (e.g., 'resolve_link', 'create_link').

    Raises:
        MissingEnvironmentVariableError:
            If the AppConfig identifiers are not set.
        botocore.exceptions.ClientError:
            If AppConfig rejects the request.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name})

    appconfig = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    document = json.loads(content.decode('utf-8'))

    data = _lambda_section(document, lambda_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name, 'build': document.get('build')})
    return data


def redis_settings(config: LambdaConfiguration) -> dict[str, Any]:
    """Translate a Lambda's `redis` block into RedisClientMixin keyword arguments

    Raises:
        BadConfigurationError:
            If the `redis` block or its host is missing.

    Example:
        >>> redis_settings({'redis': {'host': 'redis.internal', 'port': 6379}})
        {'redis_host': 'redis.internal', 'redis_port': 6379}
    """
    redis_config = config.get('redis')
    if not isinstance(redis_config, dict) or not redis_config.get('host'):
        raise BadConfigurationError("Missing Redis connection settings ('redis.host').")
    return {f'redis_{k}': v for k, v in redis_config.items()}


def resolution_settings(config: LambdaConfiguration) -> dict[str, Any]:
    """Translate a Lambda's optional `resolution` block into resolution keyword arguments

    Missing keys fall back to the `Resolution` defaults.

    Raises:
        BadConfigurationError:
            If a value can't be converted to its expected type.
    """
    settings = config.get('resolution') or {}
    try:
        return {
            'delete_consumed_phantoms': bool(settings.get('delete_consumed_phantoms', Resolution.DELETE_CONSUMED_PHANTOMS)),
            'max_attempts': int(settings.get('max_attempts', Resolution.MAX_ATTEMPTS)),
            'backoff_seconds': float(settings.get('backoff_seconds', Resolution.BACKOFF_SECONDS)),
            'lock_timeout': float(settings.get('lock_timeout_seconds', Resolution.LOCK_TIMEOUT_SECONDS)),
            'lock_blocking_timeout': float(settings.get('lock_blocking_timeout_seconds', Resolution.LOCK_BLOCKING_TIMEOUT_SECONDS)),
        }
    except (TypeError, ValueError) as e:
        raise BadConfigurationError(f'Invalid resolution settings: {e}') from e


def page_paths(config: LambdaConfiguration) -> dict[str, str]:
    pages = config.get('pages') or {}
    return {
        'blocked': pages.get('blocked', Pages.BLOCKED),
        'not_yet_available': pages.get('not_yet_available', Pages.NOT_YET_AVAILABLE),
    }
