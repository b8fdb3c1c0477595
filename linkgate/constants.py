from enum import StrEnum


class Token:
    """Token generation parameters."""

    # No look-alike characters (0/O, 1/l/I)
    ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789'
    LENGTH = 10
    MAX_LENGTH = 64
    # Generation attempts before creation fails on uniqueness conflicts
    MAX_ATTEMPTS = 3


class Resolution:
    """Defaults for the consuming (atomic) resolution path."""

    MAX_ATTEMPTS = 3
    BACKOFF_SECONDS = 0.05
    # Per-token Redis lock: auto-release after LOCK_TIMEOUT, give up waiting after LOCK_BLOCKING_TIMEOUT
    LOCK_TIMEOUT_SECONDS = 5.0
    LOCK_BLOCKING_TIMEOUT_SECONDS = 2.0
    DELETE_CONSUMED_PHANTOMS = False


class Pages:
    """Static outcome pages (relative to the public base URL)."""

    BLOCKED = '/expired'
    NOT_YET_AVAILABLE = '/not-yet-available'


class PlanLimits:
    """Server-side max_clicks policy per plan tier."""

    FREE_DEFAULT_MAX_CLICKS = 3
    FREE_MAX_CLICKS_CEILING = 3
    PHANTOM_MAX_CLICKS = 1


LABEL_MAX_LENGTH = 120


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        PROJECT_ROOT = 'PROJECT_ROOT'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
