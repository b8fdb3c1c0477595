from linkgate.utils.config import app_env, app_name, project_root, app_prefix, load_config, redis_settings, resolution_settings, page_paths
from linkgate.utils.helpers import base_url, get_short_url, page_url, require_environment
from linkgate.utils.passwords import hash_password, verify_password
from linkgate.utils.shortener import generate_token
from linkgate.utils.logging import initialize_logging


__all__ = [
    'generate_token',
    'hash_password',
    'verify_password',
    'app_env',
    'app_name',
    'app_prefix',
    'project_root',
    'load_config',
    'redis_settings',
    'resolution_settings',
    'page_paths',
    'base_url',
    'get_short_url',
    'page_url',
    'require_environment',
    'initialize_logging',
]
