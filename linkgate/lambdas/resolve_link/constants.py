# Event codes (logged under `event`)
MISSING_TOKEN = 'MISSING_TOKEN'
CONFIGURATION_ERROR = 'CONFIGURATION_ERROR'
REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
LINK_BLOCKED = 'LINK_BLOCKED'
LINK_NOT_YET_AVAILABLE = 'LINK_NOT_YET_AVAILABLE'
STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'
