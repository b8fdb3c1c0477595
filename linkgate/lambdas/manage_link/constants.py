# Error codes (returned under `errorCode` and logged under `event`)
CONFIGURATION_ERROR = 'CONFIGURATION_ERROR'
MISSING_USER_ID = 'MISSING_USER_ID'
MISSING_TOKEN = 'MISSING_TOKEN'
METHOD_NOT_ALLOWED = 'METHOD_NOT_ALLOWED'
LINK_NOT_FOUND = 'LINK_NOT_FOUND'
STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'
LINK_DISABLED = 'LINK_DISABLED'
LINK_DELETED = 'LINK_DELETED'
