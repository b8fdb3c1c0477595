# Error codes (returned under `errorCode` and logged under `event`)
CONFIGURATION_ERROR = 'CONFIGURATION_ERROR'
MISSING_USER_ID = 'MISSING_USER_ID'
INVALID_JSON = 'INVALID_JSON'
INVALID_FIELD = 'INVALID_FIELD'
PLAN_LIMIT_EXCEEDED = 'PLAN_LIMIT_EXCEEDED'
TOKEN_GENERATION_FAILED = 'TOKEN_GENERATION_FAILED'
STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'
LINK_CREATED = 'LINK_CREATED'
