class LinkGateError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:linkgate_error'


class ConfigurationError(LinkGateError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'


class LinkValidationError(LinkGateError):
    """Raised when a link creation request violates a field rule.

    Attributes:
        field (str):
            Name of the offending request field (e.g. 'max_clicks').
        message (str):
            Owner-facing explanation.
    """

    error_code = 'link:validation_error'

    def __init__(self, field: str, message: str):
        super().__init__(f'{field}: {message}')
        self.field = field
        self.message = message


class PlanLimitError(LinkValidationError):
    """Raised when a creation request exceeds the owner's plan ceilings."""

    error_code = 'link:plan_limit_error'


class TokenGenerationError(LinkGateError):
    """Raised when every token generation attempt collided with an existing token."""

    error_code = 'link:token_generation_error'
