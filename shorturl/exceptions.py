class ShortURLError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:shorturl_error'


class InvalidURLError(ShortURLError):
    """Raised when the URL to shorten is not a well-formed absolute URL."""

    error_code = 'input:invalid_url'


class ConfigurationError(ShortURLError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
