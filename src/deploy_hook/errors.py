"""Error types raised while receiving and handling webhook notifications."""


class WebhookError(Exception):
    """Base error. Carries the response code and HTTP status it maps to."""

    code: int = 1
    http_code: int = 400


class ConfigError(WebhookError):
    """The service is missing required configuration."""

    http_code = 500


class ValidationError(WebhookError):
    """The notification failed validation."""


class MissingFieldError(ValidationError):
    """A required header or payload field is absent."""


class MissingEventError(MissingFieldError):
    pass


class MissingSignatureError(MissingFieldError):
    pass


class MalformedSignatureError(ValidationError):
    pass


class InvalidTokenError(ValidationError):
    http_code = 403


class InvalidMethodError(ValidationError):
    http_code = 405


class InvalidSignatureError(ValidationError):
    http_code = 401


class MalformedPayloadError(WebhookError):
    """The request body is not valid JSON."""


class NoResponseError(WebhookError):
    """A handler finished without setting a response."""

    http_code = 500


class MissingDataKeyError(WebhookError):
    """A response mapping was built without its ``data`` entry."""

    http_code = 500
