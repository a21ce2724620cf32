# core/domain/errors.py


class ForensicsError(Exception):
    """Base class for every error raised by the review pipeline"""


class ValidationError(ForensicsError):
    """Caller input was rejected before any model call was made"""


class ConversationBusyError(ValidationError):
    """A message is already being streamed on this conversation"""


class ModelResponseError(ForensicsError):
    """The model answered, but not with usable structured data"""


class TransportError(ForensicsError):
    """The model service could not be reached or failed the request"""


class ConfigError(ForensicsError):
    """Required configuration is missing or invalid"""


# Raised by model client adapters; messages may carry provider detail and are
# replaced with a generic one before reaching users.
MODEL_CLIENT_ERRORS = (TransportError, ModelResponseError, ConfigError)
