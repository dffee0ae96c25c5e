"""Custom exceptions for the webmail backend."""


class WebmailError(Exception):
    """Base exception for all webmail errors."""


class ConfigurationError(WebmailError):
    """Exception raised for configuration related errors."""


class AuthenticationError(WebmailError):
    """Exception raised for authentication failures.

    Terminal for the session: the user has to log in again.
    """


class ValidationError(WebmailError):
    """Exception raised when an operation is rejected for invalid input.

    Raised before any state is touched, so the mailbox is unchanged.
    """


class DuplicateMessageError(ValidationError):
    """Exception raised when a mutation would produce two messages with one id."""


class NotFoundError(WebmailError):
    """Exception raised when a conversation, message, draft or folder is gone.

    Mutations treat this as a silent no-op; it usually means a race with a
    concurrent deletion.
    """


class TransientGatewayError(WebmailError):
    """Exception raised when talking to the mail transport fails.

    Surfaced to the user as a notification and never retried automatically.
    """


class GatewayTimeoutError(TransientGatewayError):
    """Exception raised when the mail transport does not answer in time."""


class GatewayConnectionError(TransientGatewayError):
    """Exception raised when the mail transport cannot be reached."""


class SummarizerError(TransientGatewayError):
    """Exception raised when a conversation summary cannot be produced."""


class OllamaConnectionError(SummarizerError):
    """Exception raised when unable to connect to Ollama."""


class OllamaInferenceError(SummarizerError):
    """Exception raised when Ollama inference fails."""


class SettingsStorageError(TransientGatewayError):
    """Exception raised when user settings cannot be written to the database."""
