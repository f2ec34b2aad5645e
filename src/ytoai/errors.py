class YtoAiError(Exception):
    """Base class for errors raised by ``ytoai``."""


class TransientAiError(YtoAiError):
    """A failure that may succeed when retried (rate limits, timeouts)."""


class NonTransientAiError(YtoAiError):
    """A failure that will not go away on retry."""


class StreamProtocolError(YtoAiError, ValueError):
    """The server streamed a chunk shape the merger does not support."""


class ToolCallError(YtoAiError):
    """A tool call could not be resolved or executed."""


class ConfigurationError(YtoAiError):
    """Settings are missing or inconsistent."""
