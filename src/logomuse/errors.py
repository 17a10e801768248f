"""Exception hierarchy shared by all logomuse modules.

Lower layers raise ``StoreError`` and ``ChannelError``; the session
manager wraps them in the session-level errors below before turning them
into a user-visible message.
"""


class LogomuseError(Exception):
    """Base class for all logomuse errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LogomuseError):
    """Input rejected before any network call (e.g. empty text)."""


class StoreError(LogomuseError):
    """A conversation store operation failed."""


class ChannelError(LogomuseError):
    """Opening a model channel or streaming a reply failed."""


class InitializationError(LogomuseError):
    """The chat session could not be initialized."""


class ConversationLoadError(LogomuseError):
    """A conversation's history could not be loaded."""


class SendError(LogomuseError):
    """A message could not be sent or its reply could not be streamed."""
