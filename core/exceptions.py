"""
Elite65 exception hierarchy.

- Elite65Error: base class for every known error
- ConfigError: bad or unreadable configuration
- EntityNotFoundError: a task/tracker name could not be resolved
- UnreadableCommandError: a command named its target but said nothing actionable
- StoreError: the backing store rejected or failed a call
"""
from typing import Optional


class Elite65Error(Exception):
    """Base class for all expected Elite65 errors.

    Catching this handles every anticipated failure mode.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: what went wrong
            hint: what the user can do about it
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """Return a user-facing message."""
        if self.hint:
            return f"{self.message} {self.hint}"
        return self.message


class ConfigError(Elite65Error):
    """Raised when a configuration file is malformed."""

    def __init__(self, message: str, config_path: Optional[str] = None):
        hint = f"Check the config file: {config_path}" if config_path else "Check the config file format."
        super().__init__(message, hint)
        self.config_path = config_path


class EntityNotFoundError(Elite65Error):
    """A free-text entity reference matched nothing in the live data.

    The dispatcher converts this into an "unresolved" result; no mutation is
    issued for the turn.
    """

    def __init__(self, entity_kind: str, name: str, detail: Optional[str] = None):
        self.entity_kind = entity_kind
        self.name = name
        message = f"Target {entity_kind} '{name}' could not be identified."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message, hint=f"Check the {entity_kind} name and try again.")


class UnreadableCommandError(Elite65Error):
    """A command was routed but carried nothing the dispatcher could apply."""


class StoreError(Elite65Error):
    """The store collaborator failed a read or a mutation."""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation or "unknown"
        super().__init__(f"[{self.operation}] {message}")
