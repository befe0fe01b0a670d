"""Project-specific exception types."""

from __future__ import annotations

from typing import Any, Sequence


class VBoxSyncError(RuntimeError):
    """Base error for domain-level vboxsync failures."""


class CommandFailed(VBoxSyncError):
    """Raised when the external tool reports a non-success result."""

    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        message: str = '',
        result: Any = None,
    ):
        self.command = command
        self.arguments = tuple(args)
        self.message = message
        self.result = result
        detail = f'Command failed: {command} {" ".join(self.arguments)}'.strip()
        if message:
            detail = f'{detail}\n{message}'
        super().__init__(detail)


class ValidationFailed(VBoxSyncError):
    """Raised when a model is saved with attributes that fail validation."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = {k: list(v) for k, v in errors.items()}
        parts = [f'{k} {m}' for k, msgs in self.errors.items() for m in msgs]
        super().__init__('Validation failed: ' + ', '.join(parts))


class UnknownAttribute(VBoxSyncError, AttributeError):
    """Raised when reading or writing an attribute that was never declared."""


class ReadOnlyAttribute(VBoxSyncError):
    """Raised when writing a read-only attribute outside of a load."""


class AlreadyDestroyed(VBoxSyncError):
    """Raised when operating on a model whose backing resource was destroyed."""
