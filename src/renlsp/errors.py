"""Exceptions raised by renlsp."""
from __future__ import annotations


class RenLspError(Exception):
    """Base class for all renlsp errors."""


class InvocationError(RenLspError):
    """The compiler executable could not be spawned (missing, not executable, ...)."""

    def __init__(self, command: list[str], reason: str):
        super().__init__(f'{command[0]}: {reason}')
        self.command = command
        self.reason = reason
