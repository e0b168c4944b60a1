"""handlers/__init__.py — re-export handler functions for convenience."""
from .diagnostics import reconcile, compiler_range
from .completion import get_completions

__all__ = ['reconcile', 'compiler_range', 'get_completions']
