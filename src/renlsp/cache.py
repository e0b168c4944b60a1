"""
Incremental symbol/variable cache.

Holds the records from the most recent accepted compiler run.  Between runs,
line-shifting edits move each variable's scope lines so completions stay
roughly right without recompiling.  Columns are never moved, so once any such
edit has been applied the snapshot is marked *dirty* and the completion
handler stops trusting column bounds.
"""
from __future__ import annotations

import logging
import re

from lsprotocol import types as lsp

from renlsp.protocol import SymbolRecord, VariableRecord

logger = logging.getLogger(__name__)

# LSP end-of-line sequences; "\r\n" counts once.
_LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')


class IncrementalCache:
    """The current analysis snapshot for one document."""

    def __init__(self):
        self.symbols: list[SymbolRecord] = []
        self.variables: list[VariableRecord] = []
        self.dirty = False
        # Filesystem path of the document the snapshot was compiled from
        self.path: str | None = None

    def replace(
        self,
        symbols: list[SymbolRecord],
        variables: list[VariableRecord],
        path: str | None = None,
    ) -> None:
        """Swap in a fresh snapshot from a compiler run and clear ``dirty``."""
        self.symbols = list(symbols)
        self.variables = list(variables)
        self.path = path
        self.dirty = False
        logger.debug('cache: replaced with %d symbols, %d variables for %s',
                     len(self.symbols), len(self.variables), path)

    def clear(self) -> None:
        self.replace([], [], None)

    def apply_edit(self, edited_line: int, line_delta: int) -> None:
        """Shift scope lines after an edit at 0-based *edited_line*.

        Start and end lines are shifted independently: a scope that begins
        before the edit but ends at or after it grows (or shrinks).
        """
        if line_delta == 0:
            return
        change_start = edited_line + 1
        for var in self.variables:
            scope = var.scope
            if scope.start_line >= change_start:
                scope.start_line += line_delta
            if scope.end_line >= change_start:
                scope.end_line += line_delta
        self.dirty = True


def line_edit(change) -> tuple[int, int] | None:
    """Return ``(edited_line, line_delta)`` for an LSP content change.

    *edited_line* is 0-based.  Whole-document changes carry no range and
    return ``None``.
    """
    rng = getattr(change, 'range', None)
    if rng is None:
        return None
    inserted = len(_LINE_BREAK_RE.findall(change.text))
    removed = rng.end.line - rng.start.line
    return rng.start.line, inserted - removed


def apply_content_changes(cache: IncrementalCache,
                          changes: list[lsp.TextDocumentContentChangeEvent]) -> int:
    """Feed each ranged change to *cache* in order; return how many shifted lines."""
    shifted = 0
    for change in changes:
        edit = line_edit(change)
        if edit is None:
            continue
        edited_line, delta = edit
        if delta:
            cache.apply_edit(edited_line, delta)
            shifted += 1
    return shifted
