"""Convert renc diagnostic records into LSP Diagnostic objects."""
from __future__ import annotations

import os

from lsprotocol import types as lsp

from renlsp.protocol import DiagnosticRecord

# renc columns sit 2 to the right of LSP characters (not 1).  Pinned by
# tests; change only together with the compiler's column convention.
COLUMN_OFFSET = 2

_SEVERITY = {
    'error':   lsp.DiagnosticSeverity.Error,
    'warning': lsp.DiagnosticSeverity.Warning,
}


def compiler_range(line: int, col: int, length: int) -> lsp.Range:
    """Map a renc ``(line, col, length)`` to a single-line LSP range."""
    out_line = line - 1
    out_col = col - COLUMN_OFFSET
    return lsp.Range(
        start=lsp.Position(line=out_line, character=out_col),
        end=lsp.Position(line=out_line, character=out_col + length),
    )


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


def reconcile(records: list[DiagnosticRecord], document_path: str) -> list[lsp.Diagnostic]:
    """Return the complete diagnostic list for *document_path*.

    Records for other files, and records that would land before the start of
    the document after the coordinate transform, are dropped.
    """
    diags: list[lsp.Diagnostic] = []
    for rec in records:
        if not _same_path(rec.path, document_path):
            continue
        if rec.line - 1 < 0 or rec.col - COLUMN_OFFSET < 0:
            continue
        diags.append(
            lsp.Diagnostic(
                range=compiler_range(rec.line, rec.col, rec.length),
                message=rec.message,
                severity=_SEVERITY[rec.level],
                source='renc',
            )
        )
    return diags
