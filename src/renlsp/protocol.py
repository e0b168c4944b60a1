"""
Records reported by the Ren compiler and the line parsers that produce them.

``renc <file> --diagnostics`` writes two line-oriented streams:

stdout (symbols)::

    VAR::<name>:<startLine>:<startCol>:<endLine>:<endCol>:<type>
    TYPE::<name>: <definition>
    FUNC::<name>: <definition>

stderr (diagnostics)::

    <path>:<line>:<col>:<length>:<error|warning>:<message>

All positions are 1-based.  Both parsers are total: a line that does not fit
its grammar is skipped on its own and the rest of the batch is kept.
"""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class SymbolKind(enum.Enum):
    TYPE = 'TYPE'
    FUNC = 'FUNC'


@dataclass
class SymbolRecord:
    name: str
    definition: str      # raw snippet, e.g. '{x: int, y: int}'
    kind: SymbolKind


@dataclass
class Rectangle:
    """Region of the document in which a variable is visible (1-based)."""
    start_line: int
    start_col: int | None    # None when the compiler reported a non-numeric column
    end_line: int
    end_col: int | None


@dataclass
class VariableRecord:
    name: str
    type: str
    scope: Rectangle


@dataclass
class DiagnosticRecord:
    path: str
    line: int        # 1-based
    col: int         # 1-based, see handlers.diagnostics.compiler_range
    length: int
    level: str       # 'error' or 'warning'
    message: str


# ---------------------------------------------------------------------------
# stdout
# ---------------------------------------------------------------------------

_VAR_TAG = 'VAR::'
_DEFINITION_TAGS = {
    'TYPE::': SymbolKind.TYPE,
    'FUNC::': SymbolKind.FUNC,
}
_DEFINITION_SEP = ': '


def _to_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_var(body: str) -> VariableRecord | None:
    fields = body.split(':')
    if len(fields) != 6:
        return None
    name, start_line, start_col, end_line, end_col, type_ = fields
    start = _to_int(start_line)
    end = _to_int(end_line)
    if start is None or end is None:
        return None
    return VariableRecord(
        name=name,
        type=type_,
        scope=Rectangle(
            start_line=start,
            start_col=_to_int(start_col),
            end_line=end,
            end_col=_to_int(end_col),
        ),
    )


def _parse_definition(body: str, kind: SymbolKind) -> SymbolRecord | None:
    name, sep, definition = body.partition(_DEFINITION_SEP)
    if not sep:
        return None
    name, definition = name.strip(), definition.strip()
    if not name or not definition:
        return None
    return SymbolRecord(name=name, definition=definition, kind=kind)


def parse_stdout(text: str) -> tuple[list[SymbolRecord], list[VariableRecord]]:
    """Parse compiler stdout into ``(symbols, variables)`` in report order."""
    symbols: list[SymbolRecord] = []
    variables: list[VariableRecord] = []
    for raw in text.splitlines():
        line = raw.rstrip('\r')
        if not line.strip():
            continue
        if line.startswith(_VAR_TAG):
            var = _parse_var(line[len(_VAR_TAG):])
            if var is None:
                logger.debug('parse_stdout: skipping malformed VAR line %r', line)
            else:
                variables.append(var)
            continue
        for tag, kind in _DEFINITION_TAGS.items():
            if line.startswith(tag):
                sym = _parse_definition(line[len(tag):], kind)
                if sym is None:
                    logger.debug('parse_stdout: skipping malformed %s line %r', kind.value, line)
                else:
                    symbols.append(sym)
                break
        else:
            logger.debug('parse_stdout: ignoring untagged line %r', line)
    return symbols, variables


# ---------------------------------------------------------------------------
# stderr
# ---------------------------------------------------------------------------

# Regex matching a renc diagnostic line: path:line:col:length: level: message
_DIAG_RE = re.compile(
    r'^(.+?):(\d+):(\d+):(\d+):\s*(error|warning):\s*(.*)$'
)


def parse_diagnostics(text: str) -> list[DiagnosticRecord]:
    """Parse compiler stderr into :class:`DiagnosticRecord` objects.

    Only the first line of a multi-line message is captured; continuation
    lines do not match the grammar and are dropped.
    """
    records: list[DiagnosticRecord] = []
    for raw in text.splitlines():
        m = _DIAG_RE.match(raw.rstrip('\r'))
        if not m:
            continue
        path, line, col, length, level, message = m.groups()
        records.append(DiagnosticRecord(
            path=path,
            line=int(line),
            col=int(col),
            length=int(length),
            level=level,
            message=message.strip(),
        ))
    return records
