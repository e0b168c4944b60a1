"""
Completion handler.

Provides three kinds of completion items, in this order:

1. **Variables in scope** — every cached variable whose scope rectangle
   contains the cursor, annotated with its type.
2. **Ren keyword snippets** — a fixed catalog, always offered.
3. **Types and functions** — every cached ``TYPE``/``FUNC`` symbol, inserted
   as a snippet derived from its definition text.

Scope matching has two modes.  While the cache is clean the full rectangle
(line range plus start/end columns) is checked.  Once edits have shifted the
cache (``dirty``) the columns can no longer be trusted and only the line range
is checked, so a dirty cache offers at least every variable a clean one would.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from renlsp.protocol import Rectangle, SymbolKind, SymbolRecord

if TYPE_CHECKING:
    from renlsp.cache import IncrementalCache

# ---------------------------------------------------------------------------
# Ren keyword snippets
# ---------------------------------------------------------------------------
_KEYWORD_SNIPPETS = [
    ('fn',     'fn ${1:name}(${2:params}) -> ${3:type} {\n\t$0\n}'),
    ('type',   'type ${1:Name} {\n\t${2:field}: ${3:type}\n}'),
    ('let',    'let ${1:name}: ${2:type} = ${3:value}'),
    ('if',     'if ${1:condition} {\n\t$0\n}'),
    ('else',   'else {\n\t$0\n}'),
    ('while',  'while ${1:condition} {\n\t$0\n}'),
    ('for',    'for ${1:item} in ${2:items} {\n\t$0\n}'),
    ('return', 'return ${1:value}'),
    ('match',  'match ${1:value} {\n\t${2:pattern} => $0\n}'),
]

_KEYWORD_ITEMS = [
    lsp.CompletionItem(
        label=kw,
        kind=lsp.CompletionItemKind.Keyword,
        insert_text=snippet,
        insert_text_format=lsp.InsertTextFormat.Snippet,
    )
    for kw, snippet in _KEYWORD_SNIPPETS
]

# ---------------------------------------------------------------------------
# Definition → snippet
# ---------------------------------------------------------------------------

# Where the user most likely wants to start typing inside a definition.
_PRIORITY_CHARS = (':', '[', '(', '{')
# Skipped once if it directly follows the priority character.
_SKIP_CHARS = (' ', ')', ']', '}')


def _escape(text: str) -> str:
    """Escape characters that have meaning in LSP snippet syntax."""
    return text.replace('\\', '\\\\').replace('$', '\\$').replace('}', '\\}')


def _split_point(definition: str) -> int | None:
    for i, ch in enumerate(definition):
        if ch in _PRIORITY_CHARS:
            split = i + 1
            if split < len(definition) and definition[split] in _SKIP_CHARS:
                split += 1
            return split
    return None


def definition_snippet(definition: str) -> str:
    """Build a snippet from a symbol definition.

    ``'{x: int}'`` becomes ``'{${1}x: int\\}$0'``: a tab stop right after the
    first priority character, the rest verbatim, and a final stop at the end.
    With no priority character the whole definition is one placeholder.
    """
    split = _split_point(definition)
    if split is None:
        return f'${{1:{_escape(definition)}}}$0'
    return f'{_escape(definition[:split])}${{1}}{_escape(definition[split:])}$0'


_SYMBOL_KINDS = {
    SymbolKind.TYPE: lsp.CompletionItemKind.Struct,
    SymbolKind.FUNC: lsp.CompletionItemKind.Function,
}


def _symbol_item(sym: SymbolRecord) -> lsp.CompletionItem:
    return lsp.CompletionItem(
        label=sym.name,
        kind=_SYMBOL_KINDS[sym.kind],
        detail=sym.definition,
        insert_text=definition_snippet(sym.definition),
        insert_text_format=lsp.InsertTextFormat.Snippet,
    )

# ---------------------------------------------------------------------------
# Scope matching
# ---------------------------------------------------------------------------


def in_scope(scope: Rectangle, line: int, col: int, *, dirty: bool) -> bool:
    """Return True if 1-based ``(line, col)`` lies in *scope*."""
    if not scope.start_line <= line <= scope.end_line:
        return False
    if dirty:
        return True
    if line == scope.start_line:
        if scope.start_col is None or col < scope.start_col:
            return False
    if line == scope.end_line:
        if scope.end_col is None or col > scope.end_col:
            return False
    return True


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def get_completions(
    cache: IncrementalCache,
    position: lsp.Position,
) -> list[lsp.CompletionItem]:
    """Return completion items for *position* from the current snapshot."""
    line, col = position.line + 1, position.character + 1

    items = [
        lsp.CompletionItem(
            label=var.name,
            kind=lsp.CompletionItemKind.Variable,
            detail=var.type,
        )
        for var in cache.variables
        if in_scope(var.scope, line, col, dirty=cache.dirty)
    ]
    items.extend(_KEYWORD_ITEMS)
    items.extend(_symbol_item(sym) for sym in cache.symbols)
    return items
