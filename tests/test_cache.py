"""Tests for renlsp.cache — snapshot replacement and edit-driven scope shifting."""
from __future__ import annotations

from lsprotocol import types as lsp

from renlsp.cache import IncrementalCache, apply_content_changes, line_edit
from renlsp.protocol import parse_stdout

STDOUT = """\
VAR::before:1:1:2:5:int
VAR::spanning:2:3:8:1:int
VAR::after:5:1:7:2:str
"""


def _cache() -> IncrementalCache:
    cache = IncrementalCache()
    cache.replace(*parse_stdout(STDOUT), path='/src/main.ren')
    return cache


def _lines(cache):
    return {v.name: (v.scope.start_line, v.scope.end_line) for v in cache.variables}


def _change(start_line, start_char, end_line, end_char, text):
    return lsp.TextDocumentContentChangePartial(
        range=lsp.Range(
            start=lsp.Position(line=start_line, character=start_char),
            end=lsp.Position(line=end_line, character=end_char),
        ),
        text=text,
    )


class TestReplace:
    def test_replace_clears_dirty(self):
        cache = _cache()
        cache.apply_edit(0, 1)
        assert cache.dirty
        cache.replace([], [], path='/src/main.ren')
        assert not cache.dirty
        assert cache.variables == []

    def test_replace_records_path(self):
        assert _cache().path == '/src/main.ren'

    def test_clear(self):
        cache = _cache()
        cache.clear()
        assert cache.symbols == [] and cache.variables == []
        assert cache.path is None


class TestApplyEdit:
    def test_zero_delta_is_noop(self):
        cache = _cache()
        before = _lines(cache)
        cache.apply_edit(3, 0)
        assert _lines(cache) == before
        assert not cache.dirty

    def test_insert_shifts_scopes_at_or_after_edit(self):
        cache = _cache()
        cache.apply_edit(3, 2)        # 0-based line 3 → 1-based line 4
        assert _lines(cache) == {
            'before': (1, 2),          # entirely before: untouched
            'spanning': (2, 10),       # only the end moves
            'after': (7, 9),           # both move
        }
        assert cache.dirty

    def test_edit_on_start_line_moves_start(self):
        cache = _cache()
        cache.apply_edit(4, 1)        # 1-based line 5 == after.start_line
        assert _lines(cache)['after'] == (6, 8)

    def test_deletion_shifts_up(self):
        cache = _cache()
        cache.apply_edit(2, -1)
        assert _lines(cache) == {
            'before': (1, 2),
            'spanning': (2, 7),
            'after': (4, 6),
        }

    def test_columns_untouched(self):
        cache = _cache()
        cache.apply_edit(0, 3)
        scope = cache.variables[1].scope
        assert (scope.start_col, scope.end_col) == (3, 1)


class TestLineEdit:
    def test_insert_newlines(self):
        assert line_edit(_change(3, 2, 3, 2, 'a\nb\nc')) == (3, 2)

    def test_crlf_counts_once(self):
        assert line_edit(_change(0, 0, 0, 0, 'a\r\nb\r\n')) == (0, 2)

    def test_bare_carriage_return_is_a_line_break(self):
        assert line_edit(_change(2, 0, 2, 0, 'a\rb\r')) == (2, 2)

    def test_mixed_line_endings(self):
        assert line_edit(_change(1, 0, 2, 0, 'x\ry\r\nz\n')) == (1, 2)

    def test_delete_lines(self):
        assert line_edit(_change(1, 0, 4, 0, '')) == (1, -3)

    def test_replace_on_one_line(self):
        assert line_edit(_change(6, 1, 6, 4, 'xyz')) == (6, 0)

    def test_whole_document_change_ignored(self):
        whole = lsp.TextDocumentContentChangeWholeDocument(text='new\ntext')
        assert line_edit(whole) is None

    def test_apply_content_changes_in_order(self):
        cache = _cache()
        shifted = apply_content_changes(cache, [
            _change(0, 0, 0, 0, '\n'),
            _change(0, 0, 0, 3, 'abc'),
            lsp.TextDocumentContentChangeWholeDocument(text=''),
        ])
        assert shifted == 1
        assert _lines(cache)['before'] == (2, 3)
        assert cache.dirty
