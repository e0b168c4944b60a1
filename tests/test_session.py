"""Tests for renlsp.session — end-to-end analysis against a stand-in compiler."""
from __future__ import annotations

import asyncio

import pytest
from lsprotocol import types as lsp

from renlsp.errors import InvocationError
from renlsp.session import Session

STDOUT = """\
VAR::x:2:5:6:1:int
garbage line
VAR::broken:a:1:2:3:int
TYPE::Point: {x: int, y: int}
FUNC::norm: (p: Point) -> float
"""


class TestSessionAnalyze:
    def test_cache_matches_parsed_stdout(self, fake_compiler, python_compiler):
        doc = fake_compiler(stdout=STDOUT)
        session = Session(python_compiler)
        diags = asyncio.run(session.analyze(doc))
        assert diags == []
        assert [v.name for v in session.cache.variables] == ['x']
        assert [s.name for s in session.cache.symbols] == ['Point', 'norm']
        assert session.cache.path == doc
        assert not session.cache.dirty

    def test_diagnostics_for_document_only(self, fake_compiler, python_compiler):
        doc = fake_compiler(
            stderr='%PATH%:3:4:2:error:bad thing\n/elsewhere.ren:1:2:1:warning:not ours\n',
        )
        session = Session(python_compiler)
        diags = asyncio.run(session.analyze(doc))
        assert len(diags) == 1
        assert diags[0].message == 'bad thing'
        assert diags[0].range.start == lsp.Position(line=2, character=2)

    def test_replace_clears_dirty(self, fake_compiler, python_compiler):
        doc = fake_compiler(stdout=STDOUT)
        session = Session(python_compiler)
        asyncio.run(session.analyze(doc))
        session.cache.apply_edit(0, 1)
        assert session.cache.dirty
        asyncio.run(session.analyze(doc))
        assert not session.cache.dirty
        assert session.cache.variables[0].scope.start_line == 2

    def test_stale_run_never_replaces_newer_snapshot(self, fake_compiler, python_compiler):
        slow = fake_compiler(stdout='VAR::old:1:1:9:9:int\n', sleep=30, name='slow.ren')
        fast = fake_compiler(stdout='VAR::new:1:1:9:9:int\n', name='fast.ren')
        session = Session(python_compiler)

        async def scenario():
            first = asyncio.ensure_future(session.analyze(slow))
            await asyncio.sleep(0.5)
            second = await session.analyze(fast)
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is None
        assert second == []
        assert [v.name for v in session.cache.variables] == ['new']
        assert session.cache.path == fast

    def test_invocation_error_leaves_cache(self, fake_compiler, python_compiler, tmp_path):
        doc = fake_compiler(stdout=STDOUT)
        session = Session(python_compiler)
        asyncio.run(session.analyze(doc))
        session.compiler_path = str(tmp_path / 'missing-renc')
        with pytest.raises(InvocationError):
            asyncio.run(session.analyze(doc))
        assert [v.name for v in session.cache.variables] == ['x']

    def test_reset(self, fake_compiler, python_compiler):
        doc = fake_compiler(stdout=STDOUT)
        session = Session(python_compiler)
        asyncio.run(session.analyze(doc))
        session.published.add('file:///x.ren')
        session.reset()
        assert session.cache.variables == []
        assert session.published == set()
