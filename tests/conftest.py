"""Shared fixtures: a stand-in ``renc`` built from a tiny Python script.

The compiler is invoked as ``<compiler> <document> --diagnostics``.  With
``sys.executable`` as the compiler and the script itself as the document,
``python main.ren --diagnostics`` runs the script, which replays canned
stdout/stderr.  ``%PATH%`` in the canned stderr is replaced by the script's
own absolute path so diagnostics can target the "document".
"""
from __future__ import annotations

import sys

import pytest

_SCRIPT = """\
import sys, time
time.sleep({sleep!r})
sys.stdout.write({stdout!r})
sys.stderr.write({stderr!r})
"""


@pytest.fixture
def fake_compiler(tmp_path):
    def make(stdout: str = '', stderr: str = '', sleep: float = 0.0,
             name: str = 'main.ren') -> str:
        path = tmp_path / name
        stderr = stderr.replace('%PATH%', str(path))
        path.write_text(_SCRIPT.format(sleep=sleep, stdout=stdout, stderr=stderr))
        return str(path)
    return make


@pytest.fixture
def python_compiler() -> str:
    return sys.executable
