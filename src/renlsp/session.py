"""
Per-server analysis session.

One :class:`Session` owns the incremental cache and the compiler invoker for
the lifetime of the server.  The server rebuilds it on ``initialize``; no other
code mutates the cache or the invoker directly.
"""
from __future__ import annotations

import logging

from lsprotocol import types as lsp

from renlsp.cache import IncrementalCache
from renlsp.handlers.diagnostics import reconcile
from renlsp.invoker import DEFAULT_COMPILER, CompilerInvoker
from renlsp.protocol import parse_diagnostics, parse_stdout

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, compiler_path: str = DEFAULT_COMPILER):
        self.cache = IncrementalCache()
        self.invoker = CompilerInvoker(compiler_path)
        # URIs with a non-cleared diagnostic list on the client.
        self.published: set[str] = set()

    @property
    def compiler_path(self) -> str:
        return self.invoker.compiler_path

    @compiler_path.setter
    def compiler_path(self, value: str) -> None:
        self.invoker.compiler_path = value

    def reset(self) -> None:
        self.invoker.reset()
        self.cache.clear()
        self.published.clear()

    async def analyze(self, document_path: str) -> list[lsp.Diagnostic] | None:
        """Compile *document_path*, refresh the cache and return its diagnostics.

        Returns ``None`` when the run was superseded; in that case neither the
        cache nor any diagnostics may be touched.  Raises
        :class:`~renlsp.errors.InvocationError` if the compiler cannot start.
        """
        result = await self.invoker.run(document_path)
        if result is None:
            return None
        # No await from here on: the snapshot swap is atomic w.r.t. other tasks.
        symbols, variables = parse_stdout(result.stdout)
        self.cache.replace(symbols, variables, document_path)
        diags = reconcile(parse_diagnostics(result.stderr), document_path)
        logger.debug('analyze: %s → %d symbols, %d variables, %d diagnostics',
                     document_path, len(symbols), len(variables), len(diags))
        return diags
