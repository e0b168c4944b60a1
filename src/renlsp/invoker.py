"""
Single-flight runner for the external ``renc`` compiler.

At most one compiler process is tracked at a time.  Every call to
:meth:`CompilerInvoker.run` kills the tracked process (without waiting for it
to exit) and bumps a generation counter *before* spawning its own.  A run
only hands back its output if its generation is still the current one when
the process finishes, so a killed or superseded run can never deliver late
output, whatever the OS does with the kill.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from renlsp.errors import InvocationError

logger = logging.getLogger(__name__)

DEFAULT_COMPILER = 'renc'


@dataclass
class CompilerResult:
    stdout: str
    stderr: str
    returncode: int | None
    generation: int


class CompilerInvoker:
    """Spawns the compiler; the newest request always wins."""

    def __init__(self, compiler_path: str = DEFAULT_COMPILER):
        self.compiler_path = compiler_path
        self._generation = 0
        self._process: asyncio.subprocess.Process | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        return self._process is not None

    def command(self, document_path: str) -> list[str]:
        return [self.compiler_path, document_path, '--diagnostics']

    def _kill_current(self) -> None:
        """Kill the tracked process, if any, and forget it."""
        proc, self._process = self._process, None
        if proc is None or proc.returncode is not None:
            return
        logger.debug('invoker: killing superseded compiler pid=%s', proc.pid)
        try:
            proc.kill()
        except ProcessLookupError:
            pass  # exited between the returncode check and the kill

    def reset(self) -> None:
        """Cancel any run and make every outstanding generation stale."""
        self._kill_current()
        self._generation += 1

    async def run(self, document_path: str) -> CompilerResult | None:
        """Compile *document_path* and return its output.

        Returns ``None`` if a newer run started before this one finished.
        Raises :class:`InvocationError` if the compiler cannot be spawned.
        """
        self._kill_current()
        self._generation += 1
        generation = self._generation
        cmd = self.command(document_path)
        logger.debug('invoker: generation %d running %s', generation, cmd)

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            if generation == self._generation:
                self._process = None
            raise InvocationError(cmd, e.strerror or str(e)) from e

        if generation != self._generation:
            # Superseded while spawning: nobody else knows about this process.
            logger.debug('invoker: generation %d superseded during spawn', generation)
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            return None

        self._process = proc
        stdout, stderr = await proc.communicate()

        if generation != self._generation:
            logger.debug('invoker: discarding stale output of generation %d', generation)
            return None

        self._process = None
        logger.debug('invoker: generation %d exited with %s', generation, proc.returncode)
        return CompilerResult(
            stdout=stdout.decode('utf-8', errors='replace'),
            stderr=stderr.decode('utf-8', errors='replace'),
            returncode=proc.returncode,
            generation=generation,
        )
