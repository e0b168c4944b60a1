"""
renlsp – Ren Language Server CLI entry point.

The server speaks LSP over stdio by default (``--tcp PORT`` for debugging)
and runs ``<compiler> <file> --diagnostics`` on every open and save.

The compiler is the first of:

1. ``--compiler-path PATH`` on this command line;
2. ``compilerPath`` / ``ren.compiler.path`` sent by the editor;
3. ``[compiler] path`` in ``.renlsp.toml`` at the workspace root;
4. the ``RENC_PATH`` environment variable;
5. ``renc`` on ``PATH``.

Logs go to stderr (stdout carries the LSP stream); the level can also be
changed from the editor through ``ren.logLevel``.
"""
from __future__ import annotations

import argparse
import logging
import sys


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='renlsp',
        description='Ren Language Server (LSP) backed by the renc compiler.',
    )
    transport = p.add_mutually_exclusive_group()
    transport.add_argument(
        '--stdio',
        action='store_true',
        help='Talk LSP over stdin/stdout (the default)',
    )
    transport.add_argument(
        '--tcp',
        metavar='PORT',
        type=int,
        help='Serve on 127.0.0.1:PORT instead of stdio',
    )
    p.add_argument(
        '--compiler-path',
        metavar='PATH',
        help='renc executable to run; overrides editor, project and RENC_PATH settings',
    )
    p.add_argument(
        '--log-level',
        metavar='LEVEL',
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level written to stderr (default: WARNING)',
    )
    p.add_argument(
        '--version',
        action='store_true',
        help='Print the renlsp version and exit',
    )
    return p


def renlsp(argv: list[str] | None = None) -> None:
    """Entry point for the ``renlsp`` command."""
    args = _build_parser().parse_args(argv)

    if args.version:
        from renlsp import __version__
        print(f'renlsp {__version__}')
        sys.exit(0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    from renlsp.server import server, set_compiler_override

    if args.compiler_path:
        set_compiler_override(args.compiler_path)

    if args.tcp is not None:
        server.start_tcp('127.0.0.1', args.tcp)
    else:
        server.start_io()


if __name__ == '__main__':
    renlsp()
