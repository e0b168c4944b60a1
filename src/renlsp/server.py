"""
renlsp Language Server.

Registers LSP capabilities and wires the renc-backed session and handlers.
"""
from __future__ import annotations

import asyncio
import logging
import traceback

from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path
from lsprotocol import types as lsp

logger = logging.getLogger(__name__)

from renlsp import __version__
from renlsp.cache import apply_content_changes
from renlsp.config import CompilerSettings, compiler_path_from_settings, log_level_from_settings
from renlsp.errors import InvocationError
from renlsp.handlers import get_completions
from renlsp.session import Session

# ---------------------------------------------------------------------------
# Server instance + per-session state
# ---------------------------------------------------------------------------

server = LanguageServer(
    'renlsp', __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Incremental,
)

# Compiler path resolution — rebuilt on initialize.
_settings = CompilerSettings()

# Cache + compiler invoker — rebuilt on initialize.
_session = Session(_settings.resolve())

# Strong references to running analysis tasks.
_tasks: set[asyncio.Task] = set()

# Set by the CLI (--compiler-path); wins over everything the client sends.
_compiler_override: str | None = None


def set_compiler_override(path: str | None) -> None:
    global _compiler_override
    _compiler_override = path or None
    _refresh_compiler_path()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _refresh_compiler_path() -> None:
    path = _compiler_override or _settings.resolve()
    if path != _session.compiler_path:
        logger.info('using compiler %r', path)
    _session.compiler_path = path


def _document_path(uri: str) -> str | None:
    """Filesystem path for a ``file://`` URI, or None for other schemes."""
    if not uri.startswith('file://'):
        return None
    return to_fs_path(uri)


def _publish_diagnostics(uri: str, diags: list[lsp.Diagnostic]) -> None:
    logger.debug('_publish_diagnostics: %s → %d diagnostics', uri, len(diags))
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diags)
    )
    if diags:
        _session.published.add(uri)
    else:
        _session.published.discard(uri)


def _clear_all_diagnostics() -> None:
    for uri in sorted(_session.published):
        _publish_diagnostics(uri, [])


def _show_error(message: str) -> None:
    server.window_show_message(
        lsp.ShowMessageParams(type=lsp.MessageType.Error, message=message)
    )


async def _run_analysis(uri: str) -> None:
    """Compile *uri* and publish its diagnostics, unless a newer run wins."""
    path = _document_path(uri)
    if path is None:
        return
    try:
        diags = await _session.analyze(path)
    except InvocationError as e:
        logger.error('could not run compiler: %s', e)
        _clear_all_diagnostics()
        _show_error(
            f"Failed to run '{e.command[0]}'. Please ensure it's in your system PATH "
            f"or set the 'ren.compiler.path' setting. Error: {e.reason}"
        )
        return
    except Exception as e:
        logger.error('_run_analysis: unexpected error:\n%s', traceback.format_exc())
        _session.invoker.reset()
        _show_error(f'An unexpected error occurred while running the Ren compiler: {e}')
        return
    if diags is None:
        logger.debug('_run_analysis: result for %s superseded', uri)
        return
    _publish_diagnostics(uri, diags)


def _schedule_analysis(uri: str) -> asyncio.Task:
    """Start an analysis task; the invoker cancels whatever was running."""
    task = asyncio.ensure_future(_run_analysis(uri))
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return task


def _apply_log_level(raw: str | None) -> None:
    """Set the root logger level from a string like 'debug', 'warning', etc."""
    if not raw:
        return
    level = getattr(logging, raw.upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@server.feature(lsp.INITIALIZE)
def on_initialize(params: lsp.InitializeParams):
    global _settings, _session
    workspace_root = None
    if params.root_uri:
        workspace_root = _document_path(params.root_uri) or params.root_uri

    opts = getattr(params, 'initialization_options', None)
    _settings = CompilerSettings(
        workspace_root=workspace_root,
        explicit=compiler_path_from_settings(opts),
    )
    _session.reset()
    _session = Session(_compiler_override or _settings.resolve())
    logger.info('initialized: workspace=%s compiler=%r', workspace_root, _session.compiler_path)

    _apply_log_level(log_level_from_settings(opts))


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(params: lsp.DidChangeConfigurationParams):
    """Handle live config changes (e.g. user changes ``ren.compiler.path``)."""
    settings = getattr(params, 'settings', None) or {}
    if isinstance(settings, dict):
        raw = compiler_path_from_settings(settings)
        if raw is not None:
            _settings.set_explicit(raw)  # '' clears the override
            _refresh_compiler_path()
        _apply_log_level(log_level_from_settings(settings))


# ---------------------------------------------------------------------------
# Text document synchronisation
# ---------------------------------------------------------------------------

@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams):
    _schedule_analysis(params.text_document.uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
def did_save(params: lsp.DidSaveTextDocumentParams):
    _schedule_analysis(params.text_document.uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams):
    """Shift cached scopes to follow the edit; no recompile until save."""
    path = _document_path(params.text_document.uri)
    if path is None or path != _session.cache.path:
        return
    if apply_content_changes(_session.cache, params.content_changes):
        logger.debug('did_change: shifted scopes for %s (dirty)', path)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams):
    _publish_diagnostics(params.text_document.uri, [])


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

@server.feature(lsp.TEXT_DOCUMENT_COMPLETION, lsp.CompletionOptions())
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    items = get_completions(_session.cache, params.position)
    return lsp.CompletionList(is_incomplete=False, items=items)
