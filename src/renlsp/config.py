"""
Compiler path resolution for renlsp.

Determines which ``renc`` executable to run using a cascading set of sources:

1. Explicit client configuration supplied via ``initializationOptions``
   (``compilerPath`` or ``ren.compiler.path``) or
   ``workspace/didChangeConfiguration`` (``ren.compiler.path``).
2. A ``.renlsp.toml`` project config file in the workspace root::

       [compiler]
       path = "/opt/ren/bin/renc"

3. The ``RENC_PATH`` environment variable.
4. Default: ``renc``, looked up on ``PATH`` when spawned.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from renlsp.invoker import DEFAULT_COMPILER

logger = logging.getLogger(__name__)

PROJECT_CONFIG = '.renlsp.toml'
ENV_VAR = 'RENC_PATH'


# ---------------------------------------------------------------------------
# Project config file
# ---------------------------------------------------------------------------

def _read_project_config(workspace_root: str | None) -> str | None:
    """Parse ``.renlsp.toml`` in *workspace_root* and return the compiler path, or None."""
    if not workspace_root:
        return None
    try:
        import tomllib  # Python 3.11+
    except ImportError:
        try:
            import tomli as tomllib  # fallback
        except ImportError:
            return None

    config_path = Path(workspace_root) / PROJECT_CONFIG
    if not config_path.exists():
        return None

    try:
        data = tomllib.loads(config_path.read_text(encoding='utf-8'))
    except (OSError, tomllib.TOMLDecodeError):
        logger.warning('could not read %s', config_path, exc_info=True)
        return None
    compiler = data.get('compiler', {})
    raw = compiler.get('path') if isinstance(compiler, dict) else None
    return raw or None


# ---------------------------------------------------------------------------
# Client settings
# ---------------------------------------------------------------------------

def _get(options, key: str):
    if isinstance(options, dict):
        return options.get(key)
    return getattr(options, key, None)


def compiler_path_from_settings(options) -> str | None:
    """Extract the compiler path from client options/settings, if present.

    Accepts both the flat ``{'compilerPath': ...}`` form and the nested
    ``{'ren': {'compiler': {'path': ...}}}`` form used by editor settings.

    Returns ``None`` when no compiler path key is present at all, and the
    empty string when the key is present but blank (meaning "clear").
    """
    if options is None:
        return None
    flat = _get(options, 'compilerPath')
    if flat is not None:
        return flat
    ren = _get(options, 'ren') or {}
    compiler = _get(ren, 'compiler') or {}
    return _get(compiler, 'path')


def log_level_from_settings(options) -> str | None:
    if options is None:
        return None
    return _get(options, 'logLevel') or _get(_get(options, 'ren') or {}, 'logLevel')


# ---------------------------------------------------------------------------
# CompilerSettings
# ---------------------------------------------------------------------------

class CompilerSettings:
    """Resolves the compiler path from client, project, environment and default."""

    def __init__(self, workspace_root: str | None = None, explicit: str | None = None):
        self._workspace_root = workspace_root
        # Explicit path set by the user/client (highest priority)
        self._explicit = explicit

    @property
    def workspace_root(self) -> str | None:
        return self._workspace_root

    def set_explicit(self, path: str | None) -> None:
        """Set (or clear, with ``None``) the client-supplied compiler path."""
        self._explicit = path or None

    def resolve(self) -> str:
        if self._explicit:
            return self._explicit

        project = _read_project_config(self._workspace_root)
        if project:
            return project

        env = os.environ.get(ENV_VAR)
        if env:
            return env

        return DEFAULT_COMPILER
