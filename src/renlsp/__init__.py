"""renlsp – Ren Language Server.

Runs the ``renc`` compiler on open/save, publishes its diagnostics and serves
scope-aware completions from the cached compiler output.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version('renlsp')
except PackageNotFoundError:
    __version__ = '0.0.0.dev0'
