"""Public package surface for notebrowser.

Exports ``main`` for programmatic CLI invocation and ``WorkspaceSession`` as
the entry point for library use.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


def __getattr__(name: str):
    if name == "WorkspaceSession":
        from .session import WorkspaceSession

        return WorkspaceSession
    raise AttributeError(name)


__all__ = ["WorkspaceSession", "main"]
