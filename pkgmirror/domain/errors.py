"""
Exception hierarchy for the mirror and indexing pipeline.

Configuration errors stop the process from starting, mirror errors fail a
single sync attempt. Per-file parse problems never surface as exceptions;
parsers report them as a skip.
"""
from __future__ import annotations

from typing import List, Optional


class PkgMirrorError(Exception):
    """Base exception for pkgmirror."""
    pass


class ConfigurationError(PkgMirrorError):
    """Invalid configuration, e.g. an unknown parser format."""
    pass


class MirrorError(PkgMirrorError):
    """Clone, pull or diff against the upstream repository failed."""

    def __init__(self, message: str, command: Optional[List[str]] = None, stderr: str = ""):
        self.command = command or []
        self.stderr = stderr
        super().__init__(message)
