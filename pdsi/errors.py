"""
pdsi.errors
===========
Typed failures, one per pipeline stage.  Every error aborts the computation
and propagates to the caller; the only cleanup performed on the way out is
removal of the computation workspace.
"""

from __future__ import annotations

from typing import Optional


class PdsiError(Exception):
    """Base class for every failure raised by the pdsi bridge."""


# -- Input --------------------------------------------------------------------

class InvalidModeError(PdsiError, ValueError):
    """Raised when ``mode`` is not one of 'pdsi', 'scpdsi', 'both'."""


class RangeError(PdsiError, ValueError):
    """Raised when the requested year window is not covered by the input."""


class MalformedInputError(PdsiError, ValueError):
    """Raised on incomplete years, empty matrices, or unwritable values."""


# -- Workspace ----------------------------------------------------------------

class WorkspaceIOError(PdsiError, IOError):
    """Raised when an engine input file cannot be written."""


# -- Engine -------------------------------------------------------------------

class UnsupportedPlatformError(PdsiError):
    """Raised when no engine executable is known for this operating system."""


class EngineNotFoundError(PdsiError):
    """Raised when the engine executable is absent from the engine home."""

    def __init__(self, path, hint: str):
        self.path = path
        self.hint = hint
        super().__init__(f"Engine executable not found: {path}. {hint}")


class EngineExecutionError(PdsiError):
    """Raised when the engine cannot be launched or exits with an error."""

    def __init__(self, message: str, returncode: Optional[int] = None,
                 stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class EngineTimeoutError(PdsiError):
    """Raised when the engine runs longer than the configured timeout."""


# -- Output -------------------------------------------------------------------

class MissingOutputError(PdsiError):
    """Raised when an expected engine output table does not exist."""


class MalformedOutputError(PdsiError):
    """Raised when an output table cannot be parsed at the expected widths."""
