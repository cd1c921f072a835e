"""
pdsi.engine
===========
Locate and run the platform-specific scPDSI executable.

The engine is invoked as::

    <executable> -m -i <workspace> <start> <end>

with the working directory set to the workspace.  One run always writes
both ``monthly/original/PDSI.tbl`` and ``monthly/self_cal/PDSI.tbl``.
"""

from __future__ import annotations

import platform
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ENGINE_EXECUTABLES, ENGINE_HOME_ENV
from .errors import (
    EngineExecutionError,
    EngineNotFoundError,
    EngineTimeoutError,
    UnsupportedPlatformError,
)
from .workspace import ComputationWorkspace

# Characters of stderr kept in error messages
_STDERR_TAIL = 2000


@dataclass
class EngineRun:
    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float


def resolve_executable(engine_home: str | Path, system: Optional[str] = None) -> Path:
    """
    Path of the engine executable for ``system`` (default: this machine).

    Raises
    ------
    UnsupportedPlatformError
        If the operating system has no known executable.
    EngineNotFoundError
        If the executable is not present under ``engine_home``.
    """
    system = system or platform.system()
    if system not in ENGINE_EXECUTABLES:
        raise UnsupportedPlatformError(
            f"Unsupported OS {system!r}; the engine is available for "
            f"{', '.join(sorted(ENGINE_EXECUTABLES))}"
        )

    exe = Path(engine_home).joinpath(*ENGINE_EXECUTABLES[system])
    if not exe.is_file():
        raise EngineNotFoundError(
            exe,
            hint=(
                f"Build the scPDSI engine for {system} and place it at this "
                f"path, or point {ENGINE_HOME_ENV} at a directory containing "
                f"{Path(*ENGINE_EXECUTABLES[system])}."
            ),
        )
    return exe


def build_command(
    executable: str | Path,
    workspace: ComputationWorkspace,
    start: int,
    end: int,
) -> List[str]:
    """Monthly mode (``-m``), input directory (``-i``), then the year span."""
    return [str(executable), "-m", "-i", str(workspace.path), str(start), str(end)]


def run_engine(
    executable: str | Path,
    workspace: ComputationWorkspace,
    start: int,
    end: int,
    timeout: Optional[float] = None,
    check: bool = True,
) -> EngineRun:
    """
    Run the engine synchronously inside ``workspace``.

    Parameters
    ----------
    timeout : float, optional
        Seconds to wait before killing the engine.  None waits indefinitely.
    check : bool
        Raise `EngineExecutionError` on a nonzero exit code.  With
        ``check=False`` a failed run only shows up later as a missing or
        malformed output table.

    Raises
    ------
    EngineTimeoutError
        The engine did not finish within ``timeout``.
    EngineExecutionError
        The engine could not be launched, or exited nonzero and ``check``.
    """
    command = build_command(executable, workspace, start, end)
    t0 = time.time()
    try:
        proc = subprocess.run(
            command,
            cwd=workspace.path,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise EngineTimeoutError(
            f"Engine did not finish within {timeout}s: {' '.join(command)}"
        ) from exc
    except OSError as exc:
        raise EngineExecutionError(f"Cannot launch engine {executable}: {exc}") from exc

    run = EngineRun(
        command=command,
        returncode=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
        duration=time.time() - t0,
    )
    if check and run.returncode != 0:
        stderr = run.stderr[-_STDERR_TAIL:]
        raise EngineExecutionError(
            f"Engine exited with code {run.returncode}"
            + (f":\n{stderr.strip()}" if stderr.strip() else ""),
            returncode=run.returncode,
            stderr=stderr,
        )
    return run
