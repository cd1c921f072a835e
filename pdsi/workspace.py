"""
pdsi.workspace
==============
Per-computation scratch directories for the engine.

Each computation writes its five input files into a fresh directory, the
engine adds its ``monthly/`` output tree next to them, and the whole
directory is removed when the computation ends, whether it succeeded or not.

Folder layout
-------------
::

    <root>/pdsi_XXXXXXXX/
        monthly_T  monthly_P  mon_T_normal  mon_P_normal  parameter
        monthly/
            original/PDSI.tbl
            self_cal/PDSI.tbl
"""

from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

from .config import (
    PARAMETER_FILE,
    PDSI_TABLE,
    PRECIPITATION_FILE,
    PRECIPITATION_NORMAL_FILE,
    SCPDSI_TABLE,
    TEMPERATURE_FILE,
    TEMPERATURE_NORMAL_FILE,
    WORKSPACE_PREFIX,
    Mode,
)
from .errors import WorkspaceIOError


@dataclass(frozen=True)
class ComputationWorkspace:
    """Handle to one exclusively-owned engine working directory."""
    path: Path

    @property
    def temperature(self) -> Path:
        return self.path / TEMPERATURE_FILE

    @property
    def precipitation(self) -> Path:
        return self.path / PRECIPITATION_FILE

    @property
    def temperature_normals(self) -> Path:
        return self.path / TEMPERATURE_NORMAL_FILE

    @property
    def precipitation_normals(self) -> Path:
        return self.path / PRECIPITATION_NORMAL_FILE

    @property
    def parameters(self) -> Path:
        return self.path / PARAMETER_FILE

    @property
    def pdsi_table(self) -> Path:
        return self.path.joinpath(*PDSI_TABLE)

    @property
    def scpdsi_table(self) -> Path:
        return self.path.joinpath(*SCPDSI_TABLE)

    def output_tables(self) -> Dict[str, Path]:
        """Engine output table per result name."""
        return {
            Mode.PDSI.value: self.pdsi_table,
            Mode.SCPDSI.value: self.scpdsi_table,
        }


class WorkspaceManager:
    """
    Creates and removes computation workspaces under ``root``.

    Directory names come from `tempfile.mkdtemp`, which picks a random
    suffix and creates the directory atomically, so concurrent computations
    sharing a root never collide.
    """

    def __init__(self, root: Optional[str | Path] = None):
        self.root = Path(root) if root is not None else None

    def acquire(self) -> ComputationWorkspace:
        try:
            if self.root is not None:
                self.root.mkdir(parents=True, exist_ok=True)
            path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.root))
        except OSError as exc:
            raise WorkspaceIOError(
                f"Cannot create workspace under {self.root or tempfile.gettempdir()}: {exc}"
            ) from exc
        return ComputationWorkspace(path=path)

    def release(self, workspace: ComputationWorkspace) -> None:
        try:
            shutil.rmtree(workspace.path)
        except FileNotFoundError:
            pass

    @contextmanager
    def scope(self) -> Iterator[ComputationWorkspace]:
        """Acquire a workspace and release it on every exit path."""
        workspace = self.acquire()
        try:
            yield workspace
        finally:
            self.release(workspace)
