"""
pdsi.config
===========
Central configuration: constants, dataclasses, and sane defaults.

A computation is fully described by a `PdsiConfig` dataclass (where the
engine lives, where workspaces go, how long to wait) that is serialised
alongside exported results for reproducibility.
"""

from __future__ import annotations

import hashlib
import json
import os
import platform
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Table labels
# ---------------------------------------------------------------------------
MONTHS: List[str] = [
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
]

YEAR_COL: str = "YEAR"
RESULT_COLUMNS: List[str] = [YEAR_COL] + MONTHS

# Positional column names for climate input (year, month, T in °C, P in mm)
CLIMATE_COLUMNS: List[str] = ["year", "month", "temperature", "precipitation"]


# ---------------------------------------------------------------------------
# Engine file contract
# ---------------------------------------------------------------------------
# Input files, written to the workspace root
TEMPERATURE_FILE: str = "monthly_T"
PRECIPITATION_FILE: str = "monthly_P"
TEMPERATURE_NORMAL_FILE: str = "mon_T_normal"
PRECIPITATION_NORMAL_FILE: str = "mon_P_normal"
PARAMETER_FILE: str = "parameter"

# Output tables, relative to the workspace root
PDSI_TABLE: Tuple[str, ...] = ("monthly", "original", "PDSI.tbl")
SCPDSI_TABLE: Tuple[str, ...] = ("monthly", "self_cal", "PDSI.tbl")

# Executable per platform.system(), relative to the engine home
ENGINE_EXECUTABLES: Dict[str, Tuple[str, ...]] = {
    "Windows": ("exec", "sc-pdsi.exe"),
    "Linux": ("exec", "scpdsi"),
    "Darwin": ("exec", "pdsi"),
}

ENGINE_HOME_ENV: str = "PDSI_ENGINE_HOME"
WORKSPACE_PREFIX: str = "pdsi_"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------
class Mode(str, Enum):
    """Which result table(s) a computation returns."""
    PDSI = "pdsi"          # original Palmer index
    SCPDSI = "scpdsi"      # self-calibrated index
    BOTH = "both"

    @property
    def tables(self) -> List[str]:
        if self is Mode.BOTH:
            return [Mode.PDSI.value, Mode.SCPDSI.value]
        return [self.value]


class OutputFormat(str, Enum):
    PARQUET = "parquet"
    CSV = "csv"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------
@dataclass
class PdsiConfig:
    """Settings for running the engine and exporting its results."""

    # -- Engine --
    engine_home: Optional[str] = None        # None → $PDSI_ENGINE_HOME → package dir
    timeout: Optional[float] = None          # seconds; None waits indefinitely
    check_returncode: bool = True            # nonzero exit → EngineExecutionError

    # -- Workspaces --
    workspace_root: Optional[str] = None     # None → system temp dir

    # -- Export (CLI) --
    output_dir: str = "results"
    output_format: OutputFormat = OutputFormat.PARQUET

    verbose: bool = False

    # -- Reproducibility --
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def resolved_engine_home(self) -> Path:
        """Engine home from config, environment, or the installed package."""
        if self.engine_home:
            return Path(self.engine_home)
        env_home = os.environ.get(ENGINE_HOME_ENV)
        if env_home:
            return Path(env_home)
        return Path(__file__).resolve().parent

    # ----- helpers -----
    def to_dict(self) -> dict:
        return {
            "engine_home": self.engine_home,
            "timeout": self.timeout,
            "check_returncode": self.check_returncode,
            "workspace_root": self.workspace_root,
            "output_dir": self.output_dir,
            "output_format": self.output_format.value,
            "verbose": self.verbose,
            "created_at": self.created_at,
        }

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load(cls, path: str | Path) -> "PdsiConfig":
        raw = json.loads(Path(path).read_text())
        if "output_format" in raw:
            raw["output_format"] = OutputFormat(raw["output_format"])
        return cls(**raw)


# ---------------------------------------------------------------------------
# Environment / reproducibility snapshot
# ---------------------------------------------------------------------------
def get_environment_info() -> dict:
    """Capture runtime environment for metadata."""
    info = {
        "python": platform.python_version(),
        "platform": platform.platform(),
        "system": platform.system(),
        "timestamp": datetime.now().isoformat(),
    }
    try:
        info["git_commit"] = (
            subprocess.check_output(
                ["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL
            )
            .decode()
            .strip()
        )
    except (OSError, subprocess.CalledProcessError):
        info["git_commit"] = None
    return info


def file_hash(filepath: str | Path, algo: str = "sha256") -> str:
    """Compute hash of a file for provenance tracking."""
    h = hashlib.new(algo)
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(1 << 20), b""):
            h.update(chunk)
    return h.hexdigest()
