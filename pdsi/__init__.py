"""
pdsi: Python bridge to the self-calibrating Palmer Drought Severity Index
(scPDSI) engine.

Flow:
  monthly climate records → year × month matrices → normals
  → fixed-width engine inputs → engine run → PDSI / scPDSI tables

Modules
-------
config       : Constants, Mode enum, PdsiConfig dataclass, provenance helpers
errors       : Typed failures (RangeError, EngineNotFoundError, …)
climate      : ClimateRecord, SiteParameters, reshape_climate, compute_normals
fixed_width  : Fixed-width writer / parser for engine inputs and outputs
workspace    : WorkspaceManager, per-computation scratch directories
engine       : Executable resolution and subprocess invocation
core         : PdsiRunner and the one-call `pdsi()` interface
export       : Parquet/CSV export, run metadata
"""

__version__ = "0.1.0"

from .climate import ClimateRecord, SiteParameters
from .config import Mode, PdsiConfig
from .core import ComputationRequest, PdsiResult, PdsiRunner, pdsi
from .errors import (
    EngineExecutionError,
    EngineNotFoundError,
    EngineTimeoutError,
    InvalidModeError,
    MalformedInputError,
    MalformedOutputError,
    MissingOutputError,
    PdsiError,
    RangeError,
    UnsupportedPlatformError,
    WorkspaceIOError,
)

__all__ = [
    "ClimateRecord",
    "SiteParameters",
    "Mode",
    "PdsiConfig",
    "ComputationRequest",
    "PdsiResult",
    "PdsiRunner",
    "pdsi",
    "PdsiError",
    "RangeError",
    "MalformedInputError",
    "WorkspaceIOError",
    "UnsupportedPlatformError",
    "EngineNotFoundError",
    "EngineExecutionError",
    "EngineTimeoutError",
    "MissingOutputError",
    "MalformedOutputError",
    "InvalidModeError",
]
