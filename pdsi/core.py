"""
pdsi.core
=========
Computation runner: reshapes climate input, drives the engine inside a
private workspace, and returns the parsed index tables.

.. code-block:: text

    check mode → reshape climate → normals → resolve executable
        └─ workspace scope:  write inputs → run engine → read tables
    → PDSI and/or scPDSI tables

Public API
----------
pdsi(awc, lat, climate, start, end, mode)   – one-call interface
PdsiRunner(config).run(request)             – reusable runner
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional, Union

import pandas as pd

from .climate import ClimateInput, SiteParameters, compute_normals, reshape_climate
from .config import Mode, PdsiConfig
from .engine import resolve_executable, run_engine
from .errors import InvalidModeError
from .fixed_width import check_result_years, read_results, write_inputs
from .workspace import WorkspaceManager


class PdsiResult(NamedTuple):
    """Both result tables, returned for ``mode="both"``."""
    pdsi: pd.DataFrame
    scpdsi: pd.DataFrame


def parse_mode(mode: Union[str, Mode]) -> Mode:
    """Validate a mode string; raises `InvalidModeError` for anything else."""
    try:
        return Mode(mode)
    except ValueError:
        raise InvalidModeError(
            f"`mode` has to be one of 'pdsi', 'scpdsi', or 'both'; got {mode!r}"
        ) from None


@dataclass
class ComputationRequest:
    site: SiteParameters
    climate: ClimateInput
    start: int
    end: int
    mode: Mode = Mode.BOTH

    def __post_init__(self):
        self.mode = parse_mode(self.mode)
        self.start = int(self.start)
        self.end = int(self.end)


class PdsiRunner:
    """
    Runs (sc)PDSI computations with one configuration.

    Holds no per-computation state: every `run` call acquires its own
    workspace, so a runner may be shared between threads.

    Parameters
    ----------
    config : PdsiConfig, optional
        Engine location, workspace root, timeout.  Defaults to `PdsiConfig()`.
    """

    def __init__(self, config: Optional[PdsiConfig] = None):
        self.cfg = config or PdsiConfig()
        self.workspaces = WorkspaceManager(self.cfg.workspace_root)

    def _log(self, message: str) -> None:
        if self.cfg.verbose:
            print(message)

    def compute(self, request: ComputationRequest) -> Dict[str, pd.DataFrame]:
        """
        Run one computation and return the requested tables by name
        (``"pdsi"`` and/or ``"scpdsi"``).
        """
        start, end = request.start, request.end
        t0 = time.time()

        temperature, precipitation = reshape_climate(request.climate, start, end)
        temperature_normals = compute_normals(temperature)
        precipitation_normals = compute_normals(precipitation)
        self._log(f"  ✓ Climate window {start - 1}–{end}: "
                  f"{len(temperature)} years × 12 months")

        executable = resolve_executable(self.cfg.resolved_engine_home())
        self._log(f"  ✓ Engine: {executable}")

        with self.workspaces.scope() as workspace:
            write_inputs(
                workspace,
                temperature,
                precipitation,
                temperature_normals,
                precipitation_normals,
                request.site,
            )
            run = run_engine(
                executable,
                workspace,
                start,
                end,
                timeout=self.cfg.timeout,
                check=self.cfg.check_returncode,
            )
            self._log(f"  ✓ Engine finished in {run.duration:.1f}s "
                      f"(exit code {run.returncode})")
            tables = read_results(workspace, request.mode)

        for name, table in tables.items():
            check_result_years(table, start, end, name)

        self._log(f"✓ Computation completed in {time.time() - t0:.1f}s")
        return tables

    def run(self, request: ComputationRequest) -> Union[pd.DataFrame, PdsiResult]:
        """Single table for mode pdsi / scpdsi, `PdsiResult` for both."""
        tables = self.compute(request)
        if request.mode is Mode.BOTH:
            return PdsiResult(tables[Mode.PDSI.value], tables[Mode.SCPDSI.value])
        return tables[request.mode.value]


def pdsi(
    awc: float,
    lat: float,
    climate: ClimateInput,
    start: int,
    end: int,
    mode: Union[str, Mode] = "both",
    config: Optional[PdsiConfig] = None,
) -> Union[pd.DataFrame, PdsiResult]:
    """
    Calculate monthly PDSI and/or scPDSI for one site.

    Parameters
    ----------
    awc : float
        Available soil water capacity (cm).
    lat : float
        Site latitude (decimal degrees).
    climate : DataFrame or sequence of records
        Monthly year, month, temperature (°C), precipitation (mm), ordered
        by time and covering January ``start - 1`` to December ``end``.
    start, end : int
        First and last year of the computation.
    mode : {"both", "pdsi", "scpdsi"}
        Which table(s) to return.
    config : PdsiConfig, optional

    Returns
    -------
    pd.DataFrame or PdsiResult
        Tables with columns ``YEAR, JAN, ..., DEC``.  ``mode="both"``
        returns ``PdsiResult(pdsi, scpdsi)``.
    """
    request = ComputationRequest(
        mode=parse_mode(mode),
        site=SiteParameters(awc=float(awc), latitude=float(lat)),
        climate=climate,
        start=start,
        end=end,
    )
    return PdsiRunner(config).run(request)
