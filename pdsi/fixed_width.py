"""
pdsi.fixed_width
================
Fixed-width text encoding of engine inputs and decoding of engine outputs.

Public API
----------
FieldLayout                     column widths + decimal precision
format_row(values, layout)      → str   (one right-justified text row)
write_matrix / write_row        → None  (year × month matrix / single row)
write_inputs(workspace, ...)    → None  (all five engine input files)
read_fixed_width(path, layout)  → pd.DataFrame  (YEAR, JAN..DEC)
read_results(workspace, mode)   → dict of result tables

Layouts
-------
The engine writes its ``PDSI.tbl`` tables as a 5-character year followed by
twelve 7-character values with 2 decimals (`OUTPUT_LAYOUT`).  Input files use
the same 5-character year but 9-character values with 3 decimals
(`INPUT_LAYOUT`): the engine splits input on whitespace, so every field has to
keep at least one leading blank, and normals carry 3 decimals.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .climate import SiteParameters
from .config import MONTHS, RESULT_COLUMNS, YEAR_COL, Mode
from .errors import (
    MalformedInputError,
    MalformedOutputError,
    MissingOutputError,
    WorkspaceIOError,
)
from .workspace import ComputationWorkspace


@dataclass(frozen=True)
class FieldLayout:
    label_width: int
    value_width: int
    precision: int

    def widths(self, n_values: int = len(MONTHS)) -> List[int]:
        """Read widths for a labelled row of ``n_values`` values."""
        return [self.label_width] + [self.value_width] * n_values


OUTPUT_LAYOUT = FieldLayout(label_width=5, value_width=7, precision=2)
INPUT_LAYOUT = FieldLayout(label_width=5, value_width=9, precision=3)


# ======================================================================== #
#  1.  Encoding                                                             #
# ======================================================================== #

def _fit(text: str, width: int, value) -> str:
    # a field without a leading blank would run into its neighbour
    if len(text.lstrip()) >= width:
        raise MalformedInputError(
            f"Value {value!r} does not fit a {width}-character field"
        )
    return text


def format_row(
    values: Iterable[float],
    layout: FieldLayout = INPUT_LAYOUT,
    label: Optional[int] = None,
) -> str:
    """Render one row: optional integer label, then right-justified values."""
    fields: List[str] = []
    if label is not None:
        fields.append(_fit(f"{int(label):>{layout.label_width}d}",
                           layout.label_width, label))
    for value in values:
        value = float(value)
        if not np.isfinite(value):
            raise MalformedInputError(f"Cannot encode non-finite value {value}")
        text = f"{value:>{layout.value_width}.{layout.precision}f}"
        fields.append(_fit(text, layout.value_width, value))
    return "".join(fields)


def _write_lines(path: str | Path, lines: List[str]) -> None:
    try:
        Path(path).write_text("\n".join(lines) + "\n")
    except OSError as exc:
        raise WorkspaceIOError(f"Cannot write {path}: {exc}") from exc


def write_matrix(
    matrix: pd.DataFrame,
    path: str | Path,
    layout: FieldLayout = INPUT_LAYOUT,
) -> None:
    """One line per year: year label then the 12 monthly values, no header."""
    lines = [
        format_row(row.to_numpy(), layout, label=year)
        for year, row in matrix.iterrows()
    ]
    _write_lines(path, lines)


def write_row(
    values: Iterable[float],
    path: str | Path,
    layout: FieldLayout = INPUT_LAYOUT,
) -> None:
    """A single unlabelled row (normals, site parameters)."""
    _write_lines(path, [format_row(values, layout)])


def write_inputs(
    workspace: ComputationWorkspace,
    temperature: pd.DataFrame,
    precipitation: pd.DataFrame,
    temperature_normals: pd.Series,
    precipitation_normals: pd.Series,
    site: SiteParameters,
) -> None:
    """Write the five engine input files into the workspace root."""
    write_matrix(temperature, workspace.temperature)
    write_matrix(precipitation, workspace.precipitation)
    write_row(temperature_normals.to_numpy(), workspace.temperature_normals)
    write_row(precipitation_normals.to_numpy(), workspace.precipitation_normals)
    write_row([site.awc, site.latitude], workspace.parameters)


# ======================================================================== #
#  2.  Decoding                                                             #
# ======================================================================== #

def read_fixed_width(
    path: str | Path,
    layout: FieldLayout = OUTPUT_LAYOUT,
) -> pd.DataFrame:
    """
    Parse a year × month fixed-width table.

    Returns
    -------
    pd.DataFrame
        Columns ``YEAR`` (int) and ``JAN`` .. ``DEC`` (float), one row per
        line of the file.

    Raises
    ------
    MissingOutputError
        If ``path`` does not exist.
    MalformedOutputError
        If the file is empty or any field is blank or non-numeric.
    """
    path = Path(path)
    if not path.is_file():
        raise MissingOutputError(
            f"Engine output table not found: {path} "
            "(the engine probably failed without reporting an error)"
        )

    widths = layout.widths()
    try:
        raw = pd.read_fwf(
            path, widths=widths, header=None, names=RESULT_COLUMNS, dtype=str
        )
    except pd.errors.EmptyDataError as exc:
        raise MalformedOutputError(f"Engine output table is empty: {path}") from exc
    if raw.empty:
        raise MalformedOutputError(f"Engine output table is empty: {path}")

    blank = raw.isna().any(axis=1).to_numpy()
    if blank.any():
        row = int(np.flatnonzero(blank)[0]) + 1
        raise MalformedOutputError(
            f"{path}: row {row} has blank fields at column widths {widths}"
        )

    try:
        table = raw.apply(pd.to_numeric)
    except ValueError as exc:
        raise MalformedOutputError(
            f"{path}: cannot parse at column widths {widths}: {exc}"
        ) from exc

    years = table[YEAR_COL].to_numpy(dtype=float)
    if not np.all(years == np.round(years)):
        raise MalformedOutputError(f"{path}: non-integer values in YEAR column")
    table[YEAR_COL] = table[YEAR_COL].astype(int)
    table[MONTHS] = table[MONTHS].astype(float)
    return table


def read_results(workspace: ComputationWorkspace, mode: Mode) -> Dict[str, pd.DataFrame]:
    """Read only the output table(s) the mode asks for, keyed by name."""
    paths = workspace.output_tables()
    return {name: read_fixed_width(paths[name]) for name in mode.tables}


def check_result_years(table: pd.DataFrame, start: int, end: int, name: str = "") -> None:
    """Warn when a result table does not span exactly ``start..end``."""
    years = table[YEAR_COL].tolist()
    if years != list(range(start, end + 1)):
        span = f"{years[0]}..{years[-1]}" if years else "no rows"
        warnings.warn(
            f"{name or 'result'} table spans {span} ({len(years)} rows), "
            f"expected {start}..{end}"
        )
