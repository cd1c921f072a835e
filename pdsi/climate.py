"""
pdsi.climate
============
Turn a flat monthly climate series into the year × month matrices and
monthly normals that the scPDSI engine reads.

Public API
----------
load_climate(path)                    → pd.DataFrame  (year, month, T, P)
as_climate_frame(climate)             → pd.DataFrame  (normalized columns)
truncate_window(frame, start, end)    → pd.DataFrame  (Jan start-1 .. Dec end)
reshape_climate(climate, start, end)  → (temperature, precipitation) matrices
compute_normals(matrix)               → pd.Series     (12 monthly means)

The engine needs one year of context before ``start``, so every matrix spans
``start - 1`` through ``end`` inclusive.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass, is_dataclass
from pathlib import Path
from typing import Iterable, Tuple, Union

import numpy as np
import pandas as pd

from .config import CLIMATE_COLUMNS, MONTHS, YEAR_COL
from .errors import MalformedInputError, RangeError

# numpy.round rounds half to even; the engine is fed normals at this precision
NORMALS_DECIMALS: int = 3


@dataclass(frozen=True)
class ClimateRecord:
    """One month of station climate."""
    year: int
    month: int
    temperature: float     # °C
    precipitation: float   # mm


@dataclass(frozen=True)
class SiteParameters:
    """Scalar site description passed to the engine's ``parameter`` file."""
    awc: float        # available water capacity, cm
    latitude: float   # decimal degrees

    def __post_init__(self):
        """Validate parameters after initialization."""
        if not np.isfinite(self.awc) or self.awc <= 0:
            raise MalformedInputError(
                f"Available water capacity must be a positive number, got {self.awc}"
            )
        if not np.isfinite(self.latitude) or not -90 <= self.latitude <= 90:
            raise MalformedInputError(
                f"Latitude must lie within [-90, 90], got {self.latitude}"
            )


ClimateInput = Union[pd.DataFrame, Iterable[ClimateRecord], Iterable[tuple]]


# ======================================================================== #
#  1.  Loading / normalization                                              #
# ======================================================================== #

def load_climate(path: str | Path) -> pd.DataFrame:
    """
    Read a climate CSV.  The first four columns are taken positionally as
    year, month, temperature and precipitation; header names are ignored.
    """
    try:
        raw = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise MalformedInputError(f"Cannot read climate file {path}: {exc}") from exc
    return as_climate_frame(raw)


def as_climate_frame(climate: ClimateInput) -> pd.DataFrame:
    """
    Normalize climate input to a DataFrame with columns
    ``year, month, temperature, precipitation`` and a fresh RangeIndex.

    Accepts a DataFrame (first four columns used positionally) or any
    iterable of `ClimateRecord` / 4-tuples.  The caller's object is never
    modified.

    Raises
    ------
    MalformedInputError
        If fewer than four columns are available or values are not numeric.
    """
    if isinstance(climate, pd.DataFrame):
        if climate.shape[1] < 4:
            raise MalformedInputError(
                f"Climate data needs 4 columns (year, month, temperature, "
                f"precipitation); got {climate.shape[1]}"
            )
        frame = climate.iloc[:, :4].copy()
        frame.columns = CLIMATE_COLUMNS
    else:
        rows = [astuple(r) if is_dataclass(r) else tuple(r) for r in climate]
        short = [r for r in rows if len(r) != 4]
        if short:
            raise MalformedInputError(
                f"Climate records must have 4 fields; got {short[0]!r}"
            )
        frame = pd.DataFrame(rows, columns=CLIMATE_COLUMNS)

    try:
        numeric = frame.apply(pd.to_numeric).astype(float)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"Non-numeric climate data: {exc}") from exc

    # NaN fails this too, so a blank year or month is rejected here
    for col in ("year", "month"):
        fractional = numeric[col] % 1 != 0
        if fractional.any():
            raise MalformedInputError(
                f"Non-integer or missing {col} values: "
                f"{numeric.loc[fractional, col].head(3).tolist()}"
            )
    numeric["year"] = numeric["year"].astype(int)
    numeric["month"] = numeric["month"].astype(int)
    return numeric.reset_index(drop=True)


# ======================================================================== #
#  2.  Window truncation                                                    #
# ======================================================================== #

def truncate_window(frame: pd.DataFrame, start: int, end: int) -> pd.DataFrame:
    """
    Slice ``frame`` from January of ``start - 1`` to December of ``end``.

    Records are assumed ordered by (year, month); the window runs from the
    first matching January to the first matching December after it.

    Raises
    ------
    RangeError
        If ``start > end`` or either boundary record is missing.
    """
    if start > end:
        raise RangeError(f"Start year {start} is after end year {end}")

    first = frame.index[(frame["year"] == start - 1) & (frame["month"] == 1)]
    if len(first) == 0:
        raise RangeError(
            f"Climate data does not cover January {start - 1} "
            f"(one year of context before start year {start} is required)"
        )
    lo = first[0]

    last = frame.index[
        (frame["year"] == end) & (frame["month"] == 12) & (frame.index >= lo)
    ]
    if len(last) == 0:
        raise RangeError(f"Climate data does not cover December {end}")
    hi = last[0]

    return frame.iloc[lo:hi + 1]


def _check_complete_years(window: pd.DataFrame, start: int, end: int) -> None:
    """Every year start-1..end present once, in order, with months 1..12."""
    months = window.groupby("year", sort=False)["month"].apply(list)
    full_year = list(range(1, 13))

    incomplete = [int(y) for y, m in months.items() if m != full_year]
    if incomplete:
        raise MalformedInputError(
            f"Years without 12 consecutive months (Jan..Dec): {incomplete}"
        )

    expected = list(range(start - 1, end + 1))
    found = [int(y) for y in months.index]
    if found != expected:
        missing = sorted(set(expected) - set(found))
        raise MalformedInputError(
            f"Years in window are not consecutive from {start - 1} to {end}"
            + (f"; missing {missing}" if missing else f"; found {found}")
        )

    values = window[["temperature", "precipitation"]].to_numpy(dtype=float)
    if not np.isfinite(values).all():
        bad = window.loc[~np.isfinite(values).all(axis=1), ["year", "month"]]
        first = bad.iloc[0]
        raise MalformedInputError(
            f"{len(bad)} record(s) with missing/non-finite values, first at "
            f"{int(first['year'])}-{int(first['month']):02d}"
        )


# ======================================================================== #
#  3.  Reshaping                                                            #
# ======================================================================== #

def _to_matrix(window: pd.DataFrame, variable: str) -> pd.DataFrame:
    matrix = window.pivot(index="year", columns="month", values=variable)
    matrix = matrix.sort_index()
    matrix.columns = MONTHS
    matrix.index = matrix.index.astype(int)
    matrix.index.name = YEAR_COL
    return matrix


def reshape_climate(
    climate: ClimateInput,
    start: int,
    end: int,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Build the temperature and precipitation matrices for ``start..end``.

    Returns
    -------
    (temperature, precipitation)
        DataFrames indexed by ``YEAR`` (``start - 1`` .. ``end``, ascending)
        with 12 columns ``JAN`` .. ``DEC``.

    Raises
    ------
    RangeError
        Requested window not covered by the input.
    MalformedInputError
        Incomplete or non-consecutive years, or missing values in the window.
    """
    frame = as_climate_frame(climate)
    window = truncate_window(frame, start, end)
    _check_complete_years(window, start, end)
    return _to_matrix(window, "temperature"), _to_matrix(window, "precipitation")


# ======================================================================== #
#  4.  Normals                                                              #
# ======================================================================== #

def compute_normals(matrix: pd.DataFrame) -> pd.Series:
    """
    Column-wise mean of a year × month matrix, rounded to 3 decimals
    (round half to even, as ``numpy.round`` does).
    """
    if matrix.shape[0] == 0:
        raise MalformedInputError("Cannot compute normals of an empty matrix")
    if matrix.shape[1] != len(MONTHS):
        raise MalformedInputError(
            f"Expected {len(MONTHS)} monthly columns, got {matrix.shape[1]}"
        )
    means = matrix.to_numpy(dtype=float).mean(axis=0)
    return pd.Series(np.round(means, NORMALS_DECIMALS), index=MONTHS)
