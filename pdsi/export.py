"""
pdsi.export
===========
Result export and run metadata for reproducibility.

Responsibilities
----------------
* Save result tables as Parquet (primary) or CSV.
* Write a ``metadata.json`` next to them: request parameters, config
  snapshot, environment, engine hash, and the year span of every table.

Folder layout
-------------
::

    results/
        pdsi.parquet
        scpdsi.parquet
        metadata.json
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .config import YEAR_COL, OutputFormat, PdsiConfig, file_hash, get_environment_info


# ======================================================================== #
#  Save tables                                                              #
# ======================================================================== #

def save_result_table(
    df: pd.DataFrame,
    path: str | Path,
    fmt: str | OutputFormat = OutputFormat.PARQUET,
) -> str:
    """
    Save a result table to disk.

    Parameters
    ----------
    df : pd.DataFrame
    path : str or Path
        Target file path (extension will be corrected).
    fmt : str
        ``'parquet'`` (default) or ``'csv'``.

    Returns
    -------
    str  – actual path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        fmt = OutputFormat(fmt)
    except ValueError:
        raise ValueError(f"Unsupported format: {fmt}") from None

    if fmt is OutputFormat.PARQUET:
        path = path.with_suffix(".parquet")
        df.to_parquet(path, index=False)
    else:
        path = path.with_suffix(".csv")
        df.to_csv(path, index=False)

    return str(path)


# ======================================================================== #
#  Run metadata                                                             #
# ======================================================================== #

def save_run_metadata(
    out_dir: str | Path,
    request: Dict[str, Any],
    config: PdsiConfig,
    tables: Dict[str, pd.DataFrame],
    engine_path: Optional[str | Path] = None,
    extra: Optional[Dict] = None,
) -> str:
    """
    Write ``metadata.json`` for one computation.

    Returns the path of the written file.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    meta = {
        "timestamp": datetime.now().isoformat(),
        "request": _make_serialisable(request),
        "config": config.to_dict(),
        "environment": get_environment_info(),
        "tables": {
            name: {
                "rows": len(df),
                "first_year": int(df[YEAR_COL].min()) if len(df) else None,
                "last_year": int(df[YEAR_COL].max()) if len(df) else None,
            }
            for name, df in tables.items()
        },
    }

    if engine_path is not None and Path(engine_path).exists():
        meta["engine"] = {
            "path": str(engine_path),
            "sha256": file_hash(engine_path),
        }

    if extra:
        meta.update(_make_serialisable(extra))

    out_path = out_dir / "metadata.json"
    out_path.write_text(json.dumps(meta, indent=2, default=str))
    return str(out_path)


# ======================================================================== #
#  Internal helpers                                                         #
# ======================================================================== #

def _make_serialisable(obj: Any) -> Any:
    """Recursively convert numpy types for JSON serialisation."""
    if isinstance(obj, dict):
        return {k: _make_serialisable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_make_serialisable(v) for v in obj]
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    return obj
