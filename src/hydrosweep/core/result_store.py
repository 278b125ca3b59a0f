"""Result table IO.

The table is a CSV file with one header row and one row per sweep point.
`append_row` is a full read-modify-write: the whole table is read, one row is
added, and the file is rewritten. An interruption mid-write can truncate the
table. There is no locking; one sweep process writes a given table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from .exceptions import ResultStoreError
from .logging import get_logger

logger = get_logger(__name__)


def ensure_table(path: str | Path, header: Sequence[str]) -> bool:
    """Create the table with `header` if it does not exist.

    Returns:
        True if the file was created, False if it already existed.
    """
    path = Path(path)
    if path.exists():
        return False

    if len(set(header)) != len(header):
        raise ResultStoreError(f"Duplicate column names in header for {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(columns=list(header)).to_csv(path, index=False)
    except OSError as e:
        raise ResultStoreError(f"Cannot create result table {path}: {e}") from e

    logger.info("created result table", path=str(path), n_columns=len(header))
    return True


def read_table(path: str | Path) -> pd.DataFrame:
    """Read the whole table."""
    path = Path(path)
    if not path.exists():
        raise ResultStoreError(f"Missing result table {path}")
    try:
        return pd.read_csv(path)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ResultStoreError(f"Cannot read result table {path}: {e}") from e


def append_row(path: str | Path, row: Mapping[str, Any]) -> int:
    """Append one row in the table's column order and rewrite the file.

    The row must supply exactly the table's columns.

    Returns:
        Number of data rows after the append.
    """
    path = Path(path)
    table = read_table(path)

    columns = list(table.columns)
    missing = [c for c in columns if c not in row]
    extra = [c for c in row if c not in columns]
    if missing or extra:
        raise ResultStoreError(
            f"Row does not match header of {path}: missing={missing} extra={extra}"
        )

    new = pd.DataFrame([[row[c] for c in columns]], columns=columns)
    table = new if table.empty else pd.concat([table, new], ignore_index=True)

    try:
        table.to_csv(path, index=False)
    except OSError as e:
        raise ResultStoreError(f"Cannot write result table {path}: {e}") from e

    logger.debug("appended result row", path=str(path), n_rows=len(table))
    return len(table)
