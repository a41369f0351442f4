"""
Abalone-ML Data Access Layer (DAL)
----------------------------------
Row-streaming interface between delimited input tables and the pipelines.

Core Responsibilities:
1. Lazy Reads: Rows are pulled from disk in pandas chunks and released one at
   a time, so the streaming phase holds O(chunk) rows in memory.
2. Label Split (Training Path): The target column is popped out of each row
   and returned alongside it as a float.
3. Failure Translation: Missing files and parser/IO errors surface as
   DataSourceError, including errors raised mid-stream.

A stream is single-pass. Open a fresh one for a second pass.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

import pandas as pd

from .errors import DataSourceError, SchemaMismatch

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

DEFAULT_CHUNK_SIZE = 1024


def stream_rows(location: Union[str, Path],
                has_header: bool = True,
                column_names: Optional[Sequence[str]] = None,
                chunk_size: int = DEFAULT_CHUNK_SIZE,
                id_column: Optional[str] = None) -> Iterator[Row]:
    """
    Yields every row of a delimited table as an ordered {column: value} dict.

    Args:
        location: Path to the CSV file.
        has_header: Whether the first line holds column names.
        column_names: Column names to use when has_header is False.
        chunk_size: Number of rows parsed per pandas chunk.
        id_column: Identifier column read as text, so ids such as "007" keep
            their leading zeros.

    Raises:
        DataSourceError: The file is missing, or reading fails at any point
            of the stream. Rows already yielded are not retracted, so callers
            must not publish anything until the generator is exhausted.
    """
    path = Path(location)
    if not path.is_file():
        raise DataSourceError(f"Input table not found at {path}")
    if not has_header and not column_names:
        raise DataSourceError("column_names are required when the table has no header row")

    read_kwargs: Dict[str, Any] = {"chunksize": chunk_size}
    if has_header:
        read_kwargs["header"] = 0
    else:
        read_kwargs["header"] = None
        read_kwargs["names"] = list(column_names)
    if id_column is not None:
        read_kwargs["dtype"] = {id_column: str}

    logger.debug(f"Streaming rows from {path}")
    try:
        with pd.read_csv(path, **read_kwargs) as reader:
            for chunk in reader:
                for record in chunk.to_dict(orient="records"):
                    yield record
    except pd.errors.EmptyDataError:
        logger.warning(f"Input table {path} is empty")
    except (pd.errors.ParserError, OSError, UnicodeDecodeError) as e:
        raise DataSourceError(f"Failed to read {path}: {e}") from e


def stream_labeled_rows(location: Union[str, Path],
                        target_column: str,
                        has_header: bool = True,
                        column_names: Optional[Sequence[str]] = None,
                        chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Tuple[Row, float]]:
    """
    Same as stream_rows, but splits the target column out of every row.

    Returns:
        Iterator of (row_without_target, target_value) pairs.

    Raises:
        SchemaMismatch: A row has no value for the target column.
    """
    for row in stream_rows(location, has_header, column_names, chunk_size):
        yield split_target(row, target_column)


def split_target(row: Row, target_column: str) -> Tuple[Row, float]:
    """Pops the target out of a labeled row."""
    if target_column not in row:
        raise SchemaMismatch(f"Labeled row has no '{target_column}' column")
    features = dict(row)
    target = features.pop(target_column)
    try:
        value = float(target)
    except (TypeError, ValueError) as e:
        raise SchemaMismatch(f"Target '{target_column}' is not numeric: {target!r}") from e
    if pd.isna(value):
        raise SchemaMismatch(f"Target '{target_column}' is empty")
    return features, value
