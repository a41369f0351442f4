"""
Abalone-ML Batch Predictor
--------------------------
Applies a published model to an unlabeled table and writes an (id, Rings)
prediction table.

The feature order and categorical mapping always come from the loaded
metadata.json; nothing about the encoding is re-derived from inference data.
The output table is written once, after the last row, and only if every row
was predicted.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

import pandas as pd

from ..artifacts import atomic_write, load_artifacts
from ..config import PipelineConfig
from ..database import Row, stream_rows
from ..errors import MissingFeature
from ..features.schema import SchemaArtifact
from ..training.architecture import RingsRegressor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InferenceResult:
    output_path: Path
    n_rows: int
    unknown_categories: Counter


def iter_predictions(rows: Iterable[Row],
                     model,
                     schema: SchemaArtifact,
                     id_column: str,
                     target_column: str,
                     unknown_categories: Optional[Counter] = None) -> Iterator[Tuple[Any, float]]:
    """
    Yields (row_id, prediction) for each row, in input order.

    Each row is vectorized with the schema, predicted and released before the
    next row is pulled.

    Args:
        rows: Unlabeled rows. A target column, if present, is ignored.
        model: Object exposing predict(vector) -> float.
        schema: Loaded schema artifact.
        id_column: Name of the row identifier column.
        target_column: Name of the target column, excluded from features.
        unknown_categories: Optional counter updated with categorical symbols
            outside the schema mapping. Those rows still encode to the
            all-zero indicator.

    Raises:
        MissingFeature: A row has no id, lacks a feature-order column, or has
            an empty categorical cell.
        SchemaMismatch: A feature value is not numeric.
    """
    excluded = (id_column, target_column)
    for row in rows:
        if id_column not in row:
            raise MissingFeature(id_column, f"Row has no '{id_column}' column")

        vector = schema.vectorize(row, excluded)

        symbol = row.get(schema.categorical_column)
        if unknown_categories is not None and symbol not in schema.categorical_mapping:
            unknown_categories[str(symbol)] += 1

        yield row[id_column], model.predict(vector)


def write_predictions(path: Path, predictions: List[Tuple[Any, float]], id_column: str, target_column: str) -> None:
    """Writes the '<id>,<target>' table atomically."""
    table = pd.DataFrame(predictions, columns=[id_column, target_column])
    atomic_write(path, lambda tmp_path: table.to_csv(tmp_path, index=False))


def run_inference(config: PipelineConfig,
                  rows: Optional[Iterable[Row]] = None,
                  model_loader: Optional[Callable[[Path], Any]] = None) -> InferenceResult:
    """
    Executes the batch prediction pipeline.

    Args:
        config (PipelineConfig): Artifact locations, input table and output path.
        rows: Optional pre-opened unlabeled row stream. Defaults to streaming
            config.test_path.
        model_loader: Callable loading the model artifact. Defaults to
            RingsRegressor.load.

    Returns:
        InferenceResult with the output path, the number of predicted rows and
        the counts of unknown categorical symbols seen.

    Raises:
        ArtifactMissing / ArtifactCorrupt: The artifacts cannot be loaded.
        MissingFeature / SchemaMismatch: A row cannot be vectorized.
        DataSourceError: The input table is missing or fails mid-stream.
        In every case no output table is written.
    """
    # --- 1. ARTIFACT LOADING ---
    model, schema = load_artifacts(config, model_loader or RingsRegressor.load)

    # --- 2. STREAMING PREDICTION ---
    if rows is None:
        rows = stream_rows(config.test_path, has_header=config.has_header,
                           column_names=config.column_names, id_column=config.id_column)

    unknown: Counter = Counter()
    predictions = list(iter_predictions(
        rows, model, schema, config.id_column, config.target_column, unknown
    ))

    if unknown:
        logger.warning(
            f"Unknown '{schema.categorical_column}' values encoded as all-zero: {dict(unknown)}"
        )

    # --- 3. OUTPUT ---
    write_predictions(config.output_path, predictions, config.id_column, config.target_column)
    logger.info(f"Wrote {len(predictions)} predictions to {config.output_path}")

    return InferenceResult(output_path=Path(config.output_path), n_rows=len(predictions),
                           unknown_categories=unknown)
