"""
Abalone-ML Training Engine
--------------------------
Orchestrates one training run of the ring-count regressor.

Workflow:
1. Data Ingestion (labeled CSV stream)
2. Encoding (fixed categorical mapping + feature order from the first row)
3. Materialization (all rows into in-memory feature/target matrices)
4. Model Fitting (linear regressor, shuffled hold-out validation)
5. Artifact Serialization (model + metadata.json, published atomically)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..artifacts import publish_artifacts
from ..config import PipelineConfig
from ..database import Row, stream_labeled_rows
from ..errors import EmptyDataset, SchemaMismatch
from ..features.encoder import CategoricalMapping, build_mapping
from ..features.schema import SchemaArtifact
from ..features.vectorizer import derive_feature_order, enrich_row, project
from .architecture import RingsRegressor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingResult:
    schema: SchemaArtifact
    metrics: Dict[str, float]
    n_rows: int
    model_dir: Path


def materialize(rows: Iterable[Tuple[Row, float]],
                mapping: CategoricalMapping,
                config: PipelineConfig) -> Tuple[List[str], List[List[float]], List[float]]:
    """
    Folds a labeled row stream into parallel feature and target lists.

    The feature order is taken from the enriched field names of the first
    row. Every later row must enrich to exactly the same field set.

    Returns:
        (feature_order, feature_rows, targets), where feature_rows[i] and
        targets[i] come from the same input row. feature_order is empty when
        the stream had no rows.

    Raises:
        SchemaMismatch: A row's enriched field set differs from the first row's.
        MissingFeature: A feature value is empty.
    """
    excluded = (config.id_column, config.target_column)
    feature_order: List[str] = []
    expected = frozenset()
    feature_rows: List[List[float]] = []
    targets: List[float] = []

    for index, (row, target) in enumerate(rows):
        enriched = enrich_row(row, config.categorical_column, mapping, excluded)

        if index == 0:
            feature_order = derive_feature_order(row, config.categorical_column, mapping, excluded)
            expected = frozenset(feature_order)
            logger.debug(f"Sample after encoding (preview): {enriched}")
        elif set(enriched) != expected:
            missing = sorted(expected - set(enriched))
            extra = sorted(set(enriched) - expected)
            raise SchemaMismatch(
                f"Row {index} does not match the first row's fields "
                f"(missing: {missing}, unexpected: {extra})"
            )

        feature_rows.append(project(enriched, feature_order))
        targets.append(target)

    return feature_order, feature_rows, targets


def run_training(config: PipelineConfig,
                 rows: Optional[Iterable[Tuple[Row, float]]] = None,
                 model_factory: Optional[Callable[[int], Any]] = None) -> TrainingResult:
    """
    Executes the complete training pipeline and publishes the model and
    schema artifacts that inference needs.

    Args:
        config (PipelineConfig): Paths, column roles and fit options.
        rows: Optional pre-opened labeled stream of (row, target) pairs.
            Defaults to streaming config.train_path.
        model_factory: Callable taking the feature width and returning an
            untrained model exposing fit/predict/save. Defaults to
            RingsRegressor.build with config.learning_rate.

    Returns:
        TrainingResult with the published schema, final-epoch metrics, the
        number of training rows and the model directory.

    Artifacts Generated:
        1. <artifacts_dir>/<model_name>/model.keras
        2. <artifacts_dir>/metadata.json
           {featureOrder, categoricalMapping, categoricalColumn, createdAt}

    Raises:
        EmptyDataset: The stream produced no rows. Nothing is written.
        SchemaMismatch / MissingFeature: A row could not be encoded with the
            first row's feature order. Nothing is written.
        ArtifactWriteFailed: Publishing failed. Previous artifacts are kept.
        DataSourceError: The training table is missing or unreadable.

    Example:
        >>> result = run_training(PipelineConfig(data_dir=Path("data")))
        >>> result.schema.feature_order[-3:]
        ('sex_M', 'sex_F', 'sex_I')
    """
    logger.info(f">>> Initializing training sequence for: {config.model_name}")

    if rows is None:
        rows = stream_labeled_rows(config.train_path, config.target_column,
                                   has_header=config.has_header, column_names=config.column_names)
    if model_factory is None:
        model_factory = lambda input_dim: RingsRegressor.build(input_dim, config.learning_rate)

    # --- 1. ENCODING & MATERIALIZATION ---
    # The mapping comes from the fixed domain, never from the data, so the
    # one-hot width does not depend on which symbols happen to appear first.
    mapping = build_mapping(config.categorical_domain)
    feature_order, feature_rows, targets = materialize(rows, mapping, config)

    if not feature_rows:
        logger.error(f"Aborting: No training rows retrieved for {config.model_name}")
        raise EmptyDataset(f"No rows to train on in {config.train_path}")

    x = np.asarray(feature_rows, dtype=np.float32)
    y = np.asarray(targets, dtype=np.float32).reshape(-1, 1)
    logger.info(f"Collected {x.shape[0]} rows x {x.shape[1]} features: {feature_order}")

    # --- 2. MODEL FITTING ---
    model = model_factory(len(feature_order))
    fit = config.fit
    logger.info(
        f"Training linear regressor (Epochs: {fit.epochs}, Batch: {fit.batch_size}, "
        f"Validation split: {fit.validation_split})..."
    )
    metrics = model.fit(x, y, fit, log_dir=config.log_dir)

    # Sanity prediction on the first row; there is no ground truth comparison here.
    first_prediction = model.predict(feature_rows[0])
    logger.info(f"First row prediction: {first_prediction:.4f}")

    # --- 3. ARTIFACT SERIALIZATION ---
    schema = SchemaArtifact.create(feature_order, mapping, config.categorical_column)
    publish_artifacts(model, schema, config)

    summary = ", ".join(f"{name}={value:.4f}" for name, value in sorted(metrics.items()))
    logger.info(f"Training Complete. Final metrics: {summary}")

    return TrainingResult(schema=schema, metrics=metrics, n_rows=len(feature_rows), model_dir=config.model_dir)
