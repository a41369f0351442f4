"""
Abalone-ML Artifact Store
-------------------------
Publishes and loads the Model + Schema artifact pair.

Layout under config.artifacts_dir:
    metadata.json                      <- schema artifact
    abalone-linear-regression/
        model.keras                    <- model artifact

Every write is "all or none": files go to a temp file in the destination
directory and are os.replace()d into place, and the model/schema pair is
staged in a hidden directory before being swapped in. A reader never sees a
partially written artifact, and a failed publish leaves the previous
artifacts untouched.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Tuple, TypeVar, Union

from .config import MODEL_FILE, PipelineConfig
from .errors import ArtifactCorrupt, ArtifactMissing, ArtifactWriteFailed
from .features.schema import SchemaArtifact, load_schema, write_schema

logger = logging.getLogger(__name__)

M = TypeVar("M")


def atomic_write(path: Union[str, Path], writer: Callable[[Path], None]) -> None:
    """
    Runs writer(temp_path) and moves the result onto path in one rename.

    The temp file lives next to the destination so the rename never crosses
    a filesystem boundary. On failure the temp file is removed and the
    original exception propagates.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        writer(tmp_path)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def publish_artifacts(model, schema: SchemaArtifact, config: PipelineConfig) -> None:
    """
    Persists the fitted model and its schema as one unit.

    Steps:
        1. Stage: save model and schema into a hidden temp directory
           under artifacts_dir.
        2. Swap: move any existing model directory aside, rename the staged
           model directory in, replace metadata.json.
        3. Clean: drop the backup and the staging directory.

    Raises:
        ArtifactWriteFailed: Any step failed. The previous model directory is
            restored and no staged file is left behind.
    """
    artifacts_dir = Path(config.artifacts_dir)
    model_dir = config.model_dir
    schema_path = config.schema_path

    try:
        artifacts_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".staging-", dir=artifacts_dir))
    except OSError as e:
        raise ArtifactWriteFailed(f"Cannot create artifact directory {artifacts_dir}: {e}") from e

    backup = None
    try:
        # --- 1. STAGE ---
        staged_model_dir = staging / config.model_name
        staged_model_dir.mkdir()
        model.save(staged_model_dir / MODEL_FILE)
        staged_schema = staging / config.schema_file
        write_schema(schema, staged_schema)

        # --- 2. SWAP ---
        if model_dir.exists():
            backup = staging / f"{config.model_name}.previous"
            os.replace(model_dir, backup)
        installed = False
        try:
            os.replace(staged_model_dir, model_dir)
            installed = True
            os.replace(staged_schema, schema_path)
        except BaseException:
            if installed:
                shutil.rmtree(model_dir, ignore_errors=True)
            if backup is not None:
                os.replace(backup, model_dir)
            raise
    except Exception as e:
        raise ArtifactWriteFailed(f"Failed to publish artifacts to {artifacts_dir}: {e}") from e
    finally:
        # --- 3. CLEAN ---
        shutil.rmtree(staging, ignore_errors=True)

    logger.info(f"Saved model to {model_dir}")
    logger.info(f"Saved metadata to {schema_path}")


def load_artifacts(config: PipelineConfig,
                   model_loader: Callable[[Path], M]) -> Tuple[M, SchemaArtifact]:
    """
    Loads the schema and model artifacts for inference.

    Args:
        config: Run configuration naming the artifact locations.
        model_loader: Callable turning a model path into a model instance,
            e.g. RingsRegressor.load.

    Returns:
        (model, schema) tuple.

    Raises:
        ArtifactMissing: metadata.json or the model file does not exist.
        ArtifactCorrupt: Either artifact cannot be parsed, or the model's
            input width differs from the schema's feature order length.
    """
    schema_path = config.schema_path
    model_path = config.model_path

    if not schema_path.is_file():
        raise ArtifactMissing(f"Schema artifact not found at {schema_path}")
    if not model_path.exists():
        raise ArtifactMissing(f"Model artifact not found at {model_path}")

    schema = load_schema(schema_path)
    try:
        model = model_loader(model_path)
    except Exception as e:
        raise ArtifactCorrupt(f"Model artifact at {model_path} could not be loaded: {e}") from e

    input_dim = getattr(model, "input_dim", None)
    if input_dim is not None and input_dim != len(schema.feature_order):
        raise ArtifactCorrupt(
            f"Model expects {input_dim} features but schema lists {len(schema.feature_order)}"
        )

    logger.info(f"Loaded model from {model_path} (schema created {schema.created_at or 'unknown'})")
    return model, schema
