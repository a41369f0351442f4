"""
Abalone-ML Feature Registry
---------------------------
The authoritative "Source of Truth" for the column contract shared by the
training pipeline (offline), the batch predictor and the serving API.

System Role:
    1. Column Roles: Names the identifier, target and categorical columns.
    2. Categorical Domain: Fixes the one-hot slots for the categorical column
       before any data is read, so the feature order never depends on row order.
    3. Run Configuration: Bundles paths and fit options into an explicit
       PipelineConfig that every pipeline receives at construction.

Critical Constraints:
    ! IMMUTABILITY: Changing CATEGORICAL_DOMAIN or its order invalidates every
      previously published schema artifact.
    ! RETRAINING: If you modify the domain, you MUST re-run the training
      pipeline to regenerate the model and metadata.json together.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

# --- COLUMN ROLES ---
# 'id' identifies a row and is never a feature.
# 'Rings' only exists in labeled rows and is never a feature.
ID_COLUMN: str = "id"
TARGET_COLUMN: str = "Rings"
CATEGORICAL_COLUMN: str = "Sex"

# --- CATEGORICAL DOMAIN ---
# Slot order of the one-hot expansion: 'M' -> 0, 'F' -> 1, 'I' (infant) -> 2.
# Symbols outside this domain encode to the all-zero indicator.
CATEGORICAL_DOMAIN: Tuple[str, ...] = ("M", "F", "I")

# --- ARTIFACT NAMING ---
MODEL_NAME: str = "abalone-linear-regression"
MODEL_FILE: str = "model.keras"
SCHEMA_FILE: str = "metadata.json"


@dataclass(frozen=True)
class FitOptions:
    """Fixed option set handed to the model's fit capability."""

    epochs: int = 10
    batch_size: int = 32
    shuffle: bool = True
    validation_split: float = 0.1
    seed: Optional[int] = None


@dataclass(frozen=True)
class PipelineConfig:
    """
    Explicit configuration for one training or inference run.

    Built once at the edge of the process (CLI, API lifespan) and passed into
    the pipelines. Nothing under abalone_ml reads environment variables except
    PipelineConfig.from_env().
    """

    data_dir: Path = Path("data")
    artifacts_dir: Path = Path("artifacts")
    train_file: str = "train.csv"
    test_file: str = "test.csv"
    output_path: Path = Path("predictions.csv")
    model_name: str = MODEL_NAME
    schema_file: str = SCHEMA_FILE
    has_header: bool = True
    column_names: Optional[Tuple[str, ...]] = None
    id_column: str = ID_COLUMN
    target_column: str = TARGET_COLUMN
    categorical_column: str = CATEGORICAL_COLUMN
    categorical_domain: Tuple[str, ...] = CATEGORICAL_DOMAIN
    learning_rate: float = 0.01
    log_dir: Optional[Path] = None
    fit: FitOptions = field(default_factory=FitOptions)

    @property
    def train_path(self) -> Path:
        return Path(self.data_dir) / self.train_file

    @property
    def test_path(self) -> Path:
        return Path(self.data_dir) / self.test_file

    @property
    def model_dir(self) -> Path:
        return Path(self.artifacts_dir) / self.model_name

    @property
    def model_path(self) -> Path:
        return self.model_dir / MODEL_FILE

    @property
    def schema_path(self) -> Path:
        return Path(self.artifacts_dir) / self.schema_file

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        """
        Builds a config from ABALONE_* environment variables, falling back to
        the dataclass defaults for anything unset.

        Args:
            env: Mapping to read from. Defaults to os.environ.
        """
        env = os.environ if env is None else env
        overrides: Dict[str, object] = {}

        if env.get("ABALONE_DATA_DIR"):
            overrides["data_dir"] = Path(env["ABALONE_DATA_DIR"])
        if env.get("ABALONE_ARTIFACTS_DIR"):
            overrides["artifacts_dir"] = Path(env["ABALONE_ARTIFACTS_DIR"])
        if env.get("ABALONE_OUTPUT_PATH"):
            overrides["output_path"] = Path(env["ABALONE_OUTPUT_PATH"])
        if env.get("ABALONE_MODEL_NAME"):
            overrides["model_name"] = env["ABALONE_MODEL_NAME"]
        if env.get("ABALONE_LOG_DIR"):
            overrides["log_dir"] = Path(env["ABALONE_LOG_DIR"])

        fit = FitOptions()
        if env.get("ABALONE_EPOCHS"):
            fit = replace(fit, epochs=int(env["ABALONE_EPOCHS"]))
        if env.get("ABALONE_BATCH_SIZE"):
            fit = replace(fit, batch_size=int(env["ABALONE_BATCH_SIZE"]))
        overrides["fit"] = fit

        return cls(**overrides)
