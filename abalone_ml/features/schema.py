"""
Abalone-ML Schema Artifact
--------------------------
The persisted record that lets a separate process rebuild the exact encoding
used at training time.

On-disk format (metadata.json):
    {
      "featureOrder": ["Length", ..., "sex_M", "sex_F", "sex_I"],
      "categoricalMapping": {"M": 0, "F": 1, "I": 2},
      "categoricalColumn": "Sex",
      "createdAt": "2026-01-01T00:00:00+00:00"
    }

'categoricalColumn' defaults to 'Sex' when absent, and the legacy key
'sexToIndex' is read as an alias of 'categoricalMapping'.

A SchemaArtifact is immutable. Retraining creates a new one.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

from ..config import CATEGORICAL_COLUMN
from ..errors import ArtifactCorrupt, ArtifactMissing
from .encoder import CategoricalMapping
from .vectorizer import Row, vectorize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaArtifact:
    feature_order: Tuple[str, ...]
    categorical_mapping: CategoricalMapping
    categorical_column: str = CATEGORICAL_COLUMN
    created_at: str = ""

    @classmethod
    def create(cls,
               feature_order: Sequence[str],
               categorical_mapping: CategoricalMapping,
               categorical_column: str = CATEGORICAL_COLUMN) -> "SchemaArtifact":
        """Stamps a new schema with the current UTC time."""
        return cls(
            feature_order=tuple(feature_order),
            categorical_mapping=dict(categorical_mapping),
            categorical_column=categorical_column,
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    def vectorize(self, row: Row, excluded: Iterable[str] = ()) -> List[float]:
        """Vectorizes a row with this schema's feature order and mapping."""
        return vectorize(row, self.feature_order, self.categorical_mapping,
                         self.categorical_column, excluded)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureOrder": list(self.feature_order),
            "categoricalMapping": dict(self.categorical_mapping),
            "categoricalColumn": self.categorical_column,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "SchemaArtifact":
        """
        Validates and parses a decoded metadata payload.

        Raises:
            ArtifactCorrupt: Required keys are missing, the feature order is
                not a list of unique strings, or the mapping is not an
                injective symbol -> 0..n-1 index table.
        """
        if not isinstance(payload, dict):
            raise ArtifactCorrupt("Schema metadata must be a JSON object")

        feature_order = payload.get("featureOrder")
        mapping = payload.get("categoricalMapping", payload.get("sexToIndex"))
        column = payload.get("categoricalColumn", CATEGORICAL_COLUMN)
        created_at = payload.get("createdAt", "")

        if not isinstance(feature_order, list) or not feature_order:
            raise ArtifactCorrupt("Schema 'featureOrder' must be a non-empty list")
        if not all(isinstance(name, str) for name in feature_order):
            raise ArtifactCorrupt("Schema 'featureOrder' must contain only strings")
        if len(set(feature_order)) != len(feature_order):
            raise ArtifactCorrupt("Schema 'featureOrder' contains duplicate names")

        if not isinstance(mapping, dict) or not mapping:
            raise ArtifactCorrupt("Schema 'categoricalMapping' must be a non-empty object")
        indices = list(mapping.values())
        if not all(isinstance(i, int) and not isinstance(i, bool) for i in indices):
            raise ArtifactCorrupt("Schema 'categoricalMapping' values must be integers")
        if sorted(indices) != list(range(len(indices))):
            raise ArtifactCorrupt(
                f"Schema 'categoricalMapping' must map to distinct slots 0..{len(indices) - 1}"
            )

        if not isinstance(column, str) or not isinstance(created_at, str):
            raise ArtifactCorrupt("Schema 'categoricalColumn' and 'createdAt' must be strings")

        return cls(
            feature_order=tuple(feature_order),
            categorical_mapping=dict(mapping),
            categorical_column=column,
            created_at=created_at,
        )


def write_schema(schema: SchemaArtifact, path: Union[str, Path]) -> None:
    """Serializes the schema to JSON. Use artifacts.publish_artifacts for atomic publishing."""
    Path(path).write_text(json.dumps(schema.to_dict(), indent=2), encoding="utf-8")


def load_schema(path: Union[str, Path]) -> SchemaArtifact:
    """
    Reads a schema artifact from disk.

    Raises:
        ArtifactMissing: No file at path.
        ArtifactCorrupt: The file is not valid JSON or fails validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ArtifactMissing(f"Schema artifact not found at {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ArtifactCorrupt(f"Schema at {path} is not valid JSON: {e}") from e

    schema = SchemaArtifact.from_dict(payload)
    logger.debug(f"Loaded schema with {len(schema.feature_order)} features from {path}")
    return schema
