"""
Abalone-ML Feature Vectorizer
-----------------------------
Turns a raw row into the positional numeric vector the regressor consumes.

Two steps:
    1. Enrichment: drop the id/target columns and replace the categorical
       column by its one-hot slots, named '<column>_<symbol>' (lower-cased
       column), appended in slot order.
    2. Projection: read the enriched fields in feature-order and coerce each
       to float.

The feature order is derived exactly once, from the first training row, and
is persisted in the schema artifact. Inference always receives it from the
artifact. Model weights are positional, so vectors built with any other order
would silently produce wrong predictions.
"""

import math
from typing import Any, Dict, Iterable, List, Sequence

from ..errors import MissingFeature, SchemaMismatch
from .encoder import CategoricalMapping, one_hot_encode

Row = Dict[str, Any]


def slot_names(categorical_column: str, mapping: CategoricalMapping) -> List[str]:
    """One-hot slot names in slot-index order, e.g. ['sex_M', 'sex_F', 'sex_I']."""
    prefix = categorical_column.lower()
    return [f"{prefix}_{symbol}" for symbol in sorted(mapping, key=mapping.get)]


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def enrich_row(row: Row,
               categorical_column: str,
               mapping: CategoricalMapping,
               excluded: Iterable[str] = ()) -> Row:
    """
    Builds the enriched field set of a row.

    Plain columns keep their position and raw value. The categorical column is
    removed and its indicator slots are appended at the end. When the row has
    no categorical column the slots are simply absent, which vectorize() then
    reports as a MissingFeature. An empty categorical cell (None or NaN) is
    also a MissingFeature. Only real symbols outside the mapping encode to
    the all-zero indicator.
    """
    skip = set(excluded)
    skip.add(categorical_column)
    enriched = {name: value for name, value in row.items() if name not in skip}

    if categorical_column in row:
        symbol = row[categorical_column]
        if is_empty(symbol):
            raise MissingFeature(categorical_column, f"Feature '{categorical_column}' has no value")
        indicator = one_hot_encode(symbol, mapping)
        enriched.update(zip(slot_names(categorical_column, mapping), indicator))
    return enriched


def derive_feature_order(first_row: Row,
                         categorical_column: str,
                         mapping: CategoricalMapping,
                         excluded: Iterable[str] = ()) -> List[str]:
    """Feature order = enriched field names of the first row, first-seen order."""
    return list(enrich_row(first_row, categorical_column, mapping, excluded))


def to_number(name: str, value: Any) -> float:
    """Coerces one enriched field to float. NaN (an empty cell) counts as missing."""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise SchemaMismatch(f"Feature '{name}' is not numeric: {value!r}") from e
    if math.isnan(number):
        raise MissingFeature(name, f"Feature '{name}' has no value")
    return number


def project(enriched: Row, feature_order: Sequence[str]) -> List[float]:
    """Reads enriched fields in feature order. Absent names are fatal."""
    vector = []
    for name in feature_order:
        if name not in enriched:
            raise MissingFeature(name)
        vector.append(to_number(name, enriched[name]))

    return vector


def vectorize(row: Row,
              feature_order: Sequence[str],
              mapping: CategoricalMapping,
              categorical_column: str,
              excluded: Iterable[str] = ()) -> List[float]:
    """
    Produces the numeric feature vector of a row.

    Lookup is by name, so column order inside the row never matters. Extra
    columns that are not in feature_order are ignored.

    Args:
        row: Raw {column: value} mapping.
        feature_order: Ordered feature names from the schema artifact.
        mapping: Symbol -> slot index of the categorical column.
        categorical_column: Name of the categorical column in raw rows.
        excluded: Non-feature columns (id, target).

    Returns:
        List[float] of length len(feature_order).

    Raises:
        MissingFeature: A feature-order name is absent or empty in the row.
        SchemaMismatch: A feature value is not numeric.
    """
    return project(enrich_row(row, categorical_column, mapping, excluded), feature_order)
