import json

import pytest

from abalone_ml.errors import ArtifactCorrupt, ArtifactMissing
from abalone_ml.features.schema import SchemaArtifact, load_schema, write_schema

ORDER = ["Length", "Diameter", "sex_M", "sex_F", "sex_I"]
SEX_TO_INDEX = {"M": 0, "F": 1, "I": 2}


def test_round_trip_preserves_order_and_mapping(tmp_path):
    schema = SchemaArtifact.create(ORDER, SEX_TO_INDEX, "Sex")
    path = tmp_path / "metadata.json"
    write_schema(schema, path)

    loaded = load_schema(path)
    assert list(loaded.feature_order) == ORDER
    assert loaded.categorical_mapping == SEX_TO_INDEX
    assert loaded.created_at == schema.created_at
    assert loaded == schema


def test_written_file_uses_camel_case_keys(tmp_path):
    path = tmp_path / "metadata.json"
    write_schema(SchemaArtifact.create(ORDER, SEX_TO_INDEX), path)
    payload = json.loads(path.read_text())
    assert set(payload) == {"featureOrder", "categoricalMapping", "categoricalColumn", "createdAt"}


def test_legacy_sex_to_index_key_is_accepted(tmp_path):
    """metadata.json written by the original tool has no categoricalColumn."""
    path = tmp_path / "metadata.json"
    path.write_text(json.dumps({
        "featureOrder": ORDER,
        "sexToIndex": SEX_TO_INDEX,
        "createdAt": "2025-01-01T00:00:00.000Z",
    }))
    loaded = load_schema(path)
    assert loaded.categorical_mapping == SEX_TO_INDEX
    assert loaded.categorical_column == "Sex"


def test_missing_file_raises_artifact_missing(tmp_path):
    with pytest.raises(ArtifactMissing):
        load_schema(tmp_path / "metadata.json")


def test_invalid_json_raises_artifact_corrupt(tmp_path):
    path = tmp_path / "metadata.json"
    path.write_text('{"featureOrder": [')
    with pytest.raises(ArtifactCorrupt):
        load_schema(path)


@pytest.mark.parametrize("payload", [
    [],
    {"categoricalMapping": SEX_TO_INDEX},
    {"featureOrder": ["a", "a"], "categoricalMapping": SEX_TO_INDEX},
    {"featureOrder": ORDER, "categoricalMapping": {"M": 0, "F": 0, "I": 2}},
    {"featureOrder": ORDER, "categoricalMapping": {"M": 1, "F": 2, "I": 3}},
    {"featureOrder": ORDER, "categoricalMapping": {"M": "0"}},
])
def test_invalid_payload_raises_artifact_corrupt(payload):
    with pytest.raises(ArtifactCorrupt):
        SchemaArtifact.from_dict(payload)


def test_schema_vectorize_uses_its_own_order():
    schema = SchemaArtifact.create(["Length", "sex_M", "sex_F", "sex_I"], SEX_TO_INDEX)
    assert schema.vectorize({"id": 3, "Sex": "F", "Length": 0.2}, excluded=("id",)) == [0.2, 0.0, 1.0, 0.0]
