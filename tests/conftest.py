import json
from pathlib import Path

import pytest

from abalone_ml.config import FitOptions, PipelineConfig

ABALONE_COLUMNS = [
    "id", "Sex", "Length", "Diameter", "Height",
    "Whole weight", "Whole weight.1", "Whole weight.2", "Shell weight",
]


class FakeRegressor:
    """
    Lightweight stand-in for RingsRegressor.

    Predicts the plain sum of the feature vector, so expected predictions
    can be computed by hand, and persists only its input width.
    """

    def __init__(self, input_dim: int):
        self.input_dim = input_dim
        self.fit_calls = []

    def fit(self, features, targets, options, log_dir=None):
        self.fit_calls.append((features, targets, options, log_dir))
        return {"loss": 4.0, "mae": 1.5, "val_loss": 5.0, "val_mae": 1.8}

    def predict(self, vector):
        return float(sum(vector))

    def save(self, path):
        Path(path).write_text(json.dumps({"input_dim": self.input_dim}))

    @classmethod
    def load(cls, path):
        return cls(json.loads(Path(path).read_text())["input_dim"])


def make_abalone_rows(n: int, labeled: bool = True, start_id: int = 0):
    """Deterministic abalone-like rows cycling through the three sex codes."""
    rows = []
    for i in range(n):
        length = 0.2 + 0.01 * (i % 50)
        whole = 0.1 + 0.03 * (i % 40)
        row = {
            "id": start_id + i,
            "Sex": ["M", "F", "I"][i % 3],
            "Length": round(length, 4),
            "Diameter": round(length * 0.8, 4),
            "Height": round(length * 0.27, 4),
            "Whole weight": round(whole, 4),
            "Whole weight.1": round(whole * 0.43, 4),
            "Whole weight.2": round(whole * 0.21, 4),
            "Shell weight": round(whole * 0.29, 4),
        }
        if labeled:
            row["Rings"] = 5 + (i % 12)
        rows.append(row)
    return rows


@pytest.fixture
def write_csv(tmp_path):
    """Writes a list of dict rows to a CSV under tmp_path and returns its path."""
    def _write(path, rows, columns=None, header=True):
        path = Path(path)
        if not path.is_absolute():
            path = tmp_path / path
        path.parent.mkdir(parents=True, exist_ok=True)
        columns = columns or list(rows[0].keys())
        lines = [",".join(columns)] if header else []
        for row in rows:
            lines.append(",".join(str(row[c]) for c in columns))
        path.write_text("\n".join(lines) + "\n")
        return path
    return _write


@pytest.fixture
def config(tmp_path):
    return PipelineConfig(
        data_dir=tmp_path / "data",
        artifacts_dir=tmp_path / "artifacts",
        output_path=tmp_path / "out" / "predictions.csv",
        fit=FitOptions(epochs=2, batch_size=8, seed=7),
    )


@pytest.fixture
def fake_regressor():
    return FakeRegressor


@pytest.fixture
def fake_model_factory():
    """Model factory recording every FakeRegressor it builds."""
    created = []

    def factory(input_dim):
        model = FakeRegressor(input_dim)
        created.append(model)
        return model

    factory.created = created
    return factory


@pytest.fixture
def abalone_rows():
    return make_abalone_rows


@pytest.fixture
def abalone_tables(config, write_csv):
    """Writes train.csv (30 labeled rows) and test.csv (9 unlabeled rows) into config.data_dir."""
    write_csv(config.train_path, make_abalone_rows(30), ABALONE_COLUMNS + ["Rings"])
    write_csv(config.test_path, make_abalone_rows(9, labeled=False, start_id=1000), ABALONE_COLUMNS)
    return config
