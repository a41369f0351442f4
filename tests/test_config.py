from pathlib import Path

from abalone_ml.config import FitOptions, PipelineConfig


def test_default_paths():
    config = PipelineConfig()
    assert config.train_path == Path("data/train.csv")
    assert config.test_path == Path("data/test.csv")
    assert config.model_path == Path("artifacts/abalone-linear-regression/model.keras")
    assert config.schema_path == Path("artifacts/metadata.json")


def test_default_fit_options():
    assert PipelineConfig().fit == FitOptions(epochs=10, batch_size=32, shuffle=True, validation_split=0.1)


def test_from_env_reads_abalone_variables():
    config = PipelineConfig.from_env({
        "ABALONE_DATA_DIR": "/srv/data",
        "ABALONE_MODEL_NAME": "abalone-v2",
        "ABALONE_EPOCHS": "25",
        "ABALONE_LOG_DIR": "/srv/logs/fit",
    })
    assert config.data_dir == Path("/srv/data")
    assert config.model_dir == Path("artifacts/abalone-v2")
    assert config.fit.epochs == 25
    assert config.fit.batch_size == 32
    assert config.log_dir == Path("/srv/logs/fit")


def test_from_env_ignores_unrelated_variables():
    assert PipelineConfig.from_env({"HOME": "/root"}) == PipelineConfig()
