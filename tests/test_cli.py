from pathlib import Path

from abalone_ml import cli
from abalone_ml.errors import EmptyDataset


def test_train_flags_override_config(mocker, tmp_path):
    run_training = mocker.patch("abalone_ml.cli.run_training")

    code = cli.main([
        "train", "--data-dir", str(tmp_path), "--artifacts-dir", str(tmp_path / "a"),
        "--epochs", "3", "--batch-size", "16",
    ])

    assert code == 0
    config = run_training.call_args.args[0]
    assert config.data_dir == tmp_path
    assert config.artifacts_dir == tmp_path / "a"
    assert config.fit.epochs == 3
    assert config.fit.batch_size == 16


def test_no_header_takes_column_names(mocker, tmp_path):
    run_inference = mocker.patch("abalone_ml.cli.run_inference")

    code = cli.main(["predict", "--data-dir", str(tmp_path), "--no-header", "--columns", "id, Sex,Length"])

    assert code == 0
    config = run_inference.call_args.args[0]
    assert config.has_header is False
    assert config.column_names == ("id", "Sex", "Length")


def test_pipeline_error_exits_non_zero(mocker, tmp_path):
    mocker.patch("abalone_ml.cli.run_training", side_effect=EmptyDataset("no rows"))
    assert cli.main(["train", "--data-dir", str(tmp_path)]) == 1


def test_predict_without_artifacts_exits_non_zero(tmp_path):
    code = cli.main([
        "predict", "--data-dir", str(tmp_path), "--artifacts-dir", str(tmp_path / "missing"),
        "--output", str(tmp_path / "predictions.csv"),
    ])
    assert code == 1
    assert not (tmp_path / "predictions.csv").exists()


def test_interrupt_exits_130(mocker, tmp_path):
    mocker.patch("abalone_ml.cli.run_inference", side_effect=KeyboardInterrupt)
    assert cli.main(["predict", "--data-dir", str(tmp_path)]) == 130


def test_environment_supplies_defaults(mocker, monkeypatch, tmp_path):
    monkeypatch.setenv("ABALONE_ARTIFACTS_DIR", str(tmp_path / "env-artifacts"))
    monkeypatch.setenv("ABALONE_OUTPUT_PATH", str(tmp_path / "env.csv"))
    run_inference = mocker.patch("abalone_ml.cli.run_inference")

    assert cli.main(["predict"]) == 0
    config = run_inference.call_args.args[0]
    assert config.artifacts_dir == tmp_path / "env-artifacts"
    assert config.output_path == Path(tmp_path / "env.csv")
