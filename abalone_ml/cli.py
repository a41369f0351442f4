"""
Abalone-ML Command Line
-----------------------
    abalone-ml train    [--data-dir DIR] [--artifacts-dir DIR] [--epochs N] ...
    abalone-ml predict  [--data-dir DIR] [--artifacts-dir DIR] [--output PATH]
    abalone-ml serve    [--host HOST] [--port PORT]

Settings come from ABALONE_* environment variables (a .env file is honoured)
and are overridden by flags. Any fatal pipeline error is logged and turns
into exit code 1.
"""

import os
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import PipelineConfig
from .errors import PipelineError
from .inference.predictor import run_inference
from .training.training_engine import run_training

logger = logging.getLogger("abalone_ml")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abalone-ml",
        description="Train the abalone rings regressor and predict on unseen rows.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data-dir", type=Path, help="Directory holding train.csv / test.csv")
    common.add_argument("--artifacts-dir", type=Path, help="Directory for model + metadata.json")
    common.add_argument("--model-name", help="Model artifact directory name")
    common.add_argument("--no-header", action="store_true", help="Input tables have no header row")
    common.add_argument("--columns", help="Comma-separated column names for tables without a header row")

    train = subparsers.add_parser("train", parents=[common], help="Fit the model and publish artifacts")
    train.add_argument("--epochs", type=int, help="Number of training epochs")
    train.add_argument("--batch-size", type=int, help="Mini-batch size")
    train.add_argument("--log-dir", type=Path, help="TensorBoard log directory")

    predict = subparsers.add_parser("predict", parents=[common], help="Write predictions for test.csv")
    predict.add_argument("--output", type=Path, help="Output CSV path")

    serve = subparsers.add_parser("serve", help="Run the HTTP inference API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=7860)
    serve.add_argument("--workers", type=int, default=1)

    return parser


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    """Environment first, then command-line flags on top."""
    config = PipelineConfig.from_env()
    overrides = {}
    if getattr(args, "data_dir", None):
        overrides["data_dir"] = args.data_dir
    if getattr(args, "artifacts_dir", None):
        overrides["artifacts_dir"] = args.artifacts_dir
    if getattr(args, "model_name", None):
        overrides["model_name"] = args.model_name
    if getattr(args, "no_header", False):
        overrides["has_header"] = False
    if getattr(args, "columns", None):
        overrides["column_names"] = tuple(name.strip() for name in args.columns.split(","))
    if getattr(args, "output", None):
        overrides["output_path"] = args.output
    if getattr(args, "log_dir", None):
        overrides["log_dir"] = args.log_dir

    fit = config.fit
    if getattr(args, "epochs", None):
        fit = replace(fit, epochs=args.epochs)
    if getattr(args, "batch_size", None):
        fit = replace(fit, batch_size=args.batch_size)
    overrides["fit"] = fit

    return replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - [%(levelname)s] - %(name)s - %(message)s',
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if args.command == "serve":
        import uvicorn
        uvicorn.run("abalone_ml.main:app", host=args.host, port=args.port, workers=args.workers)
        return EXIT_OK

    config = resolve_config(args)
    try:
        if args.command == "train":
            run_training(config)
        else:
            run_inference(config)
    except PipelineError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted; previously published artifacts and outputs are unchanged")
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
