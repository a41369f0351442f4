"""
Abalone-ML Neural Architecture
------------------------------
Defines the regression network that maps an encoded abalone row to a ring
count, and the thin wrapper the pipelines use to fit, predict and persist it.

The architecture is a single linear unit:
Input (N-dim feature vector) -> Dense(1, linear, with bias) -> Rings.
"""

import logging
import math
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
import tensorflow as tf
from sklearn.utils import shuffle as shuffle_arrays
from tensorflow.keras import Model, callbacks, layers, optimizers

from ..config import FitOptions

logger = logging.getLogger(__name__)


def build_linear_regressor(input_dim: int, learning_rate: float = 0.01) -> Model:
    """
    Constructs and compiles the linear regression network.

    Args:
        input_dim (int): Width of the feature vector, i.e. len(featureOrder).
            For the abalone table this is 7 measurements + 3 sex slots = 10.
        learning_rate (float): Adam step size. Default: 0.01

    Returns:
        Model: Compiled tf.keras Model with input shape (batch_size, input_dim)
        and output shape (batch_size, 1).

    Compilation:
        - Optimizer: Adam
        - Loss: Mean Squared Error (MSE)
        - Metrics: Mean Absolute Error (MAE), readable in "rings"
    """
    input_layer = layers.Input(shape=(input_dim,), name="feature_input")
    output_layer = layers.Dense(1, use_bias=True, name="rings_output")(input_layer)

    model = Model(inputs=input_layer, outputs=output_layer, name="Abalone_Linear_Regression")
    model.compile(
        optimizer=optimizers.Adam(learning_rate=learning_rate),
        loss="mse",
        metrics=["mae"],
    )
    return model


class RingsRegressor:
    """
    Trainable/predictable model capability consumed by the pipelines.

    The pipelines only rely on fit(), predict(), save(), load() and
    input_dim, so any object exposing them can stand in for this class.
    """

    def __init__(self, model: Model):
        """Wraps an already built (and compiled, for training) Keras model."""
        self.model = model

    @classmethod
    def build(cls, input_dim: int, learning_rate: float = 0.01) -> "RingsRegressor":
        """Creates an untrained regressor for vectors of width input_dim."""
        return cls(build_linear_regressor(input_dim, learning_rate))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RingsRegressor":
        """Loads a model saved by save(). Inference does not need the optimizer state."""
        return cls(tf.keras.models.load_model(str(path), compile=False))

    @property
    def input_dim(self) -> int:
        """Feature vector width the model accepts."""
        return int(self.model.inputs[0].shape[-1])

    def fit(self,
            features: np.ndarray,
            targets: np.ndarray,
            options: FitOptions,
            log_dir: Optional[Union[str, Path]] = None) -> Dict[str, float]:
        """
        Fits the network and returns the final-epoch metrics.

        Keras takes the validation rows from the tail of the arrays, so the
        rows are shuffled once up front when options.shuffle is set.

        Args:
            features: Matrix of shape (n_rows, input_dim).
            targets: Vector of shape (n_rows,) or (n_rows, 1).
            options: Fixed fit configuration.
            log_dir: Optional TensorBoard log directory.

        Returns:
            Dict with 'loss', 'mae' and, when a validation split was used,
            'val_loss' and 'val_mae'.
        """
        x = np.asarray(features, dtype=np.float32)
        y = np.asarray(targets, dtype=np.float32).reshape(-1, 1)

        if options.shuffle:
            x, y = shuffle_arrays(x, y, random_state=options.seed)

        validation_split = options.validation_split
        split_at = int(math.floor(len(x) * (1.0 - validation_split)))
        if validation_split and split_at in (0, len(x)):
            logger.warning(
                f"{len(x)} rows cannot be split {1 - validation_split:.0%}/{validation_split:.0%}; "
                f"fitting without a validation set"
            )
            validation_split = 0.0

        fit_callbacks = []
        if log_dir is not None:
            fit_callbacks.append(callbacks.TensorBoard(log_dir=str(log_dir)))

        history = self.model.fit(
            x, y,
            epochs=options.epochs,
            batch_size=options.batch_size,
            shuffle=options.shuffle,
            validation_split=validation_split,
            callbacks=fit_callbacks,
            verbose=0,   # Set to 1 for per-epoch loss curves
        )
        return {name: float(values[-1]) for name, values in history.history.items()}

    def predict(self, vector: Sequence[float]) -> float:
        """Predicts the ring count of one feature vector."""
        x = np.asarray([vector], dtype=np.float32)
        output = self.model(x, training=False)
        return float(np.asarray(output)[0, 0])

    def save(self, path: Union[str, Path]) -> None:
        """Writes the full model (architecture + weights). The path must end in '.keras'."""
        self.model.save(str(path))
