"""
estimator.py — Online Link-Quality Estimator
==============================================
A small feed-forward network that predicts a Q-value-like desirability
score for a link from four observed features:

    [reliability, duration / 60, relative_speed / 30, own_speed / 30]

Architecture: 4 → 16 (sigmoid) → 8 (sigmoid) → 1 (sigmoid).

Training is online: the simulator periodically harvests one sample per
live vehicle link (reward = the link's current quality) and runs one pass
of plain SGD over the batch, sample by sample.  There is no momentum,
regularisation, or separate labelled dataset.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

N_FEATURES = 4
HIDDEN_1 = 16
HIDDEN_2 = 8
INIT_SPREAD = 0.1   # weights drawn from U(-0.1, 0.1)


@dataclass
class TrainingSample:
    features: Sequence[float]
    reward: float


def _sigmoid(z):
    return 1.0 / (1.0 + np.exp(-z))


class LinkQualityEstimator:
    """
    Q-value style link desirability predictor.

    Weights belong to the instance; two simulators never share a model.
    """

    def __init__(self, learning_rate: float = 0.1, seed: int = 42):
        self.learning_rate = learning_rate
        rng = np.random.default_rng(seed)

        def init(*shape):
            return rng.uniform(-INIT_SPREAD, INIT_SPREAD, size=shape)

        self.w1 = init(N_FEATURES, HIDDEN_1)
        self.b1 = init(HIDDEN_1)
        self.w2 = init(HIDDEN_1, HIDDEN_2)
        self.b2 = init(HIDDEN_2)
        self.w3 = init(HIDDEN_2)
        self.b3 = float(init(1)[0])

        self.updates = 0

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    @staticmethod
    def _as_features(features: Sequence[float]) -> np.ndarray:
        x = np.asarray(features, dtype=float)
        if x.shape != (N_FEATURES,):
            raise ValueError(f"Expected {N_FEATURES} features, got shape {x.shape}")
        return x

    def _forward(self, x: np.ndarray) -> tuple[np.ndarray, np.ndarray, float]:
        h1 = _sigmoid(x @ self.w1 + self.b1)
        h2 = _sigmoid(h1 @ self.w2 + self.b2)
        out = float(_sigmoid(h2 @ self.w3 + self.b3))
        return h1, h2, out

    def predict(self, features: Sequence[float]) -> float:
        """Predicted desirability ∈ (0, 1).  Pure function of the weights."""
        _, _, out = self._forward(self._as_features(features))
        return out

    def mean_squared_error(self, samples: Sequence[TrainingSample]) -> float:
        if not samples:
            return 0.0
        errors = [(s.reward - self.predict(s.features)) ** 2 for s in samples]
        return float(np.mean(errors))

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train_on_batch(self, samples: Sequence[TrainingSample]) -> float:
        """
        One SGD pass over ``samples`` in the order given.

        Per sample, with error = target − output, the deltas are

            δ_out = error · o(1 − o)
            δ_h2  = δ_out · w3 ⊙ h2(1 − h2)
            δ_h1  = (W2 · δ_h2) ⊙ h1(1 − h1)

        and every parameter moves by ``learning_rate × δ × input``.

        Returns the batch MSE measured before the pass.
        """
        before = self.mean_squared_error(samples)
        lr = self.learning_rate

        for sample in samples:
            x = self._as_features(sample.features)
            h1, h2, out = self._forward(x)

            error = sample.reward - out
            delta_out = error * out * (1.0 - out)
            delta_h2 = delta_out * self.w3 * h2 * (1.0 - h2)
            delta_h1 = (self.w2 @ delta_h2) * h1 * (1.0 - h1)

            self.w3 += lr * delta_out * h2
            self.b3 += lr * delta_out
            self.w2 += lr * np.outer(h1, delta_h2)
            self.b2 += lr * delta_h2
            self.w1 += lr * np.outer(x, delta_h1)
            self.b1 += lr * delta_h1

        self.updates += 1
        logger.debug("Estimator update #%d on %d samples (mse before=%.5f)",
                     self.updates, len(samples), before)
        return before
