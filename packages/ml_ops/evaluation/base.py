from abc import ABC, abstractmethod
import pandas as pd
from typing import Dict


class EvaluationStrategy(ABC):
    """
    Scores a fitted estimator on held-out data.
    The resulting metrics travel with the TrainedModel artifact; the explanation
    engine only ever reads the stored `fit_quality`.
    """

    @abstractmethod
    def evaluate(
        self, model, X_test: pd.DataFrame, y_test: pd.DataFrame, logger=None
    ) -> Dict[str, float]:
        """
        Args:
            model: A fitted estimator with a .predict() method.
            X_test (pd.DataFrame): Held-out features, in vocabulary order.
            y_test (pd.DataFrame): Ground-truth values.
            logger: Optional loguru logger for a human-readable summary.

        Returns:
            Dict[str, float]: Metric name -> value.
        """
        pass
