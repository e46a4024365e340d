import logging
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from sklearn.ensemble import AdaBoostClassifier, GradientBoostingClassifier
from sklearn.metrics import accuracy_score, roc_auc_score
from sklearn.tree import DecisionTreeClassifier

logger = logging.getLogger(__name__)

SEPARATION_CRITERIA = {
    "GiniIndex": "gini",
    "CrossEntropy": "entropy",
}


def _min_node_size(value: Union[str, int, float]) -> Union[int, float]:
    """'5%' -> 0.05 (fraction of the sample), integers are absolute counts."""
    if isinstance(value, str) and value.endswith("%"):
        return float(value[:-1]) / 100.0
    if isinstance(value, float) and value < 1.0:
        return value
    return int(value)


class BoostedDecisionTree:
    """
    Boosted decision trees built on scikit-learn.

    ``BoostType=AdaBoost`` boosts shallow trees with AdaBoost,
    ``BoostType=Grad`` uses gradient boosting. Recognised options:
    NTrees, MaxDepth, MinNodeSize, AdaBoostBeta, Shrinkage,
    UseBaggedBoost, BaggedSampleFraction and SeparationType.
    """

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        feature_names: Optional[List[str]] = None,
        random_state: int = 42,
    ):
        options = dict(options or {})
        self.options = options
        self.feature_names = list(feature_names) if feature_names else None
        self.random_state = random_state

        self.boost_type = str(options.get("BoostType", "AdaBoost"))
        if self.boost_type not in ("AdaBoost", "Grad"):
            raise ValueError(f"Unsupported BoostType: {self.boost_type}")

        self.n_trees = int(options.get("NTrees", 800))
        self.max_depth = int(options.get("MaxDepth", 3))
        self.min_samples_leaf = _min_node_size(options.get("MinNodeSize", "5%"))

        separation = options.get("SeparationType", "GiniIndex")
        if separation not in SEPARATION_CRITERIA:
            raise ValueError(f"Unsupported SeparationType: {separation}")
        self.criterion = SEPARATION_CRITERIA[separation]

        self.model = self._build_model()

    def _build_model(self):
        if self.boost_type == "AdaBoost":
            tree = DecisionTreeClassifier(
                max_depth=self.max_depth,
                min_samples_leaf=self.min_samples_leaf,
                criterion=self.criterion,
                random_state=self.random_state,
            )
            return AdaBoostClassifier(
                estimator=tree,
                n_estimators=self.n_trees,
                learning_rate=float(self.options.get("AdaBoostBeta", 0.5)),
                random_state=self.random_state,
            )

        subsample = 1.0
        if self.options.get("UseBaggedBoost", False):
            subsample = float(self.options.get("BaggedSampleFraction", 0.6))
        return GradientBoostingClassifier(
            n_estimators=self.n_trees,
            max_depth=self.max_depth,
            min_samples_leaf=self.min_samples_leaf,
            learning_rate=float(self.options.get("Shrinkage", 0.1)),
            subsample=subsample,
            random_state=self.random_state,
        )

    def train(self, X_train: np.ndarray, y_train: np.ndarray) -> Dict[str, float]:
        """Fit on the training sample and report training-sample separation."""
        logger.info(
            f"Training {self.boost_type} BDT with {self.n_trees} trees "
            f"(max depth {self.max_depth})..."
        )
        self.model.fit(X_train, y_train)
        self._fitted = True

        train_proba = self.predict_proba(X_train)
        metrics = {
            "train_auc": roc_auc_score(y_train, train_proba),
            "train_accuracy": accuracy_score(y_train, (train_proba > 0.5).astype(int)),
        }
        logger.info(f"BDT training complete. Training AUC: {metrics['train_auc']:.4f}")
        return metrics

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Signal probability of each event."""
        if not getattr(self, "_fitted", False):
            raise ValueError("Model not trained yet!")
        return self.model.predict_proba(np.asarray(X))[:, 1]

    def predict_score(self, X: np.ndarray) -> np.ndarray:
        """Classifier response in [-1, 1]; signal-like events score high."""
        return 2.0 * self.predict_proba(X) - 1.0

    def get_feature_importance(self) -> pd.DataFrame:
        if not getattr(self, "_fitted", False):
            raise ValueError("Model not trained yet!")

        names = self.feature_names or [
            f"f{i}" for i in range(len(self.model.feature_importances_))
        ]
        importance_df = pd.DataFrame(
            {"feature": names, "importance": self.model.feature_importances_}
        )
        return importance_df.sort_values("importance", ascending=False)
