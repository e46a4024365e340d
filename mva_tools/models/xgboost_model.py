import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.metrics import accuracy_score, roc_auc_score
from sklearn.model_selection import train_test_split

from ..utils.toolkit import toolkit_threads

logger = logging.getLogger(__name__)

# option-string keys understood in addition to native xgboost parameter names
OPTION_ALIASES = {
    "NTrees": "n_estimators",
    "MaxDepth": "max_depth",
    "Shrinkage": "learning_rate",
    "BaggedSampleFraction": "subsample",
    "EarlyStopping": "early_stopping_rounds",
}


class XGBoostClassifier:
    """Gradient-boosted trees separating signal (1) from background (0)."""

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        feature_names: Optional[List[str]] = None,
        random_state: int = 42,
    ):
        self.default_params = {
            "objective": "binary:logistic",
            "eval_metric": "logloss",
            "max_depth": 6,
            "learning_rate": 0.1,
            "n_estimators": 300,
            "subsample": 0.8,
            "colsample_bytree": 0.8,
            "random_state": random_state,
            "early_stopping_rounds": 50,
        }
        self.params = dict(self.default_params)
        for key, value in (options or {}).items():
            if key in OPTION_ALIASES:
                self.params[OPTION_ALIASES[key]] = value
            elif key[:1].islower():
                self.params[key] = value
            else:
                logger.debug(f"Ignoring XGBoost option {key}={value}")

        self.model = None
        self.feature_names = list(feature_names) if feature_names else None
        self.random_state = random_state

    def _booster_params(self) -> Dict[str, Any]:
        params = {
            k: v
            for k, v in self.params.items()
            if k not in ("n_estimators", "early_stopping_rounds", "random_state")
        }
        params["seed"] = self.random_state
        params["nthread"] = toolkit_threads()
        return params

    def train(
        self,
        X_train: np.ndarray,
        y_train: np.ndarray,
        X_val: Optional[np.ndarray] = None,
        y_val: Optional[np.ndarray] = None,
    ) -> Dict[str, float]:
        """Train with early stopping on a validation sample.

        When no validation sample is given, 20% of the training sample is
        held out for it.
        """
        if X_val is None or y_val is None:
            X_train, X_val, y_train, y_val = train_test_split(
                X_train,
                y_train,
                test_size=0.2,
                random_state=self.random_state,
                stratify=y_train,
            )

        dtrain = xgb.DMatrix(X_train, label=y_train, feature_names=self.feature_names)
        dval = xgb.DMatrix(X_val, label=y_val, feature_names=self.feature_names)

        self.model = xgb.train(
            self._booster_params(),
            dtrain,
            num_boost_round=int(self.params["n_estimators"]),
            evals=[(dtrain, "train"), (dval, "val")],
            early_stopping_rounds=int(self.params["early_stopping_rounds"]),
            verbose_eval=False,
        )

        val_proba = self.predict_proba(X_val)
        metrics = {
            "val_auc": roc_auc_score(y_val, val_proba),
            "val_accuracy": accuracy_score(y_val, (val_proba > 0.5).astype(int)),
            "best_iteration": int(self.model.best_iteration),
        }

        logger.info(f"XGBoost training complete. Validation AUC: {metrics['val_auc']:.4f}")
        return metrics

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Signal probability of each event."""
        if self.model is None:
            raise ValueError("Model not trained yet!")

        dtest = xgb.DMatrix(X, feature_names=self.feature_names)
        return self.model.predict(
            dtest, iteration_range=(0, self.model.best_iteration + 1)
        )

    def predict_score(self, X: np.ndarray) -> np.ndarray:
        """Classifier response in [-1, 1]; signal-like events score high."""
        return 2.0 * self.predict_proba(X) - 1.0

    def get_feature_importance(self) -> pd.DataFrame:
        """Get feature importance rankings."""
        if self.model is None:
            raise ValueError("Model not trained yet!")

        importance_dict = self.model.get_score(importance_type="gain")
        names = self.feature_names or [f"f{i}" for i in range(self.model.num_features())]
        importance_df = pd.DataFrame(
            [{"feature": name, "importance": importance_dict.get(name, 0.0)} for name in names]
        )

        return importance_df.sort_values("importance", ascending=False)
