import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import uproot
from sklearn.metrics import roc_auc_score
from tqdm.auto import tqdm

from ..data.loaders import read_signal_background
from ..data.selectors import split_tree_by_filter
from ..models.methods import MethodConfig, build_classifier
from ..utils.io import save_model, write_tree
from ..utils.toolkit import init_toolkit

logger = logging.getLogger(__name__)

SIGNAL_CLASS_ID = 0
BACKGROUND_CLASS_ID = 1


def compute_split_sizes(
    n_signal: int, n_background: int, train_ratio: float
) -> Tuple[int, int, int]:
    """
    Number of training events per class and test events per class.

    Signal and background contribute the same number of training events,
    ``round(train_ratio * n_signal)``; the background test sample keeps the
    background-to-signal ratio of the input.

    Returns:
        (n_train, n_signal_test, n_background_test)
    """
    if n_signal <= 0:
        raise ValueError("Signal sample is empty. Cannot train classifiers.")
    if not 0.0 < train_ratio < 1.0:
        raise ValueError(f"train_ratio must be in (0, 1), got {train_ratio}")

    n_train = int(np.floor(train_ratio * n_signal + 0.5))
    n_signal_test = n_signal - n_train
    n_background_test = n_background * n_signal_test // n_signal

    if n_train + n_background_test > n_background:
        raise ValueError(
            f"Not enough background events ({n_background}) for {n_train} training "
            f"and {n_background_test} test events"
        )
    return n_train, n_signal_test, n_background_test


class TrainingPipeline:
    """Train and test a set of Signal/Background classifiers."""

    def __init__(
        self,
        output_dir: Union[str, Path] = "output",
        random_state: int = 42,
        n_threads: Optional[int] = None,
    ):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.random_state = random_state
        self.n_threads = init_toolkit(n_threads)

    @property
    def weights_dir(self) -> Path:
        return self.output_dir / "models" / "weights"

    @property
    def plots_dir(self) -> Path:
        return self.output_dir / "models" / "plots"

    @property
    def classification_file(self) -> Path:
        return self.output_dir / "MVAClassification.root"

    def weight_file(self, config: MethodConfig, unique_name: str) -> Path:
        return self.weights_dir / f"{config.type.value}_{unique_name}.weights.joblib"

    def _split_samples(
        self, signal: pd.DataFrame, background: pd.DataFrame, train_ratio: float
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        n_train, n_signal_test, n_background_test = compute_split_sizes(
            len(signal), len(background), train_ratio
        )
        logger.info(
            f"Train events per class: {n_train} | Test Signal: {n_signal_test} | "
            f"Test Background: {n_background_test}"
        )

        rng = np.random.default_rng(self.random_state)
        sig_idx = rng.permutation(len(signal))
        bkg_idx = rng.permutation(len(background))

        def labeled(df: pd.DataFrame, idx: np.ndarray, class_id: int) -> pd.DataFrame:
            part = df.iloc[idx].reset_index(drop=True)
            part.insert(0, "classID", np.full(len(part), class_id, dtype=np.int32))
            return part

        train = pd.concat(
            [
                labeled(signal, sig_idx[:n_train], SIGNAL_CLASS_ID),
                labeled(background, bkg_idx[:n_train], BACKGROUND_CLASS_ID),
            ],
            ignore_index=True,
        )
        test = pd.concat(
            [
                labeled(
                    signal, sig_idx[n_train : n_train + n_signal_test], SIGNAL_CLASS_ID
                ),
                labeled(
                    background,
                    bkg_idx[n_train : n_train + n_background_test],
                    BACKGROUND_CLASS_ID,
                ),
            ],
            ignore_index=True,
        )
        return train, test

    def train_classification_model(
        self,
        method_suffix: str,
        input_file: Union[str, Path],
        filtered_file_name: str,
        input_vars: Sequence[str],
        spectator_vars: Sequence[str],
        methods: Sequence[Union[MethodConfig, Dict[str, Any]]],
        train_ratio: float = 0.3,
    ) -> Dict[str, Any]:
        """
        Train every booked method on a Signal/Background file.

        Args:
            method_suffix: Appended to every method name, ``<name>_<suffix>``
            input_file: ROOT file with Signal and Background trees
            filtered_file_name: Name of the scored Signal/Background file
                written into the output directory
            input_vars: Classifier input branches
            spectator_vars: Branches carried along without training on them
            methods: Classifier configurations
            train_ratio: Fraction of the signal sample used for training

        Returns:
            Dictionary with per-method weight files and metrics, and the
            paths of the classification and filtered files
        """
        logger.info("Starting classifier training")

        if not Path(input_file).exists():
            raise FileNotFoundError(f"Training input file not found: {input_file}")
        if not methods:
            raise ValueError("No methods booked for training")

        configs = [
            m if isinstance(m, MethodConfig) else MethodConfig.from_dict(m) for m in methods
        ]
        input_vars = list(input_vars)
        spectator_vars = list(spectator_vars)

        signal, background = read_signal_background(
            input_file, input_vars + spectator_vars
        )

        train, test = self._split_samples(signal, background, train_ratio)
        X_train = train[input_vars].to_numpy(dtype=np.float64)
        y_train = (train["classID"] == SIGNAL_CLASS_ID).to_numpy().astype(np.int32)
        X_test = test[input_vars].to_numpy(dtype=np.float64)
        y_test = (test["classID"] == SIGNAL_CLASS_ID).to_numpy().astype(np.int32)

        results: Dict[str, Any] = {"methods": {}}
        for config in tqdm(configs, desc="Training methods"):
            unique_name = config.unique_name(method_suffix)
            logger.info(f"Training {config.type.value} method: {unique_name}")

            classifier = build_classifier(config, input_vars, self.random_state)
            training_metrics = classifier.train(X_train, y_train)

            train[unique_name] = classifier.predict_score(X_train)
            test[unique_name] = classifier.predict_score(X_test)

            test_auc = (
                roc_auc_score(y_test, test[unique_name])
                if len(np.unique(y_test)) == 2
                else float("nan")
            )
            logger.info(f"{unique_name} test ROC AUC: {test_auc:.4f}")

            weight_file = save_model(
                classifier,
                str(self.weight_file(config, unique_name)),
                metadata={
                    "method": unique_name,
                    "type": config.type.value,
                    "options": config.parsed_options,
                    "input_variables": input_vars,
                    "spectators": spectator_vars,
                },
            )
            results["methods"][unique_name] = {
                "type": config.type.value,
                "weight_file": weight_file,
                "training_metrics": training_metrics,
                "test_auc": test_auc,
            }

        with uproot.recreate(self.classification_file) as root_file:
            write_tree(root_file, "TrainTree", train)
            write_tree(root_file, "TestTree", test)
        logger.info(f"Train and test trees written to {self.classification_file}")

        filtered_file = self.output_dir / filtered_file_name
        branches_to_keep = input_vars + spectator_vars + list(results["methods"])
        n_signal, n_background = split_tree_by_filter(
            self.classification_file,
            "TestTree",
            filtered_file,
            branches_to_keep,
            f"classID == {SIGNAL_CLASS_ID}",
        )

        self.plots_dir.mkdir(parents=True, exist_ok=True)

        results.update(
            {
                "classification_file": str(self.classification_file),
                "filtered_file": str(filtered_file),
                "n_test_signal": n_signal,
                "n_test_background": n_background,
            }
        )
        logger.info("Training pipeline complete!")
        return results
