import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
import uproot

from ..data.loaders import read_tree
from ..utils.io import load_model, write_tree
from ..utils.toolkit import init_toolkit

logger = logging.getLogger(__name__)


class ModelReader:
    """
    Applies trained classifiers to individual events or whole trees.

    Input variables are declared once, in the order the classifiers were
    trained with, then bound to values before each evaluation.
    """

    def __init__(self):
        init_toolkit()
        self.variables: Dict[str, float] = {}
        self.spectators: Dict[str, float] = {}
        self.methods: Dict[str, Any] = {}

    def add_variable(self, name: str, value: float = 0.0):
        if name in self.variables:
            logger.warning(f"Variable already exists: {name}")
            return
        self.variables[name] = float(value)
        logger.debug(f"Added variable: {name}")

    def add_spectator(self, name: str, value: float = 0.0):
        if name in self.spectators:
            logger.warning(f"Spectator already exists: {name}")
            return
        self.spectators[name] = float(value)
        logger.debug(f"Added spectator: {name}")

    def book_method(self, method_name: str, weight_file: Union[str, Path]):
        """
        Load a trained classifier under ``method_name``.

        The classifier must have been trained on the declared variables.
        """
        if not Path(weight_file).exists():
            raise FileNotFoundError(f"Weight file not found: {weight_file}")

        classifier = load_model(weight_file)
        feature_names = getattr(classifier, "feature_names", None)
        if feature_names and list(feature_names) != list(self.variables):
            raise ValueError(
                f"Method {method_name} was trained on {list(feature_names)}, "
                f"reader declares {list(self.variables)}"
            )

        self.methods[method_name] = classifier
        logger.info(f"Booked method: {method_name} from {weight_file}")

    def set_variable_value(self, name: str, value: float):
        if name in self.variables:
            self.variables[name] = float(value)
        elif name in self.spectators:
            self.spectators[name] = float(value)
        else:
            logger.warning(f"Variable not found: {name}")

    def _classifier(self, method_name: str):
        if method_name not in self.methods:
            raise KeyError(f"Method not booked: {method_name}")
        return self.methods[method_name]

    def evaluate(self, method_name: str) -> float:
        """Score of the currently bound variable values."""
        classifier = self._classifier(method_name)
        X = np.array([list(self.variables.values())], dtype=np.float64)
        return float(classifier.predict_score(X)[0])

    def evaluate_batch(self, method_name: str, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """Scores of many events; columns follow the declared variable order."""
        classifier = self._classifier(method_name)
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2 or X.shape[1] != len(self.variables):
            raise ValueError(
                f"Expected {len(self.variables)} input columns, got shape {X.shape}"
            )
        return classifier.predict_score(X)

    def apply_to_tree(
        self,
        input_file: Union[str, Path],
        tree_name: str,
        method_name: str,
        output_file: Union[str, Path],
        opt_cut: float,
        var_names: Optional[Sequence[str]] = None,
    ) -> int:
        """
        Copy a tree, adding ``<method_name>_output`` = 1.0 for events whose
        score is above ``opt_cut`` and 0.0 otherwise.

        Args:
            input_file: ROOT file holding the tree
            tree_name: Tree to score
            method_name: Booked method to apply
            output_file: ROOT file receiving the scored tree (recreated)
            opt_cut: Score threshold
            var_names: Branches bound to the declared variables, in order
                (defaults to the variable names themselves)

        Returns:
            Number of events passing the cut
        """
        self._classifier(method_name)
        var_names: List[str] = list(var_names) if var_names else list(self.variables)
        if len(var_names) != len(self.variables):
            raise ValueError(
                f"{len(var_names)} branches given for {len(self.variables)} variables"
            )

        events = read_tree(input_file, tree_name)
        missing = [v for v in var_names if v not in events.columns]
        if missing:
            raise KeyError(f"Branches {missing} not found in tree '{tree_name}'")

        logger.info(f"Applying {method_name} to {len(events)} events of {input_file}")
        scores = self.evaluate_batch(method_name, events[var_names])
        events[f"{method_name}_output"] = np.where(scores > opt_cut, 1.0, 0.0)

        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with uproot.recreate(output_path) as root_file:
            write_tree(root_file, tree_name, events)

        n_pass = int((scores > opt_cut).sum())
        logger.info(
            f"Wrote {len(events)} events to {output_path} ({n_pass} passing cut {opt_cut})"
        )
        return n_pass
