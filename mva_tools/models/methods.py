import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Union

logger = logging.getLogger(__name__)


class MethodType(Enum):
    """Classifier families that can be booked for training."""

    MLP = "MLP"
    BDT = "BDT"
    XGBOOST = "XGBoost"


def _convert_option(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


def parse_method_options(options: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """
    Parse a ``Key=Value:Flag:!Flag`` option string into a dict.

    A bare ``Flag`` becomes True and ``!Flag`` False; numeric values are
    converted. Dicts are returned as a copy.

    >>> parse_method_options("!H:NTrees=800:MinNodeSize=5%:UseBaggedBoost")
    {'H': False, 'NTrees': 800, 'MinNodeSize': '5%', 'UseBaggedBoost': True}
    """
    if options is None:
        return {}
    if isinstance(options, dict):
        return dict(options)

    parsed: Dict[str, Any] = {}
    for token in options.split(":"):
        token = token.strip()
        if not token:
            continue
        if "=" in token:
            key, value = token.split("=", 1)
            parsed[key.strip()] = _convert_option(value.strip())
        elif token.startswith("!"):
            parsed[token[1:]] = False
        else:
            parsed[token] = True
    return parsed


@dataclass
class MethodConfig:
    """Type, base name and hyperparameters of one classifier."""

    type: Union[MethodType, str]
    name: str
    options: Union[str, Dict[str, Any]] = ""

    def __post_init__(self):
        self.type = MethodType(self.type)
        if not self.name:
            raise ValueError("Method name cannot be empty")

    @property
    def parsed_options(self) -> Dict[str, Any]:
        return parse_method_options(self.options)

    def unique_name(self, suffix: str) -> str:
        return f"{self.name}_{suffix}" if suffix else self.name

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "MethodConfig":
        return cls(
            type=config["type"], name=config["name"], options=config.get("options", "")
        )


def build_classifier(
    config: MethodConfig, feature_names: List[str], random_state: int = 42
):
    """Instantiate the untrained classifier described by ``config``."""
    # imported here so that each backend is only loaded when booked
    if config.type == MethodType.BDT:
        from .boosted_trees import BoostedDecisionTree

        return BoostedDecisionTree(config.parsed_options, feature_names, random_state)
    if config.type == MethodType.XGBOOST:
        from .xgboost_model import XGBoostClassifier

        return XGBoostClassifier(config.parsed_options, feature_names, random_state)

    from .neural_networks import NeuralNetworkClassifier

    return NeuralNetworkClassifier(config.parsed_options, feature_names, random_state)
