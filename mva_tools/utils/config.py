import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

KNOWN_METHOD_TYPES = ("MLP", "BDT", "XGBoost")


@dataclass
class DataConfig:
    """Input data and Signal/Background split config."""

    input_file: Optional[str] = None
    input_tree: str = "analysistree/atmoOutput"
    filtered_file: str = "data/filtered_data/filtered.root"
    branches_to_keep: List[str] = field(
        default_factory=lambda: ["CVNScoreNuE", "CVNScoreNuMu", "CVNScoreNC", "TrueNuE"]
    )
    interaction_type: str = "NuMu"  # NuE, NuMu, NC
    include_cvn_max: bool = False
    signal_filter: Optional[str] = None  # overrides interaction_type when set
    exclusion_filter: str = "CVNScoreNuE != -999"
    chunk_size: int = 100000


@dataclass
class TrainingConfig:
    """Classifier training configuration."""

    method_suffix: str = "demo"
    filtered_file_name: str = "filtered.root"
    input_variables: List[str] = field(
        default_factory=lambda: ["CVNScoreNuE", "CVNScoreNuMu", "CVNScoreNC"]
    )
    spectators: List[str] = field(default_factory=lambda: ["TrueNuE"])
    train_ratio: float = 0.3
    random_state: int = 42
    n_threads: Optional[int] = None

    methods: List[Dict[str, Any]] = field(
        default_factory=lambda: [
            {
                "type": "MLP",
                "name": "MLP",
                "options": "!H:!V:NeuronType=tanh:NCycles=600:HiddenLayers=3:TestRate=5",
            },
            {
                "type": "BDT",
                "name": "BDT_AdaBoost",
                "options": "!H:!V:NTrees=800:MinNodeSize=5%:MaxDepth=3:BoostType=AdaBoost:AdaBoostBeta=0.3",
            },
            {
                "type": "BDT",
                "name": "BDT_GradBoost",
                "options": "!H:!V:NTrees=1000:MinNodeSize=7%:MaxDepth=2:BoostType=Grad:Shrinkage=0.1:UseBaggedBoost:BaggedSampleFraction=0.5",
            },
        ]
    )


@dataclass
class EvaluationConfig:
    """Optimal cut and performance report configuration."""

    n_bins: int = 1000
    min_score: float = -1.0
    max_score: float = 1.0
    interpolation: str = "cubic"  # cubic, pchip, linear
    results_file: str = "ModelResults.h5"
    results_tree: str = "Performance"
    energy_branch: str = "TrueNuE"
    energy_bin_edges: List[float] = field(
        default_factory=lambda: [0.0, 1.0, 2.0, 4.0, 6.0, 8.0, 10.0]
    )
    score_hist_bins: int = 50
    confusion_matrix_type: str = "efficiency"  # counts, efficiency, purity
    axis_scale: str = "linear"  # linear, logy


@dataclass
class AnalysisConfig:
    """Full analysis config."""

    data: DataConfig = field(default_factory=DataConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    output_dir: str = "output/demo"
    log_level: str = "INFO"
    experiment_name: str = "nu_flavour_classification"


class ConfigManager:
    """Manage config loading, saving, and validation."""

    @staticmethod
    def load_config(config_path: str) -> AnalysisConfig:
        """
        Load config from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            AnalysisConfig object
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        data_config = DataConfig(**config_dict.get("data", {}))
        training_config = TrainingConfig(**config_dict.get("training", {}))
        evaluation_config = EvaluationConfig(**config_dict.get("evaluation", {}))

        top_level = {
            k: v
            for k, v in config_dict.items()
            if k not in ["data", "training", "evaluation"]
        }

        analysis_config = AnalysisConfig(
            data=data_config,
            training=training_config,
            evaluation=evaluation_config,
            **top_level,
        )

        logger.info(f"Loaded configuration from {config_path}")
        return analysis_config

    @staticmethod
    def save_config(config: AnalysisConfig, output_path: str):
        """
        Save configuration to YAML file.

        Args:
            config: AnalysisConfig object to save
            output_path: Path where to save the YAML file
        """
        config_dict = asdict(config)

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, "w") as f:
            yaml.dump(
                config_dict, f, default_flow_style=False, indent=2, sort_keys=False
            )

        logger.info(f"Saved configuration to {output_path}")

    @staticmethod
    def create_default_config() -> AnalysisConfig:
        """Create configuration with default values."""
        return AnalysisConfig()

    @staticmethod
    def validate_config(config: AnalysisConfig) -> List[str]:
        """
        Validate config and return list of issues.

        Args:
            config: Config to validate

        Returns:
            List of error messages (empty if valid)
        """
        issues = []

        if not config.output_dir:
            issues.append("output_dir cannot be empty")

        if config.data.chunk_size <= 0:
            issues.append("Data chunk_size must be positive")

        if config.data.interaction_type not in ("NuE", "NuMu", "NC"):
            issues.append(
                f"Unknown interaction_type: {config.data.interaction_type}"
            )

        if not 0 < config.training.train_ratio < 1:
            issues.append("Training train_ratio must be between 0 and 1")

        if not config.training.input_variables:
            issues.append("Training input_variables cannot be empty")

        for method in config.training.methods:
            if method.get("type") not in KNOWN_METHOD_TYPES:
                issues.append(f"Unknown method type: {method.get('type')}")
            if not method.get("name"):
                issues.append("Every method needs a name")

        if config.evaluation.n_bins < 2:
            issues.append("Evaluation n_bins must be at least 2")

        if config.evaluation.score_hist_bins <= 0:
            issues.append("Evaluation score_hist_bins must be positive")

        if config.evaluation.min_score >= config.evaluation.max_score:
            issues.append("Evaluation min_score must be below max_score")

        edges = config.evaluation.energy_bin_edges
        if len(edges) < 2:
            issues.append("Energy bin list must contain at least two entries")
        elif any(lo >= hi for lo, hi in zip(edges[:-1], edges[1:])):
            issues.append("Energy bin edges must be strictly increasing")

        if config.evaluation.interpolation not in ("cubic", "pchip", "linear"):
            issues.append(
                f"Unknown interpolation: {config.evaluation.interpolation}"
            )

        if config.data.input_file and not Path(config.data.input_file).exists():
            issues.append(f"Missing input file: {config.data.input_file}")

        return issues
