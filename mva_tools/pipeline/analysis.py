import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..data.selectors import split_tree_by_filter
from ..evaluation.binned import create_energy_binned_data
from ..evaluation.metrics import ConfusionMatrixType
from ..evaluation.optimal_cut import get_optimal_cut
from ..evaluation.plotting import GraphType
from ..evaluation.reports import (
    create_confusion_matrix,
    create_energy_performance_graph,
    create_mva_score_histogram,
)
from ..models.methods import MethodConfig
from ..physics.interactions import filter_input_data
from ..utils.config import AnalysisConfig
from ..utils.io import save_results
from .inference import ModelReader
from .training import TrainingPipeline

logger = logging.getLogger(__name__)

METHOD_COLORS = ["red", "blue", "green", "orange", "purple", "brown", "magenta"]

GRAPH_FILES = {
    GraphType.EFFICIENCY: "EnergyVsEfficiency.png",
    GraphType.PURITY: "EnergyVsPurity.png",
    GraphType.FOM: "EnergyVsFoM.png",
}


class AnalysisPipeline:
    """
    End-to-end classification analysis: split the input events, train the
    configured classifiers, choose each one's optimal cut and produce the
    diagnostic reports.
    """

    def __init__(self, config: AnalysisConfig):
        self.config = config
        self.output_dir = Path(config.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def prepare_data(self) -> str:
        """Split ``data.input_file`` into the Signal/Background file used for training."""
        data = self.config.data
        if not data.input_file:
            raise ValueError("data.input_file must be set to split raw events")

        logger.info(f"Splitting {data.input_file} into {data.filtered_file}")
        if data.signal_filter:
            split_tree_by_filter(
                data.input_file,
                data.input_tree,
                data.filtered_file,
                data.branches_to_keep,
                data.signal_filter,
                data.exclusion_filter,
                chunk_size=data.chunk_size,
            )
        else:
            filter_input_data(
                data.input_file,
                data.input_tree,
                data.filtered_file,
                data.branches_to_keep,
                data.interaction_type,
                include_cvn_max=data.include_cvn_max,
                exclusion_filter=data.exclusion_filter,
                chunk_size=data.chunk_size,
            )
        return data.filtered_file

    def run(self, data_file: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Run the full analysis.

        Args:
            data_file: Signal/Background ROOT file to train on. Defaults to
                ``data.filtered_file``, produced from ``data.input_file``
                first when that is set.

        Returns:
            Summary with the optimal cut and output files of every method
        """
        start_time = time.time()
        logger.info(f"Starting analysis '{self.config.experiment_name}' in {self.output_dir}")
        training = self.config.training
        evaluation = self.config.evaluation

        if data_file is None:
            if self.config.data.input_file:
                data_file = self.prepare_data()
            else:
                data_file = self.config.data.filtered_file

        if not Path(data_file).exists():
            raise FileNotFoundError(f"Analysis input file not found: {data_file}")

        logger.info("Step 1: Training classifiers")
        trainer = TrainingPipeline(
            self.output_dir, training.random_state, training.n_threads
        )
        methods = [MethodConfig.from_dict(m) for m in training.methods]
        training_results = trainer.train_classification_model(
            training.method_suffix,
            data_file,
            training.filtered_file_name,
            training.input_variables,
            training.spectators,
            methods,
            training.train_ratio,
        )
        scored_file = training_results["filtered_file"]
        method_names = list(training_results["methods"])

        logger.info("Step 2: Computing optimal cuts")
        results_file = str(self.output_dir / evaluation.results_file)
        cuts = {}
        for name in method_names:
            cuts[name] = get_optimal_cut(
                scored_file,
                name,
                plot_file=str(trainer.plots_dir / f"{name}_FoM.png"),
                results_file=results_file,
                results_tree=evaluation.results_tree,
                n_bins=evaluation.n_bins,
                min_score=evaluation.min_score,
                max_score=evaluation.max_score,
                interpolation=evaluation.interpolation,
            )
            logger.info(f"Optimal cut for {name}: {cuts[name]:.4f}")

        logger.info("Step 3: Confusion matrices and score distributions")
        reports: Dict[str, Dict[str, str]] = {name: {} for name in method_names}
        for name in method_names:
            reports[name]["confusion_matrix"] = create_confusion_matrix(
                scored_file,
                name,
                trainer.plots_dir,
                cuts[name],
                ConfusionMatrixType(evaluation.confusion_matrix_type),
            )
            reports[name]["score_histogram"] = create_mva_score_histogram(
                scored_file,
                trainer.plots_dir,
                name,
                evaluation.score_hist_bins,
                evaluation.min_score,
                evaluation.max_score,
                evaluation.axis_scale,
            )

        logger.info("Step 4: Energy-binned performance")
        energy_file = self.output_dir / "energyBins.root"
        create_energy_binned_data(
            scored_file,
            energy_file,
            cuts,
            evaluation.energy_bin_edges,
            evaluation.energy_branch,
        )

        method_colors = {
            name: METHOD_COLORS[i % len(METHOD_COLORS)]
            for i, name in enumerate(method_names)
        }
        graphs = {}
        for graph_type, file_name in GRAPH_FILES.items():
            graphs[graph_type.value] = create_energy_performance_graph(
                energy_file, method_colors, trainer.plots_dir / file_name, graph_type
            )

        logger.info("Step 5: Booking trained classifier for application")
        reader = ModelReader()
        for variable in training.input_variables:
            reader.add_variable(variable)
        for spectator in training.spectators:
            reader.add_spectator(spectator)
        booked = method_names[0]
        reader.book_method(booked, training_results["methods"][booked]["weight_file"])

        summary = {
            "experiment_name": self.config.experiment_name,
            "data_file": str(data_file),
            "scored_file": scored_file,
            "results_file": results_file,
            "energy_file": str(energy_file),
            "optimal_cuts": cuts,
            "training": training_results["methods"],
            "reports": reports,
            "energy_graphs": graphs,
            "booked_method": booked,
            "processing_time": time.time() - start_time,
        }
        save_results(summary, str(self.output_dir / "analysis_summary.json"))

        logger.info(f"Analysis complete in {summary['processing_time']:.1f}s")
        self.reader = reader
        return summary
