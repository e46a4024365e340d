__version__ = "1.0.0"
__description__ = (
    "Signal/Background classification, optimal cuts and performance reports "
    "for neutrino interaction analyses"
)

from .data.selectors import FilterExpression, split_tree_by_filter
from .evaluation.binned import EnergyBinnedAggregator, create_energy_binned_data
from .evaluation.metrics import compute_metrics
from .evaluation.optimal_cut import OptimalCutFinder, get_optimal_cut
from .physics.interactions import InteractionType, filter_input_data
from .pipeline.analysis import AnalysisPipeline
from .pipeline.inference import ModelReader
from .pipeline.training import TrainingPipeline
from .utils.storage import update_or_insert_by_key

__all__ = [
    "FilterExpression",
    "split_tree_by_filter",
    "compute_metrics",
    "OptimalCutFinder",
    "get_optimal_cut",
    "EnergyBinnedAggregator",
    "create_energy_binned_data",
    "update_or_insert_by_key",
    "InteractionType",
    "filter_input_data",
    "TrainingPipeline",
    "ModelReader",
    "AnalysisPipeline",
]
