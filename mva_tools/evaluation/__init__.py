from .binned import EnergyBinnedAggregator, create_energy_binned_data
from .metrics import (
    ConfusionCounts,
    ConfusionMatrixType,
    MethodMetrics,
    compute_confusion_counts,
    compute_metrics,
)
from .optimal_cut import OptimalCutFinder, OptimalCutResult, ScoreCurve, get_optimal_cut
from .plotting import AxisScale, GraphType, ResultsPlotter
from .reports import (
    create_confusion_matrix,
    create_energy_performance_graph,
    create_mva_score_histogram,
)

__all__ = [
    "MethodMetrics",
    "compute_metrics",
    "ConfusionCounts",
    "ConfusionMatrixType",
    "compute_confusion_counts",
    "OptimalCutFinder",
    "OptimalCutResult",
    "ScoreCurve",
    "get_optimal_cut",
    "EnergyBinnedAggregator",
    "create_energy_binned_data",
    "ResultsPlotter",
    "AxisScale",
    "GraphType",
    "create_confusion_matrix",
    "create_mva_score_histogram",
    "create_energy_performance_graph",
]
