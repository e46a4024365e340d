"""File-level diagnostic reports built on ResultsPlotter."""

import logging
from pathlib import Path
from typing import Mapping, Union

from ..data.loaders import read_signal_background, read_tree
from .metrics import ConfusionMatrixType, compute_confusion_counts
from .plotting import GRAPH_COLUMNS, AxisScale, GraphType, ResultsPlotter

logger = logging.getLogger(__name__)

CONFUSION_SUFFIXES = {
    ConfusionMatrixType.COUNTS: "_counts",
    ConfusionMatrixType.EFFICIENCY: "_eff",
    ConfusionMatrixType.PURITY: "_pur",
}


def create_confusion_matrix(
    input_file: Union[str, Path],
    mva_branch: str,
    output_dir: Union[str, Path],
    optimal_cut: float,
    matrix_type: Union[str, ConfusionMatrixType] = ConfusionMatrixType.COUNTS,
) -> str:
    """
    Save the confusion matrix of ``mva_branch > optimal_cut`` as
    ``<output_dir>/<mva_branch><_counts|_eff|_pur>_cmat.png``.

    Returns:
        Path to the saved image
    """
    matrix_type = ConfusionMatrixType(matrix_type)
    logger.info(
        f"Generating confusion matrix for method: {mva_branch} | Type: {matrix_type.value}"
    )

    if not Path(input_file).exists():
        raise FileNotFoundError(f"Input ROOT file cannot be accessed: {input_file}")

    signal, background = read_signal_background(input_file, [mva_branch])

    logger.info("Computing classification counts...")
    counts = compute_confusion_counts(
        signal[mva_branch].to_numpy(), background[mva_branch].to_numpy(), optimal_cut
    )

    output_path = Path(output_dir) / (
        f"{mva_branch}{CONFUSION_SUFFIXES[matrix_type]}_cmat.png"
    )
    return ResultsPlotter().plot_confusion_matrix(
        counts.normalized(matrix_type), mva_branch, matrix_type, str(output_path)
    )


def create_mva_score_histogram(
    input_file: Union[str, Path],
    output_dir: Union[str, Path],
    mva_branch: str,
    n_bins: int,
    hist_min: float,
    hist_max: float,
    axis_scale: Union[str, AxisScale] = AxisScale.LINEAR,
) -> str:
    """
    Overlay Signal and Background score histograms, saved as
    ``<output_dir>/<mva_branch>_scoreOverlay_<linear|logy>.png``.
    """
    axis_scale = AxisScale(axis_scale)
    logger.info(
        f"Generating histogram overlay for method: {mva_branch} | Axis Scale: {axis_scale.value}"
    )

    if n_bins <= 0:
        raise ValueError("Number of bins must be greater than zero.")
    if not str(output_dir):
        raise ValueError("Output directory cannot be empty.")
    if not Path(input_file).exists():
        raise FileNotFoundError(f"Input ROOT file cannot be accessed: {input_file}")

    signal, background = read_signal_background(input_file, [mva_branch])
    signal_scores = signal[mva_branch].to_numpy()
    background_scores = background[mva_branch].to_numpy()

    if len(signal_scores):
        logger.info(
            f"Signal Score Range: [{signal_scores.min()}, {signal_scores.max()}]"
        )
    if len(background_scores):
        logger.info(
            f"Background Score Range: [{background_scores.min()}, {background_scores.max()}]"
        )

    output_path = Path(output_dir) / f"{mva_branch}_scoreOverlay_{axis_scale.value}.png"
    return ResultsPlotter().plot_score_distributions(
        signal_scores,
        background_scores,
        mva_branch,
        n_bins,
        hist_min,
        hist_max,
        str(output_path),
        axis_scale,
    )


def create_energy_performance_graph(
    input_file: Union[str, Path],
    method_colors: Mapping[str, str],
    output_file: Union[str, Path],
    graph_type: Union[str, GraphType],
) -> str:
    """
    Plot one metric versus true energy for every method in ``method_colors``,
    reading the "data" tree written by create_energy_binned_data.
    """
    graph_type = GraphType(graph_type)
    logger.info("Generating energy performance graph...")

    if not Path(input_file).exists():
        raise FileNotFoundError(f"Cannot access input ROOT file: {input_file}")

    data = read_tree(input_file, "data")
    if len(data) == 0:
        raise ValueError(f"The tree 'data' is empty in file: {input_file}")

    suffix = GRAPH_COLUMNS[graph_type][0]
    series = {}
    for method_name, color in method_colors.items():
        value_col = f"{method_name}{suffix}"
        error_col = f"{value_col}_err"
        if value_col not in data.columns or error_col not in data.columns:
            raise KeyError(f"Missing metric values for method: {method_name}")
        series[method_name] = (
            data[value_col].to_numpy(),
            data[error_col].to_numpy(),
            color,
        )

    return ResultsPlotter().plot_energy_performance(
        data["binMid"].to_numpy(), series, graph_type, str(output_file)
    )
