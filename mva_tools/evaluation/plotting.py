import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from .metrics import ConfusionMatrixType

logger = logging.getLogger(__name__)


class AxisScale(Enum):
    """Axis scaling for score histograms."""

    LINEAR = "linear"
    LOGY = "logy"


class GraphType(Enum):
    """Metric shown by an energy performance graph."""

    EFFICIENCY = "efficiency"
    PURITY = "purity"
    FOM = "fom"


GRAPH_COLUMNS = {
    GraphType.EFFICIENCY: ("_eff", "Efficiency"),
    GraphType.PURITY: ("_pur", "Purity"),
    GraphType.FOM: ("_fom", "Figure of Merit"),
}


class ResultsPlotter:
    """
    Plots for classifier evaluation: FoM scans, confusion matrices, score
    distributions and energy-binned performance.
    """

    def __init__(self, style: str = "seaborn-v0_8", figsize: Tuple[int, int] = (12, 8)):
        """
        Initialize plotter with styling.

        Args:
            style: Matplotlib style
            figsize: Default figure size
        """
        plt.style.use(style)
        self.figsize = figsize
        sns.set_palette("husl")

    @staticmethod
    def _save(output_path: str) -> str:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        plt.tight_layout()
        plt.savefig(output_file, dpi=150, bbox_inches="tight")
        plt.close()
        return str(output_file)

    def plot_performance_curves(
        self,
        samples: Dict[str, np.ndarray],
        mva_branch: str,
        output_path: str,
        optimal_cut: Optional[float] = None,
    ) -> str:
        """
        Plot efficiency, purity and FoM against the score cut.

        Args:
            samples: Arrays 'score', 'efficiency', 'purity', 'fom'
            mva_branch: Score branch name for the axis title
            output_path: Where to save the plot
            optimal_cut: Marks the chosen cut when given
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        ax.plot(samples["score"], samples["efficiency"], color="red", label="Efficiency")
        ax.plot(samples["score"], samples["purity"], color="blue", label="Purity")
        ax.plot(samples["score"], samples["fom"], color="green", label="FoM")

        if optimal_cut is not None:
            ax.axvline(
                optimal_cut,
                color="black",
                linestyle="--",
                linewidth=1,
                label=f"Optimal cut = {optimal_cut:.4f}",
            )

        ax.set_xlabel(f"{mva_branch} Score", fontsize=12)
        ax.set_ylim(0, 1)
        ax.set_xlim(samples["score"][0], samples["score"][-1])
        ax.legend(loc="lower left", frameon=False)
        ax.grid(True, alpha=0.3)

        saved = self._save(output_path)
        logger.info(f"Saved FoM plot: {saved}")
        return saved

    def plot_confusion_matrix(
        self,
        matrix: np.ndarray,
        mva_branch: str,
        matrix_type: ConfusionMatrixType,
        output_path: str,
    ) -> str:
        """
        Draw a 2x2 confusion matrix (rows = true class, columns = predicted).
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        fmt = ".0f" if matrix_type == ConfusionMatrixType.COUNTS else ".2f"
        labels = ["Signal", "Background"]
        sns.heatmap(
            matrix,
            annot=True,
            fmt=fmt,
            cmap="cool",
            xticklabels=labels,
            yticklabels=labels,
            annot_kws={"size": 20},
            ax=ax,
        )
        ax.set_xlabel("Predicted Class", fontsize=12)
        ax.set_ylabel("True Class", fontsize=12)
        ax.set_title(
            f"{mva_branch} Confusion Matrix ({matrix_type.value.capitalize()})",
            fontsize=14,
        )

        saved = self._save(output_path)
        logger.info(f"Confusion matrix saved to: {saved}")
        return saved

    def plot_score_distributions(
        self,
        signal_scores: np.ndarray,
        background_scores: np.ndarray,
        mva_branch: str,
        n_bins: int,
        hist_min: float,
        hist_max: float,
        output_path: str,
        axis_scale: AxisScale = AxisScale.LINEAR,
    ) -> str:
        """Overlay the Signal and Background score histograms."""
        fig, ax = plt.subplots(figsize=self.figsize)

        bins = np.linspace(hist_min, hist_max, n_bins + 1)
        ax.hist(
            signal_scores,
            bins=bins,
            color="lightskyblue",
            edgecolor="blue",
            alpha=0.7,
            label="Signal",
        )
        ax.hist(
            background_scores,
            bins=bins,
            color="red",
            edgecolor="red",
            histtype="step",
            hatch="///",
            linewidth=1.5,
            label="Background",
        )

        ax.set_xlabel(f"{mva_branch} Score", fontsize=12)
        ax.set_ylabel("# of Events", fontsize=12)
        ax.legend(loc="upper right", frameon=False)

        if axis_scale == AxisScale.LOGY:
            ax.set_yscale("log")
        else:
            ymax = ax.get_ylim()[1]
            ax.set_ylim(0, ymax * 1.2)

        saved = self._save(output_path)
        logger.info(f"Saved score histogram: {saved}")
        return saved

    def plot_energy_performance(
        self,
        bin_mid: np.ndarray,
        series: Dict[str, Tuple[np.ndarray, np.ndarray, str]],
        graph_type: GraphType,
        output_path: str,
        highlight: str = "BDT_GradBoost",
    ) -> str:
        """
        Plot one metric versus true energy for several methods.

        Args:
            bin_mid: Energy bin centres
            series: method name -> (values, errors, color)
            graph_type: Metric being shown (for the axis title)
            output_path: Where to save the plot
            highlight: Methods whose name starts with this are drawn bold
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        for method_name, (values, errors, color) in series.items():
            label = method_name.split("_N")[0]
            is_highlight = method_name.startswith(highlight)
            ax.errorbar(
                bin_mid,
                values,
                yerr=errors,
                color=color,
                marker="s",
                markersize=6,
                linewidth=3 if is_highlight else 1,
                capsize=3,
                label=rf"$\bf{{{label}}}$".replace("_", r"\_") if is_highlight else label,
            )

        axis_title = GRAPH_COLUMNS[graph_type][1]
        ax.set_xlabel("True Neutrino Energy [GeV]", fontsize=14)
        ax.set_ylabel(f"Signal {axis_title}", fontsize=14)
        ax.set_ylim(0.2, 1.0)
        ax.grid(True, alpha=0.3)
        ax.legend(
            loc="lower center",
            bbox_to_anchor=(0.5, 1.0),
            ncol=5,
            frameon=False,
        )

        saved = self._save(output_path)
        logger.info(f"Energy performance graph saved to: {saved}")
        return saved
