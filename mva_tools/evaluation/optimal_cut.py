import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy.interpolate import CubicSpline, PchipInterpolator, make_interp_spline
from scipy.optimize import minimize_scalar

from ..data.loaders import read_signal_background
from ..utils.storage import update_or_insert_by_key
from .metrics import compute_metrics
from .plotting import ResultsPlotter

logger = logging.getLogger(__name__)

INTERPOLATIONS = ("cubic", "pchip", "linear")


@dataclass
class ScoreCurve:
    """Cumulative pass counts and derived metrics at each candidate cut."""

    thresholds: np.ndarray
    tp: np.ndarray
    fp: np.ndarray
    total_signal: float
    efficiency: np.ndarray
    purity: np.ndarray
    fom: np.ndarray


@dataclass
class OptimalCutResult:
    method: str
    cut: float
    fom: float
    efficiency: float
    purity: float
    curve: Optional[ScoreCurve] = field(default=None, repr=False)

    def log_values(self) -> Dict[str, float]:
        """Fields written to the results table."""
        return {
            "MaxCut": self.cut,
            "Efficiency": self.efficiency,
            "Purity": self.purity,
            "FoM": self.fom,
        }


class OptimalCutFinder:
    """
    Find the classifier score cut maximizing FoM = efficiency x purity.

    Scores are histogrammed with ``n_bins`` fixed-width bins over
    ``[min_score, max_score]``; each bin low edge is a candidate cut. The
    sampled efficiency, purity and FoM curves are interpolated so the maximum
    can fall between candidates. The search stops at the last low edge, the
    highest sampled cut.
    """

    def __init__(
        self,
        n_bins: int = 1000,
        min_score: float = -1.0,
        max_score: float = 1.0,
        interpolation: str = "cubic",
        scan_points: Optional[int] = None,
    ):
        """
        Args:
            n_bins: Number of histogram bins (candidate cuts)
            min_score: Lower edge of the score range
            max_score: Upper edge of the score range
            interpolation: 'cubic' spline, shape-preserving 'pchip' or 'linear'
            scan_points: Grid size for the coarse maximum search
                (default: 10 points per bin, at least 1000)
        """
        if n_bins < 2:
            raise ValueError(f"Number of bins must be at least 2, got {n_bins}")
        if min_score >= max_score:
            raise ValueError(
                f"Invalid score range: [{min_score}, {max_score}]"
            )
        if interpolation not in INTERPOLATIONS:
            raise ValueError(
                f"Unknown interpolation '{interpolation}', expected one of {INTERPOLATIONS}"
            )

        self.n_bins = n_bins
        self.min_score = min_score
        self.max_score = max_score
        self.interpolation = interpolation
        self.scan_points = scan_points or max(10 * n_bins, 1000)

    def build_score_curve(
        self, signal_scores: np.ndarray, background_scores: np.ndarray
    ) -> ScoreCurve:
        """Histogram both classes and compute metrics at every bin low edge."""
        score_range = (self.min_score, self.max_score)
        h_signal, edges = np.histogram(signal_scores, bins=self.n_bins, range=score_range)
        h_background, _ = np.histogram(
            background_scores, bins=self.n_bins, range=score_range
        )

        total_signal = float(h_signal.sum())
        if total_signal <= 0:
            raise ValueError("Signal histogram is empty. Cannot compute FoM.")

        # counts at or above each low edge
        tp = np.cumsum(h_signal[::-1])[::-1].astype(np.float64)
        fp = np.cumsum(h_background[::-1])[::-1].astype(np.float64)

        metrics = [compute_metrics(s, b, total_signal) for s, b in zip(tp, fp)]

        return ScoreCurve(
            thresholds=edges[:-1],
            tp=tp,
            fp=fp,
            total_signal=total_signal,
            efficiency=np.array([m.efficiency for m in metrics]),
            purity=np.array([m.purity for m in metrics]),
            fom=np.array([m.fom for m in metrics]),
        )

    def interpolate(self, x: np.ndarray, y: np.ndarray) -> Callable:
        if self.interpolation == "cubic":
            return CubicSpline(x, y)
        if self.interpolation == "pchip":
            return PchipInterpolator(x, y)
        return make_interp_spline(x, y, k=1)

    def _maximize(
        self, fom_spline: Callable, lower: float, upper: float
    ) -> Tuple[float, float]:
        # only where the curve was sampled; above the last low edge is extrapolation
        grid = np.linspace(lower, upper, self.scan_points)
        values = fom_spline(grid)
        # lowest grid point wins ties
        i = int(np.argmax(values))
        best_cut, best_fom = float(grid[i]), float(values[i])

        lo = grid[max(i - 1, 0)]
        hi = grid[min(i + 1, len(grid) - 1)]
        refined = minimize_scalar(
            lambda x: -float(fom_spline(x)), bounds=(lo, hi), method="bounded"
        )
        if refined.success and -refined.fun > best_fom:
            best_cut, best_fom = float(refined.x), float(-refined.fun)

        return best_cut, best_fom

    def find(
        self,
        signal_scores: np.ndarray,
        background_scores: np.ndarray,
        method_name: str = "",
    ) -> OptimalCutResult:
        """Optimal cut for one classifier given the scores of both classes."""
        logger.info("Calculating efficiency, purity, and FoM for candidate cuts...")
        curve = self.build_score_curve(signal_scores, background_scores)

        eff_spline = self.interpolate(curve.thresholds, curve.efficiency)
        pur_spline = self.interpolate(curve.thresholds, curve.purity)
        fom_spline = self.interpolate(curve.thresholds, curve.fom)

        best_cut, best_fom = self._maximize(
            fom_spline, float(curve.thresholds[0]), float(curve.thresholds[-1])
        )

        result = OptimalCutResult(
            method=method_name,
            cut=best_cut,
            fom=best_fom,
            efficiency=float(eff_spline(best_cut)),
            purity=float(pur_spline(best_cut)),
            curve=curve,
        )

        logger.info(
            f"Optimal Cut: {result.cut:.6g} | FoM: {result.fom:.6g} | "
            f"Efficiency: {result.efficiency:.6g} | Purity: {result.purity:.6g}"
        )
        return result

    def find_in_frames(
        self, signal: pd.DataFrame, background: pd.DataFrame, mva_branch: str
    ) -> OptimalCutResult:
        """Optimal cut using the ``mva_branch`` column of Signal/Background tables."""
        for name, df in (("Signal", signal), ("Background", background)):
            if mva_branch not in df.columns:
                raise KeyError(f"Score branch '{mva_branch}' missing from {name}")

        return self.find(
            signal[mva_branch].to_numpy(), background[mva_branch].to_numpy(), mva_branch
        )

    def curve_samples(self, curve: ScoreCurve, n_points: int = 500) -> Dict[str, np.ndarray]:
        """Interpolated efficiency, purity and FoM on a regular grid, for plotting."""
        x = np.linspace(self.min_score, self.max_score, n_points)
        return {
            "score": x,
            "efficiency": self.interpolate(curve.thresholds, curve.efficiency)(x),
            "purity": self.interpolate(curve.thresholds, curve.purity)(x),
            "fom": self.interpolate(curve.thresholds, curve.fom)(x),
        }


def get_optimal_cut(
    input_file: Union[str, Path],
    mva_branch: str,
    plot_file: str = "",
    results_file: str = "",
    results_tree: str = "Performance",
    n_bins: int = 1000,
    min_score: float = -1.0,
    max_score: float = 1.0,
    interpolation: str = "cubic",
) -> float:
    """
    Compute the FoM-maximizing cut on ``mva_branch`` and optionally plot and log it.

    Args:
        input_file: ROOT file with "Signal" and "Background" trees
        mva_branch: Name of the score branch (e.g. "BDT_demo")
        plot_file: Path for the efficiency/purity/FoM plot ("" to skip)
        results_file: HDF5 results file to log into ("" to skip)
        results_tree: Table name inside the results file
        n_bins: Number of histogram bins for discretizing scores
        min_score: Minimum expected score
        max_score: Maximum expected score
        interpolation: Interpolation between candidate cuts

    Returns:
        Optimal cut value
    """
    if not Path(input_file).exists():
        raise FileNotFoundError(f"Input file does not exist or cannot be accessed: {input_file}")

    finder = OptimalCutFinder(n_bins, min_score, max_score, interpolation)

    logger.info(f"Computing optimal cut for MVA branch: {mva_branch}")
    signal, background = read_signal_background(input_file, [mva_branch])
    result = finder.find_in_frames(signal, background, mva_branch)

    if plot_file:
        logger.info(f"Generating FoM visualization: {plot_file}")
        ResultsPlotter().plot_performance_curves(
            finder.curve_samples(result.curve), mva_branch, plot_file, result.cut
        )

    if results_file:
        logger.info(f"Logging results to file: {results_file}")
        update_or_insert_by_key(
            results_file, results_tree, "Method", mva_branch, result.log_values()
        )

    return result.cut
