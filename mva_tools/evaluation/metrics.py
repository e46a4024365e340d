import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class MethodMetrics:
    """Efficiency, purity, FoM and their statistical errors for one selection."""

    efficiency: float = 0.0
    purity: float = 0.0
    fom: float = 0.0
    eff_err: float = 0.0
    pur_err: float = 0.0
    fom_err: float = 0.0

    def as_columns(self, method_name: str) -> Dict[str, float]:
        """Flatten into ``<method>_eff``, ``<method>_eff_err``, ... columns."""
        return {
            f"{method_name}_eff": self.efficiency,
            f"{method_name}_eff_err": self.eff_err,
            f"{method_name}_pur": self.purity,
            f"{method_name}_pur_err": self.pur_err,
            f"{method_name}_fom": self.fom,
            f"{method_name}_fom_err": self.fom_err,
        }

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def compute_metrics(n_sig: float, n_bkg: float, total_signal: float) -> MethodMetrics:
    """
    Performance of a selection from its pass counts.

    Efficiency and purity are

        eff = n_sig / total_signal,    pur = n_sig / (n_sig + n_bkg)

    with binomial errors, and FoM = eff * pur with the errors propagated as
    if eff and pur were independent. Zero denominators give 0.0.

    Args:
        n_sig: Signal events passing the selection
        n_bkg: Background events passing the selection
        total_signal: All signal events before the selection

    Returns:
        MethodMetrics for the selection
    """
    n_pass = n_sig + n_bkg

    efficiency = n_sig / total_signal if total_signal > 0 else 0.0
    purity = n_sig / n_pass if n_pass > 0 else 0.0
    fom = efficiency * purity

    eff_err = (
        math.sqrt(efficiency * (1 - efficiency) / total_signal)
        if total_signal > 0
        else 0.0
    )
    pur_err = math.sqrt(purity * (1 - purity) / n_pass) if n_pass > 0 else 0.0
    fom_err = math.sqrt((purity * eff_err) ** 2 + (efficiency * pur_err) ** 2)

    return MethodMetrics(
        efficiency=efficiency,
        purity=purity,
        fom=fom,
        eff_err=eff_err,
        pur_err=pur_err,
        fom_err=fom_err,
    )


class ConfusionMatrixType(Enum):
    """Normalization of a confusion matrix."""

    COUNTS = "counts"  # raw event counts
    EFFICIENCY = "efficiency"  # rows normalized by true class
    PURITY = "purity"  # columns normalized by predicted class


@dataclass
class ConfusionCounts:
    tp: float
    fn: float
    fp: float
    tn: float

    @property
    def total_signal(self) -> float:
        return self.tp + self.fn

    @property
    def total_background(self) -> float:
        return self.fp + self.tn

    def normalized(self, matrix_type: ConfusionMatrixType) -> np.ndarray:
        """
        2x2 matrix, rows = true class (Signal, Background), columns =
        predicted class (Signal, Background).
        """
        tp, fn, fp, tn = self.tp, self.fn, self.fp, self.tn

        if matrix_type == ConfusionMatrixType.EFFICIENCY:
            sig, bkg = self.total_signal, self.total_background
            tp, fn = (tp / sig, fn / sig) if sig > 0 else (0.0, 0.0)
            fp, tn = (fp / bkg, tn / bkg) if bkg > 0 else (0.0, 0.0)
        elif matrix_type == ConfusionMatrixType.PURITY:
            pred_sig, pred_bkg = tp + fp, tn + fn
            tp, fp = (tp / pred_sig, fp / pred_sig) if pred_sig > 0 else (0.0, 0.0)
            fn, tn = (fn / pred_bkg, tn / pred_bkg) if pred_bkg > 0 else (0.0, 0.0)

        return np.array([[tp, fn], [fp, tn]], dtype=np.float64)


def compute_confusion_counts(
    signal_scores: np.ndarray, background_scores: np.ndarray, cut: float
) -> ConfusionCounts:
    """Classify events with ``score > cut`` as signal and count the outcomes."""
    signal_scores = np.asarray(signal_scores)
    background_scores = np.asarray(background_scores)

    total_signal = float(len(signal_scores))
    total_background = float(len(background_scores))
    if total_signal == 0 or total_background == 0:
        raise ValueError(
            "Signal or Background dataset is empty. Cannot build confusion matrix."
        )

    tp = float(np.count_nonzero(signal_scores > cut))
    fp = float(np.count_nonzero(background_scores > cut))
    counts = ConfusionCounts(
        tp=tp, fn=total_signal - tp, fp=fp, tn=total_background - fp
    )

    logger.info(
        f"TP: {counts.tp:.0f} | FN: {counts.fn:.0f} | FP: {counts.fp:.0f} | TN: {counts.tn:.0f}"
    )
    return counts
