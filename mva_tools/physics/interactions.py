import logging
from enum import Enum
from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd

from ..data.loaders import EventTreeLoader
from ..data.selectors import split_dataframe, write_signal_background

logger = logging.getLogger(__name__)

CVN_BRANCHES = ["CVNScoreNuE", "CVNScoreNuMu", "CVNScoreNC"]
DEFAULT_EXCLUSION = "CVNScoreNuE != -999"


class InteractionType(Enum):
    """Neutrino interaction class used as the signal hypothesis."""

    NUE = "NuE"
    NUMU = "NuMu"
    NC = "NC"


SIGNAL_FILTERS = {
    InteractionType.NUE: "(TrueNuPdg == 12 || TrueNuPdg == -12) && IsCC",
    InteractionType.NUMU: "(TrueNuPdg == 14 || TrueNuPdg == -14) && IsCC",
    InteractionType.NC: "!IsCC",
}


def signal_filter_for(signal_type: Union[str, InteractionType]) -> str:
    """Truth-level selection expression for an interaction type."""
    return SIGNAL_FILTERS[InteractionType(signal_type)]


def cvn_max_prediction(events: pd.DataFrame, signal_type: InteractionType) -> np.ndarray:
    """
    1.0 where the highest CVN score belongs to ``signal_type``, else 0.0.

    Ties resolve in the order NuMu, NuE, NC: a later class wins only with a
    strictly larger score.
    """
    nue = events["CVNScoreNuE"].to_numpy()
    numu = events["CVNScoreNuMu"].to_numpy()
    nc = events["CVNScoreNC"].to_numpy()

    predicted = np.full(len(events), InteractionType.NUMU.value, dtype=object)
    max_score = numu.copy()

    is_nue = nue > max_score
    predicted[is_nue] = InteractionType.NUE.value
    max_score = np.where(is_nue, nue, max_score)

    is_nc = nc > max_score
    predicted[is_nc] = InteractionType.NC.value

    return (predicted == signal_type.value).astype(np.float64)


def linear_cut_prediction(events: pd.DataFrame, signal_type: InteractionType) -> np.ndarray:
    """Rectangular cut on the two non-signal CVN scores, 1.0 when passed."""
    nue = events["CVNScoreNuE"]
    numu = events["CVNScoreNuMu"]
    nc = events["CVNScoreNC"]

    if signal_type == InteractionType.NUE:
        passed = (numu < 0.14) & (nc < 0.45)
    elif signal_type == InteractionType.NUMU:
        passed = (nue < 0.3) & (nc < 0.43)
    else:
        passed = (nue < 0.49) & (numu < 0.46)

    return passed.to_numpy().astype(np.float64)


def add_cvn_columns(events: pd.DataFrame, signal_type: InteractionType) -> pd.DataFrame:
    """Return a copy of ``events`` with ``CVNMax_<type>`` and ``LinearCut_<type>``."""
    missing = [b for b in CVN_BRANCHES if b not in events.columns]
    if missing:
        raise KeyError(f"CVN score branches missing: {missing}")

    augmented = events.copy()
    augmented[f"CVNMax_{signal_type.value}"] = cvn_max_prediction(events, signal_type)
    augmented[f"LinearCut_{signal_type.value}"] = linear_cut_prediction(
        events, signal_type
    )
    return augmented


def filter_input_data(
    input_file: Union[str, Path],
    input_tree_name: str,
    output_file: Union[str, Path],
    branches_to_keep: List[str],
    signal_type: Union[str, InteractionType],
    include_cvn_max: bool = False,
    exclusion_filter: str = DEFAULT_EXCLUSION,
    chunk_size: int = 100000,
):
    """
    Split an analysis tree into Signal/Background for one interaction type.

    Events without CVN scores are excluded. With ``include_cvn_max`` the
    CVN arg-max and linear-cut decisions are added as extra branches so they
    can be compared against trained classifiers.
    """
    if not Path(input_file).exists():
        raise FileNotFoundError(f"Input file does not exist: {input_file}")

    signal_type = InteractionType(signal_type)
    signal_filter = signal_filter_for(signal_type)

    events = EventTreeLoader(str(input_file), input_tree_name).load(chunk_size=chunk_size)

    final_branches = list(branches_to_keep)
    if include_cvn_max:
        events = add_cvn_columns(events, signal_type)
        final_branches += [
            f"CVNMax_{signal_type.value}",
            f"LinearCut_{signal_type.value}",
        ]

    missing = [b for b in final_branches if b not in events.columns]
    if missing:
        raise KeyError(
            f"Branches {missing} not found in tree '{input_tree_name}' of {input_file}"
        )

    signal, background = split_dataframe(events, signal_filter, exclusion_filter)
    write_signal_background(output_file, signal, background, final_branches)

    logger.info(f"Filtered data written to: {output_file}")
    return len(signal), len(background)
