import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
import uproot

from mva_tools.data.selectors import write_signal_background
from mva_tools.utils.io import write_tree

CVN_COLUMNS = ["CVNScoreNuE", "CVNScoreNuMu", "CVNScoreNC"]


def make_raw_events(n_events: int = 2000, seed: int = 1234) -> pd.DataFrame:
    """Analysis-tree-like events with truth labels and CVN scores."""
    rng = np.random.default_rng(seed)
    cvn = rng.dirichlet([1.0, 1.0, 1.0], size=n_events)
    events = pd.DataFrame(
        {
            "TrueNuPdg": rng.choice([12, -12, 14, -14], size=n_events).astype(np.int32),
            "IsCC": rng.random(n_events) < 0.7,
            "CVNScoreNuE": cvn[:, 0],
            "CVNScoreNuMu": cvn[:, 1],
            "CVNScoreNC": cvn[:, 2],
            "TrueNuE": rng.uniform(0.0, 10.0, n_events),
        }
    )
    # events without a CVN evaluation
    missing = rng.random(n_events) < 0.05
    events.loc[missing, "CVNScoreNuE"] = -999.0
    return events


def make_scored_samples(
    n_signal: int = 3000, n_background: int = 6000, seed: int = 42
):
    """Signal scores around +0.4 and background scores around -0.4."""
    rng = np.random.default_rng(seed)

    def sample(mean, n):
        return pd.DataFrame(
            {
                "BDT_demo": np.clip(rng.normal(mean, 0.2, n), -0.999, 0.999),
                "MLP_demo": np.clip(rng.normal(mean * 0.5, 0.3, n), -0.999, 0.999),
                "TrueNuE": rng.uniform(0.0, 10.0, n),
            }
        )

    return sample(0.4, n_signal), sample(-0.4, n_background)


def make_training_samples(n_signal: int = 300, n_background: int = 600, seed: int = 7):
    """CVN-like inputs where signal prefers a high NuMu score."""
    rng = np.random.default_rng(seed)
    signal_cvn = rng.dirichlet([1.0, 4.0, 1.0], size=n_signal)
    background_cvn = rng.dirichlet([3.0, 1.0, 3.0], size=n_background)

    def frame(cvn):
        return pd.DataFrame(
            {
                "CVNScoreNuE": cvn[:, 0],
                "CVNScoreNuMu": cvn[:, 1],
                "CVNScoreNC": cvn[:, 2],
                "TrueNuE": rng.uniform(0.0, 10.0, len(cvn)),
            }
        )

    return frame(signal_cvn), frame(background_cvn)


@pytest.fixture
def raw_events():
    return make_raw_events()


@pytest.fixture
def raw_events_file(tmp_path, raw_events):
    path = tmp_path / "raw.root"
    with uproot.recreate(path) as root_file:
        write_tree(root_file, "events", raw_events)
    return path


@pytest.fixture
def scored_samples():
    return make_scored_samples()


@pytest.fixture
def scored_file(tmp_path, scored_samples):
    signal, background = scored_samples
    path = tmp_path / "scored.root"
    write_signal_background(path, signal, background, list(signal.columns))
    return path


@pytest.fixture
def training_samples():
    return make_training_samples()


@pytest.fixture
def training_file(tmp_path, training_samples):
    signal, background = training_samples
    path = tmp_path / "train_input.root"
    write_signal_background(path, signal, background, list(signal.columns))
    return path
