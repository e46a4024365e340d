import numpy as np
import pandas as pd
import pytest

from mva_tools.evaluation.metrics import compute_metrics
from mva_tools.evaluation.optimal_cut import OptimalCutFinder, get_optimal_cut
from mva_tools.utils.storage import read_keyed_table


def test_score_curve_counts_and_monotonic_efficiency(scored_samples):
    signal, background = scored_samples
    finder = OptimalCutFinder(n_bins=200)

    curve = finder.build_score_curve(
        signal["BDT_demo"].to_numpy(), background["BDT_demo"].to_numpy()
    )

    assert len(curve.thresholds) == 200
    assert curve.thresholds[0] == pytest.approx(-1.0)
    assert curve.tp[0] == len(signal)
    assert curve.fp[0] == len(background)
    assert np.all(np.diff(curve.tp) <= 0)
    assert np.all(np.diff(curve.fp) <= 0)
    assert np.all(np.diff(curve.efficiency) <= 1e-12)
    np.testing.assert_allclose(curve.fom, curve.efficiency * curve.purity)


def test_optimal_cut_between_population_means(scored_samples):
    signal, background = scored_samples
    sig_scores = signal["BDT_demo"].to_numpy()
    bkg_scores = background["BDT_demo"].to_numpy()

    result = OptimalCutFinder(n_bins=1000).find(sig_scores, bkg_scores, "BDT_demo")

    assert -0.4 < result.cut < 0.4
    assert result.method == "BDT_demo"
    assert result.fom == pytest.approx(result.efficiency * result.purity, abs=0.02)

    # FoM at the extreme candidate cuts, from the raw counts
    low = compute_metrics(len(sig_scores), len(bkg_scores), len(sig_scores))
    top = OptimalCutFinder(n_bins=1000).build_score_curve(sig_scores, bkg_scores)
    assert result.fom > low.fom
    assert result.fom > top.fom[-1]


@pytest.mark.parametrize("interpolation", ["cubic", "pchip", "linear"])
def test_interpolation_choices_agree(scored_samples, interpolation):
    signal, background = scored_samples
    finder = OptimalCutFinder(n_bins=500, interpolation=interpolation)
    result = finder.find_in_frames(signal, background, "BDT_demo")

    assert -0.4 < result.cut < 0.4
    assert 0.8 < result.fom <= 1.0


def test_empty_signal_raises():
    finder = OptimalCutFinder(n_bins=100)
    with pytest.raises(ValueError, match="Signal histogram is empty"):
        finder.build_score_curve(np.array([]), np.array([0.1, 0.2]))


def test_cut_stays_within_sampled_thresholds():
    rng = np.random.default_rng(7)
    signal = np.full(500, 0.95)
    background = rng.uniform(-1.0, 1.0, 2000)

    finder = OptimalCutFinder(n_bins=10)
    result = finder.find(signal, background, "edge_case")

    assert result.curve.thresholds[0] <= result.cut <= result.curve.thresholds[-1]
    assert result.fom <= 1.0

    # signal entirely outside the score range
    with pytest.raises(ValueError):
        finder.build_score_curve(np.array([5.0, 6.0]), np.array([0.1]))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n_bins": 0},
        {"n_bins": 1},
        {"min_score": 1.0, "max_score": 1.0},
        {"min_score": 1.0, "max_score": -1.0},
        {"interpolation": "quadratic"},
    ],
)
def test_invalid_finder_arguments(kwargs):
    with pytest.raises(ValueError):
        OptimalCutFinder(**kwargs)


def test_missing_score_column_raises():
    frame = pd.DataFrame({"other": [0.1, 0.2]})
    with pytest.raises(KeyError):
        OptimalCutFinder().find_in_frames(frame, frame, "BDT_demo")


def test_get_optimal_cut_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_optimal_cut(tmp_path / "missing.root", "BDT_demo")


def test_get_optimal_cut_plots_and_logs(tmp_path, scored_file):
    plot_file = tmp_path / "plots" / "BDT_demo_FoM.png"
    results_file = tmp_path / "ModelResults.h5"

    cut = get_optimal_cut(
        scored_file,
        "BDT_demo",
        plot_file=str(plot_file),
        results_file=str(results_file),
        n_bins=500,
    )
    get_optimal_cut(scored_file, "MLP_demo", results_file=str(results_file), n_bins=500)

    assert plot_file.exists()
    table = read_keyed_table(results_file, "Performance")
    assert list(table.columns) == ["Method", "MaxCut", "Efficiency", "Purity", "FoM"]
    assert list(table["Method"]) == ["BDT_demo", "MLP_demo"]

    bdt = table[table["Method"] == "BDT_demo"].iloc[0]
    assert bdt["MaxCut"] == pytest.approx(cut)
    assert 0.0 < bdt["Efficiency"] <= 1.0

    # rerunning updates the existing row in place
    get_optimal_cut(scored_file, "BDT_demo", results_file=str(results_file), n_bins=500)
    assert len(read_keyed_table(results_file, "Performance")) == 2
