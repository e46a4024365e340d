import numpy as np
import pandas as pd
import pytest

from mva_tools.data.loaders import read_tree
from mva_tools.evaluation.binned import EnergyBinnedAggregator, create_energy_binned_data
from mva_tools.evaluation.metrics import compute_metrics

EDGES = [0, 1, 2, 4, 6, 8, 10]


def test_one_row_per_bin(scored_samples):
    signal, background = scored_samples
    table = EnergyBinnedAggregator({"BDT_demo": 0.0}, EDGES).aggregate(signal, background)

    assert len(table) == 6
    np.testing.assert_allclose(table["binMid"], [0.5, 1.5, 3.0, 5.0, 7.0, 9.0])
    assert list(table.columns) == [
        "binMin",
        "binMax",
        "binMid",
        "binCount",
        "BDT_demo_eff",
        "BDT_demo_eff_err",
        "BDT_demo_pur",
        "BDT_demo_pur_err",
        "BDT_demo_fom",
        "BDT_demo_fom_err",
    ]
    assert table["binCount"].sum() == len(signal) + len(background)


def test_half_open_bins_and_strict_cut():
    signal = pd.DataFrame({"TrueNuE": [0.5, 1.0, 2.0], "m": [0.2, 0.1, 0.9]})
    background = pd.DataFrame({"TrueNuE": [1.0, 1.5], "m": [0.1, 0.5]})

    table = EnergyBinnedAggregator({"m": 0.1}, [0, 1, 2]).aggregate(signal, background)

    # energy 1.0 belongs to [1, 2); energy 2.0 falls outside the last bin
    assert list(table["binCount"]) == [1.0, 3.0]

    first, second = table.iloc[0], table.iloc[1]
    assert first["m_eff"] == pytest.approx(1.0)
    assert first["m_pur"] == pytest.approx(1.0)

    # a score equal to the cut fails the selection
    expected = compute_metrics(0.0, 1.0, 1.0)
    assert second["m_eff"] == pytest.approx(expected.efficiency)
    assert second["m_pur"] == pytest.approx(expected.purity)


def test_several_methods(scored_samples):
    signal, background = scored_samples
    aggregator = EnergyBinnedAggregator({"BDT_demo": 0.0, "MLP_demo": 0.1}, EDGES)
    table = aggregator.aggregate(signal, background)

    assert "MLP_demo_fom_err" in table.columns
    assert (table["BDT_demo_pur"].between(0.0, 1.0)).all()
    np.testing.assert_allclose(
        table["BDT_demo_fom"], table["BDT_demo_eff"] * table["BDT_demo_pur"]
    )


@pytest.mark.parametrize("edges", [[], [1.0], [0, 2, 1], [0, 1, 1]])
def test_invalid_edges_rejected_before_reading(tmp_path, edges):
    with pytest.raises(ValueError):
        create_energy_binned_data(
            tmp_path / "missing.root", tmp_path / "out.root", {"m": 0.0}, edges
        )


def test_missing_branches_raise(scored_samples):
    signal, background = scored_samples
    with pytest.raises(KeyError):
        EnergyBinnedAggregator({"Unknown": 0.0}, EDGES).aggregate(signal, background)


def test_missing_input_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        create_energy_binned_data(
            tmp_path / "missing.root", tmp_path / "out.root", {"m": 0.0}, EDGES
        )


def test_writes_data_tree(tmp_path, scored_file):
    output = tmp_path / "energyBins.root"
    table = create_energy_binned_data(
        scored_file, output, {"BDT_demo": 0.0, "MLP_demo": 0.0}, EDGES
    )

    data = read_tree(output, "data")
    assert len(data) == 6
    np.testing.assert_allclose(data["BDT_demo_eff"], table["BDT_demo_eff"])
