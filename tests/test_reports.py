import pandas as pd
import pytest
import uproot

from mva_tools.evaluation.binned import create_energy_binned_data
from mva_tools.evaluation.metrics import ConfusionMatrixType
from mva_tools.evaluation.plotting import AxisScale, GraphType
from mva_tools.evaluation.reports import (
    create_confusion_matrix,
    create_energy_performance_graph,
    create_mva_score_histogram,
)
from mva_tools.utils.io import write_tree


@pytest.mark.parametrize(
    "matrix_type, suffix",
    [
        (ConfusionMatrixType.COUNTS, "_counts"),
        (ConfusionMatrixType.EFFICIENCY, "_eff"),
        ("purity", "_pur"),
    ],
)
def test_confusion_matrix_file_names(tmp_path, scored_file, matrix_type, suffix):
    path = create_confusion_matrix(scored_file, "BDT_demo", tmp_path, 0.0, matrix_type)

    assert path == str(tmp_path / f"BDT_demo{suffix}_cmat.png")
    assert (tmp_path / f"BDT_demo{suffix}_cmat.png").exists()


def test_confusion_matrix_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        create_confusion_matrix(tmp_path / "missing.root", "BDT_demo", tmp_path, 0.0)


@pytest.mark.parametrize("axis_scale", [AxisScale.LINEAR, AxisScale.LOGY])
def test_score_histogram(tmp_path, scored_file, axis_scale):
    path = create_mva_score_histogram(
        scored_file, tmp_path, "MLP_demo", 50, -1.0, 1.0, axis_scale
    )
    assert path.endswith(f"MLP_demo_scoreOverlay_{axis_scale.value}.png")
    assert (tmp_path / f"MLP_demo_scoreOverlay_{axis_scale.value}.png").exists()


def test_score_histogram_invalid_arguments(tmp_path, scored_file):
    with pytest.raises(ValueError):
        create_mva_score_histogram(scored_file, tmp_path, "MLP_demo", 0, -1.0, 1.0)
    with pytest.raises(ValueError):
        create_mva_score_histogram(scored_file, "", "MLP_demo", 50, -1.0, 1.0)


def test_energy_performance_graphs(tmp_path, scored_file):
    energy_file = tmp_path / "energyBins.root"
    create_energy_binned_data(
        scored_file, energy_file, {"BDT_demo": 0.0, "MLP_demo": 0.0}, [0, 2, 5, 10]
    )

    for graph_type in GraphType:
        output = tmp_path / f"EnergyVs{graph_type.value}.png"
        create_energy_performance_graph(
            energy_file, {"BDT_demo": "red", "MLP_demo": "blue"}, output, graph_type
        )
        assert output.exists()

    with pytest.raises(KeyError):
        create_energy_performance_graph(
            energy_file, {"XGB_demo": "green"}, tmp_path / "x.png", GraphType.FOM
        )


def test_energy_performance_graph_empty_table(tmp_path):
    energy_file = tmp_path / "empty.root"
    empty = pd.DataFrame({"binMid": pd.Series([], dtype="float64")})
    with uproot.recreate(energy_file) as root_file:
        write_tree(root_file, "data", empty)

    with pytest.raises(ValueError):
        create_energy_performance_graph(
            energy_file, {"BDT_demo": "red"}, tmp_path / "x.png", "efficiency"
        )
