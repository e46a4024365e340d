import numpy as np
import pytest

from mva_tools.data.loaders import read_signal_background, read_tree
from mva_tools.models.methods import MethodConfig
from mva_tools.pipeline.training import TrainingPipeline, compute_split_sizes

INPUTS = ["CVNScoreNuE", "CVNScoreNuMu", "CVNScoreNC"]
SPECTATORS = ["TrueNuE"]

FAST_METHODS = [
    MethodConfig("BDT", "BDT_AdaBoost", "!H:!V:NTrees=20:MaxDepth=2:BoostType=AdaBoost"),
    {"type": "MLP", "name": "MLP", "options": "NeuronType=tanh:NCycles=5:HiddenLayers=3"},
]


def test_split_sizes():
    assert compute_split_sizes(300, 600, 0.3) == (90, 210, 420)
    # half-way products round away from zero
    assert compute_split_sizes(5, 10, 0.5) == (3, 2, 4)


def test_split_sizes_errors():
    with pytest.raises(ValueError):
        compute_split_sizes(0, 100, 0.3)
    with pytest.raises(ValueError):
        compute_split_sizes(100, 100, 1.0)
    with pytest.raises(ValueError, match="Not enough background"):
        compute_split_sizes(1000, 100, 0.3)


def test_train_classification_model(tmp_path, training_file):
    output_dir = tmp_path / "out"
    pipeline = TrainingPipeline(output_dir)

    results = pipeline.train_classification_model(
        "demo", training_file, "filtered.root", INPUTS, SPECTATORS, FAST_METHODS
    )

    assert set(results["methods"]) == {"BDT_AdaBoost_demo", "MLP_demo"}
    assert (output_dir / "models" / "weights" / "BDT_BDT_AdaBoost_demo.weights.joblib").exists()
    assert (output_dir / "models" / "weights" / "MLP_MLP_demo.weights.joblib").exists()
    assert (output_dir / "models" / "plots").is_dir()

    train = read_tree(output_dir / "MVAClassification.root", "TrainTree")
    test = read_tree(output_dir / "MVAClassification.root", "TestTree")
    assert (train["classID"] == 0).sum() == 90
    assert (train["classID"] == 1).sum() == 90
    assert (test["classID"] == 0).sum() == 210
    assert (test["classID"] == 1).sum() == 420

    signal, background = read_signal_background(output_dir / "filtered.root")
    assert (len(signal), len(background)) == (210, 420)
    assert list(signal.columns) == INPUTS + SPECTATORS + ["BDT_AdaBoost_demo", "MLP_demo"]
    for name in ("BDT_AdaBoost_demo", "MLP_demo"):
        scores = np.concatenate([signal[name], background[name]])
        assert scores.min() >= -1.0 and scores.max() <= 1.0
    assert signal["BDT_AdaBoost_demo"].mean() > background["BDT_AdaBoost_demo"].mean()


def test_train_missing_input(tmp_path):
    pipeline = TrainingPipeline(tmp_path)
    with pytest.raises(FileNotFoundError):
        pipeline.train_classification_model(
            "demo", tmp_path / "missing.root", "f.root", INPUTS, SPECTATORS, FAST_METHODS
        )


def test_train_unknown_input_variable(tmp_path, training_file):
    pipeline = TrainingPipeline(tmp_path)
    with pytest.raises(KeyError):
        pipeline.train_classification_model(
            "demo", training_file, "f.root", ["NotABranch"], SPECTATORS, FAST_METHODS
        )
