import json
import logging
from pathlib import Path

import numpy as np
import pytest

import mva_tools
from mva_tools.utils.config import AnalysisConfig, ConfigManager
from mva_tools.utils.io import create_timestamped_dir, save_results
from mva_tools.utils.logging import setup_logging

DEFAULT_YAML = Path(mva_tools.__file__).parent / "configs" / "default.yaml"


def test_default_config_is_valid():
    config = ConfigManager.create_default_config()
    assert ConfigManager.validate_config(config) == []
    assert [m["name"] for m in config.training.methods] == [
        "MLP",
        "BDT_AdaBoost",
        "BDT_GradBoost",
    ]


def test_packaged_yaml_matches_defaults():
    config = ConfigManager.load_config(str(DEFAULT_YAML))
    assert config == AnalysisConfig()


def test_save_and_load(tmp_path):
    config = ConfigManager.create_default_config()
    config.training.method_suffix = "run7"
    config.evaluation.energy_bin_edges = [0.0, 5.0, 10.0]

    path = tmp_path / "config.yaml"
    ConfigManager.save_config(config, str(path))

    assert ConfigManager.load_config(str(path)) == config


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigManager.load_config(str(tmp_path / "missing.yaml"))


def test_validation_reports_issues(tmp_path):
    config = ConfigManager.create_default_config()
    config.output_dir = ""
    config.training.train_ratio = 1.5
    config.training.methods.append({"type": "SVM", "name": "svm"})
    config.evaluation.n_bins = 0
    config.evaluation.min_score = 1.0
    config.evaluation.energy_bin_edges = [0.0, 2.0, 1.0]
    config.data.input_file = str(tmp_path / "missing.root")

    issues = ConfigManager.validate_config(config)

    assert "output_dir cannot be empty" in issues
    assert "Unknown method type: SVM" in issues
    assert "Energy bin edges must be strictly increasing" in issues
    assert any("train_ratio" in issue for issue in issues)
    assert any("n_bins" in issue for issue in issues)
    assert any("min_score" in issue for issue in issues)
    assert any("Missing input file" in issue for issue in issues)


def test_single_bin_rejected_like_cut_finder():
    config = ConfigManager.create_default_config()
    config.evaluation.n_bins = 1
    assert "Evaluation n_bins must be at least 2" in ConfigManager.validate_config(config)

    config.evaluation.n_bins = 2
    assert not any("n_bins" in issue for issue in ConfigManager.validate_config(config))


def test_summary_json_and_run_dir(tmp_path):
    path = save_results(
        {"cut": np.float64(0.25), "n_test": np.int64(3), "methods": ["BDT_demo"]},
        tmp_path / "r.json",
    )
    with open(path) as f:
        assert json.load(f) == {"cut": 0.25, "n_test": 3, "methods": ["BDT_demo"]}

    run_dir = create_timestamped_dir(str(tmp_path / "runs"))
    assert Path(run_dir).is_dir()
    assert Path(run_dir).name.startswith("run_")
    assert run_dir.endswith("/")


def test_setup_logging_writes_file_and_quiets_dependencies(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        logger = setup_logging("debug", log_file="run.log", log_dir=str(tmp_path / "logs"))
        logger.info("hello")
        for handler in root.handlers:
            handler.flush()

        assert logger.name == "mva_tools"
        assert "hello" in (tmp_path / "logs" / "run.log").read_text()
        assert logging.getLogger("uproot").level == logging.WARNING
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)

    with pytest.raises(ValueError):
        setup_logging("LOUD", log_dir=str(tmp_path / "logs"))
