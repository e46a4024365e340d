import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import joblib
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def save_results(results: Dict[str, Any], output_path: Union[str, Path]) -> str:
    """
    Save an analysis summary as JSON.

    numpy scalars/arrays and pandas objects are converted to plain JSON types.

    Args:
        results: Dictionary containing analysis results
        output_path: Path where to save results

    Returns:
        Path to saved file
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w") as f:
        json.dump(_prepare_for_json(results), f, indent=2)

    logger.info(f"Results saved to {output_file}")
    return str(output_file)


def _prepare_for_json(obj: Any) -> Any:
    """Recursively convert numpy/pandas objects into JSON-serializable ones."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, dict):
        return {str(key): _prepare_for_json(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_prepare_for_json(item) for item in obj]
    elif isinstance(obj, pd.DataFrame):
        return obj.to_dict("records")
    elif hasattr(obj, "__dict__"):
        return {key: _prepare_for_json(value) for key, value in obj.__dict__.items()}
    else:
        return obj


def save_model(
    model: Any, model_path: str, metadata: Optional[Dict[str, Any]] = None
) -> str:
    """
    Save a trained classifier with optional metadata.

    Args:
        model: Trained model object
        model_path: Path where to save model
        metadata: Optional metadata dictionary, written next to the model as JSON

    Returns:
        Path to saved model
    """
    model_file = Path(model_path)
    model_file.parent.mkdir(parents=True, exist_ok=True)

    joblib.dump(model, model_file)

    if metadata:
        metadata_file = model_file.with_suffix(".json")
        with open(metadata_file, "w") as f:
            json.dump(_prepare_for_json(metadata), f, indent=2)
        logger.info(f"Model metadata saved to {metadata_file}")

    logger.info(f"Model saved to {model_file}")
    return str(model_file)


def load_model(model_path: Union[str, Path]) -> Any:
    """
    Load a trained classifier from file.

    Args:
        model_path: Path to saved model

    Returns:
        Loaded model object
    """
    model_file = Path(model_path)

    if not model_file.exists():
        raise FileNotFoundError(f"Model file not found: {model_file}")

    model = joblib.load(model_file)
    logger.info(f"Loaded model from {model_file}")

    return model


def write_tree(root_file: Any, tree_name: str, df: pd.DataFrame):
    """
    Write a DataFrame as a flat TTree into an open, writable uproot file.

    Branch types follow the column dtypes; an empty DataFrame produces an
    empty tree with the same branches.
    """
    branch_types = {col: df[col].to_numpy().dtype for col in df.columns}
    tree = root_file.mktree(tree_name, branch_types)
    if len(df) > 0:
        tree.extend({col: df[col].to_numpy() for col in df.columns})
    logger.debug(f"Wrote tree '{tree_name}' with {len(df)} entries")


def create_timestamped_dir(base_output_dir: str = "output/runs/") -> str:
    """
    Create a unique run directory ``<base>/run_YYYYMMDD_HHMM/``.

    Returns:
        Path to the new directory, with a trailing separator
    """
    timestamp = time.strftime("run_%Y%m%d_%H%M")
    output_dir = Path(base_output_dir) / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info(f"Created unique run directory: {output_dir}")
    return str(output_dir) + "/"
