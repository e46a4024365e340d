from .config import AnalysisConfig, ConfigManager
from .io import create_timestamped_dir, save_results
from .logging import setup_logging
from .storage import read_keyed_table, update_or_insert_by_key
from .toolkit import init_toolkit

__all__ = [
    "ConfigManager",
    "AnalysisConfig",
    "setup_logging",
    "save_results",
    "create_timestamped_dir",
    "update_or_insert_by_key",
    "read_keyed_table",
    "init_toolkit",
]
