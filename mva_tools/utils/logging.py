import logging
import sys
import time
from pathlib import Path
from typing import Optional

# third-party loggers that are chatty at INFO/DEBUG while reading trees and plotting
QUIET_LOGGERS = ("matplotlib", "uproot", "numba", "fsspec", "h5py")


def setup_logging(
    log_level: str = "INFO", log_file: Optional[str] = None, log_dir: str = "logs"
) -> logging.Logger:
    """
    Set up logging to stdout and to a file under ``log_dir``.

    Calling it again replaces the handlers of the previous call.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Specific log file name (None for auto-generated)
        log_dir: Directory for log files

    Returns:
        The ``mva_tools`` package logger
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    if log_file is None:
        log_file = f"mva_tools_{time.strftime('%Y%m%d_%H%M%S')}.log"
    log_file_path = log_path / log_file

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.FileHandler(log_file_path),
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger = logging.getLogger("mva_tools")
    logger.info(f"Logging initialized at {log_level.upper()}. Log file: {log_file_path}")
    return logger
