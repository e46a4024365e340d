import logging
import os
from typing import Optional

import torch

logger = logging.getLogger(__name__)

_initialized = False
_n_threads: Optional[int] = None


def init_toolkit(n_threads: Optional[int] = None) -> int:
    """
    One-time setup of the training libraries' thread pools.

    Later calls are no-ops and return the thread count chosen by the first one.

    Args:
        n_threads: Intra-op threads for torch and xgboost (None for all cores)

    Returns:
        Number of threads in use
    """
    global _initialized, _n_threads

    if _initialized:
        return _n_threads

    _n_threads = n_threads or os.cpu_count() or 1
    torch.set_num_threads(_n_threads)
    _initialized = True

    logger.info(f"Initialized training toolkit with {_n_threads} threads")
    return _n_threads


def toolkit_threads() -> int:
    """Thread count for training libraries, initializing with defaults if needed."""
    return init_toolkit()
