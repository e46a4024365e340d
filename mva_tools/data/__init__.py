from .loaders import EventTreeLoader, read_signal_background, read_tree
from .selectors import (
    FilterExpression,
    split_dataframe,
    split_tree_by_filter,
    write_signal_background,
)

__all__ = [
    "EventTreeLoader",
    "read_tree",
    "read_signal_background",
    "FilterExpression",
    "split_dataframe",
    "split_tree_by_filter",
    "write_signal_background",
]
