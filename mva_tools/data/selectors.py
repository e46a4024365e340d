import logging
import re
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
import pandas as pd
import uproot

from ..utils.io import write_tree
from .loaders import EventTreeLoader

logger = logging.getLogger(__name__)


class FilterExpression:
    """
    Boolean selection over event columns, written in ROOT/C++ style.

    The expression is handed to the pandas expression engine; only the
    logical operator tokens (``&&``, ``||``, ``!``, ``true``, ``false``) are
    rewritten to their pandas spelling. ``!x`` becomes ``x == 0`` so that
    integer flag columns negate the way they do in ROOT.
    """

    def __init__(self, expression: Union[str, "FilterExpression"]):
        if isinstance(expression, FilterExpression):
            expression = expression.expression
        expression = str(expression).strip()
        if not expression:
            raise ValueError("Filter expression cannot be empty")

        self.expression = expression
        self.query = self._to_pandas(expression)

    @staticmethod
    def _to_pandas(expression: str) -> str:
        query = expression.replace("&&", " & ").replace("||", " | ")
        query = FilterExpression._rewrite_not(query)
        query = re.sub(r"\btrue\b", "True", query)
        query = re.sub(r"\bfalse\b", "False", query)
        return query.strip()

    @staticmethod
    def _rewrite_not(query: str) -> str:
        """``!x`` -> ``((x) == 0)``, negating integer flags as well as booleans."""
        out = []
        i = 0
        while i < len(query):
            if query[i] != "!" or query.startswith("!=", i):
                out.append(query[i])
                i += 1
                continue

            start = i + 1
            while start < len(query) and query[start].isspace():
                start += 1

            if start < len(query) and query[start] == "(":
                depth = 0
                end = start
                while end < len(query):
                    if query[end] == "(":
                        depth += 1
                    elif query[end] == ")":
                        depth -= 1
                        if depth == 0:
                            break
                    end += 1
                if depth != 0:
                    raise ValueError(f"Unbalanced parentheses in filter: {query}")
                operand = FilterExpression._rewrite_not(query[start + 1 : end])
                i = end + 1
            else:
                match = re.match(r"[\w.]+", query[start:])
                if not match:
                    raise ValueError(f"Missing operand after '!' in filter: {query}")
                operand = match.group(0)
                i = start + match.end()

            out.append(f"(({operand}) == 0)")
        return "".join(out)

    def negate(self) -> "FilterExpression":
        """Logical complement of this expression."""
        return FilterExpression(f"!({self.expression})")

    def mask(self, df: pd.DataFrame) -> pd.Series:
        """Evaluate the expression row-wise, returning a boolean mask."""
        result = df.eval(self.query)
        if np.ndim(result) == 0:
            return pd.Series(bool(result), index=df.index)
        return pd.Series(np.asarray(result, dtype=bool), index=df.index)

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """Rows of ``df`` passing the expression."""
        return df[self.mask(df)]

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"FilterExpression({self.expression!r})"


def split_dataframe(
    df: pd.DataFrame,
    signal_filter: Union[str, FilterExpression],
    exclusion_filter: Union[str, FilterExpression] = "1",
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Partition events into Signal and Background.

    Rows failing ``exclusion_filter`` are dropped. Of the rest, rows passing
    ``signal_filter`` are Signal and all others are Background.
    """
    signal_expr = FilterExpression(signal_filter)
    exclusion_expr = FilterExpression(exclusion_filter)

    logger.info(f'Applying exclusion filter: "{exclusion_expr}"')
    filtered = exclusion_expr.apply(df)
    removed = len(df) - len(filtered)
    fraction = removed / len(df) if len(df) > 0 else 0.0
    logger.info(f"Excluded {removed}/{len(df)} events ({fraction:.1%})")

    logger.info(f'Splitting events using signal filter: "{signal_expr}"')
    is_signal = signal_expr.mask(filtered)
    signal = filtered[is_signal].reset_index(drop=True)
    background = filtered[~is_signal].reset_index(drop=True)

    logger.info(f"Signal events: {len(signal)} | Background events: {len(background)}")
    return signal, background


def split_tree_by_filter(
    input_file: Union[str, Path],
    input_tree_name: str,
    output_file: Union[str, Path],
    branches_to_keep: List[str],
    signal_filter: Union[str, FilterExpression],
    exclusion_filter: Union[str, FilterExpression] = "1",
    chunk_size: int = 100000,
) -> Tuple[int, int]:
    """
    Split a TTree into "Signal" and "Background" trees.

    Signal is written first, recreating ``output_file``; Background is then
    added to the same file.

    Args:
        input_file: Path to the input ROOT file
        input_tree_name: Name of the tree to split
        output_file: Path of the ROOT file receiving both trees
        branches_to_keep: Branches copied to the output trees
        signal_filter: Expression selecting Signal events
        exclusion_filter: Expression removing events before classification
            ("1" keeps everything)
        chunk_size: Number of events read per chunk

    Returns:
        Number of Signal and Background events written
    """
    if not Path(input_file).exists():
        raise FileNotFoundError(f"Input file does not exist: {input_file}")

    logger.info(f"Opening input file: {input_file}")
    events = EventTreeLoader(str(input_file), input_tree_name).load(chunk_size=chunk_size)

    missing = [b for b in branches_to_keep if b not in events.columns]
    if missing:
        raise KeyError(
            f"Branches {missing} not found in tree '{input_tree_name}' of {input_file}"
        )

    signal, background = split_dataframe(events, signal_filter, exclusion_filter)
    write_signal_background(output_file, signal, background, branches_to_keep)
    return len(signal), len(background)


def write_signal_background(
    output_file: Union[str, Path],
    signal: pd.DataFrame,
    background: pd.DataFrame,
    branches_to_keep: List[str],
):
    """Write Signal (recreating the file) and then Background into one ROOT file."""
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Writing Signal tree to: {output_path}")
    with uproot.recreate(output_path) as root_file:
        write_tree(root_file, "Signal", signal[branches_to_keep])

    logger.info(f"Appending Background tree to: {output_path}")
    with uproot.update(output_path) as root_file:
        write_tree(root_file, "Background", background[branches_to_keep])

    logger.info(f"Finished writing trees. Signal and Background saved to: {output_path}")
