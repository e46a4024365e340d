import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import pandas as pd
import uproot
from tqdm.auto import tqdm

logger = logging.getLogger(__name__)


def read_tree(
    file_path: Union[str, Path],
    tree_name: str,
    branches: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Read a flat TTree into a DataFrame.

    Args:
        file_path: Path to the ROOT file
        tree_name: Name (or path) of the tree inside the file
        branches: Branches to read (None for all)

    Returns:
        DataFrame with one column per branch
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Input file does not exist or cannot be accessed: {file_path}")

    with uproot.open(file_path) as root_file:
        try:
            tree = root_file[tree_name]
        except KeyError as e:
            raise KeyError(f"Tree '{tree_name}' not found in file: {file_path}") from e

        if branches is not None:
            available = set(tree.keys())
            missing = [b for b in branches if b not in available]
            if missing:
                raise KeyError(
                    f"Missing branches {missing} in tree '{tree_name}' of {file_path}"
                )

        df = tree.arrays(branches, library="pd")

    logger.debug(f"Read {len(df)} entries from {file_path}:{tree_name}")
    return df


def read_signal_background(
    file_path: Union[str, Path], branches: Optional[List[str]] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Read the "Signal" and "Background" trees of a split file."""
    signal = read_tree(file_path, "Signal", branches)
    background = read_tree(file_path, "Background", branches)
    logger.info(
        f"Loaded {len(signal)} signal and {len(background)} background events from {file_path}"
    )
    return signal, background


class EventTreeLoader:
    def __init__(self, file_paths: Union[str, List[str]], tree_name: str):
        """
        Initialize event tree loader.

        Args:
            file_paths: Single file path or list of paths to ROOT files
            tree_name: Name of the event tree in the files
        """
        self.file_paths = [file_paths] if isinstance(file_paths, str) else file_paths
        self.tree_name = tree_name

        self._validate_files()

    def _validate_files(self):
        """Validate that all input files exist and are accessible."""
        missing_files = [f for f in self.file_paths if not Path(f).exists()]

        if missing_files:
            raise FileNotFoundError(f"Missing files: {missing_files}")

        logger.info(f"Validated {len(self.file_paths)} input files")

    def stream_events(
        self,
        chunk_size: int = 100000,
        max_events: Optional[int] = None,
        branches: Optional[List[str]] = None,
    ) -> Iterator[pd.DataFrame]:
        """
        Stream events from the input files in chunks.

        Args:
            chunk_size: Number of events per chunk
            max_events: Maximum total events to read (None for all)
            branches: Specific branches to read (None for all)

        Yields:
            DataFrame chunks
        """
        events_read = 0

        with tqdm(
            total=len(self.file_paths), desc="Reading Files", unit="files"
        ) as pbar:
            for file_path in self.file_paths:
                if max_events and events_read >= max_events:
                    break

                with uproot.open(file_path) as root_file:
                    tree = root_file[self.tree_name]
                    file_events = tree.num_entries

                    for start_idx in range(0, file_events, chunk_size):
                        if max_events and events_read >= max_events:
                            break

                        end_idx = min(start_idx + chunk_size, file_events)
                        if max_events:
                            end_idx = min(
                                end_idx, start_idx + (max_events - events_read)
                            )

                        chunk_data = tree.arrays(
                            branches,
                            entry_start=start_idx,
                            entry_stop=end_idx,
                            library="pd",
                        )

                        events_read += len(chunk_data)
                        yield chunk_data

                pbar.update(1)
                pbar.set_postfix({"events": f"{events_read:,}"})

    def load(
        self, branches: Optional[List[str]] = None, chunk_size: int = 100000
    ) -> pd.DataFrame:
        """Read every file into a single DataFrame."""
        chunks = list(self.stream_events(chunk_size=chunk_size, branches=branches))
        if not chunks:
            return pd.DataFrame(columns=branches)
        return pd.concat(chunks, ignore_index=True)
