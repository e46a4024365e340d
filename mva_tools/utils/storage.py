"""
Keyed result tables persisted in HDF5.

A table is an HDF5 group holding one dataset per column: a UTF-8 string
column acting as the unique key plus any number of float columns. Column
order is kept in the group's ``columns`` attribute.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Union

import h5py
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def update_or_insert_by_key(
    file_path: Union[str, Path],
    table_name: str,
    key_field: str,
    key_value: str,
    values: Mapping[str, float],
) -> bool:
    """
    Update or insert a row of a keyed table.

    If the table exists, every row is read back, the row whose key matches
    ``key_value`` has the supplied fields overwritten (other fields keep their
    values) and the whole table is rewritten. Without a match a new row is
    appended. Fields missing from a row default to 0.0.

    Args:
        file_path: HDF5 file to update or create
        table_name: Name of the table inside the file
        key_field: Name of the string key column
        key_value: Key identifying the row
        values: Mapping of field names to values to write

    Returns:
        True if an existing row was updated, False if a row was added
    """
    if key_field in values:
        raise ValueError(f"Key field '{key_field}' cannot also be a value field")
    try:
        values = {name: float(value) for name, value in values.items()}
    except (TypeError, ValueError) as e:
        raise ValueError(f"Non-numeric value for key {key_value}: {e}") from e

    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        h5file = h5py.File(file_path, "a")
    except OSError as e:
        raise OSError(f"Cannot open results file for writing: {file_path}") from e

    with h5file:
        if table_name in h5file:
            logger.info(f"Table '{table_name}' exists. Reading and updating entries...")
            rows, fields = _read_rows(h5file[table_name], key_field)
        else:
            logger.info(f"Table not found. Creating a new table: {table_name}")
            rows, fields = [], []

        for name in values:
            if name != key_field and name not in fields:
                fields.append(name)

        entry_updated = False
        for row in rows:
            if row[key_field] == key_value:
                row.update(values)
                entry_updated = True

        if not entry_updated:
            rows.append({key_field: key_value, **values})

        staging_name = f"{table_name}__staging"
        if staging_name in h5file:
            del h5file[staging_name]
        _write_rows(h5file, staging_name, key_field, fields, rows)
        if table_name in h5file:
            del h5file[table_name]
        h5file.move(staging_name, table_name)

    logger.info(
        f"{'Updated' if entry_updated else 'Added'} entry for key: "
        f"{key_field} = {key_value} ({file_path}:{table_name})"
    )
    return entry_updated


def read_keyed_table(file_path: Union[str, Path], table_name: str) -> pd.DataFrame:
    """Read a keyed table back as a DataFrame, key column first."""
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Results file not found: {file_path}")

    with h5py.File(file_path, "r") as h5file:
        if table_name not in h5file:
            raise KeyError(f"Table '{table_name}' not found in {file_path}")
        group = h5file[table_name]
        key_field = str(group.attrs["key_field"])
        rows, fields = _read_rows(group, key_field)

    return pd.DataFrame(rows, columns=[key_field] + fields)


def _read_rows(
    group: h5py.Group, key_field: str
) -> Tuple[List[Dict[str, Any]], List[str]]:
    columns = [str(c) for c in group.attrs.get("columns", list(group.keys()))]
    if key_field not in columns:
        raise KeyError(f"Key field '{key_field}' not found in table '{group.name}'")

    keys = group[key_field].asstr()[()]
    fields = [c for c in columns if c != key_field]
    data = {name: group[name][()] for name in fields}

    rows = []
    for i, key in enumerate(keys):
        row: Dict[str, Any] = {key_field: str(key)}
        for name in fields:
            row[name] = float(data[name][i])
        rows.append(row)
    return rows, fields


def _write_rows(
    h5file: h5py.File,
    table_name: str,
    key_field: str,
    fields: List[str],
    rows: List[Dict[str, Any]],
):
    group = h5file.create_group(table_name)
    group.create_dataset(
        key_field,
        data=np.array([row[key_field] for row in rows], dtype=object),
        dtype=h5py.string_dtype(encoding="utf-8"),
    )
    for name in fields:
        group.create_dataset(
            name,
            data=np.array([float(row.get(name, 0.0)) for row in rows], dtype=np.float64),
        )
    group.attrs["key_field"] = key_field
    group.attrs["columns"] = [key_field] + fields
