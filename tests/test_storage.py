import pytest

from mva_tools.utils.storage import read_keyed_table, update_or_insert_by_key


def test_insert_then_update(tmp_path):
    path = tmp_path / "results.h5"

    updated = update_or_insert_by_key(path, "Performance", "Method", "BDT_demo", {"cut": 0.3})
    assert updated is False

    updated = update_or_insert_by_key(
        path, "Performance", "Method", "BDT_demo", {"cut": 0.5, "fom": 0.8}
    )
    assert updated is True

    table = read_keyed_table(path, "Performance")
    assert len(table) == 1
    row = table.iloc[0]
    assert row["Method"] == "BDT_demo"
    assert row["cut"] == pytest.approx(0.5)
    assert row["fom"] == pytest.approx(0.8)


def test_repeated_upsert_is_idempotent(tmp_path):
    path = tmp_path / "results.h5"
    values = {"MaxCut": 0.12, "FoM": 0.7}

    update_or_insert_by_key(path, "Performance", "Method", "MLP_demo", values)
    first = read_keyed_table(path, "Performance")
    update_or_insert_by_key(path, "Performance", "Method", "MLP_demo", values)
    second = read_keyed_table(path, "Performance")

    assert first.equals(second)


def test_new_keys_append_and_fields_merge(tmp_path):
    path = tmp_path / "results.h5"

    update_or_insert_by_key(path, "Performance", "Method", "A", {"x": 1.0})
    update_or_insert_by_key(path, "Performance", "Method", "B", {"y": 2.0, "x": 3.0})

    table = read_keyed_table(path, "Performance")
    assert list(table.columns) == ["Method", "x", "y"]
    assert list(table["Method"]) == ["A", "B"]

    # fields never supplied for a row read back as 0.0
    assert table.iloc[0]["y"] == 0.0
    assert table.iloc[1]["x"] == 3.0


def test_update_keeps_unsupplied_fields(tmp_path):
    path = tmp_path / "results.h5"

    update_or_insert_by_key(path, "T", "Method", "A", {"x": 1.0, "y": 2.0})
    update_or_insert_by_key(path, "T", "Method", "A", {"y": 5.0})

    row = read_keyed_table(path, "T").iloc[0]
    assert row["x"] == 1.0
    assert row["y"] == 5.0


def test_tables_are_independent(tmp_path):
    path = tmp_path / "results.h5"

    update_or_insert_by_key(path, "First", "Method", "A", {"x": 1.0})
    update_or_insert_by_key(path, "Second", "Name", "A", {"z": 9.0})

    assert list(read_keyed_table(path, "First").columns) == ["Method", "x"]
    assert list(read_keyed_table(path, "Second").columns) == ["Name", "z"]


def test_read_missing_table_or_file(tmp_path):
    path = tmp_path / "results.h5"
    with pytest.raises(FileNotFoundError):
        read_keyed_table(path, "Performance")

    update_or_insert_by_key(path, "Performance", "Method", "A", {"x": 1.0})
    with pytest.raises(KeyError):
        read_keyed_table(path, "Other")


def test_unwritable_path_raises_oserror(tmp_path):
    target = tmp_path / "a_directory"
    target.mkdir()
    with pytest.raises(OSError):
        update_or_insert_by_key(target, "Performance", "Method", "A", {"x": 1.0})


def test_failed_upsert_leaves_table_intact(tmp_path):
    path = tmp_path / "results.h5"

    update_or_insert_by_key(path, "Performance", "Method", "A", {"x": 1.0})
    update_or_insert_by_key(path, "Performance", "Method", "B", {"x": 2.0})

    with pytest.raises(ValueError):
        update_or_insert_by_key(path, "Performance", "Method", "C", {"x": "bad"})
    with pytest.raises(ValueError):
        update_or_insert_by_key(path, "Performance", "Method", "C", {"Method": 3.0})

    update_or_insert_by_key(path, "Performance", "Method", "D", {"x": 4.0})

    table = read_keyed_table(path, "Performance")
    assert list(table["Method"]) == ["A", "B", "D"]
    assert list(table["x"]) == [1.0, 2.0, 4.0]


def test_numeric_strings_and_ints_are_stored_as_floats(tmp_path):
    path = tmp_path / "results.h5"

    update_or_insert_by_key(path, "Performance", "Method", "A", {"x": 3, "y": "0.25"})

    row = read_keyed_table(path, "Performance").iloc[0]
    assert row["x"] == 3.0
    assert row["y"] == 0.25
