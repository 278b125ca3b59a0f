"""Result table IO tests."""

import pytest

from hydrosweep.core.exceptions import ResultStoreError
from hydrosweep.core.result_store import append_row, ensure_table, read_table

HEADER = ["Speed (mph)", "RPM", "Thrust (lbf)"]


def test_ensure_table_is_idempotent(tmp_path):
    path = tmp_path / "results.csv"
    assert ensure_table(path, HEADER) is True
    assert ensure_table(path, HEADER) is False

    lines = path.read_text().splitlines()
    assert lines == [",".join(HEADER)]


def test_ensure_table_keeps_existing_rows(tmp_path):
    path = tmp_path / "results.csv"
    ensure_table(path, HEADER)
    append_row(path, {"Speed (mph)": 60.0, "RPM": 3000.0, "Thrust (lbf)": 512.5})

    ensure_table(path, HEADER)
    assert len(read_table(path)) == 1


def test_two_appends_give_two_rows_in_header_order(tmp_path):
    path = tmp_path / "nested" / "results.csv"
    ensure_table(path, HEADER)

    assert append_row(path, {"RPM": 3000.0, "Thrust (lbf)": 512.5, "Speed (mph)": 60.0}) == 1
    assert append_row(path, {"Speed (mph)": 62.0, "RPM": 3100.0, "Thrust (lbf)": 530.0}) == 2

    table = read_table(path)
    assert list(table.columns) == HEADER
    assert table["RPM"].tolist() == [3000.0, 3100.0]
    assert table.iloc[0]["Thrust (lbf)"] == pytest.approx(512.5)


def test_row_must_match_header(tmp_path):
    path = tmp_path / "results.csv"
    ensure_table(path, HEADER)

    with pytest.raises(ResultStoreError, match="missing=\\['Thrust \\(lbf\\)'\\]"):
        append_row(path, {"Speed (mph)": 60.0, "RPM": 3000.0})
    with pytest.raises(ResultStoreError, match="extra"):
        append_row(path, {"Speed (mph)": 60.0, "RPM": 3000.0, "Thrust (lbf)": 1.0, "eta": 0.5})
    assert read_table(path).empty


def test_append_to_missing_table_raises(tmp_path):
    with pytest.raises(ResultStoreError, match="Missing result table"):
        append_row(tmp_path / "absent.csv", {"RPM": 1.0})


def test_duplicate_header_columns_rejected(tmp_path):
    with pytest.raises(ResultStoreError, match="Duplicate"):
        ensure_table(tmp_path / "results.csv", ["RPM", "RPM"])


def test_undecodable_table_raises(tmp_path):
    path = tmp_path / "results.csv"
    path.write_bytes(b"RPM,Thrust (lbf)\n3000,\xff\xfe\n")

    with pytest.raises(ResultStoreError, match="Cannot read result table"):
        read_table(path)
    with pytest.raises(ResultStoreError, match="Cannot read result table"):
        append_row(path, {"RPM": 3100.0, "Thrust (lbf)": 1.0})
