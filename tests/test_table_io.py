"""
Test: loading and saving status tables in every supported format.
"""
import pytest

from statusfile.row_codec import MEMBER_TITLES
from statusfile.table_io import (
    TableCodec,
    detect_format,
    escape_illegal,
    get_table_codec,
    load_rows,
    save_rows,
    sniff_delimiter,
    unescape_illegal,
)

ROWS = [
    MEMBER_TITLES,
    [0, 42, "alice", "Anders", "Alice", "passed", "18", "", "good", "", ""],
    [0, 43, "bob", "Brandt", "Bob", "notgraded", "", "", "", "", ""],
]


def texts(rows):
    """Normalize loaded cells so every format compares alike."""
    out = []
    for row in rows:
        cells = []
        for value in row:
            if value is None:
                value = ""
            elif isinstance(value, float) and value.is_integer():
                value = int(value)
            cells.append(str(value))
        out.append(cells)
    return out


class TestDetectFormat:
    @pytest.mark.parametrize("name,fmt", [
        ("status.xlsx", "xlsx"),
        ("STATUS.XLS", "xls"),
        ("status.csv", "csv"),
    ])
    def test_by_suffix(self, tmp_path, name, fmt):
        assert detect_format(tmp_path / name) == fmt

    def test_zip_signature(self, tmp_path):
        path = tmp_path / "upload"
        save_rows(ROWS, tmp_path / "status.xlsx", "xlsx")
        path.write_bytes((tmp_path / "status.xlsx").read_bytes())
        assert detect_format(path) == "xlsx"

    def test_ole2_signature(self, tmp_path):
        path = tmp_path / "upload"
        path.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 32)
        assert detect_format(path) == "xls"

    def test_text_falls_back_to_csv(self, tmp_path):
        path = tmp_path / "upload"
        path.write_text("update,usr_id\n", encoding="utf-8")
        assert detect_format(path) == "csv"


class TestRoundTrip:
    @pytest.mark.parametrize("fmt", ["xlsx", "xls", "csv"])
    def test_save_then_load(self, tmp_path, fmt):
        path = tmp_path / f"status.{fmt}"
        save_rows(ROWS, path, fmt)
        assert texts(load_rows(path))[: len(ROWS)] == texts(ROWS)

    def test_xlsx_sheet_title(self, tmp_path):
        from openpyxl import load_workbook

        path = tmp_path / "status.xlsx"
        save_rows(ROWS, path, "xlsx", sheet_title="teams")
        wb = load_workbook(path)
        assert wb.sheetnames == ["teams"]

    def test_xlsx_ids_are_numbers(self, tmp_path):
        from openpyxl import load_workbook

        path = tmp_path / "status.xlsx"
        save_rows(ROWS, path, "xlsx")
        ws = load_workbook(path).active
        assert ws.cell(row=2, column=2).value == 42
        assert ws.cell(row=2, column=7).value == "18"

    def test_xlsx_formula_like_text_kept(self, tmp_path):
        rows = [MEMBER_TITLES, [0, 42, "alice", "", "", "passed", "", "", "=1+1", "", ""]]
        path = tmp_path / "status.xlsx"
        save_rows(rows, path, "xlsx")
        assert load_rows(path)[1][8] == "=1+1"

    def test_xlsx_control_characters_kept(self, tmp_path):
        rows = [MEMBER_TITLES, [0, 43, "bob", "", "", "failed", "", "", "copied\x0bfrom pdf", "", ""]]
        path = tmp_path / "status.xlsx"
        save_rows(rows, path, "xlsx")
        assert load_rows(path)[1][8] == "copied\x0bfrom pdf"

    def test_escape_helpers(self):
        assert escape_illegal("a\x0bb\x01") == "a_x000B_b_x0001_"
        assert unescape_illegal("a_x000B_b") == "a\x0bb"
        assert unescape_illegal("_x0041_") == "_x0041_"
        assert escape_illegal("line\nbreak\ttab") == "line\nbreak\ttab"


class TestCsv:
    def test_header_only(self, tmp_path):
        path = tmp_path / "status.csv"
        save_rows([MEMBER_TITLES], path, "csv")
        assert load_rows(path) == [MEMBER_TITLES]

    def test_semicolon_delimiter(self, tmp_path):
        settings = {"delimiter": ";", "encoding": "utf-8"}
        path = tmp_path / "status.csv"
        save_rows(ROWS, path, "csv", csv_settings=settings)
        assert ";" in path.read_text(encoding="utf-8").splitlines()[0]
        assert load_rows(path, csv_settings=settings)[1][1] == "42"

    def test_bom_is_stripped(self, tmp_path):
        path = tmp_path / "status.csv"
        path.write_bytes("\ufeffupdate,usr_id\n1,42\n".encode("utf-8"))
        assert load_rows(path)[0] == ["update", "usr_id"]

    def test_cells_are_text(self, tmp_path):
        path = tmp_path / "status.csv"
        path.write_text("update,usr_id,mark\n1,42,007\n", encoding="utf-8")
        assert load_rows(path)[1] == ["1", "42", "007"]

    def test_semicolon_file_with_default_settings(self, tmp_path):
        path = tmp_path / "status.csv"
        path.write_text("update;usr_id;mark\n1;42;17,5\n", encoding="utf-8")
        assert load_rows(path) == [["update", "usr_id", "mark"], ["1", "42", "17,5"]]

    def test_tab_separated_file(self, tmp_path):
        path = tmp_path / "status.csv"
        path.write_text("update\tusr_id\n1\t42\n", encoding="utf-8")
        assert load_rows(path)[1] == ["1", "42"]

    def test_single_column_uses_configured_delimiter(self, tmp_path):
        path = tmp_path / "status.csv"
        path.write_text("update\n1\n", encoding="utf-8")
        assert sniff_delimiter(path, "utf-8", ";") == ";"


def test_unknown_format():
    with pytest.raises(ValueError):
        get_table_codec("ods")


def test_base_table_codec_is_abstract():
    with pytest.raises(TypeError):
        TableCodec()
