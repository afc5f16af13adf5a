"""Reading and writing status tables as xlsx, xls or csv files."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Sequence
import re

import pandas as pd
import xlrd
import xlwt
from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from .config_schema import FORMAT_CSV, FORMAT_XLS, FORMAT_XLSX, VALID_FORMATS

Rows = list[list[Any]]

CSV_DELIMITERS = (",", ";", "\t")

# OOXML notation for characters a worksheet cannot hold, e.g. _x000B_
ESCAPED_CHAR_RE = re.compile(r"_x([0-9A-Fa-f]{4})_")

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0"

SUFFIX_FORMATS = {
    ".xlsx": FORMAT_XLSX,
    ".xlsm": FORMAT_XLSX,
    ".xls": FORMAT_XLS,
    ".csv": FORMAT_CSV,
    ".txt": FORMAT_CSV,
}

MIME_TYPES = {
    FORMAT_XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FORMAT_XLS: "application/vnd.ms-excel",
    FORMAT_CSV: "text/csv",
}


def detect_format(path: Path | str) -> str:
    """Guess the table format from the extension, else from the file signature."""
    path = Path(path)
    fmt = SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt:
        return fmt

    with open(path, "rb") as f:
        head = f.read(8)
    if head.startswith(ZIP_SIGNATURE):
        return FORMAT_XLSX
    if head.startswith(OLE2_SIGNATURE):
        return FORMAT_XLS
    return FORMAT_CSV


def escape_illegal(text: str) -> str:
    """Replace control characters openpyxl rejects with their _xHHHH_ form."""
    return ILLEGAL_CHARACTERS_RE.sub(lambda m: f"_x{ord(m.group(0)):04X}_", text)


def unescape_illegal(text: str) -> str:
    def _sub(match):
        char = chr(int(match.group(1), 16))
        return char if ILLEGAL_CHARACTERS_RE.match(char) else match.group(0)

    return ESCAPED_CHAR_RE.sub(_sub, text)


def sniff_delimiter(path: Path, encoding: str, default: str = ",") -> str:
    """
    Pick the delimiter of a CSV file from its header line.

    Excel writes ';' in locales that use ',' as decimal separator, so the
    configured delimiter is only a preference.
    """
    with open(path, "r", encoding=encoding, newline="") as f:
        header = f.readline()

    candidates = list(dict.fromkeys((default,) + CSV_DELIMITERS))
    best = max(candidates, key=header.count)
    return best if header.count(best) else default


class TableCodec(ABC):
    """Loads and saves a single table of rows."""

    fmt: str

    @abstractmethod
    def load(self, path: Path, sheet_title: str | None = None) -> Rows:
        """Every row of the table, header first."""

    @abstractmethod
    def save(self, rows: Sequence[Sequence[Any]], path: Path, sheet_title: str) -> None:
        """Write rows (header first) to path."""


class XlsxTableCodec(TableCodec):
    fmt = FORMAT_XLSX

    def load(self, path: Path, sheet_title: str | None = None) -> Rows:
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            if sheet_title and sheet_title in wb.sheetnames:
                ws = wb[sheet_title]
            else:
                ws = wb.active
            return [
                [unescape_illegal(value) if isinstance(value, str) else value for value in row]
                for row in ws.iter_rows(values_only=True)
            ]
        finally:
            wb.close()

    def save(self, rows: Sequence[Sequence[Any]], path: Path, sheet_title: str) -> None:
        wb = Workbook()

        # Remove default sheet
        wb.remove(wb.active)
        ws = wb.create_sheet(title=sheet_title)

        for row_idx, row in enumerate(rows, 1):
            for col_idx, value in enumerate(row, 1):
                if isinstance(value, str):
                    value = escape_illegal(value)
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                # Keep text such as "=1" from turning into a formula
                if isinstance(value, str) and value.startswith("="):
                    cell.data_type = "s"

        wb.save(path)


class XlsTableCodec(TableCodec):
    fmt = FORMAT_XLS

    def load(self, path: Path, sheet_title: str | None = None) -> Rows:
        book = xlrd.open_workbook(str(path))
        if sheet_title and sheet_title in book.sheet_names():
            sheet = book.sheet_by_name(sheet_title)
        else:
            sheet = book.sheet_by_index(0)
        return [sheet.row_values(i) for i in range(sheet.nrows)]

    def save(self, rows: Sequence[Sequence[Any]], path: Path, sheet_title: str) -> None:
        book = xlwt.Workbook(encoding="utf-8")
        sheet = book.add_sheet(sheet_title)
        for row_idx, row in enumerate(rows):
            for col_idx, value in enumerate(row):
                sheet.write(row_idx, col_idx, value)
        book.save(str(path))


class CsvTableCodec(TableCodec):
    fmt = FORMAT_CSV

    def __init__(self, delimiter: str = ",", encoding: str = "utf-8"):
        self.delimiter = delimiter
        self.encoding = encoding

    def load(self, path: Path, sheet_title: str | None = None) -> Rows:
        # Spreadsheet programs often prepend a BOM to UTF-8 CSV files
        encoding = "utf-8-sig" if self.encoding.lower().replace("_", "-") == "utf-8" else self.encoding
        df = pd.read_csv(
            path,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            sep=sniff_delimiter(path, encoding, self.delimiter),
            encoding=encoding,
        )
        return df.fillna("").values.tolist()

    def save(self, rows: Sequence[Sequence[Any]], path: Path, sheet_title: str) -> None:
        header, body = list(rows[0]), [list(row) for row in rows[1:]]
        df = pd.DataFrame(body, columns=header)
        df.to_csv(path, index=False, sep=self.delimiter, encoding=self.encoding)


def get_table_codec(fmt: str, csv_settings: dict[str, Any] | None = None) -> TableCodec:
    """Return the codec for a format name."""
    if fmt == FORMAT_XLSX:
        return XlsxTableCodec()
    if fmt == FORMAT_XLS:
        return XlsTableCodec()
    if fmt == FORMAT_CSV:
        csv_settings = csv_settings or {}
        return CsvTableCodec(
            delimiter=csv_settings.get("delimiter", ","),
            encoding=csv_settings.get("encoding", "utf-8"),
        )
    raise ValueError(f"Unknown table format '{fmt}' (use one of {', '.join(VALID_FORMATS)})")


def load_rows(
    path: Path | str,
    fmt: str | None = None,
    sheet_title: str | None = None,
    csv_settings: dict[str, Any] | None = None,
) -> Rows:
    """Load every row of the status table in a file."""
    path = Path(path)
    codec = get_table_codec(fmt or detect_format(path), csv_settings)
    return codec.load(path, sheet_title)


def save_rows(
    rows: Sequence[Sequence[Any]],
    path: Path | str,
    fmt: str,
    sheet_title: str = "members",
    csv_settings: dict[str, Any] | None = None,
) -> None:
    """Save rows (header first) to a file in the given format."""
    codec = get_table_codec(fmt, csv_settings)
    codec.save(rows, Path(path), sheet_title)
