import io
import logging
from pathlib import Path
from typing import Any, List, Tuple

import pandas as pd

from shared.core.exceptions import PasswordProtectedFileError, SpreadsheetParseError

logger = logging.getLogger(__name__)

# Encrypted OOXML workbooks are OLE compound files wrapping an "EncryptedPackage" stream
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ENCRYPTED_PACKAGE_MARKER = "EncryptedPackage".encode("utf-16-le")

PASSWORD_PROTECTED_MESSAGE = (
    "This Excel file is password-protected. Please remove the password protection before uploading. "
    "To remove password: Open the file in Excel -> File -> Info -> Protect Workbook -> Remove password, "
    "then save and upload again."
)

EMPTY_MARKERS = {"", "null", "undefined", "nan"}
CSV_EXTENSIONS = {".csv", ".txt"}


def is_password_protected(raw_bytes: bytes) -> bool:
    return raw_bytes.startswith(OLE_MAGIC) and ENCRYPTED_PACKAGE_MARKER in raw_bytes


def is_empty_cell(value: Any) -> bool:
    if value is None:
        return True
    return str(value).strip().lower() in EMPTY_MARKERS


def row_has_data(row: List[Any]) -> bool:
    return bool(row) and any(not is_empty_cell(cell) for cell in row)


def _decode_text(raw_bytes: bytes) -> str:
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            return raw_bytes.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise SpreadsheetParseError("Cannot read CSV file. Unsupported text encoding.")


def _read_frame(path: Path, raw_bytes: bytes) -> pd.DataFrame:
    if path.suffix.lower() in CSV_EXTENSIONS:
        return pd.read_csv(
            io.StringIO(_decode_text(raw_bytes)),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    return pd.read_excel(io.BytesIO(raw_bytes), header=None, dtype=object, sheet_name=0)


def parse_spreadsheet(file_path) -> List[List[Any]]:
    """
    Read the first sheet of an .xlsx/.xls/.csv file into ordered rows of cells.

    Blank cells come back as "". The header row is not separated here.
    """
    path = Path(file_path)
    if not path.exists():
        raise SpreadsheetParseError(f"File not found: {path.name}")

    raw_bytes = path.read_bytes()
    if is_password_protected(raw_bytes):
        raise PasswordProtectedFileError(PASSWORD_PROTECTED_MESSAGE)

    try:
        frame = _read_frame(path, raw_bytes)
    except pd.errors.EmptyDataError:
        raise SpreadsheetParseError("File contains no data")
    except SpreadsheetParseError:
        raise
    except Exception as exc:
        logger.warning("Spreadsheet parse failed for %s: %s", path.name, exc)
        raise SpreadsheetParseError(
            "Cannot read file. The file may be password-protected, corrupted, or in an unsupported format. "
            f"Please upload a valid .xlsx or .csv file. Error: {exc}"
        ) from exc

    frame = frame.astype(object).where(pd.notna(frame), "")
    rows = frame.values.tolist()
    if not rows:
        raise SpreadsheetParseError("File contains no data")
    return rows


def split_table(rows: List[List[Any]]) -> Tuple[List[str], List[List[Any]]]:
    """First row is the header row; completely empty data rows are dropped."""
    if not rows:
        raise SpreadsheetParseError("File is empty or could not be parsed")

    headers = [str(cell if cell is not None else "").strip() for cell in rows[0]]
    if not any(headers):
        raise SpreadsheetParseError(
            "No headers found in file. Please ensure the first row contains column names.")

    data_rows = [list(row) for row in rows[1:] if row_has_data(list(row))]
    return headers, data_rows
