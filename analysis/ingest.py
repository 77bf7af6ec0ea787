# analysis/ingest.py
# Uploaded file (CSV / Excel) -> typed CostRecord list.
# - Header aliasing (EN/FR spellings, accents, spacing) via utils.helpers.normalize_header
# - Excel serial-date conversion (1900 system, 1970 epoch offset)
# - Numeric coercion (currency markers, grouping/decimal separators)

from __future__ import annotations
import csv
import io
import logging
import math
import numbers
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd

from config import COLUMN_ALIASES, EXCEL_EPOCH_OFFSET_DAYS, REQUIRED_COLUMNS
from utils.helpers import resolve_aliases
from .contracts import CostRecord

logger = logging.getLogger(__name__)

_MS_PER_DAY = 86_400_000
# Plain-number strings at or above this are read as Excel serials (1927-05-18 onward)
_SERIAL_STRING_MIN = 10_000

_CURRENCY_TOKENS = re.compile(r"(?i)(mad|dhs?|usd|eur|\$|€)")
_SPACES = re.compile(r"[\s\u00a0\u202f']+")
_THOUSANDS_COMMA = re.compile(r"^-?\d{1,3}(,\d{3})+$")
_THOUSANDS_DOT = re.compile(r"^-?\d{1,3}(\.\d{3}){2,}$")

_FR_MONTHS = {
    "janvier": "january", "fevrier": "february", "février": "february", "mars": "march",
    "avril": "april", "mai": "may", "juin": "june", "juillet": "july", "aout": "august",
    "août": "august", "septembre": "september", "octobre": "october", "novembre": "november",
    "decembre": "december", "décembre": "december",
    "janv": "jan", "févr": "feb", "fevr": "feb", "avr": "apr", "juil": "jul",
    "sept": "sep", "déc": "dec",
}
_FR_MONTH_RE = re.compile(r"(?i)\b(" + "|".join(sorted(map(re.escape, _FR_MONTHS), key=len, reverse=True)) + r")\.?\b")
# dd/mm/yyyy (French order) for purely numeric day-month-year strings
_DMY = re.compile(r"^\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}$")


# === Errors (title = toast heading, str(e) = toast body) ===
class IngestError(Exception):
    title = "Processing Error"


class MissingColumnsError(IngestError):
    title = "Invalid Header"

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"File must have columns: {', '.join(REQUIRED_COLUMNS)}")


class NoValidRowsError(IngestError):
    def __init__(self, message: str = "No valid data rows found in the file."):
        super().__init__(message)


class UnsupportedFileError(IngestError):
    title = "Unsupported File Type"

    def __init__(self, file_name: str = ""):
        self.file_name = file_name
        super().__init__("Please upload a .csv or .xlsx file.")


class FileParseError(IngestError):
    title = "Parsing Error"


# --- Column resolution ---
def resolve_columns(columns: Iterable[Any]) -> dict:
    """{canonical: original header} for date/totalcost/unitcost/volume; raises if any is missing."""
    mapping = resolve_aliases([str(c) for c in columns], COLUMN_ALIASES)
    missing = [c for c in REQUIRED_COLUMNS if c not in mapping]
    if missing:
        raise MissingColumnsError(missing)
    return {c: mapping[c] for c in REQUIRED_COLUMNS}


# --- Dates ---
def excel_serial_to_iso(serial: float) -> str:
    """Excel day serial -> 'YYYY-MM-DD' (UTC), e.g. 45474 -> '2024-07-01'."""
    ms = math.floor((float(serial) - EXCEL_EPOCH_OFFSET_DAYS) * _MS_PER_DAY + 0.5)
    ts = pd.Timestamp("1970-01-01") + pd.Timedelta(milliseconds=ms)
    return ts.strftime("%Y-%m-%d")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_date(value: Any) -> Optional[str]:
    """Any cell value -> ISO date string, or None when it cannot be read as a date."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Number):
        v = float(value)
        if not math.isfinite(v):
            return None
        try:
            return excel_serial_to_iso(v)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, (pd.Timestamp, datetime, date, np.datetime64)):
        ts = pd.Timestamp(value)
        return None if pd.isna(ts) else ts.strftime("%Y-%m-%d")

    s = str(value).strip()
    if not s:
        return None
    try:
        v = float(s)
    except ValueError:
        v = None
    if v is not None:
        return coerce_date(v) if v >= _SERIAL_STRING_MIN else None

    s = _FR_MONTH_RE.sub(lambda m: _FR_MONTHS[m.group(1).lower()], s)
    try:
        ts = pd.to_datetime(s, errors="coerce", dayfirst=bool(_DMY.match(s)))
    except (ValueError, OverflowError, TypeError):
        return None
    if pd.isna(ts):
        return None
    return pd.Timestamp(ts).strftime("%Y-%m-%d")


# --- Numbers ---
def _normalize_separators(s: str) -> str:
    has_comma, has_dot = "," in s, "." in s
    if has_comma and has_dot:
        # last separator is the decimal one
        if s.rfind(",") > s.rfind("."):
            return s.replace(".", "").replace(",", ".")
        return s.replace(",", "")
    if has_comma:
        return s.replace(",", "") if _THOUSANDS_COMMA.match(s) else s.replace(",", ".")
    if has_dot and _THOUSANDS_DOT.match(s):
        return s.replace(".", "")
    return s


def coerce_number(value: Any) -> float:
    """Cell value -> float; NaN when not numeric."""
    if _is_missing(value) or isinstance(value, bool):
        return float("nan")
    if isinstance(value, numbers.Number):
        v = float(value)
        return v if math.isfinite(v) else float("nan")
    s = _CURRENCY_TOKENS.sub("", str(value))
    s = _SPACES.sub("", s)
    if not s:
        return float("nan")
    negative = s.startswith("(") and s.endswith(")")
    if negative:
        s = s[1:-1]
    s = _normalize_separators(s)
    try:
        v = float(s)
    except ValueError:
        return float("nan")
    if not math.isfinite(v):
        return float("nan")
    return -v if negative else v


def coerce_volume(value: Any) -> Optional[int]:
    """Volume as an integer (truncated toward zero); None when not numeric."""
    v = coerce_number(value)
    if math.isnan(v):
        return None
    return int(math.trunc(v))


# --- Rows -> records ---
def rows_to_records(rows: List[Mapping[str, Any]]) -> List[CostRecord]:
    """
    Raw rows (header -> cell) -> CostRecord list, sorted by date.
    Rows with an unreadable date or a non-numeric field are dropped.
    """
    rows = list(rows or [])
    if not rows:
        raise NoValidRowsError()
    headers: dict = {}
    for r in rows:
        for k in r.keys():
            headers.setdefault(str(k), k)
    cols = resolve_columns(headers.keys())
    key = {c: headers[cols[c]] for c in cols}

    out: List[CostRecord] = []
    for r in rows:
        d = coerce_date(r.get(key["date"]))
        total = coerce_number(r.get(key["totalcost"]))
        unit = coerce_number(r.get(key["unitcost"]))
        vol = coerce_volume(r.get(key["volume"]))
        if d is None or math.isnan(total) or math.isnan(unit) or vol is None:
            continue
        out.append(CostRecord(date=d, total_cost=total, unit_cost=unit, volume=vol))

    dropped = len(rows) - len(out)
    if dropped:
        logger.info("ingest: dropped %d of %d rows (unreadable date or number)", dropped, len(rows))
    if not out:
        raise NoValidRowsError()
    out.sort(key=lambda rec: rec.date)
    return out


def frame_to_records(df: pd.DataFrame) -> List[CostRecord]:
    if df is None or df.empty:
        raise NoValidRowsError()
    return rows_to_records(df.to_dict(orient="records"))


# --- File readers ---
def _read_csv_bytes(data: bytes) -> pd.DataFrame:
    last_err: Optional[Exception] = None
    for enc in ("utf-8-sig", "cp1252"):
        try:
            return pd.read_csv(
                io.BytesIO(data),
                sep=None, engine="python",       # sniff ',' vs ';'
                dtype=str, keep_default_na=False,
                skipinitialspace=True, encoding=enc,
                index_col=False,  # trailing delimiter must not become an index
            )
        except UnicodeDecodeError as e:
            last_err = e
            continue
        except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error, ValueError, TypeError) as e:
            raise FileParseError("Could not parse the CSV file. Please check its format.") from e
    raise FileParseError("Could not parse the CSV file. Please check its format.") from last_err


def _read_excel_bytes(data: bytes) -> pd.DataFrame:
    try:
        return pd.read_excel(io.BytesIO(data), sheet_name=0)
    except Exception as e:
        err = FileParseError("Could not parse the Excel file.")
        err.title = "Excel Parsing Error"
        raise err from e


def read_upload(file_name: str, data: bytes) -> List[CostRecord]:
    """Dispatch on extension (.csv / .xlsx / .xls) and return typed records."""
    name = str(file_name or "").lower()
    if name.endswith(".csv"):
        df = _read_csv_bytes(data)
    elif name.endswith((".xlsx", ".xls")):
        df = _read_excel_bytes(data)
    else:
        raise UnsupportedFileError(file_name)
    df.columns = [str(c).strip() for c in df.columns]
    records = frame_to_records(df)
    logger.info("ingest: %s -> %d records", file_name, len(records))
    return records
