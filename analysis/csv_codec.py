# analysis/csv_codec.py
# CSV round-trip with the model:
#   records -> CSV prompt payload
#   model CSV text (quoted fields, "" escapes) -> rows -> ForecastPoint list

from __future__ import annotations
import csv
import io
import logging
import math
import re
from typing import Any, Dict, List, Union

import pandas as pd

from config import FORECAST_COST_ALIASES, FORECAST_DATE_ALIASES
from utils.helpers import find_column_by_alias
from .contracts import CostRecord, ForecastPoint
from .ingest import coerce_date, coerce_number

logger = logging.getLogger(__name__)

CSV_HEADER = "Date,Total Cost,Unit Cost,Volume"

_FENCE_OPEN = re.compile(r"^\s*```[A-Za-z]*\s*\n")
_FENCE_CLOSE = re.compile(r"\n\s*```\s*$")


def _fmt_num(x: float) -> str:
    # 1250.0 -> "1250", 12.5 -> "12.5"
    v = float(x)
    return str(int(v)) if v.is_integer() else repr(v)


def records_to_csv(records: List[CostRecord]) -> str:
    lines = [CSV_HEADER]
    for r in records or []:
        lines.append(f"{r.date},{_fmt_num(r.total_cost)},{_fmt_num(r.unit_cost)},{int(r.volume)}")
    return "\n".join(lines)


def strip_code_fences(text: str) -> str:
    t = (text or "").strip()
    t = _FENCE_OPEN.sub("", t)
    t = _FENCE_CLOSE.sub("", t)
    return t.strip()


def _to_scalar(value: Any) -> Union[str, int, float]:
    """Trimmed cell -> int/float when it reads as a number, '' stays '', else the string."""
    s = "" if value is None else str(value).strip()
    if s == "":
        return ""
    try:
        v = float(s)
    except ValueError:
        return s
    if not math.isfinite(v):
        return s
    return int(v) if v.is_integer() and re.fullmatch(r"[+-]?\d+", s) else v


def parse_llm_csv(text: str) -> List[Dict[str, Any]]:
    """
    Model CSV text -> list of row dicts keyed by the (unquoted, trimmed) header.
    Fewer than two non-empty lines -> [].
    """
    body = strip_code_fences(text).replace("\r\n", "\n").replace("\r", "\n")
    lines = [ln for ln in body.split("\n") if ln.strip()]
    if len(lines) < 2:
        return []
    try:
        df = pd.read_csv(
            io.StringIO("\n".join(lines)),
            dtype=str, keep_default_na=False,
            skipinitialspace=True, quotechar='"', doublequote=True,
            engine="python", on_bad_lines="skip",
            index_col=False,  # rows ending in a stray comma keep their columns
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error) as e:
        logger.warning("parse_llm_csv: unreadable CSV (%s)", e)
        return []
    df.columns = [str(c).replace('"', "").strip() for c in df.columns]
    df = df.fillna("")
    return [{k: _to_scalar(v) for k, v in row.items()} for row in df.to_dict(orient="records")]


def parse_forecast_csv(text: str) -> List[ForecastPoint]:
    """Model forecast CSV -> ForecastPoint list (valid date + numeric cost only), sorted by date."""
    rows = parse_llm_csv(text)
    if not rows:
        return []
    headers = list(rows[0].keys())
    date_col = find_column_by_alias(headers, FORECAST_DATE_ALIASES)
    cost_col = find_column_by_alias(headers, FORECAST_COST_ALIASES)
    if date_col is None or cost_col is None:
        # two-column answer with unexpected headers: take them positionally
        if len(headers) >= 2:
            date_col, cost_col = headers[0], headers[1]
        else:
            logger.warning("parse_forecast_csv: no date/cost columns in %s", headers)
            return []

    out: List[ForecastPoint] = []
    for r in rows:
        d = coerce_date(r.get(date_col))
        cost = coerce_number(r.get(cost_col))
        if d is None or math.isnan(cost):
            continue
        out.append(ForecastPoint(date=d, forecasted_cost=cost))
    out.sort(key=lambda p: p.date)
    return out


def forecast_to_csv(points: List[ForecastPoint]) -> str:
    lines = ['"Date","Forecasted Cost"']
    for p in points or []:
        lines.append(f'"{p.date}","{_fmt_num(p.forecasted_cost)}"')
    return "\n".join(lines)
