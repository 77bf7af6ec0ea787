from __future__ import annotations
import math
import re
import unicodedata
from typing import Iterable, Mapping, Optional, Sequence

from config import CURRENCY_LABEL

_NON_ALNUM = re.compile(r"[^0-9a-z]+")
# fr-FR grouping separator (narrow no-break space)
_GROUP_SEP = "\u202f"


def normalize_header(name) -> str:
    """Header key: accents stripped, lower-case, letters/digits only ("Coût Total" -> "couttotal")."""
    s = unicodedata.normalize("NFKD", str(name or ""))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", s.lower())


def find_column_by_alias(columns: Iterable[str], aliases: Sequence[str]) -> Optional[str]:
    """Return the first column whose normalized name matches an alias (alias order = priority)."""
    by_key: dict = {}
    for c in columns:
        by_key.setdefault(normalize_header(c), c)
    for a in aliases:
        hit = by_key.get(normalize_header(a))
        if hit is not None:
            return hit
    return None


def resolve_aliases(columns: Iterable[str], alias_table: Mapping[str, Sequence[str]]) -> dict:
    """{canonical: original column} for every canonical name that could be matched."""
    cols = [str(c) for c in columns]
    out = {}
    for canonical, aliases in alias_table.items():
        hit = find_column_by_alias(cols, [canonical, *aliases])
        if hit is not None:
            out[canonical] = hit
    return out


def format_number(value, decimals: int = 0) -> str:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return str(value)
    if not math.isfinite(v):
        return "-"
    txt = f"{v:,.{int(decimals)}f}"
    # 1,234.5 -> 1 234,5
    return txt.replace(",", _GROUP_SEP).replace(".", ",")


def format_currency(value, decimals: int = 0) -> str:
    txt = format_number(value, decimals)
    return txt if txt == "-" else f"{txt} {CURRENCY_LABEL}"
