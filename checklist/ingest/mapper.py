import re
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

# Sheet name fragments -> language. English is checked first.
SHEET_LANGUAGES = [
    ("EN", ("eng", "english")),
    ("ID", ("bahasa", "indonesia", "id")),
]

# Logical field -> header fragments, matched case-insensitively
COLUMN_ALIASES = {
    "area": ["area", "kategori", "category", "area of evaluation"],
    "activity": ["activity", "aktivitas", "feature evaluated", "aktivitas / fitur yang dievaluasi"],
    "criteria": ["criteria", "kriteria", "success criteria", "kriteria sukses"],
}
REQUIRED_FIELDS = ("area", "activity", "criteria")

_WS = re.compile(r"\s+")


class NormalizedRow(NamedTuple):
    area: str
    activity: str
    criteria: str


def is_blank(v) -> bool:
    if v is None: return True
    try:
        return bool(pd.isna(v))
    except (TypeError, ValueError):
        return False


def clean_text(v) -> str:
    """None/NaN -> ''; otherwise trimmed text with whitespace runs collapsed."""
    if is_blank(v): return ""
    return _WS.sub(" ", str(v)).strip()


def sheet_language(sheet_name) -> Optional[str]:
    name = str(sheet_name).lower()
    for lang, fragments in SHEET_LANGUAGES:
        if any(f in name for f in fragments):
            return lang
    return None


def find_column(headers: Optional[Sequence], aliases: Iterable[str]) -> int:
    if not headers: return -1
    aliases = [a.lower() for a in aliases]
    for i, h in enumerate(headers):
        header = clean_text(h).lower()
        if header and any(a in header for a in aliases):
            return i
    return -1


def locate_columns(headers: Optional[Sequence], aliases: Dict[str, List[str]] = None) -> Dict[str, int]:
    aliases = aliases or COLUMN_ALIASES
    return {field: find_column(headers, names) for field, names in aliases.items()}


def missing_columns(columns: Dict[str, int]) -> List[str]:
    return [f for f in REQUIRED_FIELDS if columns.get(f, -1) < 0]


def _cell(row: Sequence, idx: int):
    return row[idx] if 0 <= idx < len(row) else None


def normalize_row(row: Optional[Sequence], columns: Dict[str, int],
                  current_area: str) -> Tuple[str, Optional[NormalizedRow]]:
    """One step of the per-sheet fold.

    Returns the area to carry into the next row and the normalized row, or
    None when the row has to be skipped. A non-blank area cell replaces the
    carried area even when the rest of the row is skipped.
    """
    if not row:
        return current_area, None

    area = clean_text(_cell(row, columns["area"]))
    if area:
        current_area = area

    activity = clean_text(_cell(row, columns["activity"]))
    criteria = clean_text(_cell(row, columns["criteria"]))
    if not (current_area and activity and criteria):
        return current_area, None
    return current_area, NormalizedRow(current_area, activity, criteria)


def normalize_rows(rows: Iterable[Sequence], columns: Dict[str, int]) -> Iterator[Tuple[int, NormalizedRow]]:
    """Yield (position, row) for the accepted data rows of one sheet.

    position is 1-based over all data rows, skipped ones included, so it
    mirrors the row's place in the spreadsheet. The carried area starts
    empty for every call.
    """
    current_area = ""
    for position, raw in enumerate(rows, start=1):
        current_area, normalized = normalize_row(raw, columns, current_area)
        if normalized is not None:
            yield position, normalized
