# checklist/ingest/pipeline.py
# -*- coding: utf-8 -*-
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from ..errors import DocumentNotFound, StorageError, WorkbookUnreadable
from ..store import QuestionStore
from .mapper import is_blank, locate_columns, missing_columns, normalize_rows, sheet_language

logger = logging.getLogger(__name__)

ALLOWED = {".xlsx", ".xls"}
PREVIEW_ROWS = 3


@dataclass
class ImportResult:
    success: bool = True
    total_inserted: int = 0
    skipped: bool = False                       # seeding skipped, questions already present
    sheets: Dict[str, int] = field(default_factory=dict)
    skipped_sheets: Dict[str, str] = field(default_factory=dict)
    failed_rows: int = 0

    def to_dict(self):
        return {
            "success": self.success,
            "total_inserted": self.total_inserted,
            "skipped": self.skipped,
            "sheets": self.sheets,
            "skipped_sheets": self.skipped_sheets,
            "failed_rows": self.failed_rows,
        }


def _json_cell(v):
    if is_blank(v): return None
    if hasattr(v, "isoformat"):
        return v.isoformat()
    if hasattr(v, "item"):          # numpy scalars
        return v.item()
    return v


def _frame_rows(df: pd.DataFrame) -> List[list]:
    """DataFrame -> raw rows with trailing empty cells dropped."""
    rows = []
    for values in df.itertuples(index=False, name=None):
        cells = [_json_cell(v) for v in values]
        while cells and (cells[-1] is None or cells[-1] == ""):
            cells.pop()
        rows.append(cells)
    return rows


def _require(path) -> Path:
    path = Path(path)
    if not path.is_file():
        raise DocumentNotFound(f"Excel file not found: {path}")
    return path


def read_workbook(path) -> "OrderedDict[str, List[list]]":
    """Sheet name -> rows (header row included), in document order."""
    path = _require(path)
    try:
        frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object, engine="openpyxl")
    except Exception:
        # legacy .xls and friends
        try:
            frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object)
        except Exception as e:
            raise WorkbookUnreadable(f"{path.name}: {e}") from e
    return OrderedDict((str(name), _frame_rows(df)) for name, df in frames.items())


def import_workbook(path, store: Optional[QuestionStore] = None) -> ImportResult:
    """
    Seed the questions table from a checklist workbook.

    - nothing happens when questions already exist (repeated startup)
    - one sheet per language, detected from the sheet name
    - header row located by alias, data rows folded with the area carried down
    - sequence_order restarts at 1 for every sheet
    """
    path = _require(path)
    store = store or QuestionStore()

    existing = store.count_questions()
    if existing > 0:
        logger.info(f"Questions already exist in database ({existing} questions). Skipping Excel import.")
        return ImportResult(skipped=True)

    workbook = read_workbook(path)
    logger.info(f"Parsing Excel file {path.name}, sheets: {list(workbook)}")

    store.clear_questions()

    result = ImportResult()
    for sheet_name, rows in workbook.items():
        language = sheet_language(sheet_name)
        if not language:
            logger.info(f"Skipping sheet: {sheet_name} (no language mapping)")
            result.skipped_sheets[sheet_name] = "unmapped language"
            continue

        headers = rows[0] if rows else []
        columns = locate_columns(headers)
        missing = missing_columns(columns)
        if missing:
            logger.warning(f"Required columns not found in sheet {sheet_name}: {missing} "
                           f"(area={columns['area']}, activity={columns['activity']}, criteria={columns['criteria']})")
            result.skipped_sheets[sheet_name] = "missing columns: " + ", ".join(missing)
            continue

        data = rows[1:]
        logger.info(f"Processing sheet {sheet_name} ({language}), {len(data)} data rows")
        inserted = failed = 0
        for position, q in normalize_rows(data, columns):
            try:
                store.insert_question(q.area, q.activity, q.criteria, language, position)
            except StorageError as e:
                logger.error(f"Error inserting question from {sheet_name} row {position}: {e}")
                failed += 1
                continue
            inserted += 1
        if len(data) - inserted - failed:
            logger.debug(f"{sheet_name}: skipped {len(data) - inserted - failed} rows without area/activity/criteria")

        result.failed_rows += failed

        result.sheets[sheet_name] = inserted
        result.total_inserted += inserted

    store.record_imported_file(path.name)
    logger.info(f"Successfully imported {result.total_inserted} questions from {path.name}")
    return result


def force_reimport(path, store: Optional[QuestionStore] = None) -> ImportResult:
    _require(path)
    store = store or QuestionStore()
    logger.info(f"Force re-importing {Path(path).name}")
    # fail on a bad file before anything is cleared
    read_workbook(path)
    store.clear_questions()
    return import_workbook(path, store)


def preview_workbook(path) -> Dict[str, dict]:
    """Per mapped sheet: language, data row count, headers and the first rows."""
    preview = {}
    for sheet_name, rows in read_workbook(path).items():
        language = sheet_language(sheet_name)
        if not language:
            continue
        preview[sheet_name] = {
            "language": language,
            "row_count": max(len(rows) - 1, 0),
            "headers": rows[0] if rows else [],
            "sample_rows": rows[1:1 + PREVIEW_ROWS],
        }
    return preview
