"""
Formula Engine for deferred formula cells.

Formula cells are recorded while rows are drawn and only committed once
every row of their sheet exists, so formulas can point at data rows whose
final position depends on collection sizes.

Formula text is opaque apart from row placeholders naming a row structure
of the same sheet by its field name::

    SUM(B${items.first}:B${items.last})

``first``/``last`` are the first and last data rows of a block, ``start``/
``end`` the first and last rows it occupies (header included). Placeholders
become one-based spreadsheet row numbers.

A block without items has no data rows. Its placeholders collapse onto the
header row, which aggregates ignore as text. A block that occupies no row at
all (hidden header, no items) has its ``X${name.first}:X${name.last}``
ranges replaced by ``0``; any other placeholder of it points at the row the
block would have started on.
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List

import structlog
from openpyxl.cell.cell import Cell

from xlmapper.excel_generator.structure import RowExtent

logger = structlog.get_logger(__name__)

ROW_PLACEHOLDER = re.compile(r"\$\{(\w+)\.(first|last|start|end)\}")
EMPTY_BLOCK_RANGE = re.compile(
    r"\$?[A-Za-z]{1,3}\$\{(\w+)\.first\}:\$?[A-Za-z]{1,3}\$\{\1\.last\}"
)


def formula_row(extent: RowExtent, bound: str) -> int:
    """Zero-based row a placeholder stands for."""
    if extent.data_rows == 0:
        return extent.start
    return getattr(extent, bound)


@dataclass
class PendingFormula:
    """A formula write waiting for its sheet to be complete."""

    cell: Cell
    formula: str


class FormulaEngine:
    """Records formula writes and commits them per sheet."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._formulas: Dict[str, List[PendingFormula]] = defaultdict(list)
        self._extents: Dict[str, Dict[str, RowExtent]] = defaultdict(dict)

    def add_formula(self, sheet_key: str, cell: Cell, formula: str) -> None:
        self._formulas[sheet_key].append(PendingFormula(cell=cell, formula=formula))

    def register_extent(self, sheet_key: str, name: str, extent: RowExtent) -> None:
        self._extents[sheet_key][name] = extent

    def resolve(self, sheet_key: str, formula: str) -> str:
        """Substitute known row placeholders and prefix "="."""
        extents = self._extents.get(sheet_key, {})

        def collapse(match: re.Match) -> str:
            extent = extents.get(match.group(1))
            if extent is None or extent.occupies_rows:
                return match.group(0)
            return "0"

        def substitute(match: re.Match) -> str:
            extent = extents.get(match.group(1))
            if extent is None:
                return match.group(0)
            return str(formula_row(extent, match.group(2)) + 1)

        resolved = EMPTY_BLOCK_RANGE.sub(collapse, formula.strip())
        resolved = ROW_PLACEHOLDER.sub(substitute, resolved)
        if not resolved.startswith("="):
            resolved = f"={resolved}"
        return resolved

    def apply_sheet_formulas(self, sheet_key: str) -> int:
        """
        Commit every recorded formula of one sheet, in recorded order.

        Args:
            sheet_key: Field name of the sheet.

        Returns:
            Number of formulas committed.
        """
        pending = self._formulas.pop(sheet_key, [])
        for entry in pending:
            entry.cell.value = self.resolve(sheet_key, entry.formula)

        self._extents.pop(sheet_key, None)
        if pending:
            logger.info("Formulas applied", sheet=sheet_key, count=len(pending))
        return len(pending)
