"""
Workbook adapter over openpyxl.

Exposes the sheet / row / cell operations the generator needs with
zero-based row and column indices, and converts them to openpyxl's
one-based coordinates.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Border
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

# Column widths are encoded in 1/256 of a character
COLUMN_WIDTH_UNIT = 256


@dataclass(frozen=True)
class CellRange:
    """Rectangular cell region, zero-based and inclusive."""

    first_row: int
    last_row: int
    first_column: int
    last_column: int

    @property
    def coord(self) -> str:
        """Range in A1 notation, e.g. "B3:D3"."""
        return (
            f"{get_column_letter(self.first_column + 1)}{self.first_row + 1}:"
            f"{get_column_letter(self.last_column + 1)}{self.last_row + 1}"
        )

    def positions(self) -> Iterator[tuple]:
        for row in range(self.first_row, self.last_row + 1):
            for column in range(self.first_column, self.last_column + 1):
                yield row, column


class RowAdapter:
    """One row of a sheet."""

    def __init__(self, sheet: "SheetAdapter", index: int):
        self.sheet = sheet
        self.index = index

    def create_cell(self, column: int) -> Cell:
        return self.sheet.cell(self.index, column)

    def set_height(self, points: float) -> None:
        self.sheet.worksheet.row_dimensions[self.index + 1].height = points


class SheetAdapter:
    """One worksheet of the workbook."""

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet

    @property
    def name(self) -> str:
        return self.worksheet.title

    def set_default_row_height(self, points: float) -> None:
        self.worksheet.sheet_format.defaultRowHeight = points
        self.worksheet.sheet_format.customHeight = True

    def set_default_column_width(self, width: int) -> None:
        self.worksheet.sheet_format.baseColWidth = width

    def set_column_width(self, column: int, width_units: int) -> None:
        """Set a column width given in 1/256 character units."""
        letter = get_column_letter(column + 1)
        self.worksheet.column_dimensions[letter].width = width_units / COLUMN_WIDTH_UNIT

    def protect(self, key: Optional[str] = None) -> None:
        self.worksheet.protection.sheet = True
        if key:
            self.worksheet.protection.password = key

    def create_row(self, index: int) -> RowAdapter:
        return RowAdapter(self, index)

    def cell(self, row: int, column: int) -> Cell:
        return self.worksheet.cell(row=row + 1, column=column + 1)

    def add_merged_region(self, region: CellRange) -> None:
        self.worksheet.merge_cells(
            start_row=region.first_row + 1,
            start_column=region.first_column + 1,
            end_row=region.last_row + 1,
            end_column=region.last_column + 1,
        )

    def apply_region_borders(self, region: CellRange, border: Border) -> None:
        """
        Apply border sides along the edges of a region.

        Top and bottom go to the first and last row, left and right to the
        first and last column. Other sides of each cell are kept.
        """
        for row, column in region.positions():
            cell = self.cell(row, column)
            current = cell.border
            cell.border = Border(
                left=border.left if column == region.first_column else current.left,
                right=border.right if column == region.last_column else current.right,
                top=border.top if row == region.first_row else current.top,
                bottom=border.bottom if row == region.last_row else current.bottom,
            )


class WorkbookAdapter:
    """A fresh workbook with no sheets."""

    def __init__(self):
        self.workbook = Workbook()
        self.workbook.remove(self.workbook.active)

    def create_sheet(self, name: str) -> SheetAdapter:
        return SheetAdapter(self.workbook.create_sheet(title=name))

    def save(self, target: Union[str, Path, BinaryIO]) -> None:
        self.workbook.save(target)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.workbook.save(buffer)
        return buffer.getvalue()
