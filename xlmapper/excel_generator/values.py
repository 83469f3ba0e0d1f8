"""
Cell value lookup and binding.

Values of fixed rows are reached through the owning chain
root -> sheet object -> row object -> field; data row values are read
straight from the collection element. Binding is lenient: a missing or
mistyped value leaves the cell unbound.
"""

import collections.abc
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from openpyxl.cell.cell import Cell

from xlmapper.exceptions import GenerationError, ValueAccessError
from xlmapper.excel_generator.declarations import CellType
from xlmapper.excel_generator.formula_engine import FormulaEngine
from xlmapper.excel_generator.structure import CellStructure, RowStructure


def find_cell_value(excel_dto: Any, cell_structure: CellStructure) -> Any:
    """Walk sheet object, row object and field; None anywhere yields None."""
    sheet_obj = cell_structure.sheet_field.get(excel_dto)
    if sheet_obj is None:
        return None
    row_obj = cell_structure.row_field.get(sheet_obj)
    if row_obj is None:
        return None
    return cell_structure.field.get(row_obj)


def find_row_data_collection(
    excel_dto: Any,
    row_structure: RowStructure,
) -> Optional[Iterable]:
    """Backing collection of a data row block, None when absent."""
    sheet_obj = row_structure.sheet_field.get(excel_dto)
    if sheet_obj is None:
        return None
    items = row_structure.field.get(sheet_obj)
    if items is None:
        return None
    if isinstance(items, (str, bytes)) or not isinstance(items, collections.abc.Iterable):
        raise ValueAccessError(
            row_structure.field_name,
            owner=type(sheet_obj).__qualname__,
            message=f"can not find data row collection, {row_structure.field_name}",
        )
    return items


def to_excel_datetime(value: datetime, zone: ZoneInfo) -> datetime:
    """Excel has no time zones: aware values are moved into zone, then made naive."""
    if value.tzinfo is not None:
        value = value.astimezone(zone)
    return value.replace(tzinfo=None)


class ValueBinder:
    """Writes runtime values into cells according to their declared type."""

    def __init__(self, date_format_zone: str, formula_engine: FormulaEngine):
        try:
            self.zone = ZoneInfo(date_format_zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise GenerationError(
                f"unknown date format zone {date_format_zone!r}",
                details={"zone": date_format_zone},
            ) from e
        self.formula_engine = formula_engine

    def bind(self, cell: Cell, cell_type: CellType, value: Any, sheet_key: str) -> None:
        """
        Bind value to cell.

        Args:
            cell: Target cell.
            cell_type: Declared type of the cell.
            value: Resolved runtime value, may be None.
            sheet_key: Sheet the cell belongs to, for deferred formulas.
        """
        if value is None:
            return

        if cell_type is CellType.BLANK:
            cell.value = None
        elif cell_type is CellType.STRING:
            if isinstance(value, str):
                cell.value = value
        elif cell_type is CellType.NUMERIC:
            if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
                cell.value = float(value)
        elif cell_type is CellType.BOOLEAN:
            if isinstance(value, bool):
                cell.value = value
        elif cell_type is CellType.FORMULA:
            if isinstance(value, str):
                self.formula_engine.add_formula(sheet_key, cell, value)
        elif cell_type is CellType.DATE:
            if isinstance(value, datetime):
                cell.value = to_excel_datetime(value, self.zone)
            elif isinstance(value, date):
                cell.value = value
