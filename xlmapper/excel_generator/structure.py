"""
Excel structure derived from class declarations.

Builds an immutable sheet / row / cell layout tree from the Annotated
declarations on a root class and its nested field types, without reading
any field values. Mutable per-run bookkeeping (row cursors, generated
flags, block extents) lives in GenerationState.
"""

import collections.abc
import types
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import (
    Annotated,
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from xlmapper.config import Settings, get_settings
from xlmapper.exceptions import StructureError, ValueAccessError
from xlmapper.excel_generator.declarations import (
    DOCUMENT_ATTRIBUTE,
    Cell,
    CellType,
    DataRows,
    Document,
    Row,
    Sheet,
)

logger = structlog.get_logger(__name__)


class RowKind(Enum):
    """Kinds of row structures in a sheet."""

    FIXED = "fixed"  # A single row with a fixed set of cells
    DATA = "data"  # One row per element of a collection, optional header


# Declared field type categories each cell type accepts
CELL_TYPE_CATEGORIES: Dict[CellType, Tuple[type, ...]] = {
    CellType.STRING: (str,),
    CellType.NUMERIC: (int, float, Decimal),
    CellType.BOOLEAN: (bool,),
    CellType.DATE: (date,),
    CellType.FORMULA: (str,),
}

_COLLECTION_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
)


# =============================================================================
# FIELD ACCESS
# =============================================================================

@dataclass(frozen=True)
class FieldAccessor:
    """Reads one declared field from its owning object."""

    name: str
    owner: str

    def get(self, obj: Any) -> Any:
        try:
            return getattr(obj, self.name)
        except AttributeError as e:
            raise ValueAccessError(
                self.name,
                owner=type(obj).__qualname__,
                message=f"can not find field {self.name} on {type(obj).__qualname__}",
            ) from e


# =============================================================================
# STRUCTURE TREE
# =============================================================================

@dataclass(frozen=True)
class CellStructure:
    """A cell bound to a field of a row class or a collection element class."""

    field_name: str
    annotation: Cell
    field: FieldAccessor
    sheet_field: FieldAccessor
    row_field: FieldAccessor

    @property
    def column(self) -> int:
        return self.annotation.column

    @property
    def cols(self) -> int:
        return self.annotation.cols

    @property
    def cell_type(self) -> CellType:
        return self.annotation.cell_type


@dataclass(frozen=True)
class RowStructure:
    """A fixed row or a data row block within a sheet."""

    field_name: str
    kind: RowKind
    annotation: Union[Row, DataRows]
    field: FieldAccessor
    sheet_field: FieldAccessor
    cells: Tuple[CellStructure, ...]

    @property
    def is_data_row(self) -> bool:
        return self.kind is RowKind.DATA

    @property
    def is_data_row_and_hide_header(self) -> bool:
        return self.is_data_row and self.annotation.hide_header

    @property
    def start_row_num(self) -> Optional[int]:
        return self.annotation.start_row_num


@dataclass(frozen=True)
class SheetStructure:
    """A worksheet bound to a field of the root class."""

    field_name: str
    annotation: Sheet
    field: FieldAccessor
    rows: Tuple[RowStructure, ...]
    default_row_height_in_points: float
    default_column_width: int

    @property
    def name(self) -> str:
        return self.annotation.name

    @property
    def index(self) -> int:
        return self.annotation.index


@dataclass(frozen=True)
class DocumentStructure:
    """Complete layout of a workbook for one root class."""

    root_type: type
    annotation: Document
    sheets: Tuple[SheetStructure, ...]

    @property
    def date_format_zone(self) -> str:
        return self.annotation.date_format_zone

    def sorted_sheets(self) -> List[SheetStructure]:
        """Sheets in ascending index order, ties kept in declaration order."""
        return sorted(self.sheets, key=lambda sheet: sheet.index)


# =============================================================================
# GENERATION STATE
# =============================================================================

@dataclass(frozen=True)
class RowExtent:
    """Rows occupied by one drawn row structure (zero-based, inclusive)."""

    start: int
    end: int
    first: int  # first data row, equals start for fixed rows
    last: int  # last data row, first - 1 when a block has no items

    @property
    def data_rows(self) -> int:
        return self.last - self.first + 1

    @property
    def occupies_rows(self) -> bool:
        """False for a block with a hidden header and no items."""
        return self.end >= self.start


class GenerationState:
    """
    Per-run bookkeeping of a generation pass.

    Kept apart from the immutable structure so one DocumentStructure can be
    rendered any number of times.
    """

    def __init__(self):
        self.reset_row_generated_status()

    def reset_row_generated_status(self) -> None:
        """Clear every generated flag, extent, cursor and offset."""
        self._extents: Dict[Tuple[str, str], RowExtent] = {}
        self._cursors: Dict[str, int] = {}
        self._offsets: Dict[str, int] = {}

    def is_generated(self, sheet: SheetStructure, row: RowStructure) -> bool:
        return (sheet.field_name, row.field_name) in self._extents

    def is_all_rows_generated(self, sheet: SheetStructure) -> bool:
        return all(self.is_generated(sheet, row) for row in sheet.rows)

    def next_row_structure(self, sheet: SheetStructure) -> Optional[RowStructure]:
        """First row structure of the sheet, in declaration order, not yet drawn."""
        return next(
            (row for row in sheet.rows if not self.is_generated(sheet, row)),
            None,
        )

    def resolve_start_row(self, sheet: SheetStructure, row: RowStructure) -> int:
        """
        Row number a row structure starts at.

        A declared start row is shifted by the rows preceding data blocks
        rendered beyond their one-row template. Without a declared start row
        the structure goes directly below the previously drawn one.
        """
        if row.start_row_num is None:
            return self._cursors.get(sheet.field_name, 0)
        return row.start_row_num + self._offsets.get(sheet.field_name, 0)

    def mark_generated(
        self,
        sheet: SheetStructure,
        row: RowStructure,
        extent: RowExtent,
    ) -> None:
        self._extents[(sheet.field_name, row.field_name)] = extent
        self._cursors[sheet.field_name] = max(
            self._cursors.get(sheet.field_name, 0), extent.end + 1
        )
        if row.is_data_row:
            self._offsets[sheet.field_name] = (
                self._offsets.get(sheet.field_name, 0) + extent.data_rows - 1
            )

    def extent(self, sheet: SheetStructure, row: RowStructure) -> Optional[RowExtent]:
        return self._extents.get((sheet.field_name, row.field_name))


# =============================================================================
# STRUCTURE BUILDER
# =============================================================================

class ExcelStructure:
    """
    Derives a DocumentStructure from class declarations.

    Validates eagerly: any inconsistency raises StructureError before a
    single cell is rendered.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def build(self, root_type: type) -> DocumentStructure:
        """
        Build the layout tree of a root class.

        Args:
            root_type: Class whose fields are declared as sheets.

        Returns:
            Immutable DocumentStructure.
        """
        if not isinstance(root_type, type):
            raise StructureError(f"root type must be a class, got {root_type!r}")

        document = getattr(root_type, DOCUMENT_ATTRIBUTE, None) or Document()
        if document.date_format_zone is None:
            document = Document(
                file_name=document.file_name,
                date_format_zone=self.settings.date_format_zone,
            )
        try:
            ZoneInfo(document.date_format_zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise StructureError(
                f"unknown date format zone {document.date_format_zone!r}",
                owner=root_type.__qualname__,
            ) from e

        sheets: List[SheetStructure] = []
        for name, base, sheet in self._declared_fields(root_type, Sheet):
            sheets.append(self._build_sheet(root_type, name, base, sheet))

        if not sheets:
            raise StructureError(
                "no sheet declared on root type", owner=root_type.__qualname__
            )

        self._check_sheet_indices(sheets)

        structure = DocumentStructure(
            root_type=root_type,
            annotation=document,
            sheets=tuple(sheets),
        )
        logger.info(
            "Excel structure built",
            root=root_type.__qualname__,
            sheets=len(sheets),
            rows=sum(len(sheet.rows) for sheet in sheets),
        )
        return structure

    def _build_sheet(
        self,
        root_type: type,
        name: str,
        base: Any,
        sheet: Sheet,
    ) -> SheetStructure:
        owner = root_type.__qualname__
        sheet_type = self._require_class(base, owner, name)
        for column_width in sheet.column_widths:
            if column_width.column < 0 or column_width.width < 0:
                raise StructureError(
                    "column width must not be negative", owner=owner, field_name=name
                )

        sheet_field = FieldAccessor(name=name, owner=owner)
        rows: List[RowStructure] = []
        for row_name, row_base, annotation in self._declared_fields(
            sheet_type, (Row, DataRows)
        ):
            rows.append(
                self._build_row(sheet_type, sheet_field, row_name, row_base, annotation)
            )

        return SheetStructure(
            field_name=name,
            annotation=sheet,
            field=sheet_field,
            rows=tuple(rows),
            default_row_height_in_points=(
                sheet.default_row_height_in_points
                if sheet.default_row_height_in_points is not None
                else self.settings.default_row_height_in_points
            ),
            default_column_width=(
                sheet.default_column_width
                if sheet.default_column_width is not None
                else self.settings.default_column_width
            ),
        )

    def _build_row(
        self,
        sheet_type: type,
        sheet_field: FieldAccessor,
        name: str,
        base: Any,
        annotation: Union[Row, DataRows],
    ) -> RowStructure:
        owner = sheet_type.__qualname__
        if annotation.start_row_num is not None and annotation.start_row_num < 0:
            raise StructureError(
                "start row must not be negative", owner=owner, field_name=name
            )

        if isinstance(annotation, DataRows):
            kind = RowKind.DATA
            cell_owner = self._collection_element(base, owner, name)
            for header in annotation.headers:
                self._check_span(header.column, header.cols, owner, name)
        else:
            kind = RowKind.FIXED
            cell_owner = self._require_class(base, owner, name)

        row_field = FieldAccessor(name=name, owner=owner)
        cells = tuple(
            self._build_cell(cell_owner, sheet_field, row_field, cell_name, cell_base, cell)
            for cell_name, cell_base, cell in self._declared_fields(cell_owner, Cell)
        )
        return RowStructure(
            field_name=name,
            kind=kind,
            annotation=annotation,
            field=row_field,
            sheet_field=sheet_field,
            cells=cells,
        )

    def _build_cell(
        self,
        cell_owner: type,
        sheet_field: FieldAccessor,
        row_field: FieldAccessor,
        name: str,
        base: Any,
        cell: Cell,
    ) -> CellStructure:
        owner = cell_owner.__qualname__
        self._check_span(cell.column, cell.cols, owner, name)
        if not self._satisfies(cell.cell_type, base):
            raise StructureError(
                f"{cell.cell_type.value} cell can not be bound to field type {base!r}",
                owner=owner,
                field_name=name,
            )
        return CellStructure(
            field_name=name,
            annotation=cell,
            field=FieldAccessor(name=name, owner=owner),
            sheet_field=sheet_field,
            row_field=row_field,
        )

    # -------------------------------------------------------------------------
    # Type inspection
    # -------------------------------------------------------------------------

    def _declared_fields(self, cls: type, kinds) -> Iterator[Tuple[str, Any, Any]]:
        """Yield (name, base type, declaration) for fields carrying one of kinds."""
        try:
            hints = get_type_hints(cls, include_extras=True)
        except Exception as e:
            raise StructureError(
                f"can not resolve field types: {e}", owner=cls.__qualname__
            ) from e

        for name, hint in hints.items():
            hint = self._unwrap_optional(hint)
            if get_origin(hint) is not Annotated:
                continue
            declarations = [meta for meta in hint.__metadata__ if isinstance(meta, kinds)]
            if not declarations:
                continue
            if len(declarations) > 1:
                raise StructureError(
                    "field carries more than one declaration",
                    owner=cls.__qualname__,
                    field_name=name,
                )
            yield name, hint.__origin__, declarations[0]

    @staticmethod
    def _unwrap_optional(tp: Any) -> Any:
        if get_origin(tp) in (Union, types.UnionType):
            args = [arg for arg in get_args(tp) if arg is not type(None)]
            if len(args) == 1:
                return args[0]
        return tp

    def _require_class(self, base: Any, owner: str, name: str) -> type:
        tp = self._unwrap_optional(base)
        if not isinstance(tp, type):
            raise StructureError(
                f"field type {base!r} is not a class", owner=owner, field_name=name
            )
        return tp

    def _collection_element(self, base: Any, owner: str, name: str) -> type:
        tp = self._unwrap_optional(base)
        origin = get_origin(tp) or tp
        if (
            not isinstance(origin, type)
            or issubclass(origin, (str, bytes, collections.abc.Mapping))
            or not issubclass(origin, _COLLECTION_ORIGINS)
        ):
            raise StructureError(
                f"data rows must be bound to a collection field, got {base!r}",
                owner=owner,
                field_name=name,
            )

        args = [arg for arg in get_args(tp) if arg is not Ellipsis]
        if len(args) != 1:
            raise StructureError(
                "data rows collection must declare one element type",
                owner=owner,
                field_name=name,
            )
        return self._require_class(args[0], owner, name)

    def _satisfies(self, cell_type: CellType, base: Any) -> bool:
        """Whether a field of declared type base can feed a cell_type cell."""
        if cell_type is CellType.BLANK:
            return True
        tp = self._unwrap_optional(base)
        if tp is Any or tp is object:
            return True
        if get_origin(tp) in (Union, types.UnionType):
            return all(
                self._satisfies(cell_type, arg)
                for arg in get_args(tp)
                if arg is not type(None)
            )
        if not isinstance(tp, type):
            return True
        if cell_type is CellType.NUMERIC and issubclass(tp, bool):
            return False
        return issubclass(tp, CELL_TYPE_CATEGORIES[cell_type])

    @staticmethod
    def _check_span(column: int, cols: int, owner: str, name: str) -> None:
        if column < 0:
            raise StructureError("column must not be negative", owner=owner, field_name=name)
        if cols < 1:
            raise StructureError("cols must be at least 1", owner=owner, field_name=name)

    @staticmethod
    def _check_sheet_indices(sheets: List[SheetStructure]) -> None:
        seen: Dict[int, str] = {}
        for sheet in sheets:
            if sheet.index in seen:
                logger.warning(
                    "Duplicate sheet index, keeping declaration order",
                    index=sheet.index,
                    first=seen[sheet.index],
                    second=sheet.name,
                )
            else:
                seen[sheet.index] = sheet.name


@lru_cache(maxsize=None)
def build_structure(root_type: type) -> DocumentStructure:
    """Build and memoize the structure of a root class with default settings."""
    return ExcelStructure().build(root_type)
