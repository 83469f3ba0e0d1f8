"""
Main ExcelGenerator class for rendering declared objects into workbooks.

Walks the structure of a root object sheet by sheet, draws fixed rows and
expands data row blocks, and commits deferred formulas once a sheet is
complete.
"""

from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

import structlog
from openpyxl import Workbook
from openpyxl.cell.cell import Cell

from xlmapper.config import Settings
from xlmapper.exceptions import GenerationError, NoWorkbookError, XlMapperError
from xlmapper.excel_generator.declarations import CellType, DataRows
from xlmapper.excel_generator.formula_engine import FormulaEngine
from xlmapper.excel_generator.structure import (
    DocumentStructure,
    ExcelStructure,
    GenerationState,
    RowExtent,
    RowStructure,
    SheetStructure,
    build_structure,
)
from xlmapper.excel_generator.styles import StyleHandle, StyleResolver
from xlmapper.excel_generator.values import (
    ValueBinder,
    find_cell_value,
    find_row_data_collection,
)
from xlmapper.excel_generator.workbook import (
    COLUMN_WIDTH_UNIT,
    CellRange,
    SheetAdapter,
    WorkbookAdapter,
)

logger = structlog.get_logger(__name__)


class ExcelGenerator:
    """
    Generates an Excel workbook from one declared root object.

    Orchestrates:
    1. Deriving (or reusing) the document structure
    2. Creating sheets in ascending index order
    3. Drawing fixed rows and expanding data row blocks
    4. Committing deferred formulas per sheet

    Not safe for concurrent generate() calls on the same instance.
    """

    def __init__(self, excel_dto: Any, settings: Optional[Settings] = None):
        """
        Initialize ExcelGenerator.

        Args:
            excel_dto: Root object whose class declares the sheets.
            settings: Settings used when deriving the structure.
        """
        self.excel_dto = excel_dto
        self.settings = settings

        # Components
        self.formula_engine = FormulaEngine()
        self.style_resolver = StyleResolver()

        # State
        self.state = GenerationState()
        self.structure: Optional[DocumentStructure] = None
        self._workbook: Optional[WorkbookAdapter] = None
        self._binder: Optional[ValueBinder] = None

    @property
    def workbook(self) -> Optional[Workbook]:
        return self._workbook.workbook if self._workbook else None

    def reset_row_generated_status(self) -> None:
        self.state.reset_row_generated_status()

    def generate(self, structure: Optional[DocumentStructure] = None) -> Workbook:
        """
        Render the root object into a new workbook.

        Args:
            structure: Structure to render against. Derived from the root
                object's class when omitted.

        Returns:
            OpenPyXL Workbook object.
        """
        self._workbook = None
        if structure is not None:
            self.structure = structure
        if self.structure is None:
            self.structure = self._build_structure()

        self.reset_row_generated_status()
        self.formula_engine.reset()
        self.style_resolver = StyleResolver()
        self._binder = ValueBinder(self.structure.date_format_zone, self.formula_engine)
        self._workbook = WorkbookAdapter()

        logger.info(
            "Generating workbook",
            root=type(self.excel_dto).__qualname__,
            sheets=len(self.structure.sheets),
        )

        for sheet_structure in self.structure.sorted_sheets():
            try:
                self._generate_sheet(sheet_structure)
            except XlMapperError:
                self._workbook = None
                raise
            except Exception as e:
                self._workbook = None
                raise GenerationError(
                    f"failed to generate sheet {sheet_structure.name}: {e}",
                    details={"sheet": sheet_structure.name},
                ) from e

        logger.info(
            "Workbook generated",
            sheets=len(self.structure.sheets),
            styles_created=self.style_resolver.created,
        )
        return self._workbook.workbook

    def save(self, target: Union[str, Path, BinaryIO]) -> Union[str, Path, BinaryIO]:
        """
        Save the generated workbook.

        Args:
            target: File path, directory, or binary stream. A directory
                receives the document's declared file name.

        Returns:
            Where the workbook was written.
        """
        if self._workbook is None:
            raise NoWorkbookError()

        if isinstance(target, (str, Path)) and Path(target).is_dir():
            target = Path(target) / self._file_name()

        self._workbook.save(target)
        logger.info("Workbook saved", path=str(target))
        return target

    def write(
        self,
        target: Union[str, Path, BinaryIO],
        structure: Optional[DocumentStructure] = None,
    ) -> Union[str, Path, BinaryIO]:
        """Generate and save in one step."""
        self.generate(structure)
        return self.save(target)

    def to_bytes(self, structure: Optional[DocumentStructure] = None) -> bytes:
        """Generate and serialize to .xlsx bytes."""
        self.generate(structure)
        return self._workbook.to_bytes()

    def _build_structure(self) -> DocumentStructure:
        if self.settings is None:
            return build_structure(type(self.excel_dto))
        return ExcelStructure(self.settings).build(type(self.excel_dto))

    def _file_name(self) -> str:
        file_name = self.structure.annotation.file_name or (
            f"{self.structure.root_type.__name__}.xlsx"
        )
        if not file_name.lower().endswith(".xlsx"):
            file_name = f"{file_name}.xlsx"
        return file_name

    # -------------------------------------------------------------------------
    # Sheets
    # -------------------------------------------------------------------------

    def _generate_sheet(self, sheet_structure: SheetStructure) -> None:
        annotation = sheet_structure.annotation
        sheet = self._workbook.create_sheet(annotation.name)
        if annotation.protect:
            sheet.protect(annotation.protect_key)
        sheet.set_default_row_height(sheet_structure.default_row_height_in_points)
        sheet.set_default_column_width(sheet_structure.default_column_width)
        for column_width in annotation.column_widths:
            sheet.set_column_width(
                column_width.column, column_width.width * COLUMN_WIDTH_UNIT
            )

        while not self.state.is_all_rows_generated(sheet_structure):
            row_structure = self.state.next_row_structure(sheet_structure)
            if row_structure.is_data_row:
                extent = self._draw_data_rows(sheet_structure, row_structure, sheet)
            else:
                extent = self._draw_row(sheet_structure, row_structure, sheet)
            self.state.mark_generated(sheet_structure, row_structure, extent)
            self.formula_engine.register_extent(
                sheet_structure.field_name, row_structure.field_name, extent
            )

        formula_count = self.formula_engine.apply_sheet_formulas(
            sheet_structure.field_name
        )
        logger.info(
            "Sheet generated",
            sheet=annotation.name,
            index=annotation.index,
            rows=len(sheet_structure.rows),
            formulas=formula_count,
        )

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def _draw_row(
        self,
        sheet_structure: SheetStructure,
        row_structure: RowStructure,
        sheet: SheetAdapter,
    ) -> RowExtent:
        row_num = self.state.resolve_start_row(sheet_structure, row_structure)
        row = sheet.create_row(row_num)

        annotation = row_structure.annotation
        if annotation.use_row_height_in_points:
            row.set_height(annotation.height_in_points)

        for cell_structure in row_structure.cells:
            cell = row.create_cell(cell_structure.column)
            self.style_resolver.resolve(cell_structure.annotation.style).apply(cell)
            self._merge_cell(sheet, cell, row_num, cell_structure.column, cell_structure.cols)
            self._binder.bind(
                cell,
                cell_structure.cell_type,
                find_cell_value(self.excel_dto, cell_structure),
                sheet_structure.field_name,
            )

        return RowExtent(start=row_num, end=row_num, first=row_num, last=row_num)

    def _draw_data_rows(
        self,
        sheet_structure: SheetStructure,
        row_structure: RowStructure,
        sheet: SheetAdapter,
    ) -> RowExtent:
        start_row_num = self.state.resolve_start_row(sheet_structure, row_structure)
        current_row_num = start_row_num
        annotation: DataRows = row_structure.annotation

        if row_structure.is_data_row_and_hide_header:
            current_row_num -= 1
        else:
            self._draw_data_header_row(
                sheet_structure, annotation, current_row_num, sheet
            )
        first_data_row_num = current_row_num + 1

        cached_data_row_style = self._create_cached_data_row_style(row_structure)
        items = find_row_data_collection(self.excel_dto, row_structure)

        count = 0
        if items is not None:
            for item in items:
                current_row_num += 1
                self._draw_data_row(
                    sheet_structure,
                    row_structure,
                    current_row_num,
                    item,
                    cached_data_row_style,
                    sheet,
                )
                count += 1

        logger.debug(
            "Data rows expanded",
            sheet=sheet_structure.name,
            field=row_structure.field_name,
            items=count,
        )
        return RowExtent(
            start=start_row_num,
            end=current_row_num,
            first=first_data_row_num,
            last=current_row_num,
        )

    def _create_cached_data_row_style(
        self, row_structure: RowStructure
    ) -> Dict[str, StyleHandle]:
        """One style per cell template, shared by every row of the block."""
        return {
            cell_structure.field_name: self.style_resolver.resolve(
                cell_structure.annotation.style
            )
            for cell_structure in row_structure.cells
        }

    def _draw_data_row(
        self,
        sheet_structure: SheetStructure,
        row_structure: RowStructure,
        row_num: int,
        item: Any,
        cached_data_row_style: Dict[str, StyleHandle],
        sheet: SheetAdapter,
    ) -> None:
        annotation: DataRows = row_structure.annotation

        row = sheet.create_row(row_num)
        if annotation.use_data_height_in_points:
            row.set_height(annotation.data_height_in_points)

        for cell_structure in row_structure.cells:
            cell = row.create_cell(cell_structure.column)
            style = cached_data_row_style.get(cell_structure.field_name)
            if style is not None:
                style.apply(cell)
            self._merge_cell(sheet, cell, row_num, cell_structure.column, cell_structure.cols)
            self._binder.bind(
                cell,
                cell_structure.cell_type,
                cell_structure.field.get(item),
                sheet_structure.field_name,
            )

    def _draw_data_header_row(
        self,
        sheet_structure: SheetStructure,
        annotation: DataRows,
        row_num: int,
        sheet: SheetAdapter,
    ) -> None:
        row = sheet.create_row(row_num)
        if annotation.use_header_height_in_points:
            row.set_height(annotation.header_height_in_points)

        for header in annotation.headers:
            cell = row.create_cell(header.column)
            self.style_resolver.resolve(header.style).apply(cell)
            self._merge_cell(sheet, cell, row_num, header.column, header.cols)
            self._binder.bind(
                cell, CellType.STRING, header.name, sheet_structure.field_name
            )

    # -------------------------------------------------------------------------
    # Merges
    # -------------------------------------------------------------------------

    @staticmethod
    def _merge_cell(
        sheet: SheetAdapter, cell: Cell, row_num: int, column: int, cols: int
    ) -> None:
        """Merge cols columns from column and carry the origin borders over."""
        if cols < 2:
            return
        region = CellRange(
            first_row=row_num,
            last_row=row_num,
            first_column=column,
            last_column=column + cols - 1,
        )
        border = cell.border
        sheet.add_merged_region(region)
        sheet.apply_region_borders(region, border)
