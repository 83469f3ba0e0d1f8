"""
Excel generator module for xlmapper.

Maps declared Python objects onto formatted Excel workbooks: sheets,
fixed rows, repeating data rows, merged cells, styles and formulas.
"""

from xlmapper.excel_generator.declarations import (
    Cell,
    CellStyle,
    CellType,
    ColumnWidth,
    DataRows,
    Document,
    Font,
    Header,
    Row,
    Sheet,
    document,
)
from xlmapper.excel_generator.formula_engine import FormulaEngine
from xlmapper.excel_generator.generator import ExcelGenerator
from xlmapper.excel_generator.structure import (
    DocumentStructure,
    ExcelStructure,
    GenerationState,
    build_structure,
)
from xlmapper.excel_generator.styles import StyleHandle, StyleResolver

__all__ = [
    "Cell",
    "CellStyle",
    "CellType",
    "ColumnWidth",
    "DataRows",
    "Document",
    "DocumentStructure",
    "ExcelGenerator",
    "ExcelStructure",
    "Font",
    "FormulaEngine",
    "GenerationState",
    "Header",
    "Row",
    "Sheet",
    "StyleHandle",
    "StyleResolver",
    "build_structure",
    "document",
]
