"""
xlmapper - render declared Python objects as Excel workbooks.
"""

from xlmapper.exceptions import (
    GenerationError,
    NoWorkbookError,
    StructureError,
    ValueAccessError,
    XlMapperError,
)
from xlmapper.excel_generator import (
    Cell,
    CellStyle,
    CellType,
    ColumnWidth,
    DataRows,
    Document,
    ExcelGenerator,
    Font,
    Header,
    Row,
    Sheet,
    build_structure,
    document,
)

__version__ = "0.1.0"

__all__ = [
    "Cell",
    "CellStyle",
    "CellType",
    "ColumnWidth",
    "DataRows",
    "Document",
    "ExcelGenerator",
    "Font",
    "GenerationError",
    "Header",
    "NoWorkbookError",
    "Row",
    "Sheet",
    "StructureError",
    "ValueAccessError",
    "XlMapperError",
    "build_structure",
    "document",
]
