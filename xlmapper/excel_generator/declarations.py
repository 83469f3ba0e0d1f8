"""
Declarations for mapping Python classes onto Excel workbooks.

Declarations are attached to fields with ``typing.Annotated``::

    @document(date_format_zone="Asia/Seoul")
    @dataclass
    class Report:
        summary: Annotated[Summary, Sheet(name="Summary", index=0)]

    @dataclass
    class Summary:
        title: Annotated[TitleRow, Row(start_row_num=0)]
        items: Annotated[List[Item], DataRows(headers=(Header("Amount"),))]

    @dataclass
    class Item:
        amount: Annotated[int, Cell(CellType.NUMERIC)]

All declarations are frozen, so two declarations with the same content
compare and hash equal.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Type, TypeVar

T = TypeVar("T")

DOCUMENT_ATTRIBUTE = "__xlmapper_document__"


class CellType(Enum):
    """Declared value type of a cell."""

    BLANK = "blank"
    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    FORMULA = "formula"


def _as_tuple(instance, name: str) -> None:
    value = getattr(instance, name)
    if not isinstance(value, tuple):
        object.__setattr__(instance, name, tuple(value))


# =============================================================================
# STYLE DECLARATIONS
# =============================================================================

@dataclass(frozen=True)
class Font:
    """Font attributes of a cell."""

    name: str = "Calibri"
    size: float = 11.0
    bold: bool = False
    italic: bool = False
    underline: Optional[str] = None  # "single", "double", ...
    strike: bool = False
    color: Optional[str] = None  # hex without #


@dataclass(frozen=True)
class CellStyle:
    """Font plus cell formatting attributes."""

    font: Font = field(default_factory=Font)

    # Alignment
    horizontal_alignment: Optional[str] = None  # "left", "center", "right", ...
    vertical_alignment: Optional[str] = None  # "top", "center", "bottom", ...
    wrap_text: bool = False

    # Borders, openpyxl side styles ("thin", "medium", "double", ...)
    border_top: Optional[str] = None
    border_left: Optional[str] = None
    border_right: Optional[str] = None
    border_bottom: Optional[str] = None
    border_color: str = "000000"

    # Fill
    fill_color: Optional[str] = None
    fill_pattern: str = "solid"

    # Number format, None keeps "General"
    data_format: Optional[str] = None

    # Protection, effective on protected sheets
    locked: bool = True
    hidden: bool = False


# =============================================================================
# LAYOUT DECLARATIONS
# =============================================================================

@dataclass(frozen=True)
class Document:
    """Workbook level declaration, attached to the root class."""

    file_name: Optional[str] = None
    date_format_zone: Optional[str] = None  # IANA zone name, None uses settings


@dataclass(frozen=True)
class ColumnWidth:
    """Explicit width of one column, in characters."""

    column: int
    width: int


@dataclass(frozen=True)
class Sheet:
    """Declares a root field as a worksheet."""

    name: str
    index: int = 0
    protect: bool = False
    protect_key: Optional[str] = None
    default_row_height_in_points: Optional[float] = None
    default_column_width: Optional[int] = None
    column_widths: Tuple[ColumnWidth, ...] = ()

    def __post_init__(self):
        _as_tuple(self, "column_widths")


@dataclass(frozen=True)
class Row:
    """Declares a sheet field as a single fixed row."""

    start_row_num: Optional[int] = None
    use_row_height_in_points: bool = False
    height_in_points: float = 15.0


@dataclass(frozen=True)
class Header:
    """One header cell of a data row block."""

    name: str
    column: int = 0
    cols: int = 1
    style: CellStyle = field(default_factory=CellStyle)


@dataclass(frozen=True)
class DataRows:
    """Declares a collection-valued sheet field as repeating rows."""

    start_row_num: Optional[int] = None
    use_header_height_in_points: bool = False
    header_height_in_points: float = 15.0
    use_data_height_in_points: bool = False
    data_height_in_points: float = 15.0
    hide_header: bool = False
    headers: Tuple[Header, ...] = ()

    def __post_init__(self):
        _as_tuple(self, "headers")


@dataclass(frozen=True)
class Cell:
    """Declares a field as one cell of a row."""

    cell_type: CellType
    column: int = 0
    cols: int = 1
    ignore_parse: bool = False
    required: bool = False
    style: CellStyle = field(default_factory=CellStyle)


def document(
    file_name: Optional[str] = None,
    date_format_zone: Optional[str] = None,
):
    """Class decorator attaching a Document declaration to a root class."""

    def decorate(cls: Type[T]) -> Type[T]:
        setattr(
            cls,
            DOCUMENT_ATTRIBUTE,
            Document(file_name=file_name, date_format_zone=date_format_zone),
        )
        return cls

    return decorate
