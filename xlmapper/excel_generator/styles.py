"""
Style resolution for declared cell styles.

Turns CellStyle declarations into openpyxl style objects bundled in a
StyleHandle that can be applied to any cell.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import structlog
from openpyxl.cell.cell import Cell
from openpyxl.styles import (
    Alignment,
    Border,
    Font,
    PatternFill,
    Protection,
    Side,
)

from xlmapper.excel_generator.declarations import CellStyle
from xlmapper.excel_generator.declarations import Font as FontDeclaration

logger = structlog.get_logger(__name__)

DEFAULT_NUMBER_FORMAT = "General"


@dataclass(frozen=True)
class StyleHandle:
    """Resolved font plus formatting, ready to apply."""

    font: Font
    border: Border
    fill: PatternFill
    alignment: Alignment
    number_format: str
    protection: Protection

    def apply(self, cell: Cell) -> None:
        cell.font = self.font
        cell.border = self.border
        cell.fill = self.fill
        cell.alignment = self.alignment
        cell.number_format = self.number_format
        cell.protection = self.protection


class StyleResolver:
    """
    Resolves CellStyle declarations to StyleHandles.

    Declarations are frozen dataclasses, so identical declarations hit the
    same memo entry. One resolver lives for one generation pass.

    Attributes:
        calls: Number of resolve() invocations.
        created: Number of handles actually built.
    """

    def __init__(self):
        self._handles: Dict[CellStyle, StyleHandle] = {}
        self.calls = 0
        self.created = 0

    def resolve(self, style: CellStyle) -> StyleHandle:
        """
        Get the handle of a style declaration.

        Args:
            style: Declared cell style.

        Returns:
            StyleHandle built from openpyxl style objects.
        """
        self.calls += 1
        handle = self._handles.get(style)
        if handle is None:
            handle = self._create_cell_style(style)
            self._handles[style] = handle
            self.created += 1
        return handle

    @staticmethod
    def create_font(font: FontDeclaration) -> Font:
        return Font(
            name=font.name,
            size=font.size,
            bold=font.bold,
            italic=font.italic,
            underline=font.underline,
            strike=font.strike,
            color=font.color,
        )

    def _create_cell_style(self, style: CellStyle) -> StyleHandle:
        font = self.create_font(style.font)

        fill = (
            PatternFill(fill_type=style.fill_pattern, fgColor=style.fill_color)
            if style.fill_color
            else PatternFill()
        )

        return StyleHandle(
            font=font,
            border=Border(
                top=self._side(style.border_top, style.border_color),
                left=self._side(style.border_left, style.border_color),
                right=self._side(style.border_right, style.border_color),
                bottom=self._side(style.border_bottom, style.border_color),
            ),
            fill=fill,
            alignment=Alignment(
                horizontal=style.horizontal_alignment,
                vertical=style.vertical_alignment,
                wrap_text=style.wrap_text,
            ),
            number_format=style.data_format or DEFAULT_NUMBER_FORMAT,
            protection=Protection(locked=style.locked, hidden=style.hidden),
        )

    @staticmethod
    def _side(border_style: Optional[str], color: str) -> Side:
        if not border_style:
            return Side()
        return Side(style=border_style, color=color)
