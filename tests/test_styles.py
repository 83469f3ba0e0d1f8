"""
Unit tests for StyleResolver.
"""
import pytest

from xlmapper.excel_generator.declarations import CellStyle, Font
from xlmapper.excel_generator.styles import StyleResolver


class TestStyleResolver:
    """Tests for style resolution and memoization."""

    @pytest.fixture
    def resolver(self) -> StyleResolver:
        return StyleResolver()

    def test_equal_declarations_share_handle(self, resolver: StyleResolver):
        """Test identical declarations resolve to one handle."""
        first = resolver.resolve(CellStyle(font=Font(bold=True), border_top="thin"))
        second = resolver.resolve(CellStyle(font=Font(bold=True), border_top="thin"))

        assert first is second
        assert resolver.calls == 2
        assert resolver.created == 1

    def test_different_declarations(self, resolver: StyleResolver):
        """Test different declarations build different handles."""
        resolver.resolve(CellStyle())
        resolver.resolve(CellStyle(fill_color="FFFF00"))

        assert resolver.created == 2

    def test_font_attributes(self, resolver: StyleResolver):
        """Test the font declaration is converted."""
        handle = resolver.resolve(
            CellStyle(font=Font(name="Arial", size=9, bold=True, italic=True, color="FF0000"))
        )

        assert handle.font.name == "Arial"
        assert handle.font.size == 9
        assert handle.font.b is True
        assert handle.font.i is True
        assert handle.font.color.rgb == "00FF0000"

    def test_formatting_attributes(self, resolver: StyleResolver):
        """Test borders, fill, alignment, format and protection."""
        handle = resolver.resolve(
            CellStyle(
                border_top="thin",
                border_bottom="double",
                border_color="333333",
                fill_color="EEEEEE",
                horizontal_alignment="center",
                wrap_text=True,
                data_format="yyyy-mm-dd",
                locked=False,
            )
        )

        assert handle.border.top.style == "thin"
        assert handle.border.bottom.style == "double"
        assert handle.border.left.style is None
        assert handle.fill.fill_type == "solid"
        assert handle.fill.fgColor.rgb == "00EEEEEE"
        assert handle.alignment.horizontal == "center"
        assert handle.alignment.wrap_text is True
        assert handle.number_format == "yyyy-mm-dd"
        assert handle.protection.locked is False

    def test_default_style(self, resolver: StyleResolver):
        """Test the default declaration keeps General and no fill."""
        handle = resolver.resolve(CellStyle())

        assert handle.number_format == "General"
        assert handle.fill.fill_type is None

    def test_apply(self, resolver: StyleResolver, worksheet):
        """Test a handle styles a cell."""
        handle = resolver.resolve(CellStyle(font=Font(bold=True), data_format="0.00"))
        cell = worksheet["B2"]
        handle.apply(cell)

        assert cell.font.b is True
        assert cell.number_format == "0.00"
