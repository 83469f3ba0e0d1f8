"""
Unit tests for value lookup and binding.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from xlmapper.exceptions import ValueAccessError
from xlmapper.excel_generator.declarations import CellType
from xlmapper.excel_generator.formula_engine import FormulaEngine
from xlmapper.excel_generator.structure import ExcelStructure
from xlmapper.excel_generator.values import (
    ValueBinder,
    find_cell_value,
    find_row_data_collection,
    to_excel_datetime,
)

from tests.sample_reports import SummaryReport, summary_report


@pytest.fixture
def summary_structure(settings):
    return ExcelStructure(settings).build(SummaryReport)


class TestOwningChain:
    """Tests for sheet -> row -> field lookups."""

    def test_find_cell_value(self, summary_structure):
        """Test a fixed row value is reached through its owners."""
        cell = summary_structure.sheets[0].rows[0].cells[0]
        assert find_cell_value(summary_report(), cell) == "Name"

    def test_null_sheet_object(self, summary_structure):
        """Test None sheet object yields no value."""
        cell = summary_structure.sheets[0].rows[0].cells[0]
        assert find_cell_value(SummaryReport(summary=None), cell) is None

    def test_null_row_object(self, summary_structure):
        """Test None row object yields no value."""
        report = summary_report()
        report.summary.title = None
        cell = summary_structure.sheets[0].rows[0].cells[0]

        assert find_cell_value(report, cell) is None

    def test_wrong_owner_shape(self, summary_structure):
        """Test an owner missing the declared field raises."""
        cell = summary_structure.sheets[0].rows[0].cells[0]
        report = SimpleNamespace(summary=SimpleNamespace(title=SimpleNamespace()))

        with pytest.raises(ValueAccessError) as exc_info:
            find_cell_value(report, cell)

        assert exc_info.value.details["field"] == "title"

    def test_find_row_data_collection(self, summary_structure):
        """Test the collection of a data row block."""
        block = summary_structure.sheets[0].rows[1]

        items = find_row_data_collection(summary_report([1, 2]), block)
        assert [item.amount for item in items] == [1, 2]
        assert find_row_data_collection(summary_report(None), block) is None
        assert find_row_data_collection(SummaryReport(summary=None), block) is None

    def test_string_is_not_a_collection(self, summary_structure):
        """Test a string value in a data row field raises."""
        block = summary_structure.sheets[0].rows[1]
        report = SimpleNamespace(summary=SimpleNamespace(payments="abc"))

        with pytest.raises(ValueAccessError):
            find_row_data_collection(report, block)


class TestValueBinder:
    """Tests for typed binding."""

    @pytest.fixture
    def cell(self, worksheet):
        return worksheet["A1"]

    def test_none_leaves_cell_unbound(self, binder: ValueBinder, cell):
        """Test None never touches the cell."""
        cell.value = "kept"
        binder.bind(cell, CellType.STRING, None, "s")
        assert cell.value == "kept"

    def test_blank_clears_cell(self, binder: ValueBinder, cell):
        """Test BLANK clears whatever is there."""
        cell.value = "old"
        binder.bind(cell, CellType.BLANK, "anything", "s")
        assert cell.value is None

    @pytest.mark.parametrize(
        "cell_type,value,expected",
        [
            (CellType.STRING, "text", "text"),
            (CellType.STRING, 12, None),
            (CellType.NUMERIC, 12, 12.0),
            (CellType.NUMERIC, Decimal("1.5"), 1.5),
            (CellType.NUMERIC, "12", None),
            (CellType.NUMERIC, True, None),
            (CellType.BOOLEAN, False, False),
            (CellType.BOOLEAN, 0, None),
            (CellType.DATE, "2024-01-01", None),
        ],
    )
    def test_declared_type_matching(self, binder: ValueBinder, cell, cell_type, value, expected):
        """Test values bind only when the runtime type matches."""
        binder.bind(cell, cell_type, value, "s")
        assert cell.value == expected

    def test_numeric_stored_as_float(self, binder: ValueBinder, cell):
        """Test integers are written as floats."""
        binder.bind(cell, CellType.NUMERIC, 3, "s")
        assert isinstance(cell.value, float)

    def test_date_value(self, binder: ValueBinder, cell):
        """Test a plain date is written as is."""
        binder.bind(cell, CellType.DATE, date(2024, 2, 29), "s")
        assert cell.value == date(2024, 2, 29)
        assert cell.is_date

    def test_aware_datetime_converted_to_zone(self, binder: ValueBinder, cell):
        """Test aware datetimes move into the document zone."""
        binder.bind(
            cell, CellType.DATE, datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc), "s"
        )
        assert cell.value == datetime(2024, 1, 2, 0, 0)

    def test_formula_deferred(self, binder: ValueBinder, formula_engine: FormulaEngine, cell):
        """Test formulas wait for the sheet to be complete."""
        binder.bind(cell, CellType.FORMULA, "SUM(A2:A3)", "s")
        assert cell.value is None

        formula_engine.apply_sheet_formulas("s")
        assert cell.value == "=SUM(A2:A3)"

    def test_non_text_formula_skipped(self, binder: ValueBinder, formula_engine, cell):
        """Test a non string formula value is ignored."""
        binder.bind(cell, CellType.FORMULA, 3, "s")
        assert formula_engine.apply_sheet_formulas("s") == 0


class TestToExcelDatetime:
    """Tests for time zone handling."""

    def test_naive_kept(self):
        """Test naive datetimes are taken as already local."""
        value = datetime(2024, 6, 1, 8, 30)
        assert to_excel_datetime(value, timezone.utc) == value

    def test_aware_made_naive(self):
        """Test aware datetimes lose tzinfo after conversion."""
        value = datetime(2024, 6, 1, 8, 30, tzinfo=timezone(timedelta(hours=2)))
        result = to_excel_datetime(value, timezone.utc)

        assert result == datetime(2024, 6, 1, 6, 30)
        assert result.tzinfo is None
