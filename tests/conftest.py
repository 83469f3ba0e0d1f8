"""
Pytest configuration and fixtures.
"""
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from openpyxl import Workbook

from xlmapper.config import Settings
from xlmapper.excel_generator.formula_engine import FormulaEngine
from xlmapper.excel_generator.values import ValueBinder


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for output files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment."""
    return Settings(
        date_format_zone="UTC",
        default_row_height_in_points=15.0,
        default_column_width=8,
        log_level="DEBUG",
    )


@pytest.fixture
def worksheet():
    """An empty openpyxl worksheet."""
    return Workbook().active


@pytest.fixture
def formula_engine() -> FormulaEngine:
    return FormulaEngine()


@pytest.fixture
def binder(formula_engine: FormulaEngine) -> ValueBinder:
    """Value binder writing dates in Asia/Seoul."""
    return ValueBinder("Asia/Seoul", formula_engine)

