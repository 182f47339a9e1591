from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.driver_builder import DriverBuilder


@pytest.fixture
def driver_builder(tmp_path: Path) -> DriverBuilder:
    """Provide a driver checkout builder rooted at the pytest tmp_path."""
    return DriverBuilder(tmp_path)
