from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.package_builder import PackageTreeBuilder


@pytest.fixture
def packages(tmp_path: Path) -> PackageTreeBuilder:
    """Provide a package tree builder rooted at the pytest tmp_path."""
    return PackageTreeBuilder(tmp_path)
