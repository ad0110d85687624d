"""Pytest configuration for tests.

No sys.path hacks - tests should import from the installed protocompat package.
"""

from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def fixtures_dir() -> Path:
    """Root of the checked-in fixture files."""
    return REPO_ROOT / "fixtures"


@pytest.fixture
def scenarios_dir(fixtures_dir) -> Path:
    return fixtures_dir / "scenarios"
