"""Fixtures for black-box CLI tests under `tests/functional/`."""

from pathlib import Path

import pytest
from click.testing import CliRunner

# pylint: disable=redefined-outer-name


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    """Flight-recorder target inside the test's temp dir."""
    return tmp_path / "bulkpay.log"


@pytest.fixture
def make_runner(log_path: Path):
    """Build a CliRunner whose environment points BULKPAY at ``db_url``."""

    def _make(db_url: str = "") -> CliRunner:
        return CliRunner(
            env={"BULKPAY_DB_URL": db_url, "BULKPAY_LOG_PATH": str(log_path)}
        )

    return _make


@pytest.fixture
def runner(make_runner, sqlite_url_file: str) -> CliRunner:
    """CliRunner bound to a migrated SQLite file."""
    return make_runner(sqlite_url_file)
