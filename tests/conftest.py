"""Shared pytest configuration and fixtures for the MBR test suite.

This module provides:
- Isolation of config, log and keyring state per test
- Common fixtures (profiles, tabular results, fake clients)
- Test markers
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path so test modules can import the mbr package
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from mbr.models import Column, TabularResult  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real config dir, log dir and MBR_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for name in ("MBR_URL", "MBR_API_KEY", "MBR_TIMEOUT", "MBR_CONFIG_DIR",
                 "MBR_USERNAME", "MBR_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def fake_keyring(mocker):
    """In-memory stand-in for the OS keychain, keyed by (service, username)."""
    from keyring.errors import PasswordDeleteError

    secrets = {}

    def set_password(service, username, password):
        secrets[(service, username)] = password

    def get_password(service, username):
        return secrets.get((service, username))

    def delete_password(service, username):
        if (service, username) not in secrets:
            raise PasswordDeleteError("not found")
        del secrets[(service, username)]

    mocker.patch("keyring.set_password", side_effect=set_password)
    mocker.patch("keyring.get_password", side_effect=get_password)
    mocker.patch("keyring.delete_password", side_effect=delete_password)
    return secrets


@pytest.fixture
def sample_result():
    """A small result mixing nulls, booleans, numbers and dates."""
    import datetime as dt

    return TabularResult(
        columns=(
            Column("id", "ID", "type/Integer"),
            Column("name", "Name", "type/Text"),
            Column("active", "Active", "type/Boolean"),
            Column("score", "Score", "type/Float"),
            Column("created", "Created", "type/Date"),
        ),
        rows=(
            (1, "Alpha, Inc.", True, 1.5, dt.date(2024, 1, 1)),
            (2, 'Quote "B"', False, None, None),
            (3, None, None, 2.0, dt.date(2024, 3, 9)),
        ),
    )


@pytest.fixture
def result_factory():
    """Build a one-column result with rows 0..row_count-1."""

    def make_result(row_count: int) -> TabularResult:
        return TabularResult(
            columns=(Column("n", "N", "type/Integer"),),
            rows=tuple((i,) for i in range(row_count)),
        )

    return make_result


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (slower)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their location."""
    for item in items:
        if "integration" not in item.nodeid:
            item.add_marker(pytest.mark.unit)
