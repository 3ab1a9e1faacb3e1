# tests/integration/conftest.py — v1
"""Shared fixtures for integration tests.

Integration runs go through run_build end to end: real settings, real
directory cache, real ledger and DAG, with the fake git/maven/signing tools
from the top-level conftest standing in for external processes.
"""

from __future__ import annotations

from pathlib import Path

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: runs a full pipeline against fake collaborators")


@pytest.fixture
def which():
    """Executable lookup that finds every tool."""
    return lambda name: f"/usr/bin/{name}"


@pytest.fixture
def keystore(tmp_path: Path) -> Path:
    """Existing keystore checkout, so release runs skip fetching it."""
    path = tmp_path / "keystore"
    path.mkdir()
    return path


@pytest.fixture
def plugin_settings(tmp_path: Path) -> dict[str, str]:
    """Settings for the worksheet and play plugins plus the product."""
    return {
        "worksheet_dir": str(tmp_path / "src" / "worksheet"),
        "worksheet_git_repo": "git://example.org/worksheet.git",
        "worksheet_git_branch": "master",
        "play_dir": str(tmp_path / "src" / "play"),
        "play_git_repo": "git://example.org/play.git",
        "play_git_branch": "master",
        "product_dir": str(tmp_path / "src" / "product"),
        "product_git_repo": "git://example.org/product.git",
        "product_git_branch": "master",
    }
