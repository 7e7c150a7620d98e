# tests/conftest.py
from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def ca_pem() -> Path:
    return DATA_DIR / "ca.pem"


@pytest.fixture
def workdir(tmp_path: Path, ca_pem: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A cwd holding security/ca.pem, the layout the CLI expects."""
    (tmp_path / "security").mkdir()
    shutil.copy(ca_pem, tmp_path / "security" / "ca.pem")
    monkeypatch.chdir(tmp_path)
    return tmp_path
