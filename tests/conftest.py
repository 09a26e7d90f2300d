from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection,
# even when the package has not been installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def sandbox(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Run inside a temp directory so documents with relative names never touch the real cwd.
    """
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def db(sandbox: Path):
    from jsonshelf import Database

    return Database("test.json")


@pytest.fixture
def cached_db(sandbox: Path):
    from jsonshelf import Database

    return Database("cached", cache=True)
