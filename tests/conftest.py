from __future__ import annotations

import shutil
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


import pytest

SAMPLES = ROOT / "test_samples"


@pytest.fixture
def samples_dir() -> Path:
    return SAMPLES


@pytest.fixture
def users_source() -> str:
    return (SAMPLES / "UsersController.cs").read_text(encoding="utf-8")


@pytest.fixture
def orders_source() -> str:
    return (SAMPLES / "OrdersController.cs").read_text(encoding="utf-8")


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """A writable copy of the sample controllers."""
    target = tmp_path / "src"
    shutil.copytree(SAMPLES, target)
    return target
