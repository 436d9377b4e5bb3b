from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

FIXTURES = ROOT / "tests" / "fixtures"


@pytest.fixture
def todo_source() -> str:
    return (FIXTURES / "todo_api.rs").read_text(encoding="utf-8")
