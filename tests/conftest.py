"""Shared pytest fixtures."""

from __future__ import annotations

import json
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from scorecraft.local.store import LocalBackend
from scorecraft.mapping import STUDENT_MAPPING

if TYPE_CHECKING:
    from collections.abc import Generator

FIXTURES = Path(__file__).parent / "fixtures"

# Reference time for "now" date expressions in search tests
FIXED_NOW = datetime(2024, 12, 1, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file using a local store in temp_dir."""
    config_path = temp_dir / "config.toml"
    config_path.write_text(f"""[backend]
kind = "local"

[elasticsearch]
url = "http://search.example:9200"
index = "people"
timeout = 5

[local]
database = "{(temp_dir / 'store.db').as_posix()}"
index = "students"

[search]
default_page_size = 10

[display]
colored_output = false
""")
    return config_path


@pytest.fixture
def students_file() -> Path:
    """Path of the bundled student sample documents."""
    return FIXTURES / "students.json"


@pytest.fixture
def students(students_file: Path) -> list[dict[str, Any]]:
    """The student sample documents."""
    return json.loads(students_file.read_text(encoding="utf-8"))


@pytest.fixture
def backend(students: list[dict[str, Any]]) -> LocalBackend:
    """In-memory local backend holding the student sample documents."""
    local = LocalBackend(index="students", now=FIXED_NOW)
    local.init_index(STUDENT_MAPPING)
    local.insert_many([(doc["studentId"], doc) for doc in students])
    return local
