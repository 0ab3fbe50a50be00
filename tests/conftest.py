"""Shared fixtures."""

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from qjudge.core.db import get_connection


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "qjudge.db"


@pytest.fixture
def conn(db_path: Path) -> Iterator[sqlite3.Connection]:
    connection = get_connection(db_path=db_path)
    yield connection
    connection.close()
