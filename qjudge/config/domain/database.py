"""Database configuration model."""

from pathlib import Path

from pydantic import BaseModel


class DatabaseConfig(BaseModel, frozen=True):
    path: Path = Path("qjudge.db")
