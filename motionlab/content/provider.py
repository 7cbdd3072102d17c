"""Content providers: where table rows come from.

The engine never reads files or databases itself. A provider hands back the
rows of a named table as plain dicts and ``load_snapshot`` turns them into
typed entities.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class ContentError(Exception):
    """Base exception for content provider errors."""

    def __init__(self, message: str, table: str | None = None) -> None:
        self.message = message
        self.table = table
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.table:
            return f"Content error in table '{self.table}': {self.message}"
        return f"Content error: {self.message}"


class ContentNotFoundError(ContentError):
    """Raised when a requested table does not exist."""

    pass


class ContentLoadError(ContentError):
    """Raised when a table exists but cannot be read or parsed."""

    pass


@runtime_checkable
class ContentProvider(Protocol):
    """Anything that can return the rows of a content table."""

    def fetch_table(self, name: str) -> list[dict[str, Any]]:
        ...


class JsonDirectoryProvider:
    """Reads ``<name>.json`` files from a directory of table files.

    Each file holds a JSON array of row objects.
    """

    def __init__(self, tables_dir: Path | str) -> None:
        self._tables_dir = Path(tables_dir)

    @property
    def tables_dir(self) -> Path:
        return self._tables_dir

    def table_path(self, name: str) -> Path:
        path = (self._tables_dir / f"{name}.json").resolve()
        if path.parent != self._tables_dir.resolve():
            raise ContentLoadError("Table name escapes the tables directory", table=name)
        return path

    def fetch_table(self, name: str) -> list[dict[str, Any]]:
        """Read and parse one table file.

        Raises:
            ContentNotFoundError: If the file doesn't exist.
            ContentLoadError: If it cannot be read, parsed, or is not an array.
        """
        path = self.table_path(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ContentNotFoundError(f"Table file not found: {path}", table=name) from e
        except json.JSONDecodeError as e:
            raise ContentLoadError(f"Failed to parse JSON: {e}", table=name) from e
        except OSError as e:
            raise ContentLoadError(f"Failed to read file: {e}", table=name) from e

        if not isinstance(data, list):
            raise ContentLoadError(
                f"Expected a JSON array of rows, got {type(data).__name__}", table=name
            )
        logger.debug(f"Loaded {len(data)} rows from {path}")
        return data


class InMemoryProvider:
    """Serves tables from an in-memory mapping of table name to rows."""

    def __init__(self, tables: Mapping[str, list[dict[str, Any]]]) -> None:
        self._tables = {name: list(rows) for name, rows in tables.items()}

    def fetch_table(self, name: str) -> list[dict[str, Any]]:
        try:
            return list(self._tables[name])
        except KeyError:
            raise ContentNotFoundError("Table not provided", table=name) from None
