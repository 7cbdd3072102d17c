"""Version manifest for a directory of content table files.

Each ``*.json`` table gets a short content hash; the combined hash of all
tables is the content version. Consumers compare manifests to decide whether
cached content needs to be refreshed and which tables changed.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final

logger = logging.getLogger(__name__)

ENGINE_VERSION: Final[str] = "1.0.0"

TABLE_HASH_LENGTH: Final[int] = 12
VERSION_HASH_LENGTH: Final[int] = 16


@dataclass(frozen=True)
class VersionManifest:
    version: str
    generated_at: str
    table_hashes: dict[str, str] = field(default_factory=dict)
    engine_version: str = ENGINE_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "tableHashes": dict(self.table_hashes),
            "engineVersion": self.engine_version,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> VersionManifest:
        return cls(
            version=raw["version"],
            generated_at=raw.get("generatedAt", ""),
            table_hashes=dict(raw.get("tableHashes") or {}),
            engine_version=raw.get("engineVersion", ENGINE_VERSION),
        )


def hash_file(path: Path) -> str:
    """SHA-256 of a file's text content, truncated."""
    content = path.read_text(encoding="utf-8")
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:TABLE_HASH_LENGTH]


def combine_hashes(table_hashes: dict[str, str]) -> str:
    """Content version: hash of the sorted ``table:hash`` pairs."""
    joined = "|".join(f"{key}:{value}" for key, value in sorted(table_hashes.items()))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:VERSION_HASH_LENGTH]


def generate_manifest(tables_dir: Path | str) -> VersionManifest:
    """Build a manifest from every ``*.json`` file in ``tables_dir``."""
    tables_dir = Path(tables_dir)
    table_hashes = {path.stem: hash_file(path) for path in sorted(tables_dir.glob("*.json"))}
    manifest = VersionManifest(
        version=combine_hashes(table_hashes),
        generated_at=datetime.now(timezone.utc).isoformat(),
        table_hashes=table_hashes,
    )
    logger.info(f"Generated manifest {manifest.version} for {len(table_hashes)} tables")
    return manifest


def has_changed(current: VersionManifest, previous: VersionManifest | None) -> bool:
    if previous is None:
        return True
    return current.version != previous.version


def changed_tables(current: VersionManifest, previous: VersionManifest) -> list[str]:
    """Tables added, modified, or removed between two manifests."""
    changed = [
        key
        for key, digest in current.table_hashes.items()
        if previous.table_hashes.get(key) != digest
    ]
    changed.extend(key for key in previous.table_hashes if key not in current.table_hashes)
    return changed
