"""Content model: typed entities, vocabulary, providers and snapshots."""

from .models import (
    INHERIT,
    ComboRule,
    DeltaEntry,
    DeltaMap,
    Equipment,
    Inherit,
    MalformedEntry,
    ModifierRow,
    ModifierSelection,
    Motion,
    Muscle,
    TriggerCondition,
    parse_delta_entry,
)
from .provider import (
    ContentError,
    ContentLoadError,
    ContentNotFoundError,
    ContentProvider,
    InMemoryProvider,
    JsonDirectoryProvider,
)
from .snapshot import ContentSnapshot, load_snapshot
from .vocabulary import (
    EQUIPMENT_KEY_MAP,
    INHERIT_SENTINEL,
    MODIFIER_TABLE_KEYS,
    NONE_ROW_ID,
    BodyRegions,
    ModifierTables,
)

__all__ = [
    # Models
    "INHERIT",
    "ComboRule",
    "DeltaEntry",
    "DeltaMap",
    "Equipment",
    "Inherit",
    "MalformedEntry",
    "ModifierRow",
    "ModifierSelection",
    "Motion",
    "Muscle",
    "TriggerCondition",
    "parse_delta_entry",
    # Providers
    "ContentError",
    "ContentLoadError",
    "ContentNotFoundError",
    "ContentProvider",
    "InMemoryProvider",
    "JsonDirectoryProvider",
    "ContentSnapshot",
    "load_snapshot",
    # Vocabulary
    "EQUIPMENT_KEY_MAP",
    "INHERIT_SENTINEL",
    "MODIFIER_TABLE_KEYS",
    "NONE_ROW_ID",
    "BodyRegions",
    "ModifierTables",
]
