"""
Catalog Store - persisted links from logical sources to catalog ids.

Defaults ship two pre-linked curated genre sources; they are merged into
whatever is on disk so a saved catalog never loses them.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import DEFAULT_GENRE_SOURCES
from .models import CatalogConfig, CatalogSource
from .state_file import FileLock, load_json, write_json_atomic

logger = logging.getLogger(__name__)

SLOT_FIELDS = ("secondary_signal_id", "acoustic_id", "artist_primary_id")


def default_catalog() -> CatalogConfig:
    return CatalogConfig(curated_genre_sources=copy.deepcopy(DEFAULT_GENRE_SOURCES))


class CatalogStore:
    """Read/patch interface over the persisted catalog."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _merge_defaults(self, catalog: CatalogConfig) -> CatalogConfig:
        for name, source in DEFAULT_GENRE_SOURCES.items():
            # An explicit None is a deliberate unlink and stays
            if name not in catalog.curated_genre_sources:
                catalog.curated_genre_sources[name] = copy.deepcopy(source)
        return catalog

    def get(self) -> CatalogConfig:
        """Return a fresh copy of the stored catalog (defaults merged in)."""
        data = load_json(self.path, None)
        if data is None:
            return default_catalog()
        return self._merge_defaults(CatalogConfig.from_dict(data))

    def patch(
        self,
        secondary_signal_id: Optional[str] = None,
        acoustic_id: Optional[str] = None,
        artist_primary_id: Optional[str] = None,
        curated_genre_sources: Optional[Dict[str, Optional[CatalogSource]]] = None,
    ) -> CatalogConfig:
        """Apply a partial update in a single locked write.

        Only the arguments given (non-None) are changed; genre sources are
        merged by name.

        Returns:
            The catalog as persisted
        """
        changes: Dict[str, Any] = {
            "secondary_signal_id": secondary_signal_id,
            "acoustic_id": acoustic_id,
            "artist_primary_id": artist_primary_id,
        }
        with FileLock(self.path):
            catalog = self.get()
            for field_name, value in changes.items():
                if value is not None:
                    setattr(catalog, field_name, value)
            if curated_genre_sources:
                catalog.curated_genre_sources.update(curated_genre_sources)
            write_json_atomic(self.path, catalog.to_dict())

        logger.info(
            "Catalog updated: "
            + ", ".join(k for k, v in changes.items() if v is not None)
            + (f" (+{len(curated_genre_sources)} genre sources)" if curated_genre_sources else "")
        )
        return catalog

    def unlink(self, slot: str) -> CatalogConfig:
        """Clear one of the single-id slots or a named genre source."""
        with FileLock(self.path):
            catalog = self.get()
            if slot in SLOT_FIELDS:
                setattr(catalog, slot, None)
            elif slot in catalog.curated_genre_sources:
                catalog.curated_genre_sources[slot] = None
            else:
                raise KeyError(f"Unknown catalog slot: {slot}")
            write_json_atomic(self.path, catalog.to_dict())
        logger.info(f"Catalog slot {slot!r} unlinked")
        return catalog

    def is_ready(self, id_key: Optional[str]) -> bool:
        """True when the option needing ``id_key`` has its sources linked."""
        if not id_key:
            return True
        catalog = self.get()
        if id_key in SLOT_FIELDS:
            return bool(getattr(catalog, id_key))
        if id_key == "curated_genre_sources":
            return bool(catalog.linked_genre_sources())
        return True
