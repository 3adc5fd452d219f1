"""
Two-tier store for per-feature variant sets: process memory, then one JSON
file per feature id. Entries never expire; only ``delete`` invalidates them.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from shared.logging import get_logger

from service_catalog.app.domain.models import Variant, parse_variants


_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class VariantStore:
    """Holds ``{"variants": [...]}`` entries keyed by feature id."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)
        self._memory: Dict[str, List[Variant]] = {}
        self.logger = get_logger("catalog.variant_store")

    @property
    def directory(self) -> Path:
        return self._directory

    def _file(self, feature_id: str) -> Optional[Path]:
        if not _SAFE_ID.match(feature_id):
            return None
        return self._directory / f"{feature_id}.json"

    def get_memory(self, feature_id: str) -> Optional[List[Variant]]:
        return self._memory.get(feature_id)

    def get_disk(self, feature_id: str) -> Optional[List[Variant]]:
        """Read the durable entry; a hit is promoted into memory."""
        path = self._file(feature_id)
        if path is None or not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                entry = json.load(handle)
        except (ValueError, OSError) as exc:
            self.logger.warning("Unreadable variant cache file", feature_id=feature_id, error=str(exc))
            return None
        if not isinstance(entry, dict) or "variants" not in entry:
            self.logger.warning("Malformed variant cache file", feature_id=feature_id)
            return None

        variants = parse_variants(entry["variants"])
        self._memory[feature_id] = variants
        return variants

    def get(self, feature_id: str) -> Tuple[Optional[List[Variant]], str]:
        """Look up memory then disk; returns the variants and the tier that answered."""
        variants = self.get_memory(feature_id)
        if variants is not None:
            return variants, "memory"
        variants = self.get_disk(feature_id)
        if variants is not None:
            return variants, "disk"
        return None, "miss"

    def put(self, feature_id: str, variants: List[Variant]) -> bool:
        """Write through both tiers; disk failures are logged and reported as False."""
        self._memory[feature_id] = list(variants)
        path = self._file(feature_id)
        if path is None:
            self.logger.warning("Feature id not usable as a file name", feature_id=feature_id)
            return False
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(
                    {"variants": [variant.to_dict() for variant in variants]},
                    handle,
                    ensure_ascii=False,
                    indent=2,
                )
        except OSError as exc:
            self.logger.warning("Failed to write variant cache file", feature_id=feature_id, error=str(exc))
            return False
        return True

    def delete(self, feature_id: str) -> None:
        self._memory.pop(feature_id, None)
        path = self._file(feature_id)
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            self.logger.warning("Failed to delete variant cache file", feature_id=feature_id, error=str(exc))
