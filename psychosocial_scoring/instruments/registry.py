"""
Instrument definition loading and lookup.

Definitions are JSON files, one per instrument, shaped exactly like
``InstrumentDefinition``::

    {
      "instrument_id": "hse_it",
      "display_name": "HSE Indicator Tool",
      "categories": [{"category_id": "demands", "label": "Demands"}, ...],
      "items": [{"item_number": 1, "text": "...", "category": "role"}, ...],
      "profile": {
        "aggregation_mode": "per_category_normalized_average",
        "risk_thresholds": {"comparison": "at_least", "bands": [...], "fallback": "very_high"},
        "health_thresholds": {"favorable_min": 3.67, "intermediate_min": 2.33}
      }
    }

Every structural invariant is enforced by the pydantic model at load time,
so a registry that loaded successfully never serves a definition with a
dangling category or a duplicate item.

Usage flow
----------
    registry = InstrumentRegistry.from_directory(Path("config/instruments"))
    hse = registry.get("hse_it")          # UnknownInstrumentError on a miss
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.scoring.errors import UnknownInstrumentError

logger = logging.getLogger(__name__)


def load_instrument_definition(path: Path) -> InstrumentDefinition:
    """Parse one instrument definition JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON.
        pydantic.ValidationError: If the definition violates an invariant.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Instrument definition not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path.name}: {exc}") from exc

    definition = InstrumentDefinition(**raw)
    logger.info(
        "Loaded instrument '%s' v%s: %d items in %d categories (%s).",
        definition.instrument_id,
        definition.version,
        definition.item_count,
        len(definition.categories),
        definition.profile.aggregation_mode.value,
    )
    return definition


class InstrumentRegistry:
    """Read-only lookup of loaded instrument definitions.

    Built once at startup; definitions are frozen, so the registry can be
    shared freely.
    """

    def __init__(self, definitions: Iterable[InstrumentDefinition] = ()) -> None:
        self._definitions: dict[str, InstrumentDefinition] = {}
        for definition in definitions:
            if definition.instrument_id in self._definitions:
                raise ValueError(
                    f"Duplicate instrument_id '{definition.instrument_id}' in registry."
                )
            self._definitions[definition.instrument_id] = definition

    @classmethod
    def from_directory(cls, directory: Path) -> "InstrumentRegistry":
        """Load every ``*.json`` definition in ``directory`` (sorted by name)."""
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Instrument directory not found: {directory}")

        paths = sorted(directory.glob("*.json"))
        if not paths:
            logger.warning("No instrument definitions found in %s", directory)
        return cls(load_instrument_definition(p) for p in paths)

    def get(self, instrument_id: str) -> InstrumentDefinition:
        """Return the definition for ``instrument_id``.

        Raises:
            UnknownInstrumentError: If no definition is registered under that id.
        """
        try:
            return self._definitions[instrument_id]
        except KeyError:
            raise UnknownInstrumentError(
                f"Unknown instrument '{instrument_id}'. Registered: {self.ids()}"
            ) from None

    def ids(self) -> list[str]:
        return sorted(self._definitions)

    def __contains__(self, instrument_id: object) -> bool:
        return instrument_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)
