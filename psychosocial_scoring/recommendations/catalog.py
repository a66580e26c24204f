"""
Recommendation catalog loader.

File format (``config/recommendations/<instrument_id>.json``)::

    {
      "instrument_id": "hse_it",
      "fallback_text": "...",
      "recommendations": [
        {"category": "demands", "tier": "risk", "text": "...", "actions": ["..."]},
        ...
      ],
      "guidance": [
        {"risk_level": "moderate", "conduct": "...", "actions": ["..."]}
      ]
    }

Validation rules
----------------
- ``instrument_id`` must match the instrument the catalog is loaded for.
- Every ``category`` must be a declared category of that instrument, or
  ``"*"`` (generic entry).  An unknown category raises
  ``UnknownCategoryError``: a typo here would otherwise only surface as a
  silent fallback in a customer report.
- Declared categories with no ``risk`` or ``intermediate`` entry are logged
  as warnings; they will use the fallback text.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.models.recommendation import GENERIC_CATEGORY, RecommendationCatalog
from psychosocial_scoring.scoring.errors import UnknownCategoryError, UnknownInstrumentError
from psychosocial_scoring.taxonomy.scoring_taxonomy import HEALTH_IMPACT_PRIORITY

logger = logging.getLogger(__name__)


def validate_catalog(catalog: RecommendationCatalog, instrument: InstrumentDefinition) -> None:
    """Check ``catalog`` against ``instrument``'s closed category set.

    Raises:
        UnknownInstrumentError: If the catalog belongs to another instrument.
        UnknownCategoryError: If an entry names an undeclared category.
    """
    if catalog.instrument_id != instrument.instrument_id:
        raise UnknownInstrumentError(
            f"Recommendation catalog is for '{catalog.instrument_id}', "
            f"not '{instrument.instrument_id}'."
        )

    declared = set(instrument.category_ids)
    unknown = sorted(catalog.categories - declared)
    if unknown:
        raise UnknownCategoryError(
            f"Recommendation catalog for '{catalog.instrument_id}' references "
            f"undeclared categories: {unknown}. Declared: {instrument.category_ids}"
        )

    covered = {(r.category, r.tier) for r in catalog.recommendations}
    for category in instrument.category_ids:
        for tier in HEALTH_IMPACT_PRIORITY:
            if (category, tier) not in covered and (GENERIC_CATEGORY, tier) not in covered:
                logger.warning(
                    "Catalog '%s' has no '%s' recommendation for category '%s'; "
                    "fallback text will be used.",
                    catalog.instrument_id, tier.value, category,
                )


def load_recommendation_catalog(
    path: Path,
    instrument: InstrumentDefinition,
) -> RecommendationCatalog:
    """Load and validate one recommendation catalog JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON.
        pydantic.ValidationError: If the structure is invalid.
        ConfigurationMismatchError: If it does not match ``instrument``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Recommendation catalog not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path.name}: {exc}") from exc

    catalog = RecommendationCatalog(**raw)
    validate_catalog(catalog, instrument)
    logger.info(
        "Loaded %d recommendation(s) and %d guidance entr(ies) for '%s' from %s",
        len(catalog.recommendations), len(catalog.guidance),
        catalog.instrument_id, path.name,
    )
    return catalog


def catalog_path_for(recommendations_dir: Path, instrument_id: str) -> Path:
    """Conventional catalog location for an instrument."""
    return Path(recommendations_dir) / f"{instrument_id}.json"
