"""
Readers for questionnaire response files.

Two formats are accepted (detected by extension in ``read_responses``):

``.json`` — an array of objects matching the ``Response`` schema::

    [
      {"response_id": "r-001", "partition_key": "Finance",
       "submitted_at": "2026-03-02T14:05:00Z",
       "answers": [{"item_number": 1, "value": 4}, ...]}
    ]

``.csv`` — long format, one answer per row, with a header row.
Required columns:
  response_id, item_number, value
Optional columns (empty string → None):
  partition_key, submitted_at

Rows sharing a ``response_id`` are grouped into one ``Response`` in order of
first appearance; answer order within a response follows row order.  The
``partition_key`` and ``submitted_at`` of a response are taken from its first
row that provides them.

What is fatal and what is not
-----------------------------
Only a file that cannot be read as a whole raises ``ValueError``: invalid
JSON, a JSON document that is not an array, a CSV without a header or
without the required columns.

Everything below that is per record and never voids the file:

  - A blank or malformed ``value`` is passed through as a ``RawAnswer`` with
    ``value=None``; the normalizer rejects that single answer and it shows up
    in the rejected-answer counts like an out-of-range value.
  - A row that cannot be tied to an answer (no ``response_id``, unreadable
    ``item_number``), a JSON entry that is not a valid response, and a JSON
    entry repeating an earlier ``response_id`` are skipped.  Each skip is
    logged at WARNING and listed in ``ResponseFile.skipped``.
  - An unreadable ``submitted_at`` is logged and left ``None``.

Whether a value is in range, or an item exists, depends on the instrument
and is the normalizer's job.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from psychosocial_scoring.models.response import RawAnswer, Response

logger = logging.getLogger(__name__)

REQUIRED_CSV_COLUMNS = frozenset({"response_id", "item_number", "value"})


@dataclass(frozen=True)
class SkippedRecord:
    """One input record that could not be used at all.

    Attributes:
        location: ``"Row n"`` (1-based file line) or ``"Entry i"`` (0-based
                  array index).
        reason:   Why it was skipped.
    """

    location: str
    reason: str


@dataclass(frozen=True)
class ResponseFile:
    """Everything read from one response file."""

    path: Path
    responses: list[Response]
    skipped: list[SkippedRecord] = field(default_factory=list)


def read_responses(path: Path) -> ResponseFile:
    """Read a ``.json`` or ``.csv`` response file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On an unsupported extension or a structurally broken file.
    """
    path = Path(path)
    fmt = path.suffix.lower()
    if fmt == ".json":
        return read_responses_json(path)
    if fmt == ".csv":
        return read_responses_csv(path)
    raise ValueError(f"Unsupported response file format '{fmt}'. Use .json or .csv.")


def read_responses_json(path: Path) -> ResponseFile:
    """Parse a JSON array of responses, skipping unusable entries."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Response file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw_responses = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path.name}: {exc}") from exc

    if not isinstance(raw_responses, list):
        raise ValueError(f"Response JSON must contain an array: {path}")

    responses: list[Response] = []
    skipped: list[SkippedRecord] = []
    seen_ids: set[str] = set()
    for i, raw in enumerate(raw_responses):
        location = f"Entry {i}"
        if not isinstance(raw, dict):
            _skip(skipped, path, location, "entry is not an object.")
            continue
        try:
            response = Response(**raw)
        except ValidationError as exc:
            _skip(skipped, path, location, _first_error(exc))
            continue
        if response.response_id in seen_ids:
            _skip(
                skipped, path, location,
                f"duplicate response_id '{response.response_id}'; first entry kept.",
            )
            continue
        seen_ids.add(response.response_id)
        responses.append(response)

    logger.info(
        "Read %d response(s) from %s (%d entr(ies) skipped)",
        len(responses), path.name, len(skipped),
    )
    return ResponseFile(path=path, responses=responses, skipped=skipped)


def read_responses_csv(path: Path) -> ResponseFile:
    """Parse a long-format CSV (one answer per row) into responses."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Response CSV file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")

        actual_cols = {c.strip() for c in reader.fieldnames}
        missing = REQUIRED_CSV_COLUMNS - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )

        rows = [{(k or "").strip(): v for k, v in row.items()} for row in reader]

    if not rows:
        logger.warning("Response CSV is empty (header only): %s", path)
        return ResponseFile(path=path, responses=[])

    grouped: dict[str, dict[str, Any]] = {}
    skipped: list[SkippedRecord] = []

    for i, row in enumerate(rows):
        location = f"Row {i + 2}"  # 1-based, skip header row
        try:
            response_id = _req(row, "response_id")
            item_number = _parse_int(row, "item_number")
        except ValueError as exc:
            _skip(skipped, path, location, str(exc))
            continue

        entry = grouped.setdefault(
            response_id,
            {"response_id": response_id, "partition_key": None,
             "submitted_at": None, "answers": []},
        )
        if entry["partition_key"] is None:
            entry["partition_key"] = _opt(row, "partition_key")
        if entry["submitted_at"] is None:
            entry["submitted_at"] = _parse_datetime(row, "submitted_at", path, location)
        entry["answers"].append(RawAnswer(item_number=item_number, value=_opt(row, "value")))

    responses = [Response(**entry) for entry in grouped.values()]
    logger.info(
        "Parsed %d response(s) from %d row(s) in %s (%d row(s) skipped)",
        len(responses), len(rows), path.name, len(skipped),
    )
    return ResponseFile(path=path, responses=responses, skipped=skipped)


# ── Private helpers ────────────────────────────────────────────────────────────

def _skip(skipped: list[SkippedRecord], path: Path, location: str, reason: str) -> None:
    logger.warning("%s %s skipped: %s", path.name, location, reason)
    skipped.append(SkippedRecord(location=location, reason=reason))


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(part) for part in err["loc"]) or "entry"
    return f"{where}: {err['msg']}"


def _req(row: dict[str, Optional[str]], key: str) -> str:
    """Return a required string field, stripped; raise if empty."""
    v = (row.get(key) or "").strip()
    if not v:
        raise ValueError(f"Required field '{key}' is empty.")
    return v


def _opt(row: dict[str, Optional[str]], key: str) -> Optional[str]:
    """Return an optional string field, or None if absent/empty."""
    v = (row.get(key) or "").strip()
    return v if v else None


def _parse_int(row: dict[str, Optional[str]], key: str) -> int:
    v = _req(row, key)
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"Invalid integer for '{key}': '{v}'.") from None


def _parse_datetime(
    row: dict[str, Optional[str]],
    key: str,
    path: Path,
    location: str,
) -> Optional[datetime]:
    """ISO 8601 timestamp from a CSV field; unreadable text is logged and dropped."""
    v = _opt(row, key)
    if v is None:
        return None
    try:
        # Accept both trailing 'Z' and explicit '+00:00'
        return datetime.fromisoformat(v.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(
            "%s %s: invalid datetime for '%s': '%s'; left empty.", path.name, location, key, v
        )
        return None
