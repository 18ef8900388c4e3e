"""
Local cache of the last fetched API payload.

This module manages the file:

    data/snapshot.json

Design rationale:
- the portal API is the source of truth for lectures and reschedules
- snapshot.json keeps the last fetched bundle so the CLI can resolve,
  check and export without a network round-trip

Loading is defensive (missing or corrupt file -> empty payload); turning the
payload into model objects is strict (see lectureplan.parse).
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from lectureplan.config import default_snapshot_path
from lectureplan.model import Snapshot
from lectureplan.parse import build_snapshot

PAYLOAD_KEYS = ("lectures", "reschedules", "courses", "rooms", "users")


def empty_payload() -> dict[str, Any]:
    return {key: [] for key in PAYLOAD_KEYS}


def load_payload(path: str | Path | None = None) -> dict[str, Any]:
    """
    Load the cached payload from snapshot.json.

    Returns an empty payload if the file does not exist or is invalid.
    """
    snapshot_path = Path(path) if path is not None else default_snapshot_path()

    # First run: nothing fetched yet
    if not snapshot_path.exists():
        return empty_payload()

    try:
        data = json.loads(snapshot_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return empty_payload()
    if not isinstance(data, dict):
        return empty_payload()

    out = empty_payload()
    for key in PAYLOAD_KEYS:
        value = data.get(key)
        if isinstance(value, list):
            out[key] = value
    if isinstance(data.get("fetched_at"), str):
        out["fetched_at"] = data["fetched_at"]
    return out


def save_payload(payload: dict[str, Any], path: str | Path | None = None) -> Path:
    """
    Save a payload to snapshot.json, stamping it with fetched_at.

    Creates parent directories if needed.
    """
    snapshot_path = Path(path) if path is not None else default_snapshot_path()
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    data = {key: list(payload.get(key) or []) for key in PAYLOAD_KEYS}
    data["fetched_at"] = payload.get("fetched_at") or datetime.now().isoformat(timespec="seconds")

    snapshot_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return snapshot_path


def load_snapshot(path: str | Path | None = None) -> Snapshot:
    """
    Load snapshot.json and parse it into an immutable Snapshot.
    """
    return build_snapshot(load_payload(path))
