"""
Profile Loader Module
=====================

Loads an optional YAML profile describing one device / export flavour:
which sheet to read and extra label spellings for the field table.

Example profile::

    profile_id: essl_monthly
    excel:
      sheet: "Monthly Status"
    field_aliases:
      timeInActual: ["in time", "punch in"]
      timeOutActual: ["out time", "punch out"]
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from attendance_ingest.extractors.biometric.field_mapper import (
    DEFAULT_ALIAS_TABLE,
    FIELD_KEYS,
    FieldAliasTable,
)
from attendance_ingest.logger import get_logger

logger = get_logger(__name__)

# attendance_ingest/profile_loader.py → parents[1] is the repository root
REPO_ROOT = Path(__file__).resolve().parents[1]


def _ensure_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


def _ensure_str_list(value: Any) -> List[str]:
    """Keep non-blank strings only."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def load_profile(profile_path: Optional[str]) -> dict:
    """
    Load a profile from YAML.

    Relative paths resolve against the repository root. With no path the
    default profile (first sheet, built-in aliases) is returned.

    Raises:
        FileNotFoundError: the profile file does not exist
    """
    if not profile_path:
        return {"profile_id": None, "excel": {"sheet": None}, "field_aliases": {}}

    path = Path(profile_path).expanduser()
    if not path.is_absolute():
        path = (REPO_ROOT / path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"profile not found: {path}")

    data = _ensure_dict(yaml.safe_load(path.read_text(encoding="utf-8")) or {})

    excel = _ensure_dict(data.get("excel"))
    sheet: Optional[Union[str, int]] = excel.get("sheet")
    if isinstance(sheet, str):
        sheet = sheet.strip()
        if not sheet or sheet.lower() == "auto":
            sheet = None
    elif not isinstance(sheet, int) or isinstance(sheet, bool):
        sheet = None

    field_aliases: Dict[str, List[str]] = {}
    for key, values in _ensure_dict(data.get("field_aliases")).items():
        if key not in FIELD_KEYS:
            logger.warning("Ignoring aliases for unknown field %r in %s", key, path.name)
            continue
        aliases = _ensure_str_list(values)
        if aliases:
            field_aliases[key] = aliases

    return {
        "profile_id": data.get("profile_id"),
        "excel": {"sheet": sheet},
        "field_aliases": field_aliases,
    }


def alias_table_from_profile(profile: dict) -> FieldAliasTable:
    """Default alias table with the profile's per-field lists substituted."""
    overrides = _ensure_dict(profile.get("field_aliases"))
    if not overrides:
        return DEFAULT_ALIAS_TABLE
    return DEFAULT_ALIAS_TABLE.with_overrides(overrides)
