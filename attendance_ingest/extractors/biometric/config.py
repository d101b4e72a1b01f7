"""
Centralised configuration for the biometric attendance sheet engine.

Scan bounds, business-rule thresholds, marker keywords and the regex
patterns used to classify cells all live here, so the component modules
stay free of hard-coded values.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Tuple


# ---------------------------------------------------------------------------
# Environment helpers
# ---------------------------------------------------------------------------

def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except Exception:
        return default


# ---------------------------------------------------------------------------
# Marker keywords (matched against lower-cased, whitespace-free cell text)
# ---------------------------------------------------------------------------

EMP_CODE_MARKERS: Tuple[str, ...] = ("employeecode", "empcode", "emp_code")
EMP_NAME_MARKERS: Tuple[str, ...] = ("employeename", "empname", "emp_name")

DATES_ROW_LABEL = "days"
SHIFT_ROW_LABEL = "shift"
SUMMARY_START_TOKEN = "total present"
SUMMARY_SELF_CONTAINED_TOKEN = "total absent"


# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

# Date-row classification, in priority order.
DD_MMM_RE = re.compile(r"^\d{1,2}-[A-Za-z]{3}$")
DD_SLASH_MM_RE = re.compile(r"^\d{1,2}/\d{1,2}$")
DD_DASH_MM_RE = re.compile(r"^\d{1,2}-\d{1,2}$")
BARE_DAY_RE = re.compile(r"^\d{1,2}$")
HAS_DIGIT_RE = re.compile(r"\d")
DATE_PUNCTUATION = ("-", "/", ".")

# Looser day-month token used when tallying the reporting month.
DAY_MONTH_TOKEN_RE = re.compile(r"(\d{1,2})-?([A-Za-z]{3})")

TIME_HMS_RE = re.compile(r"^(\d+):(\d{1,2})(?::(\d{1,2}))?$")
# Summary totals run past 24 hours ("160:30"), so hours are unbounded.
LEADING_HH_MM_RE = re.compile(r"^(\d+:\d{2})")
WHITESPACE_RE = re.compile(r"\s+")

MONTH_ABBRS: Tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
MONTH_BY_ABBR = {abbr.lower(): idx for idx, abbr in enumerate(MONTH_ABBRS, start=1)}

# Spreadsheet serial of 1970-01-01.
UNIX_EPOCH_SERIAL = 25569


# ---------------------------------------------------------------------------
# ExtractorConfig: tunable thresholds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExtractorConfig:
    """Immutable bag of scan bounds and business-rule thresholds."""

    # Scan bounds (rows)
    date_row_scan_rows: int = _env_int("ATTENDANCE_DATE_ROW_SCAN_ROWS", 15)
    shift_row_scan_rows: int = 15
    field_window_rows: int = 10
    summary_scan_rows: int = 5
    summary_scan_cols: int = 5
    resync_lookahead_rows: int = _env_int("ATTENDANCE_RESYNC_LOOKAHEAD_ROWS", 50)

    # Date classification
    serial_min: float = 40000
    serial_max: float = 50000
    short_month_warning_columns: int = 25

    # Business rules (minutes since midnight)
    late_window_start: int = 9 * 60 + 15
    late_window_end: int = 11 * 60
    early_leave_before: int = 15 * 60 + 30
    late_allowance: int = 3
    early_allowance: int = 2
    weekly_off_weekday: int = 6  # Monday=0 ... Sunday=6

    # Employee name must be longer than this many characters
    min_emp_name_length: int = 3


# Singleton default config
DEFAULT_CONFIG = ExtractorConfig()
