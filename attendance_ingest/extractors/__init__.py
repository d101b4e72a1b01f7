"""
Extractors for biometric attendance exports.

Provides:
- BiometricSheetExtractor: whole-sheet scan over a materialized grid
- extract_attendance: functional wrapper around the extractor
"""

from attendance_ingest.extractors.biometric_extractor import (
    BiometricSheetExtractor,
    ScanState,
    extract_attendance,
)

__all__ = [
    "BiometricSheetExtractor",
    "ScanState",
    "extract_attendance",
]
