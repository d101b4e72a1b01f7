"""
Biometric attendance sheet subpackage.

Public API:
  - EmployeeBlockLocator   (employee marker search)
  - DateColumnResolver     (calendar column classification)
  - FieldRowMapper         (field table → row mapping, via FieldAliasTable)
  - RecordSynthesizer      (per-day records and status rules)
  - SummaryTextParser      (monthly totals from prose)
  - GridReader             (workbook → Grid)
  - DataCleaner            (cell/value normalisation)
  - ExtractorConfig        (tunable thresholds)
"""

from attendance_ingest.extractors.biometric.config import ExtractorConfig, DEFAULT_CONFIG
from attendance_ingest.extractors.biometric.data_cleaner import DataCleaner
from attendance_ingest.extractors.biometric.block_locator import EmployeeBlock, EmployeeBlockLocator
from attendance_ingest.extractors.biometric.date_resolver import DateColumn, DateColumnResolver, DateRule
from attendance_ingest.extractors.biometric.field_mapper import (
    DEFAULT_ALIAS_TABLE,
    FieldAliasTable,
    FieldRowMapper,
    FieldRowMapping,
)
from attendance_ingest.extractors.biometric.record_synthesizer import BlockCounters, RecordSynthesizer
from attendance_ingest.extractors.biometric.summary_parser import SummaryTextParser
from attendance_ingest.extractors.biometric.reader import GridReader

__all__ = [
    "ExtractorConfig",
    "DEFAULT_CONFIG",
    "DataCleaner",
    "EmployeeBlock",
    "EmployeeBlockLocator",
    "DateColumn",
    "DateColumnResolver",
    "DateRule",
    "DEFAULT_ALIAS_TABLE",
    "FieldAliasTable",
    "FieldRowMapper",
    "FieldRowMapping",
    "BlockCounters",
    "RecordSynthesizer",
    "SummaryTextParser",
    "GridReader",
]
