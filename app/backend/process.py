"""
Backend Process Module
======================

Wraps the ingestion pipeline for batch use: ingest each workbook, roll the
day records up per month, compare against the sheet's own totals and build
one JSON-serialisable result document.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from attendance_ingest.config import get_settings
from attendance_ingest.errors import CatastrophicReadFailure, NoAttendanceRecords
from attendance_ingest.logger import get_logger
from attendance_ingest.pipeline import run_ingest
from attendance_ingest.rollup import compare_with_summaries, rollup_by_month

logger = get_logger(__name__)


def ensure_output_dir(output_dir: str) -> Path:
    """Create *output_dir* if needed and return it resolved."""
    output_path = Path(output_dir).resolve()
    output_path.mkdir(parents=True, exist_ok=True)
    return output_path


def _process_one(
    file_path: str,
    profile_path: Optional[str],
    sheet: Optional[str],
    processing_date: Optional[date],
) -> Dict[str, Any]:
    result = run_ingest(
        file_path,
        sheet=sheet,
        profile_path=profile_path,
        processing_date=processing_date,
    )
    rollups = rollup_by_month(result.attendance)
    payload = result.to_dict()
    payload["filename"] = Path(file_path).name
    payload["rollup"] = [r.model_dump(by_alias=True) for r in rollups]
    payload["mismatches"] = compare_with_summaries(rollups, result.summaries)
    return payload


def _summarize_files(files: List[Dict[str, Any]], errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "total_files": len(files) + len(errors),
        "succeeded": len(files),
        "failed": len(errors),
        "attendance_records": sum(len(f.get("attendance", [])) for f in files),
        "summaries": sum(len(f.get("summaries", [])) for f in files),
        "diagnostics": sum(len(f.get("diagnostics", [])) for f in files),
    }


def process_files(
    file_paths: List[str],
    output_dir: str,
    profile_path: Optional[str] = None,
    sheet: Optional[str] = None,
    processing_date: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Ingest every file in *file_paths* and return the combined result.

    A workbook that cannot be read, or that yields no attendance, is
    reported under ``summary.errors`` and does not stop the batch.

    Args:
        file_paths: workbooks to ingest
        output_dir: directory the result will be written to
        profile_path: optional YAML profile
        sheet: sheet name overriding the profile / settings default
        processing_date: reference date for year and month defaults
    """
    if not file_paths:
        raise ValueError("No input files provided.")

    output_path = ensure_output_dir(output_dir)
    logger.info("Processing %d files", len(file_paths))

    files: List[Dict[str, Any]] = []
    errors: List[Dict[str, Any]] = []
    for file_path in file_paths:
        try:
            files.append(_process_one(file_path, profile_path, sheet, processing_date))
        except CatastrophicReadFailure as exc:
            logger.error("Unreadable workbook %s: %s", file_path, exc)
            errors.append({"filename": Path(file_path).name, "error": str(exc), "kind": "CatastrophicReadFailure"})
        except NoAttendanceRecords as exc:
            logger.warning("No attendance extracted from %s", file_path)
            errors.append({
                "filename": Path(file_path).name,
                "error": str(exc),
                "kind": "NoAttendanceRecords",
                "diagnostics": [
                    dict(d.model_dump(mode="json"), location=d.location) for d in exc.diagnostics
                ],
            })

    summary = _summarize_files(files, errors)
    summary["errors"] = errors
    return {
        "meta": {
            "processed_at": datetime.now().isoformat(timespec="seconds"),
            "input_files": file_paths,
            "output_dir": str(output_path),
            "profile_path": profile_path,
        },
        "summary": summary,
        "files": files,
    }


def _resolve_output_json_name(output_filename: Optional[str] = None) -> str:
    if output_filename and output_filename.strip():
        return output_filename.strip()
    return get_settings().OUTPUT_JSON_NAME


def write_json_output(
    result: Dict[str, Any],
    output_dir: str,
    output_filename: Optional[str] = None,
) -> str:
    """
    Write *result* as JSON into *output_dir*.

    The file name comes from *output_filename* or ``OUTPUT_JSON_NAME``.
    """
    output_path = ensure_output_dir(output_dir)
    json_path = output_path / _resolve_output_json_name(output_filename)
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(result, f, ensure_ascii=False, indent=2, default=str)
    return str(json_path)
