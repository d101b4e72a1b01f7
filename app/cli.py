import argparse
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.backend.process import process_files, write_json_output

WORKBOOK_SUFFIXES = {".xls", ".xlsx", ".xlsm"}


def collect_source_paths(inputs: List[str]) -> List[str]:
    collected: List[str] = []
    for raw in inputs:
        path = Path(raw).expanduser()
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if child.is_file() and child.suffix.lower() in WORKBOOK_SUFFIXES and not child.name.startswith("~$"):
                    collected.append(str(child))
        elif path.is_file():
            collected.append(str(path))
        else:
            print(f"[warn] input not found: {raw}")
    return collected


def _parse_processing_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract daily attendance and monthly totals from biometric exports."
    )
    parser.add_argument(
        "--inputs",
        nargs="+",
        required=True,
        help="Input workbook paths or directories.",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory to write the output JSON.",
    )
    parser.add_argument(
        "--profile-path",
        default=None,
        help="Path to a profile YAML file.",
    )
    parser.add_argument(
        "--sheet",
        default=None,
        help="Sheet name to read (default: profile sheet, DEFAULT_SHEET, or the first sheet).",
    )
    parser.add_argument(
        "--processing-date",
        type=_parse_processing_date,
        default=None,
        help="Reference date (YYYY-MM-DD) for year and month defaults.",
    )
    parser.add_argument(
        "--output-json-name",
        default=None,
        help="Output JSON filename (default: env OUTPUT_JSON_NAME).",
    )
    parser.add_argument(
        "--output-json-timestamp",
        action="store_true",
        help="Append timestamp to JSON output filename (overrides default name).",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    file_paths = collect_source_paths(args.inputs)
    if not file_paths:
        print("[error] no valid input files found.")
        return 1

    result = process_files(
        file_paths=file_paths,
        output_dir=args.output_dir,
        profile_path=args.profile_path,
        sheet=args.sheet,
        processing_date=args.processing_date,
    )
    output_json_name = args.output_json_name
    if args.output_json_timestamp and not output_json_name:
        output_json_name = f"attendance_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"

    json_path = write_json_output(result, args.output_dir, output_filename=output_json_name)

    summary = result.get("summary", {})
    print("JSON:", json_path)
    for entry in result.get("files", []):
        print(
            f"{entry['filename']}: {len(entry['attendance'])} records, "
            f"{len(entry['summaries'])} summaries, {len(entry['diagnostics'])} diagnostics"
        )
    for err in summary.get("errors", []):
        print(f"[error] {err['filename']}: {err['error']}")
    return 0 if summary.get("succeeded") else 1


if __name__ == "__main__":
    raise SystemExit(main())
