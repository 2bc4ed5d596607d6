"""
Validate Data Integrity
Checks lesson CSV tables for duplicate rows, NaN/inf, negative counts,
non-numeric columns and case-variant labels.
"""
import argparse
import pandas as pd
import numpy as np
from pathlib import Path
import sys
import json

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lesson_core.data.loader import DatasetLoader


def validate_table(name: str, df: pd.DataFrame, count_columns=None) -> dict:
    """
    Run validation checks on a single table.
    """
    issues = {
        "rows": int(len(df)),
        "duplicates": 0,
        "nans": {},
        "infs": {},
        "negative_counts": {},
        "non_numeric": [],
        "case_variants": {},
    }

    if df.empty:
        return issues

    # 1. Exact duplicate rows
    issues['duplicates'] = int(df.duplicated().sum())

    # 2. NaN / inf per column
    for col in df.columns:
        nan_count = int(df[col].isna().sum())
        if nan_count > 0:
            issues['nans'][col] = nan_count
        if pd.api.types.is_numeric_dtype(df[col]):
            inf_count = int(np.isinf(df[col].to_numpy(dtype=float)).sum())
            if inf_count > 0:
                issues['infs'][col] = inf_count

    # 3. Count columns must be numeric and >= 0
    for col in (count_columns or []):
        if col not in df.columns:
            issues['non_numeric'].append(col)
            continue
        if not pd.api.types.is_numeric_dtype(df[col]):
            issues['non_numeric'].append(col)
            continue
        negatives = int((df[col] < 0).sum())
        if negatives > 0:
            issues['negative_counts'][col] = negatives

    # 4. Labels that differ only by case ("Oak" vs "oak") are distinct to filters
    for col in df.select_dtypes(include=['object', 'string']).columns:
        labels = pd.Series(df[col].dropna().astype(str).unique())
        lowered = labels.str.lower()
        clashes = lowered[lowered.duplicated(keep=False)]
        if len(clashes) > 0:
            issues['case_variants'][col] = sorted(labels[clashes.index].tolist())

    return issues


def has_failures(issues: dict) -> bool:
    """Duplicates, infs, negative counts or non-numeric count columns fail a table"""
    return bool(
        issues['duplicates'] > 0
        or issues['infs']
        or issues['negative_counts']
        or issues['non_numeric']
    )


def main():
    parser = argparse.ArgumentParser(description="Validate Data Integrity")
    parser.add_argument("--data-path", type=str, required=True, help="Path to data directory")
    parser.add_argument("--tables", type=str, default="ALL", help="Comma-separated list of table names or ALL")
    parser.add_argument("--count-columns", type=str, default="", help="Comma-separated columns that hold counts")
    parser.add_argument("--output-dir", type=str, default="artifacts", help="Where to write the report")
    parser.add_argument("--strict", action="store_true", help="Exit non-zero if any table fails")

    args = parser.parse_args()

    data_path = Path(args.data_path)

    if args.tables == "ALL":
        files = list(data_path.glob("*.csv")) + list(data_path.glob("*.parquet"))
        tables = sorted(set(f.stem for f in files))
    else:
        tables = args.tables.split(',')

    count_columns = [c for c in args.count_columns.split(',') if c]

    print(f"Validating {len(tables)} tables...")

    loader = DatasetLoader(str(data_path))

    all_issues = {}
    failed_tables = []

    for name in tables:
        print(f"Checking {name}...", end=" ")
        errors = loader.load(name)
        if errors:
            print(f"LOAD ERROR: {errors}")
            failed_tables.append(name)
            continue

        df = loader.get(name)
        issues = validate_table(name, df, count_columns=[c for c in count_columns if c in df.columns])
        all_issues[name] = issues

        if has_failures(issues):
            print("FAIL")
            failed_tables.append(name)
        else:
            print("OK")

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / "data_integrity_report.json"
    with open(report_path, 'w') as f:
        json.dump({'tables': all_issues, 'failed': failed_tables}, f, indent=2)

    print(json.dumps(all_issues, indent=2))
    print(f"\nReport saved to {report_path}")

    total_nans = sum(sum(iss['nans'].values()) for iss in all_issues.values())
    print(f"\nSummary:")
    print(f"  Tables checked: {len(tables)}")
    print(f"  Total NaNs: {total_nans}")
    print(f"  Failed tables: {len(failed_tables)}")

    if failed_tables and args.strict:
        sys.exit(1)


if __name__ == "__main__":
    main()
