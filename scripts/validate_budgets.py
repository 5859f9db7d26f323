#!/usr/bin/env python3
"""Validate saved weekly budget JSON documents."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_dashboard.aggregation import aggregate
from budget_dashboard.config import BUDGETS_DIR
from budget_dashboard.models import BudgetValidationError
from budget_dashboard.normalization import normalize_budget_document


def validate_budget(path: Path) -> Dict[str, str]:
    """Return ``{}`` for a valid document, else ``{'name', 'errors'}``."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        return {"name": path.stem, "errors": f"unreadable: {exc}"}

    try:
        budget = normalize_budget_document(data)
    except BudgetValidationError as exc:
        return {"name": path.stem, "errors": str(exc)}

    # Warnings are advisory; report them without failing validation.
    for warning in aggregate(budget).warnings:
        print(f"  ! {path.name}: {warning}")
    return {}


def main(paths: Optional[List[Path]] = None) -> int:
    if not paths:
        if not BUDGETS_DIR.exists():
            print(f"Budget directory not found: {BUDGETS_DIR}")
            return 1
        paths = sorted(BUDGETS_DIR.glob('*.json'))

    issues = []
    for path in paths:
        result = validate_budget(path)
        if result:
            issues.append((path.name, result['errors']))

    if issues:
        print("Budget validation failed:")
        for filename, message in issues:
            print(f"  - {filename}: {message}")
        return 1

    print(f"{len(paths)} budget document(s) validated successfully.")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Validate weekly budget documents.')
    parser.add_argument('paths', nargs='*', type=Path, help='Documents to check (default: the budgets directory)')
    args = parser.parse_args()
    raise SystemExit(main(args.paths))
