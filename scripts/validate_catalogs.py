#!/usr/bin/env python3
"""
Rule catalog validation script.
Loads every YAML catalog given on the command line (or the built-in ones)
and reports configuration errors.
"""

import sys
from pathlib import Path
from typing import List

from shared.config import get_config
from shared.errors import CatalogConfigurationError
from shared.logging import configure_logging
from rules_engine.catalog import BUILTIN_CATALOG_DIR, load_rule_set


def validate_catalog(catalog_path: Path) -> List[str]:
    """Validate a single catalog file."""
    errors = []

    try:
        rule_set = load_rule_set(catalog_path)
    except CatalogConfigurationError as e:
        errors.append(e.message)
        for key, value in e.details.items():
            errors.append(f"{key}: {value}")
        return errors

    if len(rule_set) == 0:
        errors.append("catalog has no rules")

    return errors


def collect_paths(args: List[str]) -> List[Path]:
    """Expand arguments into catalog files."""
    if not args:
        return sorted(BUILTIN_CATALOG_DIR.glob("*.yaml"))

    paths = []
    for arg in args:
        path = Path(arg)
        if path.is_dir():
            paths.extend(sorted(path.glob("*.yaml")))
        else:
            paths.append(path)
    return paths


def main(argv: List[str] = None) -> int:
    """Main function to validate rule catalogs."""
    args = sys.argv[1:] if argv is None else argv
    print("Validating rule catalogs...")

    catalog_paths = collect_paths(args)

    if not catalog_paths:
        print("No catalogs found")
        return 1

    total_errors = 0

    for catalog_path in catalog_paths:
        errors = validate_catalog(catalog_path)

        if errors:
            print(f"❌ {catalog_path.name}: {len(errors)} validation errors")
            for error in errors:
                print(f"   - {error}")
            total_errors += len(errors)
        else:
            print(f"✅ {catalog_path.name}: catalog is valid")

    print(f"\nValidation complete: {total_errors} total errors")

    if total_errors == 0:
        print("All rule catalogs are valid!")
        return 0
    else:
        print("Some rule catalogs have validation errors")
        return 1


if __name__ == "__main__":
    configure_logging("rules_engine", get_config().log_level)
    sys.exit(main())
