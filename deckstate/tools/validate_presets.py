#!/usr/bin/env python
"""
Preset Deck Validation Tool

Checks every built-in preset deck template before a release so that a broken
template never ships. Each template is run through the preset validator and
the registry is checked for duplicate identifiers. The exit status is 0 when
everything is valid and 1 otherwise.

Examples:
    # Validate the built-in presets
    python -m deckstate.tools.validate_presets

    # Only print the summary
    deckstate-validate-presets --summary_only
"""

import argparse
import sys
from typing import List, Optional

from deckstate.presets.decks import DEFAULT_REGISTRY, PresetDeckRegistry
from deckstate.presets.validator import validate_preset_deck


def validate_all_presets(
    registry: PresetDeckRegistry, summary_only: bool = False
) -> bool:
    """
    Validate every template in a registry and print a report.

    Args:
        registry: Registry holding the templates to check
        summary_only: Skip the per-template lines

    Returns:
        True if every template is valid and all identifiers are unique
    """
    total = len(registry)
    valid_count = 0
    invalid_count = 0

    print("Validating preset decks...\n")

    for index, preset in enumerate(registry, start=1):
        result = validate_preset_deck(preset)
        label = f"[{index}/{total}] {preset.name} ({preset.id})"
        if result.is_valid:
            valid_count += 1
            if not summary_only:
                print(f"  OK    {label}")
        else:
            invalid_count += 1
            print(f"  FAIL  {label}", file=sys.stderr)
            for error in result.errors:
                print(f"        - {error}", file=sys.stderr)

    duplicates = registry.duplicate_ids()
    for preset_id in duplicates:
        print(f"  FAIL  duplicate preset id '{preset_id}'", file=sys.stderr)

    print("\n" + "=" * 60)
    print("Validation Summary:")
    print(f"  Total presets: {total}")
    print(f"  Valid: {valid_count}")
    print(f"  Invalid: {invalid_count}")
    print(f"  Duplicate ids: {len(duplicates)}")
    print("=" * 60 + "\n")

    return invalid_count == 0 and not duplicates


def main(
    argv: Optional[List[str]] = None, registry: Optional[PresetDeckRegistry] = None
) -> int:
    parser = argparse.ArgumentParser(
        description="Validate the preset deck templates before building or deploying"
    )
    parser.add_argument(
        "--summary_only",
        action="store_true",
        help="Show only failures and the summary, not every template",
    )
    args = parser.parse_args(argv)

    if registry is None:
        registry = DEFAULT_REGISTRY

    if validate_all_presets(registry, summary_only=args.summary_only):
        print("All preset decks are valid!")
        return 0

    print("Preset deck validation failed!", file=sys.stderr)
    print("Please fix the errors above before building or deploying.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
