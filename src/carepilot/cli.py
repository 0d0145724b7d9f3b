"""
CarePilot CLI

Command-line interface for jurisdiction rules and weights packs.

Usage:
    python -m carepilot.cli deadlines SCOTLAND 2025-01-01 --sequence 1
    python -m carepilot.cli validate-status SCOTLAND CARE_ORDER_IE
    python -m carepilot.cli validate-pack path/to/weights.yaml
    python -m carepilot.cli rules ENGLAND
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from .config import Settings
from .engine import ComplianceCalculator
from .exceptions import CarePilotError
from .logging_setup import configure_logging
from .packs import load_weights_pack


def cmd_deadlines(args: argparse.Namespace) -> int:
    """Print the statutory deadlines for a jurisdiction and anchor date."""
    calculator = ComplianceCalculator()
    deadlines = calculator.compute_deadlines(
        args.jurisdiction,
        args.from_date,
        review_sequence_number=args.sequence,
        include_education_plan=not args.no_education_plan,
    )
    rules = calculator.rules_for(args.jurisdiction)

    if args.json:
        print(json.dumps(deadlines.to_dict(), indent=2))
        return 0

    print(f"{rules.display_name} ({rules.care_plan_label})")
    print("-" * 50)
    for deadline in deadlines.deadlines:
        label = deadline.deadline_type.value
        if deadline.sequence_number is not None:
            label = f"{label} #{deadline.sequence_number}"
        print(f"{label:<28} {deadline.due_date.isoformat()}")
    return 0


def cmd_validate_status(args: argparse.Namespace) -> int:
    """Check a (jurisdiction, legal status) pair."""
    ComplianceCalculator().validate(args.jurisdiction, args.legal_status)
    print(f"{args.legal_status} is valid for {args.jurisdiction}")
    return 0


def cmd_validate_pack(args: argparse.Namespace) -> int:
    """Validate a weights pack file."""
    pack = load_weights_pack(args.path)
    print(f"VALID: {pack.version_tag}")
    if args.json:
        print(json.dumps(pack.to_dict(), indent=2))
    return 0


def cmd_rules(args: argparse.Namespace) -> int:
    """Print a jurisdiction's rule entry."""
    rules = ComplianceCalculator().rules_for(args.jurisdiction)
    print(json.dumps(rules.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CarePilot compliance rules CLI",
        prog="python -m carepilot.cli",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Deadlines command
    deadlines_parser = subparsers.add_parser("deadlines", help="Compute statutory deadlines")
    deadlines_parser.add_argument("jurisdiction", help="e.g. ENGLAND, SCOTLAND")
    deadlines_parser.add_argument("from_date", help="Anchor date (YYYY-MM-DD)")
    deadlines_parser.add_argument("--sequence", type=int, default=1, help="Review sequence number")
    deadlines_parser.add_argument(
        "--no-education-plan", action="store_true", help="Omit the education plan deadline"
    )
    deadlines_parser.add_argument("--json", action="store_true", help="Print JSON")
    deadlines_parser.set_defaults(func=cmd_deadlines)

    # Validate status command
    status_parser = subparsers.add_parser("validate-status", help="Validate a legal status")
    status_parser.add_argument("jurisdiction")
    status_parser.add_argument("legal_status")
    status_parser.set_defaults(func=cmd_validate_status)

    # Validate pack command
    pack_parser = subparsers.add_parser("validate-pack", help="Validate a weights pack")
    pack_parser.add_argument("path")
    pack_parser.add_argument("--json", action="store_true", help="Print the loaded pack")
    pack_parser.set_defaults(func=cmd_validate_pack)

    # Rules command
    rules_parser = subparsers.add_parser("rules", help="Show a jurisdiction's rules")
    rules_parser.add_argument("jurisdiction")
    rules_parser.set_defaults(func=cmd_rules)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        configure_logging(Settings.from_env().log_level, stream=sys.stderr)
        return args.func(args)
    except CarePilotError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
