"""
Incident Classification - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for classifying incident records.

- Provides argparse-based CLI
- Loads the rule table from --rules or the environment
- Reads records as JSON, writes results as JSON

============================================================
USAGE
============================================================
python -m incident_classification.cli classify record.json
python -m incident_classification.cli classify record.json --text
python -m incident_classification.cli batch records.json
python -m incident_classification.cli --rules rules.yaml rules

============================================================
EXIT CODES
============================================================
0 - Success
1 - Batch finished with rejected records
2 - Invalid record or input file
3 - Invalid rule table

============================================================
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .types import RuleConfigurationError, ValidationError
from .config import load_config
from .engine import ClassificationEngine, format_classification_summary
from .batch import classify_batch, summarize
from .schemas import parse_record


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="incident-classify",
        description="Classify workplace safety incidents and flag mandatory reporting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  classify  - Classify one JSON record
  batch     - Classify a JSON array of records and summarize
  rules     - Print the active rule table

Examples:
  %(prog)s classify incident.json --text
  %(prog)s --rules site_rules.yaml batch incidents.json
        """
    )

    parser.add_argument(
        "--rules",
        type=Path,
        metavar="PATH",
        help="YAML rule table (default: $INCIDENT_RULES_PATH or built-in rules)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser("classify", help="Classify one record")
    classify_parser.add_argument("file", type=Path, help="JSON file with one record")
    classify_parser.add_argument(
        "--text",
        action="store_true",
        help="Print a human-readable summary instead of JSON",
    )

    batch_parser = subparsers.add_parser("batch", help="Classify a list of records")
    batch_parser.add_argument("file", type=Path, help="JSON file with an array of records")

    subparsers.add_parser("rules", help="Print the active rule table")

    return parser


# ============================================================
# COMMANDS
# ============================================================

def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_classify(args: argparse.Namespace, engine: ClassificationEngine) -> int:
    record = parse_record(_read_json(args.file))
    result = engine.classify(record)

    if args.text:
        print(format_classification_summary(result))
    else:
        _print_json(result.to_dict())
    return 0


def cmd_batch(args: argparse.Namespace, engine: ClassificationEngine) -> int:
    payloads = _read_json(args.file)
    if not isinstance(payloads, list):
        raise ValidationError("records", "batch input must be a JSON array")

    batch = classify_batch(payloads, engine=engine)
    summary = summarize(batch.results, scale=engine.config.tiers)

    output = batch.to_dict()
    output["summary"] = summary.to_dict()
    _print_json(output)
    return 1 if batch.failures else 0


def cmd_rules(args: argparse.Namespace, engine: ClassificationEngine) -> int:
    _print_json(engine.config.to_dict())
    return 0


COMMANDS = {
    "classify": cmd_classify,
    "batch": cmd_batch,
    "rules": cmd_rules,
}


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv: Arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        engine = ClassificationEngine(load_config(args.rules))
    except (RuleConfigurationError, OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot load rule table: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 3

    try:
        return COMMANDS[args.command](args, engine)
    except ValidationError as e:
        print(f"invalid record: {e}", file=sys.stderr)
        return 2
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read input: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
