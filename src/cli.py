#!/usr/bin/env python3
"""CLI entry point for recommender-driver.

Usage:
    recommender-driver list [-p PROJECT] [-l LOCATION] [-r RECOMMENDER] [--state STATE]
    recommender-driver show NAME | --file PATH
    recommender-driver apply NAME... | --file PATH [--dry-run] [--yes] [--report-dir DIR]

Recommendations are fetched from the Recommender API by full resource
name, or read from a JSON/YAML document with --file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from automation import AutomationError, Recommendation, apply, preview
from config import ConfigError, load_config
from gcloud import GoogleService
from reporting import ApplyReport

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    """Configure logging to stderr so stdout carries only command output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )


def load_document(path: Path) -> Recommendation:
    """Load a recommendation from a JSON or YAML file."""
    with open(path, encoding='utf-8') as f:
        if path.suffix == '.json':
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a recommendation object")
    return Recommendation.from_dict(data)


def _build_service(args) -> GoogleService:
    config = load_config(Path(args.config) if args.config else None)
    return GoogleService(config)


def _recommendations(args, service: Optional[GoogleService]) -> list[Recommendation]:
    if args.file:
        return [load_document(Path(args.file))]
    assert service is not None
    return [service.get_recommendation(name) for name in args.names]


def _print_preview(recommendation: Recommendation) -> None:
    print(f"{recommendation.name}")
    print(f"  State: {recommendation.state}")
    if recommendation.description:
        print(f"  Description: {recommendation.description}")
    for entry in preview(recommendation):
        print(f"  [group {entry['group']}] {entry['operation']}")
        if 'error' in entry:
            print(f"      ✗ {entry['error']}")
        else:
            print(f"      calls: {', '.join(entry['calls'])}")


def cmd_list(args) -> int:
    service = _build_service(args)
    config = service.config
    project = args.project or config.project
    location = args.location or config.location
    if not project or not location:
        print("Error: --project and --location are required (or set them in driver.yaml)",
              file=sys.stderr)
        return 1

    recommenders = [args.recommender] if args.recommender else config.recommenders
    found = []
    for recommender in recommenders:
        found.extend(service.list_recommendations(project, location, recommender, state=args.state))

    if args.json_output:
        print(json.dumps([{
            'name': r.name,
            'state': r.state,
            'description': r.description,
            'subtype': r.recommender_subtype,
        } for r in found], indent=2))
        return 0

    if not found:
        print("No recommendations found")
        return 0
    for r in found:
        print(f"{r.state:<10} {r.recommender_subtype:<28} {r.name}")
        if r.description:
            print(f"           {r.description}")
    return 0


def cmd_show(args) -> int:
    service = None if args.file else _build_service(args)
    for recommendation in _recommendations(args, service):
        if args.json_output:
            print(json.dumps({'name': recommendation.name, 'plan': preview(recommendation)}, indent=2))
        else:
            _print_preview(recommendation)
    return 0


def cmd_apply(args) -> int:
    needs_service = not (args.dry_run and args.file)
    service = _build_service(args) if needs_service else None
    recommendations = _recommendations(args, service)

    if args.dry_run:
        for recommendation in recommendations:
            _print_preview(recommendation)
        print("\nMode: DRY-RUN (no changes made)")
        return 0

    if not args.yes:
        print(f"About to apply {len(recommendations)} recommendation(s). This cannot be undone.")
        response = input("Continue? [y/N] ").strip().lower()
        if response != 'y':
            print("Aborted.")
            return 1

    assert service is not None
    report_dir = Path(args.report_dir) if args.report_dir else service.config.report_dir
    results = []
    for recommendation in recommendations:
        report = ApplyReport(recommendation=recommendation.name, report_dir=report_dir)
        try:
            apply(service, recommendation, report)
        except AutomationError as e:
            logger.error(f"Failed to apply {recommendation.name}: {e}")
        results.append(report)

    if args.json_output:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for r in results:
            status = 'SUCCEEDED' if r.success else 'FAILED'
            print(f"{status:<10} {r.recommendation}")
            if r.error:
                print(f"           {r.error}")

    return 0 if all(r.success for r in results) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='recommender-driver',
        description='Apply Recommender API recommendations to compute resources',
    )
    parser.add_argument('--config', '-c', help='Path to driver.yaml (default: discovered)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    parser.add_argument('--json-output', action='store_true',
                        help='Output structured JSON to stdout (logs to stderr)')
    sub = parser.add_subparsers(dest='command')

    list_parser = sub.add_parser('list', help='List recommendations')
    list_parser.add_argument('--project', '-p', help='Project ID')
    list_parser.add_argument('--location', '-l', help='Location (zone or region)')
    list_parser.add_argument('--recommender', '-r', help='Recommender ID (default: all configured)')
    list_parser.add_argument('--state', default='ACTIVE', help='State filter (default: ACTIVE)')

    for verb, desc in (('show', 'Show operations and planned calls'),
                       ('apply', 'Apply recommendations')):
        verb_parser = sub.add_parser(verb, help=desc)
        verb_parser.add_argument('names', nargs='*', help='Recommendation resource names')
        verb_parser.add_argument('--file', '-f', help='Recommendation document (JSON or YAML)')
        if verb == 'apply':
            verb_parser.add_argument('--dry-run', action='store_true',
                                     help='Preview calls without executing')
            verb_parser.add_argument('--yes', '-y', action='store_true',
                                     help='Skip confirmation prompt')
            verb_parser.add_argument('--report-dir', help='Directory for apply reports')

    return parser


def main(argv: Optional[list] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _setup_logging(args.verbose)

    if args.command in ('show', 'apply') and bool(args.names) == bool(args.file):
        print("Error: specify either recommendation names or --file", file=sys.stderr)
        return 1

    handlers = {'list': cmd_list, 'show': cmd_show, 'apply': cmd_apply}
    try:
        return handlers[args.command](args)
    except (AutomationError, ConfigError, OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
