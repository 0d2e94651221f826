"""
Command-line interface for npm-updates.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .checker import UpdateChecker
from .errors import UpdatesError
from .manifest import (
    collect_dependencies,
    load_manifest,
    resolve_manifest_path,
    split_names,
    update_manifest_text,
    write_manifest,
)
from .models import CheckOutcome
from .policy import Policy
from .registry import NpmRegistryClient
from .reporting import format_json, format_text


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_OUTDATED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="npm-updates",
        description="Find newer versions of package.json dependencies",
        epilog=(
            "examples: npm-updates | npm-updates -u | npm-updates -u -m | "
            "npm-updates -u -e chalk | npm-updates -u -t devDependencies"
        ),
    )

    parser.add_argument(
        "-u", "--update",
        action="store_true",
        help="Update versions and write package.json"
    )

    # bare flag applies to all packages, a comma list only to those
    mixed_flags = [
        ("-p", "--prerelease", "Consider prerelease versions"),
        ("-R", "--release", "Only use release versions, may downgrade"),
        ("-g", "--greatest", "Prefer greatest over latest version"),
        ("-P", "--patch", "Consider only up to semver-patch"),
        ("-m", "--minor", "Consider only up to semver-minor"),
    ]
    for short, long, help_text in mixed_flags:
        parser.add_argument(
            short, long,
            nargs="?",
            const="",
            default=None,
            metavar="PKG,...",
            help=help_text,
        )

    parser.add_argument(
        "-i", "--include",
        metavar="PKG,...",
        help="Include only given packages"
    )

    parser.add_argument(
        "-e", "--exclude",
        metavar="PKG,...",
        help="Exclude given packages"
    )

    parser.add_argument(
        "-t", "--types",
        metavar="TYPE,...",
        help="Check only given dependency types"
    )

    parser.add_argument(
        "-E", "--error-on-outdated",
        action="store_true",
        help="Exit with error code 2 on outdated packages"
    )

    parser.add_argument(
        "-r", "--registry",
        help="Use given registry URL"
    )

    parser.add_argument(
        "-f", "--file",
        help="Use given package.json file or module directory"
    )

    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Output a JSON object"
    )

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def run(args: argparse.Namespace) -> CheckOutcome:
    """Read the manifest, check every dependency and optionally write updates."""
    policy = Policy.from_args(
        prerelease=args.prerelease,
        release=args.release,
        greatest=args.greatest,
        patch=args.patch,
        minor=args.minor,
    )

    try:
        manifest_path = resolve_manifest_path(args.file)
        manifest, manifest_text = load_manifest(manifest_path)
        deps = collect_dependencies(
            manifest,
            types=split_names(args.types),
            include=split_names(args.include),
            exclude=split_names(args.exclude),
        )
    except UpdatesError as e:
        return CheckOutcome(error=e)

    client = NpmRegistryClient(registry=args.registry)
    checker = UpdateChecker(
        client,
        policy,
        progress=not args.json and sys.stderr.isatty(),
    )
    logger.info("Checking %d dependencies against %s", len(deps), client.registry)
    outcome = checker.check(deps)

    if args.update and outcome.outdated:
        try:
            write_manifest(
                manifest_path,
                update_manifest_text(manifest_text, outcome.results.values()),
            )
        except UpdatesError as e:
            return CheckOutcome(results=outcome.results, error=e)
        outcome.message = f"{manifest_path.name} updated"
    return outcome


def exit_code(outcome: CheckOutcome, error_on_outdated: bool = False) -> int:
    if outcome.error is not None:
        return EXIT_ERROR
    if error_on_outdated and outcome.outdated:
        return EXIT_OUTDATED
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    outcome = run(args)
    output = format_json(outcome) if args.json else format_text(outcome)
    if output:
        print(output)
    return exit_code(outcome, args.error_on_outdated)


if __name__ == "__main__":
    sys.exit(main())
