"""
Command-line interface for patchwork.

This module is responsible for argument parsing and delegating to the
batch host.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .config import Config, ErrorPolicy, load_manifest
from .errors import PatchworkError
from .host import run_batch
from .logging_utils import configure_logging


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patchwork",
        description=(
            "Run an ordered list of source-rewrite plugins over the "
            "TypeScript and JavaScript files under a directory."
        ),
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Directory to transform (default: the manifest's root, else the current directory).",
    )
    parser.add_argument(
        "-m",
        "--manifest",
        required=True,
        help="JSON manifest listing the plugins to run, in order.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report which files would change without writing them.",
    )
    parser.add_argument(
        "--recoverable",
        dest="error_policy",
        action="store_const",
        const=ErrorPolicy.RECOVERABLE,
        help="Leave a file unchanged when a plugin fails instead of aborting.",
    )
    parser.add_argument(
        "-j",
        "--workers",
        type=int,
        default=None,
        help="Number of files to transform in parallel.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be specified multiple times).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(verbosity=args.verbose)

    try:
        config = load_manifest(args.manifest, base=Config(root=".", verbosity=args.verbose))
        if args.root is not None:
            config.root = args.root
        config.dry_run = args.dry_run
        if args.error_policy is not None:
            config.error_policy = args.error_policy
        if args.workers is not None:
            config.workers = args.workers

        report = run_batch(config)
    except KeyboardInterrupt:
        return 130
    except PatchworkError as exc:
        print(f"patchwork: error: {exc}", file=sys.stderr)
        return 1

    for identifier, messages in sorted(report.diagnostics.items()):
        for message in messages:
            print(f"patchwork: {identifier}: {message}", file=sys.stderr)

    verb = "would change" if config.dry_run else "changed"
    print(f"{len(report.changed)} {verb}, {len(report.unchanged)} unchanged, {len(report.failed)} failed")
    return 1 if report.failed else 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
