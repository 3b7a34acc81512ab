"""linkseal CLI: record, run and verify step link metadata."""

import argparse
import logging
import os
import subprocess  # nosec
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from linkseal.errors import LinksealError


def _add_recording_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-e", "--exclude",
        action="extend",
        nargs="+",
        default=[],
        metavar="PATTERN",
        help="Gitignore-style patterns for paths that should not be recorded. "
             "Overrides patterns from the LINKSEAL_EXCLUDE_PATTERNS environment variable."
    )
    parser.add_argument(
        "-l", "--lstrip-paths",
        action="extend",
        nargs="+",
        default=[],
        metavar="PREFIX",
        help="Path prefixes left-stripped from artifact paths before storing them. "
             "No prefix may be a prefix of another."
    )
    parser.add_argument(
        "--algorithm",
        dest="algorithms",
        action="extend",
        nargs="+",
        default=[],
        metavar="NAME",
        help="Hash algorithm(s) to record (default: sha256)"
    )
    parser.add_argument(
        "--normalize-line-endings",
        action="store_true",
        help="Replace CRLF and CR with LF before hashing, for cross-platform digests."
    )
    parser.add_argument(
        "--follow-symlink-dirs",
        action="store_true",
        help="Follow symlinked directories. Symlinked files are always recorded."
    )
    parser.add_argument(
        "--base-path",
        type=Path,
        default=None,
        help="Record artifact paths relative to this directory (default: current directory)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of threads used for hashing files (default: 1)"
    )


def _exclude_patterns(args: argparse.Namespace) -> List[str]:
    from linkseal.config import EXCLUDE_PATTERNS_ENV

    if args.exclude:
        return args.exclude
    return os.environ.get(EXCLUDE_PATTERNS_ENV, "").split()


def _configure_logging(args: argparse.Namespace) -> None:
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _cmd_run(args: argparse.Namespace) -> int:
    from linkseal.api import load_signing_key, run_step
    from linkseal.config import StepConfig
    from linkseal.kernel.keys import NO_KEY
    from linkseal._internal.io.envelope import write_envelope

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if args.no_command and command:
        print("Error: command arguments passed with --no-command/-x", file=sys.stderr)
        return 1
    if not args.no_command and not command:
        print("Error: no command arguments passed, please specify or use --no-command", file=sys.stderr)
        return 1

    config = StepConfig(
        name=args.name,
        material_paths=args.materials,
        product_paths=args.products,
        command=command,
        run_dir=args.run_dir,
        base_path=args.base_path,
        exclude_patterns=_exclude_patterns(args),
        lstrip_paths=args.lstrip_paths,
        algorithms=args.algorithms or ["sha256"],
        normalize_line_endings=args.normalize_line_endings,
        follow_symlink_dirs=args.follow_symlink_dirs,
        timeout=args.timeout,
        workers=args.workers,
    )
    # Load the key before recording anything
    key = load_signing_key(args.key) if args.key else NO_KEY

    metablock = run_step(config, key)
    out_path = write_envelope(metablock, args.metadata_directory)
    if not args.quiet:
        print("[OK] Link metadata written")
        print(f"  Path: {out_path}")
        print(f"  Materials: {len(metablock.signed.materials)}")
        print(f"  Products: {len(metablock.signed.products)}")
        print(f"  Signed: {'yes' if metablock.is_signed else 'no'}")
    return 0


def _cmd_record(args: argparse.Namespace) -> int:
    from linkseal.api import record
    from linkseal.kernel.recorder import RecordSettings
    from linkseal._internal.canonical_json import canonical_dumps

    settings = RecordSettings(
        algorithms=args.algorithms or ["sha256"],
        exclude_patterns=_exclude_patterns(args),
        lstrip_paths=args.lstrip_paths,
        normalize_line_endings=args.normalize_line_endings,
        follow_symlink_dirs=args.follow_symlink_dirs,
        base_path=args.base_path,
        workers=args.workers,
    )
    print(canonical_dumps(record(args.paths, settings)))
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    from linkseal.api import load_public_key, verify_link_file

    keys = [load_public_key(path) for path in args.keys]
    ok = verify_link_file(args.link_path, keys)
    if not args.quiet:
        print(f"[{'OK' if ok else 'FAILED'}] Signature verification complete")
        print(f"  Link: {args.link_path}")
        print(f"  Status: {'OK' if ok else 'FAILED'}")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point for linkseal commands."""
    try:
        linkseal_version = get_version("linkseal")
    except PackageNotFoundError:
        linkseal_version = "dev"

    parser = argparse.ArgumentParser(
        prog="linkseal",
        description="linkseal: signed link metadata for software supply chain steps"
    )
    parser.add_argument("--version", action="version", version=f"linkseal {linkseal_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    verbosity = parent_parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output."
    )

    subparsers = parser.add_subparsers(dest="command_name", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Record materials, run a command, record products and write signed link metadata",
        parents=[parent_parser]
    )
    run_parser.add_argument(
        "-n", "--name",
        required=True,
        help="Step name used to associate the link with a layout step"
    )
    run_parser.add_argument(
        "-m", "--materials",
        action="extend",
        nargs="+",
        default=[],
        metavar="PATH",
        help="Files or directories recorded before the command runs"
    )
    run_parser.add_argument(
        "-p", "--products",
        action="extend",
        nargs="+",
        default=[],
        metavar="PATH",
        help="Files or directories recorded after the command runs"
    )
    run_parser.add_argument(
        "-k", "--key",
        type=Path,
        default=None,
        help="PEM private key used to sign the link (unsigned if omitted)"
    )
    run_parser.add_argument(
        "-d", "--metadata-directory",
        type=Path,
        default=Path("."),
        help="Directory to store link metadata (default: current directory)"
    )
    run_parser.add_argument(
        "-r", "--run-dir",
        default=None,
        help="Working directory of the command; must exist and not be a symlink"
    )
    run_parser.add_argument(
        "-x", "--no-command",
        action="store_true",
        help="Indicate that there is no command to be executed for the step"
    )
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Kill the command after this many seconds"
    )
    _add_recording_arguments(run_parser)
    run_parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to execute, after '--'"
    )

    # record command
    record_parser = subparsers.add_parser(
        "record",
        help="Print the artifact hashes recorded for a set of paths",
        parents=[parent_parser]
    )
    record_parser.add_argument(
        "paths",
        nargs="+",
        help="Files or directories to record"
    )
    _add_recording_arguments(record_parser)

    # verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify link metadata signatures",
        parents=[parent_parser]
    )
    verify_parser.add_argument(
        "link_path",
        type=Path,
        help="Path to a link file"
    )
    verify_parser.add_argument(
        "-k", "--key",
        dest="keys",
        type=Path,
        action="append",
        required=True,
        help="PEM public key whose signature is required (repeatable)"
    )

    args = parser.parse_args(argv)

    if not args.command_name:
        parser.print_help()
        sys.exit(1)

    _configure_logging(args)
    handlers = {
        "run": _cmd_run,
        "record": _cmd_record,
        "verify": _cmd_verify,
    }
    try:
        exit_code = handlers[args.command_name](args)
    except LinksealError as e:
        print(f"Error: [{e.code.value}] {e.message}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    except (OSError, subprocess.SubprocessError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
