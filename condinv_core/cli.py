#!/usr/bin/env python3
"""
CONDINV Command Line Interface
==============================

Usage:
    condinv check PATH...      Report avoidable condition inversions
    condinv tree FILE          Show the syntax tree built for a file
    condinv config             Show the effective configuration
    condinv config --init P    Write a default configuration file
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from condinv_core.ast_base import SourceParseError, format_ast_tree, get_ast_registry
from condinv_core.analyzer import Analyzer, format_json, format_text
from condinv_core.config import (
    CONFIG_FILENAME,
    CondinvConfig,
    config_to_dict,
    find_config_file,
    load_config,
    save_config,
    validate_config,
)
from condinv_core.messages import available_locales
from condinv_core.operators import RULE_TRIGGER_TOKENS
from condinv_core.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_ERROR = 2


# =============================================================================
# ANSI Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    CYAN = '\033[0;36m'
    BOLD = '\033[1m'
    NC = '\033[0m'  # No Color

    @classmethod
    def disable(cls):
        """Disable colors (for non-TTY output)."""
        cls.RED = cls.GREEN = cls.YELLOW = ''
        cls.CYAN = cls.BOLD = cls.NC = ''


def print_ok(msg: str) -> None:
    print(f"{Colors.GREEN}✓{Colors.NC} {msg}")


def print_warn(msg: str) -> None:
    print(f"{Colors.YELLOW}⚠{Colors.NC} {msg}")


def print_error(msg: str) -> None:
    print(f"{Colors.RED}✗{Colors.NC} {msg}", file=sys.stderr)


def print_header(msg: str) -> None:
    print(f"\n{Colors.BOLD}{Colors.CYAN}{msg}{Colors.NC}")
    print("=" * len(msg))


# =============================================================================
# Helpers
# =============================================================================

def setup_logging(args: argparse.Namespace, config: CondinvConfig) -> None:
    """Configure the root logger from -v/-q or the config file."""
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    else:
        level = getattr(logging, config.logging.level, logging.WARNING)
    logging.basicConfig(level=level, format="%(name)s %(levelname)s %(message)s")


def resolve_config(args: argparse.Namespace) -> CondinvConfig:
    """Load the configuration and apply command line overrides."""
    config_path = Path(args.config) if getattr(args, "config", None) else None
    config = load_config(config_path)

    if getattr(args, "strict", False):
        config.check.apply_only_to_relational_operands = True
    if getattr(args, "tokens", None):
        config.check.tokens = args.tokens
    if getattr(args, "format", None):
        config.report.format = args.format
    if getattr(args, "locale", None):
        config.report.locale = args.locale
    if getattr(args, "jobs", None) is not None:
        config.scan.jobs = args.jobs

    validate_config(config)
    return config


def positive_int(value: str) -> int:
    """argparse type for --jobs."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def token_list(value: str) -> List[str]:
    """argparse type for --tokens: comma-separated statement kinds."""
    tokens = [t.strip() for t in value.split(",") if t.strip()]
    acceptable = [t.value for t in RULE_TRIGGER_TOKENS]
    unknown = [t for t in tokens if t not in acceptable]
    if unknown or not tokens:
        raise argparse.ArgumentTypeError(
            f"unknown statement kind(s): {', '.join(unknown) or value!r} (choose from {', '.join(acceptable)})"
        )
    return tokens


# =============================================================================
# Commands
# =============================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Check files and directories."""
    config = resolve_config(args)
    setup_logging(args, config)

    try:
        analyzer = Analyzer(config)
    except ValueError as e:
        print_error(str(e))
        return EXIT_ERROR

    reports = analyzer.analyze_paths([Path(p) for p in args.paths])
    if config.report.format == "json":
        print(format_json(reports))
    else:
        print(format_text(reports))

    if any(r.error for r in reports):
        return EXIT_ERROR
    if config.check.severity == "error" and any(r.violations for r in reports):
        return EXIT_VIOLATIONS
    return EXIT_OK


def cmd_tree(args: argparse.Namespace) -> int:
    """Print the syntax tree built for a file."""
    config = resolve_config(args)
    setup_logging(args, config)

    path = Path(args.file)
    backend = get_ast_registry().get_backend_for_file(path)
    if backend is None:
        print_error(f"Unsupported file type: {path}")
        return EXIT_ERROR

    try:
        root = backend.parse_file(path)
    except SourceParseError as e:
        print_error(str(e))
        return EXIT_ERROR

    print(format_ast_tree(root, max_depth=args.depth))
    return EXIT_OK


def cmd_config(args: argparse.Namespace) -> int:
    """Show the effective configuration or write a default one."""
    if args.init:
        target = Path(args.init)
        if target.is_dir():
            target = target / CONFIG_FILENAME
        if target.exists() and not args.force:
            print_error(f"{target} already exists (use --force to overwrite)")
            return EXIT_ERROR
        save_config(CondinvConfig(), target)
        print_ok(f"Configuration written to {target}")
        return EXIT_OK

    config = resolve_config(args)
    setup_logging(args, config)

    path = Path(args.config) if args.config else find_config_file()
    print_header("CONDINV Configuration")
    if path:
        print_ok(f"Config file: {path}")
    else:
        print_warn("No config file found, using defaults")
    print(f"Locales: {', '.join(available_locales())}")
    print()
    print(yaml.dump(config_to_dict(config), default_flow_style=False, sort_keys=False, allow_unicode=True))
    return EXIT_OK


# =============================================================================
# Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="condinv",
        description="CONDINV - report avoidable condition inversions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  condinv check src/                  Check every .java and .py file under src/
  condinv check Foo.java --strict     Only flag inversions of relational operands
  condinv check src/ --format json    Machine-readable output
  condinv tree Foo.java               Show the tree the check sees
  condinv config --init .             Write a default condinv.yaml
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--config", help="Configuration file (default: search for condinv.yaml)")
    verbosity = common.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check
    sub = subparsers.add_parser("check", parents=[common], help="Report avoidable condition inversions")
    sub.add_argument("paths", nargs="+", help="Files or directories")
    sub.add_argument("--strict", action="store_true",
                     help="Only report inversions whose operands are all relational")
    sub.add_argument("--tokens", type=token_list, help="Comma-separated statement kinds to check, e.g. LITERAL_IF,LITERAL_RETURN")
    sub.add_argument("--format", choices=["text", "json"], help="Output format")
    sub.add_argument("--locale", help="Message locale, e.g. en, fr")
    sub.add_argument("-j", "--jobs", type=positive_int, help="Number of files checked in parallel")
    sub.set_defaults(func=cmd_check)

    # tree
    sub = subparsers.add_parser("tree", parents=[common], help="Show the syntax tree of a file")
    sub.add_argument("file", help="Source file")
    sub.add_argument("--depth", type=int, default=50, help="Maximum depth to print")
    sub.set_defaults(func=cmd_tree)

    # config
    sub = subparsers.add_parser("config", parents=[common], help="Show or create configuration")
    sub.add_argument("--init", metavar="PATH", help="Write a default configuration to PATH")
    sub.add_argument("--force", action="store_true", help="Overwrite an existing file with --init")
    sub.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    if not sys.stdout.isatty():
        Colors.disable()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_ERROR

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
