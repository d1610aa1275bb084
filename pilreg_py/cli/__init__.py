"""CLI entry point for pilreg."""

import sys
import argparse
from typing import List, Optional

from .pillage import create_pillage_parser, run_pillage, ScanConfig


def create_main_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="pilreg-py",
        description="Enumerate container registries and collect image manifests, "
                    "configs and filesystems",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Enumerate everything the catalog exposes and print JSON
  pilreg-py registry.example.com

  # Only some repositories and tags, over plain HTTP
  pilreg-py localhost:5000 --insecure --repos app,worker --tags latest

  # Store manifests and configs to disk and export filesystems
  pilreg-py registry.example.com --results ./loot --store-images --cache ./layers
""",
    )
    return create_pillage_parser(parser)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_main_parser()
    args = parser.parse_args(argv)

    try:
        return run_pillage(args)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


__all__ = ["main", "create_main_parser", "run_pillage", "ScanConfig"]
