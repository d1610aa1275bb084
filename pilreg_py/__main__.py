"""
Main entry point for the pilreg package.

Usage:
    python -m pilreg_py <registry> [<registry> ...] [OPTIONS]
"""

import sys


def main() -> int:
    """Main entry point."""
    from .cli import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
