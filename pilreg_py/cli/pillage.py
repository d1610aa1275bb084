"""CLI for registry enumeration."""

import argparse
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.enumerator import ImageEnumerator
from ..core.storage import DEFAULT_WORKERS, StorageOptions, StoragePipeline
from ..models.image_data import ImageData, results_to_json
from ..utils.logging import setup_logging, LogLevel, get_logger
from ..utils.registry import CraneClient, RegistryClient, RegistryOptions
from ..utils.subprocess import check_prerequisites

logger = get_logger(__name__)


def _split_list(values: Optional[List[str]]) -> Tuple[str, ...]:
    """Flatten repeatable comma-separated flag values."""
    items: List[str] = []
    for value in values or []:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return tuple(items)


@dataclass(frozen=True)
class ScanConfig:
    """Settings for one scan, built once from the command line."""
    registries: Tuple[str, ...]
    repositories: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    results_path: Optional[str] = None
    store_images: bool = False
    cache_path: Optional[str] = None
    workers: int = DEFAULT_WORKERS
    registry_options: RegistryOptions = field(default_factory=RegistryOptions)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ScanConfig":
        """Build a config from parsed arguments."""
        return cls(
            registries=tuple(r for r in args.registries if r.strip()),
            repositories=_split_list(args.repos),
            tags=_split_list(args.tags),
            results_path=args.results or None,
            store_images=args.store_images,
            cache_path=args.cache or None,
            workers=args.workers,
            registry_options=RegistryOptions(
                insecure=args.insecure,
                skip_tls=args.skip_tls,
                timeout=args.timeout,
            ),
        )

    def validate(self) -> None:
        """
        Reject invalid flag combinations.

        Raises:
            ValueError: If the configuration cannot be used for a scan
        """
        if self.store_images and not self.results_path:
            raise ValueError(
                "Cannot pull images without destination path. "
                "Unset --store-images or set --results"
            )
        if self.workers < 1:
            raise ValueError(f"--workers must be at least 1, got {self.workers}")
        if self.cache_path and not self.store_images:
            logger.warning("--cache is only used together with --store-images")


def create_pillage_parser(parser: Optional[argparse.ArgumentParser] = None) -> argparse.ArgumentParser:
    """Create (or populate) the argument parser."""
    if parser is None:
        parser = argparse.ArgumentParser(prog="pilreg-py")

    parser.add_argument(
        "registries",
        nargs="+",
        metavar="registry",
        help="Registry to enumerate (host or host:port)",
    )

    # Enumeration options
    parser.add_argument(
        "--repos", "-r",
        action="append",
        help="Comma-separated repositories to scan on each registry. "
             "If omitted, they are enumerated with the catalog API",
    )
    parser.add_argument(
        "--tags", "-t",
        action="append",
        help="Comma-separated tags to scan on each repository. "
             "If omitted, they are enumerated with the tags API",
    )

    # Output options
    parser.add_argument(
        "--results", "-o",
        help="Directory for storing results. If omitted, manifests and "
             "configs are printed to stdout as a JSON array "
             "(required by --store-images)",
    )
    parser.add_argument(
        "--store-images", "-s",
        action="store_true",
        help="Download the filesystem of every image and store it as a "
             "tarball in the results directory",
    )
    parser.add_argument(
        "--cache", "-c",
        help="Directory for caching image layers (only used with --store-images)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of images stored concurrently (default: {DEFAULT_WORKERS})",
    )

    # Transport options
    parser.add_argument(
        "--insecure", "-i",
        action="store_true",
        help="Fetch data over plaintext HTTP",
    )
    parser.add_argument(
        "--skip-tls", "-k",
        action="store_true",
        help="Disable TLS certificate verification",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Timeout for each registry call in seconds (default: none)",
    )

    # Logging options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output (shows per-image errors)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Disable log output",
    )

    return parser


def _log_summary(results: List[ImageData]) -> None:
    failed = sum(1 for image in results if image.failed)
    if failed:
        logger.warning(f"Enumerated {len(results)} records, {failed} with errors")
    else:
        logger.success(f"Enumerated {len(results)} records")


def run_pillage(args: argparse.Namespace, client: Optional[RegistryClient] = None) -> int:
    """
    Run a registry scan.

    Args:
        args: Parsed command line arguments
        client: Registry access to use instead of crane

    Returns:
        Exit code
    """
    if args.verbose:
        setup_logging(LogLevel.VERBOSE)
    elif args.quiet:
        setup_logging(LogLevel.NONE)
    else:
        setup_logging(LogLevel.INFO)

    config = ScanConfig.from_args(args)
    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if client is None:
        missing = check_prerequisites(["crane"])
        if missing:
            print(f"Error: Missing required tools: {', '.join(missing)}", file=sys.stderr)
            return 1
        client = CraneClient(config.registry_options)

    enumerator = ImageEnumerator(client)
    images = enumerator.enum_registries(
        config.registries, config.repositories, config.tags
    )

    if config.results_path:
        pipeline = StoragePipeline(
            StorageOptions(
                results_path=config.results_path,
                cache_path=config.cache_path,
                store_images=config.store_images,
                client=client,
            ),
            workers=config.workers,
        )
        results = pipeline.run(images)
        logger.info(f"Results stored in {config.results_path}")
    else:
        results = list(images)
        print(results_to_json(results))

    _log_summary(results)
    return 0
