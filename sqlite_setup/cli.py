"""Command-line interface for setup-sqlite."""

from __future__ import annotations

import argparse
import sys

from . import __version__
from .config import SetupConfig
from .install import CleanupRegistry, InstallResult, setup_sqlite
from .toolcache import set_output
from .utils import log, setup_logging


def publish_outputs(result: InstallResult) -> None:
    """Publish the step outputs of a finished installation."""
    set_output("cache-hit", str(result.cache_hit).lower())
    set_output("sqlite-version", result.version)
    if result.bin_dirs:
        set_output("sqlite-bin", str(result.bin_dirs[0]))


def run(config: SetupConfig) -> InstallResult:
    """Install sqlite as configured, cleaning up whatever the outcome."""
    log("Executing sqlite setup", "debug")
    cleanup = CleanupRegistry()
    try:
        result = setup_sqlite(
            config.version,
            config.year,
            config.url_prefix,
            cleanup=cleanup,
            config=config,
        )
        publish_outputs(result)
        return result
    finally:
        cleanup.run()
        log("Completed sqlite setup", "debug")


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="setup-sqlite - Install a SQLite tools release and add it to the PATH",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--config-file",
        type=str,
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--sqlite-version",
        dest="sqlite_version",
        help="Version to install, X.Y.Z[.M] (latest if not specified)",
    )
    parser.add_argument(
        "--sqlite-year",
        dest="sqlite_year",
        help="Release year of the version, YYYY (looked up if not specified)",
    )
    parser.add_argument(
        "--sqlite-url-path",
        dest="url_prefix",
        help="Url the release archives are downloaded from",
    )
    parser.add_argument(
        "--sqlite-retry-count",
        dest="retry_count",
        help="Retries allowed while GitHub rate limits the version lookup",
    )
    parser.add_argument(
        "--trust-year",
        action="store_true",
        default=None,
        help="Skip the release year lookup when both version and year are given",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"setup-sqlite {__version__}",
    )
    return parser


def load_config(args: argparse.Namespace) -> SetupConfig:
    """Combine the configuration file, the environment and the arguments."""
    config = SetupConfig.from_env(SetupConfig.load_from_file(args.config_file))
    return config.merge(
        {
            "version": args.sqlite_version,
            "year": args.sqlite_year,
            "url_prefix": args.url_prefix,
            "retry_count": args.retry_count,
            "trust_year": args.trust_year,
        },
    )


def main(argv: list[str] | None = None) -> int:
    """Main function to parse arguments and install sqlite."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    try:
        run(load_config(args))
    except Exception as e:
        log(f"An error was generated when installing sqlite: {e!s}", "error")
        log("Traceback follows", "debug", print_exception=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
