"""Command-line interface for gz-exporter."""

import argparse
import asyncio
import logging
import platform
import sys

import distro
import uvicorn

from . import __version__
from .config import DEFAULT_HOST, DEFAULT_PORT, ExporterConfig
from .errors import CollectionError
from .registry import CPU_KSTAT_METRICS, ZPOOL_LIST_FORMAT_VERSION, ZPOOL_METRICS
from .collectors.zpool import ZPOOL_LIST_COMMAND, ZPOOL_TIMEOUT_SECONDS
from .server import collect_all, create_app

logger = logging.getLogger("gz-exporter")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_serve(args: argparse.Namespace, config: ExporterConfig) -> int:
    """Serve metrics over HTTP until interrupted."""
    try:
        app = create_app()

        logger.info(f"Serving metrics on http://{config.bind_address}/")
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
        return 0

    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


def cmd_collect(args: argparse.Namespace, config: ExporterConfig) -> int:
    """Run one collection cycle and print the metrics page."""
    try:
        logger.info("Collecting metrics...")
        body = asyncio.run(collect_all())
        sys.stdout.write(body)
        return 0

    except CollectionError as e:
        logger.error(f"Collection failed: {e}")
        return 1


def cmd_info(args: argparse.Namespace, config: ExporterConfig) -> int:
    """Show exporter information."""
    os_name = distro.name() or platform.system()
    os_version = distro.version() or platform.version()

    print("\ngz-exporter information")
    print("=" * 50)
    print(f"Version:     {__version__}")
    print(f"Listen:      http://{config.bind_address}/")
    print(f"OS:          {os_name} {os_version}")
    print(f"Kernel:      {platform.release()}")
    print(f"zpool:       {' '.join(ZPOOL_LIST_COMMAND)} (format v{ZPOOL_LIST_FORMAT_VERSION})")
    print(f"Timeout:     {ZPOOL_TIMEOUT_SECONDS:g}s")
    print("Metrics:")
    for metric in CPU_KSTAT_METRICS:
        print(f"  {metric.name} ({metric.metric_type.value}, kstat {metric.raw_key})")
    for metric in ZPOOL_METRICS:
        print(f"  {metric.name} ({metric.metric_type.value}, zpool {metric.raw_key})")
    print("=" * 50)

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gz-exporter",
        description="gz-exporter - Prometheus exporter for illumos CPU and ZFS pool metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"gz-exporter {__version__}")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Serve metrics over HTTP")
    serve_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Address to bind (default: {DEFAULT_HOST})",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )

    # Collect command
    subparsers.add_parser("collect", help="Collect once and print the metrics page")

    # Info command
    subparsers.add_parser("info", help="Show exporter information")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = ExporterConfig(
            host=getattr(args, "host", DEFAULT_HOST),
            port=getattr(args, "port", DEFAULT_PORT),
            log_level=args.log_level,
        )
    except ValueError as e:
        parser.error(str(e))

    setup_logging(config.log_level)

    # Route to command handler
    if args.command == "serve":
        return cmd_serve(args, config)
    elif args.command == "collect":
        return cmd_collect(args, config)
    elif args.command == "info":
        return cmd_info(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
