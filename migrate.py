#!/usr/bin/env python3
"""
Yuque to Obsidian Migration Tool - Main CLI Entry Point

This script provides the command-line interface for converting exported Yuque
knowledge bases into an Obsidian vault: cross-document links become relative
links, remote images become local assets and platform-specific markup is
normalized.
"""

import argparse
import logging
import sys
from typing import Any, Dict

import yaml

from config_loader import ConfigLoader, get_nested
from logger import log_config, log_section, setup_logging
from models import ConversionSettings
from orchestrator import MigrationOrchestrator, MigrationReport
from yuque_client import YuqueClient

# Version
__version__ = "1.0.0"

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Convert exported Yuque documents into an Obsidian vault",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert using a configuration file
  python migrate.py --config config.yaml

  # Convert without a configuration file
  python migrate.py --meta-dir ./meta --output-dir ./vault

  # Only selected knowledge bases
  python migrate.py --config config.yaml --namespace team/handbook --namespace team/faq

  # Preview without writing files
  python migrate.py --config config.yaml --dry-run

  # Verbose logging
  python migrate.py -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration YAML file'
    )

    parser.add_argument(
        '--meta-dir',
        type=str,
        help='Directory holding the exported document JSON files'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Vault directory receiving the converted markdown'
    )

    parser.add_argument(
        '--host',
        type=str,
        help='Yuque host URL (default: https://www.yuque.com)'
    )

    parser.add_argument(
        '--namespace',
        dest='namespaces',
        action='append',
        help='Only convert this namespace, e.g. team/handbook (repeatable)'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help='Number of documents converted concurrently'
    )

    parser.add_argument(
        '--dry-run',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Convert documents without writing files or downloading assets'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write the JSON migration report to this path'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the progress bar'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def run_migration(config: Dict[str, Any], args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the complete migration pipeline."""
    logger.info("Starting migration pipeline")

    settings = ConversionSettings.from_config(config)
    dry_run = bool(get_nested(config, 'migration.dry_run', False))
    namespaces = get_nested(config, 'migration.namespaces') or None

    client = YuqueClient.from_settings(settings, cookie=get_nested(config, 'yuque.cookie'))
    orchestrator = MigrationOrchestrator(
        settings,
        client=client,
        namespaces=namespaces,
        dry_run=dry_run,
        show_progress=not args.no_progress,
        logger=logger
    )
    try:
        report = orchestrator.orchestrate_migration()
    finally:
        client.close()

    report_generator = MigrationReport(logger)
    print("\n" + report_generator.format_console_report(report))

    report_path = args.report or get_nested(config, 'migration.report_path')
    if report_path:
        report_generator.export_json_report(report, report_path)

    if report_generator.has_failures(report):
        logger.warning(f"Migration completed with {report['summary']['failed']} failed documents")
        return EXIT_FAILURES

    logger.info("Migration completed successfully")
    return EXIT_OK


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('yuque_obsidian_migrator.cli')

        log_section("Yuque to Obsidian Migration Tool")
        logger.info(f"Version: {__version__}")

        config_loader = ConfigLoader()
        config: Dict[str, Any] = {}
        if args.config:
            logger.info(f"Loading configuration from {args.config}")
            config = config_loader.load(args.config)

        # CLI arguments take precedence
        config = config_loader.merge_with_args(config, args)
        config_loader.validate(config)

        # Reconfigure logging with config file settings
        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )

        log_config(config)

        return run_migration(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("\nMigration interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        logging.getLogger('yuque_obsidian_migrator.cli').error(f"Migration failed: {e}", exc_info=True)
        return EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
