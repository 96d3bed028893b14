#!/usr/bin/env python3
"""
Central Staging Promotion Hook

Runs after the build tool has published release artifacts to the OSSRH
staging API. Finds the caller's open staging repositories and promotes them
with the configured publishing type (user_managed by default).

IMPORTANT: This command NEVER fails the pipeline. Configuration problems and
promotion failures are logged and the command exits 0.

Usage:
    # Credentials from the same variables the Gradle build reads
    export ORG_GRADLE_PROJECT_mavenCentralUsername=...
    export ORG_GRADLE_PROJECT_mavenCentralPassword=...
    central-promote --version 1.4.0

    # Config file plus a JSON report
    central-promote --config central-promoter.yml --report build/promotion.json

    # Show what would be called
    central-promote --version 1.4.0 --dry-run

Exit Codes:
    0:   Always (promotion never breaks the pipeline)
    2:   Invalid command line arguments (argparse)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from promoter_config import ConfigError, ConfigLoader, PublishingConfig, PublishingType
from staging_promoter.logging_config import configure_logging
from staging_promoter.promoter import StagingPromoter


logger = logging.getLogger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="central-promote",
        description="Promote open Maven Central staging repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0      Always (promotion never fails the pipeline)

Environment:
  CENTRAL_PROMOTER_USERNAME / ORG_GRADLE_PROJECT_mavenCentralUsername
  CENTRAL_PROMOTER_PASSWORD / ORG_GRADLE_PROJECT_mavenCentralPassword
  CENTRAL_PROMOTER_VERSION  / ORG_GRADLE_PROJECT_projectVersion
  CENTRAL_PROMOTER_CONFIG   config file path
"""
    )

    parser.add_argument(
        "--config",
        help="Path to YAML/JSON config file"
    )

    # Credentials and project
    parser.add_argument("--username", help="Portal user token name")
    parser.add_argument("--password", help="Portal user token password")
    parser.add_argument(
        "--version",
        dest="project_version",
        help="Version that was published (snapshots are never promoted)"
    )

    # Portal options
    parser.add_argument("--base-url", help="Staging API base URL")
    parser.add_argument(
        "--publishing-type",
        choices=[t.value for t in PublishingType],
        help="publishing_type sent on promotion (default: user_managed)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds (default: 30)"
    )

    # Behavior options
    parser.add_argument(
        "--report",
        help="Write a JSON promotion report to this path"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Promote even when the version is a snapshot"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the requests that would be made without sending them"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log output format (default: text)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Map CLI arguments onto the configuration structure."""
    return {
        "credentials": {
            "username": args.username,
            "password": args.password,
        },
        "project": {
            "version": args.project_version,
        },
        "portal": {
            "base_url": args.base_url,
            "publishing_type": args.publishing_type,
            "timeout_seconds": args.timeout,
        },
        "logging": {
            "level": "DEBUG" if args.verbose else None,
            "format": args.log_format,
        },
    }


def log_dry_run(config: PublishingConfig, promoter: StagingPromoter) -> None:
    logger.info(f"Dry run for {config.project.coordinates}")
    logger.info(f"Artifacts are uploaded to: {config.deployment_url()}")
    logger.info(f"Would search: GET {promoter.search_url}")
    logger.info(f"Would promote each key: POST {promoter.promote_url('<key>')}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        loader = ConfigLoader(
            config_file=Path(args.config) if args.config else None,
            overrides=overrides_from_args(args),
        )
        config = loader.load()
    except ConfigError as e:
        configure_logging(level="DEBUG" if args.verbose else "INFO")
        logger.warning(f"Configuration error, skipping promotion: {e}")
        return 0

    try:
        configure_logging(
            level=config.logging.level,
            format=config.logging.format,
            log_file=config.logging.file,
        )
    except OSError as e:
        configure_logging(level=config.logging.level, format=config.logging.format)
        logger.warning(f"Cannot open log file {config.logging.file}, logging to console only: {e}")
    if loader.resolved_path:
        logger.info(f"Loaded config from: {loader.resolved_path}")

    should_run, reason = config.promotion_gate(allow_snapshot=args.force)
    if not should_run:
        logger.info(f"Skipping staging promotion: {reason}")
        return 0

    with StagingPromoter(
        username=config.credentials.username,
        password=config.credentials.password.get_secret_value(),
        base_url=config.portal.base_url,
        publishing_type=config.portal.publishing_type,
        timeout=config.portal.timeout_seconds,
    ) as promoter:
        if args.dry_run:
            log_dry_run(config, promoter)
            return 0

        logger.info(f"Promoting staging repositories for {config.project.coordinates}")
        report = promoter.promote_all()

    if args.report:
        try:
            report.save(Path(args.report))
            logger.info(f"Report written to: {args.report}")
        except OSError as e:
            logger.warning(f"Could not write report: {e}")

    logger.info(
        f"Staging promotion {report.status}: "
        f"{report.promoted_count}/{len(report.repositories_found)} repositories promoted"
    )

    # Always return 0 - never break pipeline
    return 0


if __name__ == "__main__":
    sys.exit(main())
