#!/usr/bin/env python3
"""Script to aggregate GitHub statistics for one user into a JSON report."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from github_stats.config import MissingCredentialError, StatsConfig
from github_stats.application.stats_service import StatsService
from github_stats.infrastructure.report_writer import ReportWriter

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Collect statistics and write the report."""
    try:
        config = StatsConfig.from_env()
    except MissingCredentialError as e:
        logger.error(str(e))
        return 1

    try:
        service = StatsService.from_config(config)
        report = service.generate()

        ReportWriter(config.output_path).write(report)
        logger.info(f"Stats generated for {config.username}")
        return 0

    except Exception as e:
        logger.error(f"Stats generation failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
