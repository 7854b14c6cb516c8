"""JSON storage for the aggregate report."""

import json
import logging
import os

from github_stats.domain.report import AggregateReport

logger = logging.getLogger(__name__)


class ReportWriter:
    """Writes the final report to a JSON file."""

    def __init__(self, output_path: str):
        """
        Initialize report writer.

        Args:
            output_path: Destination file, usually StatsConfig.output_path
        """
        self.output_path = output_path

    def write(self, report: AggregateReport) -> str:
        """
        Write the report, creating parent directories as needed.

        Returns:
            Path of the written file
        """
        directory = os.path.dirname(self.output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        try:
            with open(self.output_path, 'w', encoding='utf-8') as f:
                json.dump(report.to_dict(), f, indent=4, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error writing report to {self.output_path}: {e}")
            raise

        logger.info(f"Report written to {self.output_path}")
        return self.output_path
