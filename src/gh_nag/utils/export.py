"""Export of notification reports."""

import csv
import io
import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from ..core.models import NotificationReport, RepositoryRef

INVALID_FILENAME_CHARS = r'[<>:"/\\|?*]'

EXPORT_FORMATS = ("csv", "json")


def _sanitize_filename(filename: str) -> str:
    """Replace characters that are not safe in file names."""
    sanitized = re.sub(INVALID_FILENAME_CHARS, "_", filename).strip(" .")
    return sanitized or "export_file"


class ExportManager:
    """Write notification reports to disk."""

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        """
        Initialize ExportManager.

        Args:
            output_dir: Directory for exported files (default: current directory)
        """
        self.output_dir = Path(output_dir) if output_dir else Path(".")

    def export_report(
        self,
        report: NotificationReport,
        repository: RepositoryRef,
        format: str = "csv",
    ) -> str:
        """
        Export one row per notification result.

        Args:
            report: Report to export
            repository: Repository the run targeted, used in the file name
            format: Export format (csv, json)

        Returns:
            Path to exported file

        Raises:
            ValueError: If the format is not supported
        """
        if format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported format: {format}")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = _sanitize_filename(f"nag_{repository.owner}_{repository.name}_{timestamp}.{format}")
        rows = self._report_rows(report)

        if format == "csv":
            content = self._to_csv(rows)
        else:
            content = json.dumps(
                {
                    "repository": repository.full_name,
                    "attempted": report.attempted,
                    "delivered": report.delivered,
                    "failed": report.failed,
                    "cancelled": report.cancelled,
                    "duration": round(report.duration, 3),
                    "results": rows,
                },
                indent=2,
            )

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / filename
        output_path.write_text(content, encoding="utf-8")
        return str(output_path)

    @staticmethod
    def _report_rows(report: NotificationReport) -> list[dict[str, Any]]:
        return [
            {
                "issue": result.issue.identifier,
                "number": result.issue.number,
                "title": result.issue.title,
                "outcome": result.outcome.value,
                "error": result.error or "",
            }
            for result in report.results
        ]

    @staticmethod
    def _to_csv(rows: list[dict[str, Any]]) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["Issue", "Number", "Title", "Outcome", "Error"])
        for row in rows:
            writer.writerow([row["issue"], row["number"], row["title"], row["outcome"], row["error"]])
        return output.getvalue()
