"""
Output storage for harvest results.

Writes each dataset to a CSV file with a fixed column order.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Dict, Sequence, Union

from repo_harvester.errors import ExportError

logger = logging.getLogger(__name__)


def to_csv_text(rows: Sequence[Dict[str, Any]], columns: Sequence[str]) -> str:
    """
    Render rows as CSV text with a header row.

    Values containing the delimiter, a quote or a newline are quoted with
    embedded quotes doubled. Missing and None values render as empty
    strings. Returns "" when there are no rows.
    """
    if not rows:
        return ""

    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(columns),
        restval="",
        extrasaction="ignore",
        lineterminator="\n",
    )
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


class CsvExporter:
    """
    Stores datasets as CSV files in one output directory.

    Existing files are overwritten.
    """

    def __init__(self, output_dir: Union[str, Path] = "output"):
        """
        Initialize exporter.

        Args:
            output_dir: Directory to save output files
        """
        self.output_dir = Path(output_dir)

    def export(
        self,
        filename: str,
        rows: Sequence[Dict[str, Any]],
        columns: Sequence[str],
    ) -> Path:
        """
        Write rows to output_dir/filename.

        Args:
            filename: File name inside the output directory
            rows: One mapping per row
            columns: Column order for the header and every row

        Returns:
            Path of the written file

        Raises:
            ExportError: If the directory or file cannot be written
        """
        file_path = self.output_dir / filename
        text = to_csv_text(rows, columns)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise ExportError(file_path, e) from e

        logger.debug("Wrote %d rows to %s", len(rows), file_path)
        return file_path
