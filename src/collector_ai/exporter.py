"""Default exporter: writes the result buffer to a timestamped JSON file."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("output")


class JsonExporter:
    def __init__(self, output_dir: Path | str | None = None, prefix: str = "collected") -> None:
        self.output_dir = Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR
        self.prefix = prefix

    def export(self, records: list[dict], formats: list[str]) -> list[Path]:
        """Write ``records`` in every supported format requested. Returns the files written."""
        written: list[Path] = []
        for fmt in formats:
            if fmt.lower() != "json":
                logger.warning("Output format '%s' is not supported by %s; skipped", fmt, type(self).__name__)
                continue
            written.append(self.write_json(records))
        return written

    def write_json(self, records: list[dict], path: Path | str | None = None) -> Path:
        if path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / f"{self.prefix}_{timestamp}.json"
        path = Path(path)
        path.write_text(json.dumps(records, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
        logger.info("Wrote %d records to %s", len(records), path)
        return path
