"""File storage helpers."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def format_timestamp(moment: datetime) -> str:
    """Render the second-resolution stamp used in output filenames."""
    return moment.strftime(TIMESTAMP_FORMAT)


def human_size(num_bytes: int) -> str:
    """Return a short size string such as ``1.4M``."""
    size = float(num_bytes)
    for unit in ("B", "K", "M", "G"):
        if size < 1024 or unit == "G":
            if unit == "B":
                return f"{int(size)}{unit}"
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}G"


class StorageService:
    """Handle saving raw responses and decoded images.

    Files are never overwritten on purpose: every attempt gets a new
    ``<kind>_<index>_<timestamp>`` name. Two attempts for the same index
    within one second would collide.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def ensure_output_dir(self) -> Path:
        """Create the output directory if needed."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def response_path(self, index: int, timestamp: str) -> Path:
        return self.output_dir / f"response_{index}_{timestamp}.json"

    def image_path(self, index: int, timestamp: str) -> Path:
        return self.output_dir / f"image_{index}_{timestamp}.png"

    def save_response(self, index: int, timestamp: str, content: bytes) -> Path:
        """Persist the response bytes unmodified and return the file path."""
        path = self.response_path(index, timestamp)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    def save_image(self, index: int, timestamp: str, data: bytes) -> Path:
        """Persist decoded image bytes and return the file path."""
        path = self.image_path(index, timestamp)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    @staticmethod
    def is_nonempty(path: Path) -> bool:
        """Return True when ``path`` exists and holds at least one byte."""
        return path.is_file() and path.stat().st_size > 0
