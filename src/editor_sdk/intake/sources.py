"""Template file inputs and extension-based format detection."""

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..core.project import SourceFormat
from .errors import MalformedSource, UnsupportedFormat

# Checked in order; longer suffixes first so ".aep.json" wins over any ".json" rule.
EXTENSION_FORMATS: list[tuple[str, SourceFormat]] = [
    (".aep.json", SourceFormat.AEP),
    (".fcpxml", SourceFormat.FCP),
    (".fcp", SourceFormat.FCP),
    (".motn", SourceFormat.MOTION),
]

FORMAT_LABELS: dict[SourceFormat, str] = {
    SourceFormat.MOTION: "Apple Motion",
    SourceFormat.FCP: "Final Cut Pro",
    SourceFormat.AEP: "After Effects",
    SourceFormat.GENERIC: "generic",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TemplateSource:
    """A picked or dropped template file: a name plus its raw bytes."""
    name: str
    data: bytes
    content_type: Optional[str] = None
    last_modified: datetime = field(default_factory=_now)

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self) -> str:
        """Decode the content as UTF-8 (a leading BOM is dropped)."""
        try:
            return self.data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            fmt = FORMAT_LABELS[detect_format(self.name, self.content_type)]
            raise MalformedSource(fmt, f"content is not valid UTF-8 ({e})") from e

    @classmethod
    def from_path(cls, path: str | Path) -> "TemplateSource":
        """Read a template file from disk."""
        path = Path(path)
        stat = path.stat()
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            content_type=content_type,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    @classmethod
    def from_text(cls, name: str, text: str) -> "TemplateSource":
        return cls(name=name, data=text.encode("utf-8"))


def detect_format(name: str, content_type: Optional[str] = None) -> SourceFormat:
    """Map a file name to its source format, ignoring case.

    Raises UnsupportedFormat naming the extension when nothing matches.
    """
    lowered = name.lower()
    for suffix, fmt in EXTENSION_FORMATS:
        if lowered.endswith(suffix):
            return fmt
    raise UnsupportedFormat(Path(name).suffix.lower(), content_type)
