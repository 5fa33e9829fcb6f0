from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CaptionLogEntry:
    """In-memory representation of a row in the CAPTION_LOG table.

    Attributes:
        id: Primary key (None for new records).
        timestamp: ISO-8601 UTC time the caption was produced.
        caption: Caption text returned by the captioning backend.
        image_size: Size of the analyzed frame in bytes.
        mime_type: MIME type of the analyzed frame.
    """

    id: Optional[int]
    timestamp: str
    caption: str
    image_size: int = 0
    mime_type: str = "image/jpeg"

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire shape used by the caption log endpoints and events."""
        return {
            "timestamp": self.timestamp,
            "caption": self.caption,
            "imageSize": self.image_size,
            "mimeType": self.mime_type,
        }
