"""Frame encoder service.

Provides a small OOP wrapper around Pillow that turns an arbitrary image
into a JPEG frame suitable for upload to `/api/analyze-frame`. Frames are
downscaled to fit within `max_size` while preserving aspect ratio, and
images with alpha are flattened against a background color.

Public class: `FrameEncoder`

Example:
    encoder = FrameEncoder(max_size=(1024, 1024))
    jpeg_bytes = encoder.encode_file("snapshot.png")
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Tuple

from PIL import Image


class FrameEncoder:
    """Encode images as JPEG frames.

    Args:
        max_size: Maximum width and height of the encoded frame. Defaults to (1024, 1024).
        quality: JPEG quality passed to Pillow.
        background: Color used when flattening images with alpha. Defaults to white.
    """

    mime_type = "image/jpeg"

    def __init__(
        self,
        max_size: Tuple[int, int] = (1024, 1024),
        quality: int = 85,
        background: Tuple[int, int, int] | None = None,
    ):
        self.max_size = max_size
        self.quality = quality
        self.background = background or (255, 255, 255)

    def encode_bytes(self, data: bytes) -> bytes:
        """Encode raw image bytes as a JPEG frame.

        Raises:
            ValueError: If the bytes cannot be opened as an image.
        """
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except Exception as exc:
            raise ValueError("Bytes are not a supported image format") from exc
        return self._encode(src)

    def encode_file(self, path: str | Path) -> bytes:
        """Encode the image stored at `path` as a JPEG frame."""
        return self.encode_bytes(Path(path).read_bytes())

    def _encode(self, src: Image.Image) -> bytes:
        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        frame = Image.new("RGB", src.size, self.background)
        frame.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        frame.save(out_io, format="JPEG", quality=self.quality)
        return out_io.getvalue()
