"""RGB raster images addressed by (x, y), with colours packed as 0xRRGGBB."""

from __future__ import annotations

import os

from PIL import Image as _PILImage


class ImageError(RuntimeError):
    """Raised when an image file cannot be read."""


def from_rgb(r: int, g: int, b: int) -> int:
    """Pack three channel values into one 0xRRGGBB integer."""
    return ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def to_rgb(color: int) -> tuple[int, int, int]:
    """Split a 0xRRGGBB integer into its (r, g, b) channels."""
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


class Image:
    """An 8-bit RGB image tied to the file it is written to."""

    def __init__(self, filename: str | os.PathLike, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"invalid image size {width}x{height}")
        self.filename = os.fspath(filename)
        self.width = width
        self.height = height
        self._data = bytearray(width * height * 3)

    @classmethod
    def load(cls, filename: str | os.PathLike) -> "Image":
        """Read an image file, converting it to RGB."""
        try:
            with _PILImage.open(filename) as pil:
                rgb = pil.convert("RGB")
                width, height = rgb.size
                raw = rgb.tobytes()
        except OSError as exc:
            raise ImageError(f"Failed to load image: {os.fspath(filename)}") from exc
        image = cls(filename, width, height)
        image._data[:] = raw
        return image

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return (y * self.width + x) * 3

    def __getitem__(self, key: tuple[int, int]) -> int:
        offset = self._offset(*key)
        data = self._data
        return (data[offset] << 16) | (data[offset + 1] << 8) | data[offset + 2]

    def __setitem__(self, key: tuple[int, int], color: int) -> None:
        offset = self._offset(*key)
        self._data[offset:offset + 3] = bytes(to_rgb(color))

    def rgb(self, x: int, y: int) -> tuple[int, int, int]:
        """Return the (r, g, b) channels of one pixel."""
        offset = self._offset(x, y)
        r, g, b = self._data[offset:offset + 3]
        return r, g, b

    def write(self) -> None:
        """Save the image as PNG to its filename."""
        pil = _PILImage.frombytes("RGB", (self.width, self.height), bytes(self._data))
        pil.save(self.filename, format="PNG")