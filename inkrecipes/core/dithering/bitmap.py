"""
Device Bitmap
=============

Packed low-bit-depth bitmap and its Windows BMP serialization in the layout
the display firmware reads: BITMAPINFOHEADER, a gray palette running from
white at index 0 to black at the last index, and bottom-up rows padded to
four bytes.
"""

import math
import struct
from typing import List

import numpy as np
from numpy.typing import ArrayLike
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import DitherInputInvalid

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40


def validate_levels(levels: int) -> int:
    """Level count must be a power of two between 2 and 256."""
    if not isinstance(levels, int) or levels < 2 or levels > 256 or levels & (levels - 1):
        raise DitherInputInvalid(f"Grayscale levels must be a power of two in [2, 256], got {levels}")
    return levels


def bits_per_pixel(levels: int) -> int:
    """Smallest BMP palette depth that holds ``levels`` entries."""
    for bpp in (1, 2, 4, 8):
        if levels <= 1 << bpp:
            return bpp
    raise DitherInputInvalid(f"Unsupported level count: {levels}")


def row_stride(width: int, bpp: int) -> int:
    """Row size in bytes, padded to a 4-byte boundary."""
    return (width * bpp + 31) // 32 * 4


def _shifts(bpp: int) -> np.ndarray:
    """Left shift of each pixel within a byte, most significant first."""
    return np.array([8 - bpp * (slot + 1) for slot in range(8 // bpp)], dtype=np.uint8)


def gray_palette(levels: int) -> List[int]:
    """Gray value per palette index, white first."""
    step = 255 / (levels - 1)
    return [math.floor(255 - index * step + 0.5) for index in range(levels)]


class DeviceBitmap(BaseModel):
    """Packed palette indices, top-down rows, most significant bits first."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    levels: int = Field(..., ge=2, le=256)
    bits_per_pixel: int
    stride: int
    data: bytes = Field(..., repr=False)

    @model_validator(mode="after")
    def validate_layout(self) -> "DeviceBitmap":
        if self.bits_per_pixel not in (1, 2, 4, 8) or self.levels > 1 << self.bits_per_pixel:
            raise ValueError(f"{self.levels} levels do not fit {self.bits_per_pixel} bits per pixel")
        if self.stride != row_stride(self.width, self.bits_per_pixel):
            raise ValueError(f"Stride {self.stride} does not match width {self.width}")
        if len(self.data) != self.stride * self.height:
            raise ValueError("Packed data length does not match stride and height")
        return self

    @classmethod
    def from_indices(cls, indices: ArrayLike, width: int, height: int, levels: int) -> "DeviceBitmap":
        """
        Pack per-pixel palette indices.

        Args:
            indices: Palette indices in row-major order or shaped (height, width)
            width: Bitmap width
            height: Bitmap height
            levels: Number of gray levels

        Returns:
            Packed bitmap

        Raises:
            DitherInputInvalid: If the index count or any index is out of range
        """
        validate_levels(levels)
        cells = np.asarray(indices)
        if cells.size != width * height:
            raise DitherInputInvalid(f"Expected {width * height} indices, got {cells.size}")
        out_of_range = cells[(cells < 0) | (cells >= levels)]
        if out_of_range.size:
            raise DitherInputInvalid(f"Palette index {out_of_range[0]} outside [0, {levels - 1}]")
        cells = cells.reshape(height, width).astype(np.uint8)

        bpp = bits_per_pixel(levels)
        stride = row_stride(width, bpp)
        if bpp == 1:
            packed = np.packbits(cells, axis=1)
        else:
            per_byte = 8 // bpp
            padded = np.zeros((height, -(-width // per_byte) * per_byte), dtype=np.uint8)
            padded[:, :width] = cells
            groups = padded.reshape(height, -1, per_byte)
            packed = np.bitwise_or.reduce(groups << _shifts(bpp), axis=2)

        rows = np.zeros((height, stride), dtype=np.uint8)
        rows[:, :packed.shape[1]] = packed
        return cls(width=width, height=height, levels=levels, bits_per_pixel=bpp,
                   stride=stride, data=rows.tobytes())

    @property
    def palette(self) -> List[int]:
        return gray_palette(self.levels)

    def rows(self) -> np.ndarray:
        """Packed rows, top-down, shaped (height, stride)."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.stride)

    def pixel_index(self, x: int, y: int) -> int:
        """Palette index stored at (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height}")
        per_byte = 8 // self.bits_per_pixel
        byte = self.data[y * self.stride + x // per_byte]
        shift = 8 - self.bits_per_pixel * (x % per_byte + 1)
        return (byte >> shift) & ((1 << self.bits_per_pixel) - 1)

    def to_array(self) -> np.ndarray:
        """Unpacked palette indices shaped (height, width)."""
        packed = self.rows()
        if self.bits_per_pixel == 1:
            cells = np.unpackbits(packed, axis=1)
        else:
            mask = (1 << self.bits_per_pixel) - 1
            cells = ((packed[:, :, None] >> _shifts(self.bits_per_pixel)) & mask).reshape(self.height, -1)
        return cells[:, :self.width]

    def indices(self) -> List[int]:
        """All palette indices in row-major order."""
        return self.to_array().ravel().tolist()

    def to_bmp(self) -> bytes:
        """Serialize as a bottom-up palettized Windows BMP."""
        palette_size = self.levels * 4
        offset = FILE_HEADER_SIZE + INFO_HEADER_SIZE + palette_size
        image_size = self.stride * self.height
        file_size = offset + image_size

        file_header = struct.pack("<2sIHHI", b"BM", file_size, 0, 0, offset)
        info_header = struct.pack(
            "<IiiHHIIiiII",
            INFO_HEADER_SIZE,
            self.width,
            self.height,  # positive height: rows stored bottom-up
            1,
            self.bits_per_pixel,
            0,
            image_size,
            0,
            0,
            self.levels,
            self.levels,
        )
        palette = b"".join(bytes((gray, gray, gray, 0)) for gray in self.palette)
        return file_header + info_header + palette + self.rows()[::-1].tobytes()
