"""Minimal writer for uncompressed 24-bit BMP files."""

from __future__ import annotations

import errno
import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import numpy as np

SIGNATURE = b"BM"
FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
PIXEL_OFFSET = FILE_HEADER_SIZE + INFO_HEADER_SIZE
BITS_PER_PIXEL = 24
BYTES_PER_PIXEL = 3
PIXELS_PER_METRE = 2835
BI_RGB = 0

_FILE_HEADER = struct.Struct("<2sIHHI")
_INFO_HEADER = struct.Struct("<IiiHHIIiiII")


class SinkOpenError(OSError):
    """Raised when the output file cannot be created for writing."""


@dataclass(frozen=True)
class BitmapInfo:
    """Fields decoded from the headers of a bitmap file."""

    file_size: int
    pixel_offset: int
    width: int
    height: int
    bits_per_pixel: int
    compression: int
    image_size: int


def row_stride(width: int, pad_rows: bool = False) -> int:
    stride = width * BYTES_PER_PIXEL
    if pad_rows:
        stride = (stride + 3) & ~3
    return stride


def file_size(width: int, height: int, pad_rows: bool = False) -> int:
    return PIXEL_OFFSET + row_stride(width, pad_rows) * height


def build_headers(width: int, height: int, pad_rows: bool = False) -> bytes:
    """Return the 14-byte file header followed by the 40-byte info header.

    The height is stored as a positive number, so the first row of pixel
    data is the bottom row of the picture.
    """

    image_size = row_stride(width, pad_rows) * height
    file_header = _FILE_HEADER.pack(SIGNATURE, PIXEL_OFFSET + image_size, 0, 0, PIXEL_OFFSET)
    info_header = _INFO_HEADER.pack(
        INFO_HEADER_SIZE,
        width,
        height,
        1,
        BITS_PER_PIXEL,
        BI_RGB,
        image_size,
        PIXELS_PER_METRE,
        PIXELS_PER_METRE,
        0,
        0,
    )
    return file_header + info_header


def read_headers(data: bytes) -> BitmapInfo:
    """Decode the headers written by :func:`build_headers`."""

    if len(data) < PIXEL_OFFSET:
        raise ValueError(f"bitmap header needs {PIXEL_OFFSET} bytes, got {len(data)}")
    signature, size, _, _, offset = _FILE_HEADER.unpack_from(data, 0)
    if signature != SIGNATURE:
        raise ValueError(f"not a bitmap file (signature {signature!r})")
    (
        header_size,
        width,
        height,
        _planes,
        bits_per_pixel,
        compression,
        image_size,
        _x_ppm,
        _y_ppm,
        _colors,
        _important,
    ) = _INFO_HEADER.unpack_from(data, FILE_HEADER_SIZE)
    if header_size != INFO_HEADER_SIZE:
        raise ValueError(f"unsupported info header size {header_size}")
    return BitmapInfo(
        file_size=size,
        pixel_offset=offset,
        width=width,
        height=height,
        bits_per_pixel=bits_per_pixel,
        compression=compression,
        image_size=image_size,
    )


def _row_bytes(block: np.ndarray, width: int, pad_rows: bool) -> bytes:
    block = np.asarray(block, dtype=np.uint8)
    if block.ndim != 3 or block.shape[1:] != (width, BYTES_PER_PIXEL):
        raise ValueError(f"expected rows of shape (n, {width}, {BYTES_PER_PIXEL}), got {block.shape}")
    data = block.reshape(block.shape[0], width * BYTES_PER_PIXEL)
    padding = row_stride(width, pad_rows) - data.shape[1]
    if padding:
        data = np.concatenate((data, np.zeros((data.shape[0], padding), dtype=np.uint8)), axis=1)
    return np.ascontiguousarray(data).tobytes()


def encode_bitmap(stream: BinaryIO, pixels: np.ndarray, pad_rows: bool = False) -> int:
    """Write a complete bitmap for ``pixels`` of shape ``(height, width, 3)``.

    Rows are taken in array order, bottom row first. Returns the number of
    bytes written.
    """

    pixels = np.asarray(pixels, dtype=np.uint8)
    if pixels.ndim != 3:
        raise ValueError(f"expected a (height, width, 3) array, got shape {pixels.shape}")
    height, width = pixels.shape[:2]
    header = build_headers(width, height, pad_rows)
    body = _row_bytes(pixels, width, pad_rows)
    stream.write(header)
    stream.write(body)
    return len(header) + len(body)


class BitmapWriter:
    """Write a bitmap to ``path`` block by block.

    Data goes to a ``.part`` file beside the target, which only replaces the
    target once every row has been written. If anything fails the partial
    file is removed.
    """

    def __init__(self, path, width: int, height: int, *, pad_rows: bool = False):
        self.path = Path(path)
        self.width = width
        self.height = height
        self.pad_rows = pad_rows
        self.rows_written = 0
        self._partial_path = self.path.with_name(self.path.name + ".part")
        self._stream: BinaryIO | None = None

    def __enter__(self) -> "BitmapWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()

    def open(self) -> None:
        if self.path.is_dir():
            raise SinkOpenError(errno.EISDIR, "Output path is a directory", str(self.path))
        try:
            self._stream = open(self._partial_path, "wb")
        except OSError as exc:
            raise SinkOpenError(exc.errno, f"Failed to create and open file: {exc.strerror}", str(self.path)) from exc
        try:
            self._stream.write(build_headers(self.width, self.height, self.pad_rows))
        except BaseException:
            self.abort()
            raise

    def write_rows(self, block: np.ndarray) -> None:
        """Append ``block`` of shape ``(rows, width, 3)`` to the pixel data."""

        if self._stream is None:
            raise ValueError("bitmap writer is not open")
        rows = np.asarray(block).shape[0]
        if self.rows_written + rows > self.height:
            raise ValueError(f"too many rows: {self.rows_written + rows} > {self.height}")
        self._stream.write(_row_bytes(block, self.width, self.pad_rows))
        self.rows_written += rows

    def close(self) -> None:
        if self._stream is None:
            return
        if self.rows_written != self.height:
            self.abort()
            raise ValueError(f"incomplete bitmap: {self.rows_written} of {self.height} rows written")
        try:
            self._stream.close()
            self._stream = None
            os.replace(self._partial_path, self.path)
        except BaseException:
            self.abort()
            raise

    def abort(self) -> None:
        """Discard everything written so far."""

        stream, self._stream = self._stream, None
        try:
            if stream is not None:
                stream.close()
        finally:
            self._partial_path.unlink(missing_ok=True)
