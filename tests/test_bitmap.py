import io

import numpy as np
import pytest
from PIL import Image

from mandelbmp.bitmap import (
    PIXEL_OFFSET,
    BitmapWriter,
    SinkOpenError,
    build_headers,
    encode_bitmap,
    file_size,
    read_headers,
    row_stride,
)

REFERENCE_HEADER = bytes([
    0x42, 0x4D, 0x76, 0xF3, 0x89, 0x06, 0x00, 0x00, 0x00, 0x00, 0x36, 0x00, 0x00, 0x00,
    0x28, 0x00, 0x00, 0x00, 0x40, 0x1F, 0x00, 0x00, 0xDB, 0x11, 0x00, 0x00, 0x01, 0x00,
    0x18, 0x00, 0x00, 0x00, 0x00, 0x00, 0x40, 0xF3, 0x89, 0x06, 0x13, 0x0B, 0x00, 0x00,
    0x13, 0x0B, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
])


def _pixels(width, height):
    values = np.arange(width * height * 3, dtype=np.int64) % 251
    return values.astype(np.uint8).reshape(height, width, 3)


def test_reference_header_is_reproduced():
    assert build_headers(8000, 4571) == REFERENCE_HEADER


def test_header_round_trip():
    header = build_headers(5, 3)
    info = read_headers(header)

    assert len(header) == PIXEL_OFFSET == 54
    assert header[:2] == b"BM"
    assert (info.width, info.height) == (5, 3)
    assert info.bits_per_pixel == 24
    assert info.compression == 0
    assert info.pixel_offset == 54
    assert info.file_size == 54 + 45
    assert info.image_size == 45


def test_padded_sizes():
    assert row_stride(5) == 15
    assert row_stride(5, pad_rows=True) == 16
    assert row_stride(4, pad_rows=True) == 12
    assert file_size(5, 3, pad_rows=True) == 54 + 48
    assert read_headers(build_headers(5, 3, pad_rows=True)).file_size == 54 + 48


@pytest.mark.parametrize("data", [b"", b"BM" + bytes(10), b"XY" + bytes(52)])
def test_read_headers_rejects_bad_input(data):
    with pytest.raises(ValueError):
        read_headers(data)


def test_encode_bitmap_to_stream():
    pixels = _pixels(3, 2)
    stream = io.BytesIO()

    written = encode_bitmap(stream, pixels)

    data = stream.getvalue()
    assert written == len(data) == 54 + 3 * 3 * 2
    assert data[54:] == pixels.tobytes()


def test_writer_produces_exact_size(tmp_path):
    path = tmp_path / "out.bmp"
    pixels = _pixels(5, 4)

    with BitmapWriter(path, 5, 4) as writer:
        writer.write_rows(pixels[:3])
        writer.write_rows(pixels[3:])

    data = path.read_bytes()
    assert len(data) == 54 + 3 * 5 * 4
    assert read_headers(data).file_size == len(data)
    assert data[54:] == pixels.tobytes()
    assert not (tmp_path / "out.bmp.part").exists()


def test_writer_pads_rows(tmp_path):
    path = tmp_path / "padded.bmp"
    pixels = _pixels(2, 2)

    with BitmapWriter(path, 2, 2, pad_rows=True) as writer:
        writer.write_rows(pixels)

    data = path.read_bytes()
    assert len(data) == 54 + 8 * 2
    assert data[54:60] == pixels[0].tobytes()
    assert data[60:62] == b"\x00\x00"
    assert data[62:68] == pixels[1].tobytes()


@pytest.mark.parametrize("pad_rows", [False, True])
def test_standard_reader_decodes_pixels(tmp_path, pad_rows):
    # rows of 4 pixels need no padding, so both layouts are valid bitmaps
    width = 4 if not pad_rows else 3
    height = 3
    pixels = _pixels(width, height)
    path = tmp_path / "decode.bmp"

    with BitmapWriter(path, width, height, pad_rows=pad_rows) as writer:
        writer.write_rows(pixels)

    with Image.open(path) as image:
        assert image.size == (width, height)
        rgb = image.convert("RGB")
        for row in range(height):
            for col in range(width):
                blue, green, red = (int(v) for v in pixels[row, col])
                assert rgb.getpixel((col, height - 1 - row)) == (red, green, blue)


def test_missing_directory_raises_sink_open_error(tmp_path):
    path = tmp_path / "missing" / "out.bmp"

    with pytest.raises(SinkOpenError):
        with BitmapWriter(path, 2, 1) as writer:
            writer.write_rows(_pixels(2, 1))

    assert not (tmp_path / "missing").exists()


def test_directory_target_raises_sink_open_error(tmp_path):
    with pytest.raises(SinkOpenError) as excinfo:
        BitmapWriter(tmp_path, 2, 1).open()

    assert isinstance(excinfo.value, OSError)


def test_failure_leaves_no_partial_file(tmp_path):
    path = tmp_path / "broken.bmp"

    with pytest.raises(RuntimeError):
        with BitmapWriter(path, 2, 2) as writer:
            writer.write_rows(_pixels(2, 1))
            raise RuntimeError("boom")

    assert list(tmp_path.iterdir()) == []


def test_incomplete_image_is_discarded(tmp_path):
    path = tmp_path / "short.bmp"

    with pytest.raises(ValueError):
        with BitmapWriter(path, 2, 3) as writer:
            writer.write_rows(_pixels(2, 2))

    assert list(tmp_path.iterdir()) == []


def test_existing_file_survives_failed_run(tmp_path):
    path = tmp_path / "keep.bmp"
    path.write_bytes(b"previous")

    with pytest.raises(RuntimeError):
        with BitmapWriter(path, 1, 1):
            raise RuntimeError("boom")

    assert path.read_bytes() == b"previous"


def test_rejects_extra_rows_and_bad_shapes(tmp_path):
    writer = BitmapWriter(tmp_path / "x.bmp", 2, 1)
    writer.open()
    try:
        with pytest.raises(ValueError):
            writer.write_rows(_pixels(2, 2))
        with pytest.raises(ValueError):
            writer.write_rows(_pixels(3, 1))
    finally:
        writer.abort()
    assert list(tmp_path.iterdir()) == []
