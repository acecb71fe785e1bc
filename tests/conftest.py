import struct

import pytest


def build_ciff(
    width=2,
    height=2,
    caption="t",
    tags=(),
    pixels=None,
    header_size=None,
    content_size=None,
    magic=b"CIFF",
    raw_tags=None,
):
    """Assemble CIFF bytes; sizes are computed unless overridden."""

    if pixels is None:
        pixels = bytes([255, 0, 0]) * (width * height)
    if content_size is None:
        content_size = len(pixels)
    tag_bytes = raw_tags if raw_tags is not None else b"".join(t.encode() + b"\0" for t in tags)
    text = caption.encode() + b"\n" + tag_bytes
    if header_size is None:
        header_size = 4 + 4 * 8 + len(text)
    header = magic + struct.pack("<QQQQ", header_size, content_size, width, height)
    return header + text + pixels


def header_block(animation_count=1, declared_length=20, header_size=20, magic=b"CAFF"):
    payload = magic + struct.pack("<QQ", header_size, animation_count)
    return struct.pack("<BQ", 1, declared_length) + payload


def credits_block(year=2020, month=7, day=2, hour=14, minute=50, creator="Test Creator", declared_length=None):
    name = creator.encode()
    payload = struct.pack("<HBBBBQ", year, month, day, hour, minute, len(name)) + name
    if declared_length is None:
        declared_length = len(payload)
    return struct.pack("<BQ", 2, declared_length) + payload


def animation_block(ciff=None, duration=40, declared_length=None):
    if ciff is None:
        ciff = build_ciff(width=1, height=1, pixels=bytes([255, 0, 0]))
    payload = struct.pack("<Q", duration) + ciff
    if declared_length is None:
        declared_length = len(payload)
    return struct.pack("<BQ", 3, declared_length) + payload


@pytest.fixture
def write_file(tmp_path):
    def _write(name, data):
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
