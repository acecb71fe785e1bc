import io
import struct

import pytest
from PIL import Image

from caffconverter.config import ConversionSettings
from caffconverter.core.caff_reader import CaffReader, ReaderState, convert_caff_file, read_caff
from caffconverter.core.errors import DecodeError, ErrorKind

from conftest import animation_block, build_ciff, credits_block, header_block


def _read(data, settings=None):
    return read_caff(io.BytesIO(data), settings)


def _expect(kind, data):
    reader = CaffReader(io.BytesIO(data))
    with pytest.raises(DecodeError) as exc_info:
        reader.read()
    assert exc_info.value.kind is kind
    assert reader.state is ReaderState.FAILED


def test_header_then_animation():
    data = header_block(animation_count=1) + animation_block(duration=40)
    document = _read(data)
    assert document.header.animation_count == 1
    assert document.animation.duration_ms == 40
    assert (document.animation.image.width, document.animation.image.height) == (1, 1)
    assert document.animation.image.pixels == bytes([255, 0, 0])
    assert document.bytes_read == len(data)


def test_credits_are_validated_and_counted():
    data = header_block() + credits_block() + animation_block()
    document = _read(data)
    assert document.credits_seen == 1


def test_reader_stops_after_first_animation():
    second = animation_block(ciff=build_ciff(width=2, height=1, caption="second"))
    stream = io.BytesIO(header_block(animation_count=2) + animation_block() + second)
    reader = CaffReader(stream)
    document = reader.read()
    assert reader.state is ReaderState.DONE
    assert document.animation.image.caption == "t"
    assert stream.read() == second


def test_blocks_after_first_animation_are_not_validated():
    data = header_block() + animation_block() + b"\x09garbage"
    assert _read(data).animation.duration_ms == 40


def test_repeated_header_replaces_animation_count():
    data = header_block(animation_count=1) + header_block(animation_count=5) + animation_block()
    assert _read(data).header.animation_count == 5


@pytest.mark.parametrize("block_id", [0, 4, 255])
def test_unknown_block_id(block_id):
    _expect(ErrorKind.UNKNOWN_BLOCK_ID, header_block() + struct.pack("<BQ", block_id, 0))


@pytest.mark.parametrize(
    "first_block",
    [credits_block(), animation_block()],
    ids=["credits", "animation"],
)
def test_header_must_come_first(first_block):
    _expect(ErrorKind.HEADER_NOT_FIRST, first_block + header_block() + animation_block())


def test_header_bad_magic():
    _expect(ErrorKind.BAD_MAGIC, header_block(magic=b"CIFF") + animation_block())


@pytest.mark.parametrize("delta", [-1, 1])
def test_header_block_length_off_by_one(delta):
    _expect(ErrorKind.BLOCK_LENGTH_MISMATCH, header_block(declared_length=20 + delta) + animation_block())


def test_header_size_field_must_match_block_length():
    _expect(ErrorKind.BLOCK_LENGTH_MISMATCH, header_block(header_size=21) + animation_block())


@pytest.mark.parametrize("delta", [-1, 1])
def test_credits_block_length_off_by_one(delta):
    correct = len(credits_block()) - 9
    data = header_block() + credits_block(declared_length=correct + delta) + animation_block()
    _expect(ErrorKind.BLOCK_LENGTH_MISMATCH, data)


@pytest.mark.parametrize("delta", [-1, 1])
def test_animation_block_length_off_by_one(delta):
    correct = len(animation_block()) - 9
    _expect(ErrorKind.BLOCK_LENGTH_MISMATCH, header_block() + animation_block(declared_length=correct + delta))


@pytest.mark.parametrize(
    "field, value",
    [("month", 13), ("month", 0), ("day", 32), ("day", 0), ("hour", 24), ("minute", 60)],
)
def test_credits_date_out_of_range(field, value):
    data = header_block() + credits_block(**{field: value}) + animation_block()
    _expect(ErrorKind.DATE_FIELD_OUT_OF_RANGE, data)


@pytest.mark.parametrize("month", range(1, 13))
def test_credits_accept_every_month(month):
    assert _read(header_block() + credits_block(month=month) + animation_block()).credits_seen == 1


@pytest.mark.parametrize("day, hour, minute", [(1, 0, 0), (31, 23, 59), (15, 12, 30)])
def test_credits_accept_boundary_times(day, hour, minute):
    data = header_block() + credits_block(day=day, hour=hour, minute=minute) + animation_block()
    assert _read(data).credits_seen == 1


def test_credits_name_shorter_than_declared():
    payload = struct.pack("<HBBBBQ", 2020, 1, 1, 0, 0, 10) + b"abc"
    data = header_block() + struct.pack("<BQ", 2, len(payload)) + payload
    _expect(ErrorKind.NAME_LENGTH_MISMATCH, data)


def test_credits_name_over_limit():
    data = header_block() + credits_block(creator="x" * 64) + animation_block()
    with pytest.raises(DecodeError) as exc_info:
        _read(data, ConversionSettings(max_creator_bytes=16))
    assert exc_info.value.kind is ErrorKind.CAPACITY_EXCEEDED


def test_embedded_ciff_errors_propagate():
    ciff = build_ciff(width=2, height=2, pixels=b"\0" * 11)
    _expect(ErrorKind.SIZE_MISMATCH, header_block() + animation_block(ciff=ciff))


def test_truncated_block_length_is_a_read_failure():
    _expect(ErrorKind.IO_FAILURE, header_block() + b"\x03\x01\x02")


@pytest.mark.parametrize(
    "data",
    [b"", header_block(), header_block() + credits_block()],
    ids=["empty", "header-only", "no-animation"],
)
def test_missing_animation(data):
    _expect(ErrorKind.NO_ANIMATION_FOUND, data)


def test_convert_caff_file_exports_first_frame(write_file):
    source = write_file("1.caff", header_block() + credits_block() + animation_block(duration=40))
    outcome = convert_caff_file(source)
    assert outcome.output_path == source.with_suffix(".jpg")
    with Image.open(outcome.output_path) as exported:
        assert exported.size == (1, 1)
        red, green, blue = exported.convert("RGB").getpixel((0, 0))
    assert red > 200 and green < 60 and blue < 60
    assert sorted(p.suffix for p in source.parent.iterdir()) == [".caff", ".jpg"]


def test_convert_caff_file_leaves_no_output_on_error(write_file):
    source = write_file("bad.caff", credits_block() + animation_block())
    with pytest.raises(DecodeError):
        convert_caff_file(source)
    assert not source.with_suffix(".jpg").exists()
