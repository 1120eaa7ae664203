import struct
import zlib

import pytest


def _chunk(kind: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)


def make_png(width: int, height: int) -> bytes:
    """Minimal well-formed RGB PNG; pixel data is not meaningful."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _chunk(b"IHDR", ihdr)
        + _chunk(b"IDAT", zlib.compress(b"\x00" * 16))
        + _chunk(b"IEND", b"")
    )


def make_jpeg(width: int, height: int) -> bytes:
    """SOI, an APP0 stub, then a baseline SOF0 frame header."""
    app0 = b"\xff\xe0" + b"\x00\x10" + b"JFIF\x00" + b"\x00" * 9
    sof0 = b"\xff\xc0" + b"\x00\x11\x08" + struct.pack(">HH", height, width) + b"\x03" + b"\x00" * 9
    return b"\xff\xd8" + app0 + sof0 + b"\x00" * 16 + b"\xff\xd9"


@pytest.fixture
def png_bytes():
    return make_png


@pytest.fixture
def jpeg_bytes():
    return make_jpeg
