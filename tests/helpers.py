"""Builders for request bodies used across the test suite."""

from __future__ import annotations

import struct
import zlib


def make_png(width: int = 4, height: int = 4) -> bytes:
    """Encode a small all-red RGB PNG image."""

    def chunk(kind: bytes, data: bytes) -> bytes:
        body = kind + data
        return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body))

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    rows = b"".join(b"\x00" + b"\xff\x00\x00" * width for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(rows))
        + chunk(b"IEND", b"")
    )


BOUNDARY = "toolkit-test-boundary"


def multipart_body(
    fields: dict[str, str] | None = None,
    files: list[tuple[str, str, bytes]] | None = None,
    boundary: str = BOUNDARY,
) -> bytes:
    """Build a multipart/form-data body by hand.

    ``files`` holds ``(field name, file name, content)`` triples, written in order.
    """
    out = b""
    for name, value in (fields or {}).items():
        out += (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n"
        ).encode()
    for field, filename, content in files or []:
        out += (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
            "Content-Type: application/octet-stream\r\n\r\n"
        ).encode()
        out += content + b"\r\n"
    out += f"--{boundary}--\r\n".encode()
    return out


def chunked(data: bytes, size: int = 64):
    """Yield data in pieces so the client sends it without a Content-Length."""
    for start in range(0, len(data), size):
        yield data[start : start + size]
