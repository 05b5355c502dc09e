"""
Content type sniffing

Classifies a byte stream from (at most) its first 512 bytes, using the
signature table of the WHATWG MIME Sniffing Standard. Anything that matches
no signature and contains no binary control bytes is plain text; everything
else is application/octet-stream.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

SNIFF_LEN = 512

DEFAULT_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "


class _Signature(Protocol):
    def match(self, data: bytes, first_non_ws: int) -> Optional[str]: ...


@dataclass(frozen=True)
class _ExactSignature:
    pattern: bytes
    content_type: str

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if data.startswith(self.pattern):
            return self.content_type
        return None


@dataclass(frozen=True)
class _MaskedSignature:
    mask: bytes
    pattern: bytes
    content_type: str
    skip_ws: bool = False

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if self.skip_ws:
            data = data[first_non_ws:]
        if len(self.pattern) != len(self.mask) or len(data) < len(self.pattern):
            return None
        for mask_byte, pattern_byte, data_byte in zip(self.mask, self.pattern, data):
            if data_byte & mask_byte != pattern_byte:
                return None
        return self.content_type


@dataclass(frozen=True)
class _HTMLSignature:
    """Case-insensitive tag opener followed by a space or '>'"""

    tag: bytes

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        data = data[first_non_ws:]
        if len(data) < len(self.tag) + 1:
            return None
        for tag_byte, data_byte in zip(self.tag, data):
            if ord("A") <= tag_byte <= ord("Z"):
                data_byte &= 0xDF
            if tag_byte != data_byte:
                return None
        if data[len(self.tag)] not in b" >":
            return None
        return HTML_CONTENT_TYPE


class _MP4Signature:
    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if len(data) < 12:
            return None
        box_size = int.from_bytes(data[:4], "big")
        if len(data) < box_size or box_size % 4 != 0:
            return None
        if data[4:8] != b"ftyp":
            return None
        for start in range(8, box_size, 4):
            if start == 12:
                # minor version number, not a brand
                continue
            if data[start : start + 3] == b"mp4":
                return "video/mp4"
        return None


class _TextSignature:
    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        for byte in data[first_non_ws:]:
            if (
                byte <= 0x08
                or byte == 0x0B
                or 0x0E <= byte <= 0x1A
                or 0x1C <= byte <= 0x1F
            ):
                return None
        return TEXT_CONTENT_TYPE


_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)  # fmt: skip

# Order matters: the first matching signature wins.
SIGNATURES: tuple[_Signature, ...] = (
    *(_HTMLSignature(tag) for tag in _HTML_TAGS),
    _MaskedSignature(b"\xff" * 5, b"<?xml", "text/xml; charset=utf-8", skip_ws=True),
    _ExactSignature(b"%PDF-", "application/pdf"),
    _ExactSignature(b"%!PS-Adobe-", "application/postscript"),
    # byte order marks
    _MaskedSignature(b"\xff\xff\x00\x00", b"\xfe\xff\x00\x00", "text/plain; charset=utf-16be"),
    _MaskedSignature(b"\xff\xff\x00\x00", b"\xff\xfe\x00\x00", "text/plain; charset=utf-16le"),
    _MaskedSignature(b"\xff\xff\xff\x00", b"\xef\xbb\xbf\x00", "text/plain; charset=utf-8"),
    # images
    _ExactSignature(b"\x00\x00\x01\x00", "image/x-icon"),
    _ExactSignature(b"\x00\x00\x02\x00", "image/x-icon"),
    _ExactSignature(b"BM", "image/bmp"),
    _ExactSignature(b"GIF87a", "image/gif"),
    _ExactSignature(b"GIF89a", "image/gif"),
    _MaskedSignature(
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WEBPVP",
        "image/webp",
    ),
    _ExactSignature(b"\x89PNG\r\n\x1a\n", "image/png"),
    _ExactSignature(b"\xff\xd8\xff", "image/jpeg"),
    # audio and video
    _MaskedSignature(
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"FORM\x00\x00\x00\x00AIFF",
        "audio/aiff",
    ),
    _MaskedSignature(b"\xff\xff\xff", b"ID3", "audio/mpeg"),
    _MaskedSignature(b"\xff" * 5, b"OggS\x00", "application/ogg"),
    _MaskedSignature(b"\xff" * 8, b"MThd\x00\x00\x00\x06", "audio/midi"),
    _MaskedSignature(
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00AVI ",
        "video/avi",
    ),
    _MaskedSignature(
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WAVE",
        "audio/wave",
    ),
    _MP4Signature(),
    _ExactSignature(b"\x1a\x45\xdf\xa3", "video/webm"),
    # fonts
    _MaskedSignature(
        b"\x00" * 34 + b"\xff\xff",
        b"\x00" * 34 + b"LP",
        "application/vnd.ms-fontobject",
    ),
    _ExactSignature(b"\x00\x01\x00\x00", "font/ttf"),
    _ExactSignature(b"OTTO", "font/otf"),
    _ExactSignature(b"ttcf", "font/collection"),
    _ExactSignature(b"wOFF", "font/woff"),
    _ExactSignature(b"wOF2", "font/woff2"),
    # archives
    _ExactSignature(b"\x1f\x8b\x08", "application/x-gzip"),
    _ExactSignature(b"PK\x03\x04", "application/zip"),
    _ExactSignature(b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    _ExactSignature(b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    _ExactSignature(b"\x00asm", "application/wasm"),
    _TextSignature(),
)


def detect_content_type(data: bytes) -> str:
    """Return the MIME type of data, looking at no more than SNIFF_LEN bytes.

    Always returns a valid type; application/octet-stream when nothing
    more specific matches.
    """
    data = bytes(data[:SNIFF_LEN])

    first_non_ws = 0
    while first_non_ws < len(data) and data[first_non_ws] in _WHITESPACE:
        first_non_ws += 1

    for signature in SIGNATURES:
        content_type = signature.match(data, first_non_ws)
        if content_type:
            return content_type
    return DEFAULT_CONTENT_TYPE
