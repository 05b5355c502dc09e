"""
Helpers for FastAPI / Starlette handlers: uploads, strict JSON bodies,
JSON responses, downloads, slugs and random strings
"""

from .common.errors import (
    BodyTooLargeError,
    DirectoryCreateError,
    EmptyBodyError,
    EmptyInputError,
    EmptyResultError,
    JSONReadError,
    JSONTypeMismatchError,
    MalformedJSONError,
    MalformedUploadError,
    NoFileProvidedError,
    SlugifyError,
    ToolkitError,
    TrailingContentError,
    UnknownFieldError,
    UnsupportedFileTypeError,
    UploadError,
    UploadIOError,
    UploadTooLargeError,
)
from .facade import Tools, tools
from .utils.schemas import JSONDecodeConfig, JSONEnvelope, UploadConfig, UploadedFile
from .utils.sniffing import detect_content_type
from .utils.utils import create_dir_if_not_exist, random_string, slugify
from .web.downloads import download_static_file, download_static_file_from_dir
from .web.json_io import decode_json, error_json, push_json_to_remote, read_json, write_json
from .web.uploads import upload_files, upload_one_file

__all__ = [
    "Tools",
    "tools",
    "UploadedFile",
    "UploadConfig",
    "JSONDecodeConfig",
    "JSONEnvelope",
    "random_string",
    "create_dir_if_not_exist",
    "slugify",
    "detect_content_type",
    "upload_files",
    "upload_one_file",
    "download_static_file",
    "download_static_file_from_dir",
    "decode_json",
    "read_json",
    "write_json",
    "error_json",
    "push_json_to_remote",
    "ToolkitError",
    "UploadError",
    "DirectoryCreateError",
    "UploadTooLargeError",
    "MalformedUploadError",
    "UnsupportedFileTypeError",
    "UploadIOError",
    "NoFileProvidedError",
    "JSONReadError",
    "BodyTooLargeError",
    "MalformedJSONError",
    "JSONTypeMismatchError",
    "UnknownFieldError",
    "EmptyBodyError",
    "TrailingContentError",
    "SlugifyError",
    "EmptyInputError",
    "EmptyResultError",
]
