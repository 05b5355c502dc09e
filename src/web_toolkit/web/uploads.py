"""
Multipart upload ingestion

Parses a multipart/form-data request, checks every file part's sniffed
content type against an allow-list and stores accepted parts in a
directory. Parts are handled in the order they appear in the body; the
first failing part stops the ingestion and the files already stored stay
on disk, listed on the raised error.
"""

import logging
import os
from typing import AsyncIterator, Optional

from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from web_toolkit.common.errors import (
    DirectoryCreateError,
    MalformedUploadError,
    NoFileProvidedError,
    UnsupportedFileTypeError,
    UploadIOError,
    UploadTooLargeError,
)
from web_toolkit.common.settings import settings
from web_toolkit.utils.schemas import UploadConfig, UploadedFile
from web_toolkit.utils.sniffing import SNIFF_LEN, detect_content_type
from web_toolkit.utils.utils import create_dir_if_not_exist, random_string

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


async def _limited_stream(request: Request, limit: int) -> AsyncIterator[bytes]:
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise UploadTooLargeError(limit)
        yield chunk


async def _parse_files(request: Request, config: UploadConfig) -> list[UploadFile]:
    limit = config.max_total_upload_bytes

    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise MalformedUploadError("request body is not multipart/form-data")

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise UploadTooLargeError(limit)

    parser = MultiPartParser(request.headers, _limited_stream(request, limit))
    try:
        form = await parser.parse()
    except MultiPartException as e:
        raise MalformedUploadError(
            f"the uploaded body could not be parsed: {e.message}"
        ) from e
    except UploadTooLargeError:
        # Starlette only closes its spooled parts on MultiPartException
        for spooled in parser._files_to_close_on_error:  # pylint: disable=protected-access
            spooled.close()
        raise

    return [value for _, value in form.multi_items() if isinstance(value, UploadFile)]


def _destination_name(original: str, rename: bool) -> str:
    if not rename:
        return original
    _, ext = os.path.splitext(original)
    return f"{random_string(settings.RANDOM_NAME_LENGTH)}{ext}"


async def _store_part(
    part: UploadFile,
    upload_dir: str | os.PathLike,
    config: UploadConfig,
    rename: bool,
    uploaded_files: list[UploadedFile],
) -> UploadedFile:
    original_name = part.filename or ""

    try:
        # look at the first 512 bytes of the file in order to figure out what it is
        head = await part.read(SNIFF_LEN)
    except OSError as e:
        raise UploadIOError(f"could not read {original_name!r}", uploaded_files) from e

    file_type = detect_content_type(head)
    logger.debug("Sniffed %s as %s", original_name, file_type)
    if not config.allows(file_type):
        logger.warning("Rejected upload %s of type %s", original_name, file_type)
        raise UnsupportedFileTypeError(file_type, uploaded_files)

    new_name = _destination_name(original_name, rename)
    dest_path = os.path.join(upload_dir, new_name)

    file_size = 0
    try:
        await part.seek(0)
        with open(dest_path, "wb") as out_file:
            while chunk := await part.read(CHUNK_SIZE):
                out_file.write(chunk)
                file_size += len(chunk)
    except OSError as e:
        raise UploadIOError(f"could not store {original_name!r}", uploaded_files) from e

    logger.info("Stored upload %s as %s (%d bytes)", original_name, dest_path, file_size)
    return UploadedFile(
        new_file_name=new_name,
        original_file_name=original_name,
        file_size=file_size,
    )


async def upload_files(
    request: Request,
    upload_dir: str | os.PathLike,
    config: Optional[UploadConfig] = None,
    rename: bool = True,
) -> list[UploadedFile]:
    """Store every file of a multipart request in upload_dir.

    Args:
        request: incoming request with a multipart/form-data body
        upload_dir: destination directory, created when missing
        config: size cap and allowed content types
        rename: store under a random name keeping the original extension;
            when False the client supplied name is used as is

    Returns:
        list[UploadedFile]: one record per stored file, in body order

    Raises:
        UploadError: a subclass describing the failure; its uploaded_files
            holds the files stored before the failing part
    """
    config = config or UploadConfig()

    try:
        create_dir_if_not_exist(upload_dir)
    except OSError as e:
        raise DirectoryCreateError(f"could not create {upload_dir}: {e}") from e

    parts = await _parse_files(request, config)

    uploaded_files: list[UploadedFile] = []
    try:
        for part in parts:
            uploaded_files.append(
                await _store_part(part, upload_dir, config, rename, uploaded_files)
            )
    finally:
        for part in parts:
            await part.close()

    return uploaded_files


async def upload_one_file(
    request: Request,
    upload_dir: str | os.PathLike,
    config: Optional[UploadConfig] = None,
    rename: bool = True,
) -> UploadedFile:
    """Same as upload_files, for a request expected to carry a single file"""
    files = await upload_files(request, upload_dir, config, rename)
    if not files:
        raise NoFileProvidedError()
    return files[0]
