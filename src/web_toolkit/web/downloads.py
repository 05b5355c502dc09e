import logging
import mimetypes
import os

from fastapi import HTTPException, status
from fastapi.responses import FileResponse

logger = logging.getLogger(__name__)


def download_static_file(file_path: str | os.PathLike, display_name: str) -> FileResponse:
    """Serve a file as an attachment so browsers save it instead of showing it.

    The response carries Content-Disposition with display_name as the file
    name, plus Content-Length, ETag, Last-Modified and range support.
    """
    if not os.path.isfile(file_path):
        logger.warning("Download requested for missing file %s", file_path)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    # the name goes out as raw UTF-8 bytes; Starlette encodes header values as latin-1
    disposition = f'attachment; filename="{display_name}"'.encode("utf-8").decode("latin-1")
    return FileResponse(
        file_path,
        media_type=mimetypes.guess_type(display_name)[0],
        headers={"Content-Disposition": disposition},
    )


def download_static_file_from_dir(
    directory: str | os.PathLike, file_name: str, display_name: str
) -> FileResponse:
    return download_static_file(os.path.join(directory, file_name), display_name)
