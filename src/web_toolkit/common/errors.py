"""
Errors raised by the toolkit.

Every error derives from ToolkitError. None of them carries an HTTP status:
handlers pick one when they turn an error into a response with error_json().
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from web_toolkit.utils.schemas import UploadedFile


class ToolkitError(Exception):
    """Base class for every error raised by the toolkit"""


# --- Uploads ---


class UploadError(ToolkitError):
    """Upload failure; holds the files stored before the failure happened"""

    def __init__(
        self, message: str, uploaded_files: Optional[list["UploadedFile"]] = None
    ) -> None:
        super().__init__(message)
        self.uploaded_files: list["UploadedFile"] = list(uploaded_files or [])


class DirectoryCreateError(UploadError):
    pass


class UploadTooLargeError(UploadError):
    def __init__(self, limit: int) -> None:
        super().__init__("the uploaded file is too big")
        self.limit = limit


class MalformedUploadError(UploadError):
    pass


class UnsupportedFileTypeError(UploadError):
    def __init__(
        self,
        content_type: str,
        uploaded_files: Optional[list["UploadedFile"]] = None,
    ) -> None:
        super().__init__("the uploaded file type is not permitted", uploaded_files)
        self.content_type = content_type


class UploadIOError(UploadError):
    """Opening, seeking, creating or copying a file stream failed"""


class NoFileProvidedError(UploadIOError):
    def __init__(self) -> None:
        super().__init__("no file was uploaded")


# --- JSON bodies ---


class JSONReadError(ToolkitError):
    """A request body could not be read as exactly one JSON value"""


class BodyTooLargeError(JSONReadError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"body must not be larger than {limit} bytes")
        self.limit = limit


class MalformedJSONError(JSONReadError):
    def __init__(self, offset: Optional[int] = None) -> None:
        if offset is None:
            message = "body contains badly-formed JSON"
        else:
            message = f"body contains badly-formed JSON (at character {offset})"
        super().__init__(message)
        self.offset = offset


class JSONTypeMismatchError(JSONReadError):
    def __init__(
        self,
        field: Optional[str] = None,
        offset: Optional[int] = None,
        missing: bool = False,
    ) -> None:
        if field and missing:
            message = f'body is missing JSON field "{field}"'
        elif field:
            message = f'body contains incorrect JSON type for field "{field}"'
        elif offset is not None:
            message = f"body contains incorrect JSON type (at character {offset})"
        else:
            message = "body contains incorrect JSON type"
        super().__init__(message)
        self.field = field
        self.offset = offset


class UnknownFieldError(JSONReadError):
    def __init__(self, field: str) -> None:
        super().__init__(f'body contains unknown key "{field}"')
        self.field = field


class EmptyBodyError(JSONReadError):
    def __init__(self) -> None:
        super().__init__("body must not be empty")


class TrailingContentError(JSONReadError):
    def __init__(self) -> None:
        super().__init__("body must contain only one JSON value")


# --- Slugs ---


class SlugifyError(ToolkitError, ValueError):
    pass


class EmptyInputError(SlugifyError):
    def __init__(self) -> None:
        super().__init__("empty string not permitted")


class EmptyResultError(SlugifyError):
    def __init__(self) -> None:
        super().__init__("after removing characters, slug is zero length")
