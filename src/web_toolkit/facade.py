import os
from typing import Any, Mapping, Optional, TypeVar

import httpx
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel
from starlette.requests import Request

from web_toolkit.utils.schemas import JSONDecodeConfig, UploadConfig, UploadedFile
from web_toolkit.utils.utils import create_dir_if_not_exist, random_string, slugify
from web_toolkit.web import downloads, json_io, uploads

M = TypeVar("M", bound=BaseModel)


class Tools:
    """Every toolkit operation, bound to one upload and one JSON configuration.

    Configs left out are built from the TOOLKIT_* settings.
    """

    def __init__(
        self,
        upload_config: Optional[UploadConfig] = None,
        json_config: Optional[JSONDecodeConfig] = None,
    ) -> None:
        self.upload_config = upload_config or UploadConfig.from_settings()
        self.json_config = json_config or JSONDecodeConfig.from_settings()

    @staticmethod
    def random_string(n: int) -> str:
        return random_string(n)

    @staticmethod
    def create_dir_if_not_exist(path: str | os.PathLike, mode: Optional[int] = None) -> None:
        create_dir_if_not_exist(path, mode)

    @staticmethod
    def slugify(s: str) -> str:
        return slugify(s)

    async def upload_files(
        self, request: Request, upload_dir: str | os.PathLike, rename: bool = True
    ) -> list[UploadedFile]:
        return await uploads.upload_files(
            request, upload_dir, self.upload_config, rename
        )

    async def upload_one_file(
        self, request: Request, upload_dir: str | os.PathLike, rename: bool = True
    ) -> UploadedFile:
        return await uploads.upload_one_file(
            request, upload_dir, self.upload_config, rename
        )

    @staticmethod
    def download_static_file(
        file_path: str | os.PathLike, display_name: str
    ) -> FileResponse:
        return downloads.download_static_file(file_path, display_name)

    @staticmethod
    def download_static_file_from_dir(
        directory: str | os.PathLike, file_name: str, display_name: str
    ) -> FileResponse:
        return downloads.download_static_file_from_dir(
            directory, file_name, display_name
        )

    async def read_json(
        self, request: Request, model: Optional[type[M]] = None
    ) -> M | Any:
        return await json_io.read_json(request, model, self.json_config)

    @staticmethod
    def write_json(
        data: Any, status: int = 200, headers: Optional[Mapping[str, str]] = None
    ) -> JSONResponse:
        return json_io.write_json(data, status, headers)

    @staticmethod
    def error_json(err: BaseException | str, status: int = 400) -> JSONResponse:
        return json_io.error_json(err, status)

    @staticmethod
    async def push_json_to_remote(
        uri: str, data: Any, client: Optional[httpx.AsyncClient] = None
    ) -> tuple[httpx.Response, int]:
        return await json_io.push_json_to_remote(uri, data, client)


# Create instance for easy import
tools = Tools()
