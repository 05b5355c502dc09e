from pydantic import Field
from pydantic_settings import BaseSettings


class ToolkitSettings(BaseSettings):
    MAX_FILE_SIZE: int = Field(
        default=1024 * 1024 * 1024,  # 1 GiB
        gt=0,
        description="Upper bound in bytes for a whole multipart upload body",
    )
    ALLOWED_FILE_TYPES: list[str] = Field(
        default_factory=list,
        description="Sniffed MIME types accepted for uploads, empty allows any",
    )
    MAX_JSON_SIZE: int = Field(
        default=1024 * 1024,  # 1 MiB
        gt=0,
        description="Upper bound in bytes for a JSON request body",
    )
    ALLOW_UNKNOWN_FIELDS: bool = Field(
        default=False,
        description="Accept JSON object keys the target model does not declare",
    )
    RANDOM_NAME_LENGTH: int = Field(
        default=25,
        ge=1,
        description="Length of the random token used for renamed uploads",
    )
    DIR_MODE: int = Field(
        default=0o755,
        description="Permission bits for directories created by the toolkit",
    )

    class Config:
        env_prefix = "TOOLKIT_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = ToolkitSettings()
