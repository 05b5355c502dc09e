from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from web_toolkit.common.settings import ToolkitSettings, settings


class UploadedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    new_file_name: str
    original_file_name: str
    file_size: int = Field(ge=0)


class UploadConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_total_upload_bytes: int = Field(default=1024 * 1024 * 1024, gt=0)
    allowed_content_types: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("allowed_content_types", mode="before")
    @classmethod
    def _strip_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(v.strip() for v in value if v and v.strip())
        return value

    @classmethod
    def from_settings(cls, source: Optional[ToolkitSettings] = None) -> "UploadConfig":
        source = source or settings
        return cls(
            max_total_upload_bytes=source.MAX_FILE_SIZE,
            allowed_content_types=source.ALLOWED_FILE_TYPES,
        )

    def allows(self, content_type: str) -> bool:
        """Case-insensitive allow-list check, an empty list allows everything"""
        if not self.allowed_content_types:
            return True
        wanted = content_type.casefold()
        return any(t.casefold() == wanted for t in self.allowed_content_types)


class JSONDecodeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_body_bytes: int = Field(default=1024 * 1024, gt=0)
    allow_unknown_fields: bool = False

    @classmethod
    def from_settings(
        cls, source: Optional[ToolkitSettings] = None
    ) -> "JSONDecodeConfig":
        source = source or settings
        return cls(
            max_body_bytes=source.MAX_JSON_SIZE,
            allow_unknown_fields=source.ALLOW_UNKNOWN_FIELDS,
        )


class JSONEnvelope(BaseModel):
    """Wrapper used for every JSON response: {error, message, data}"""

    error: bool = False
    message: str = ""
    data: Optional[Any] = Field(None, description="Omitted from output when unset")

    def to_content(self) -> dict:
        return self.model_dump(
            mode="json", exclude={"data"} if self.data is None else None
        )
