from pydantic_settings import BaseSettings


class HttpxSettings(BaseSettings):
    MAX_CONNECTIONS: int = 200
    MAX_KEEPALIVE_CONNECTIONS: int = 10
    TIMEOUT: int = 30
    HTTP2: bool = True
    CLIENT_REQUEST_LIMIT: int = 50
    CLIENT_EXPIRE_SECONDS: int = 300  # 5 mins

    class Config:
        env_prefix = "TOOLKIT_HTTPX_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


httpx_settings = HttpxSettings()
