"""
配置文件 - 项目配置管理
"""
from functools import lru_cache
from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from core.settings import MidtransSettings


DEFAULT_FRONTEND_URL = "http://localhost:8080"


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./payments.db"
    echo: bool = False


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Bakmi Jogja - Midtrans Backend API")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    PORT: int = Field(default=4000)

    # 支付完成后的前端跳转地址
    FRONTEND_URL: Optional[str] = Field(default=None)

    # 分组配置：Midtrans/Database 采用嵌套模型
    midtrans: MidtransSettings = Field(default_factory=MidtransSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # CORS配置（NoDecode：交给下方校验器解析逗号分隔字符串）
    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default=[
            "http://localhost:8080",
            "http://127.0.0.1:5500",
            "https://bakmi-pakde.vercel.app",
        ],
    )

    # 日志/请求体记录配置
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @property
    def finish_redirect_url(self) -> str:
        return self.FRONTEND_URL or DEFAULT_FRONTEND_URL

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


@lru_cache
def get_settings() -> Settings:
    """Build settings once per process; callers pass the object on explicitly."""
    return Settings()
