"""
backend/app/config.py - 环境配置
───────────────────────────────────
从 .env 文件或系统环境变量读取配置.
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置."""

    # ─────────────────────────────────────
    # 应用信息
    # ─────────────────────────────────────
    APP_NAME: str = "Bill Reconcile API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # ─────────────────────────────────────
    # 服务
    # ─────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────
    # CORS
    # ─────────────────────────────────────
    # 逗号分隔的 Origin 列表 (例: "http://localhost:3000,https://app.example.com")
    CORS_ORIGINS: str = "http://localhost:3000"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: str = "GET,POST,OPTIONS"
    CORS_ALLOW_HEADERS: str = "*"

    # ─────────────────────────────────────
    # 文件上传
    # ─────────────────────────────────────
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50MB

    @property
    def cors_origins_list(self) -> List[str]:
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def cors_methods_list(self) -> List[str]:
        if self.CORS_ALLOW_METHODS == "*":
            return ["*"]
        return [method.strip() for method in self.CORS_ALLOW_METHODS.split(",")]

    @property
    def cors_headers_list(self) -> List[str]:
        if self.CORS_ALLOW_HEADERS == "*":
            return ["*"]
        return [header.strip() for header in self.CORS_ALLOW_HEADERS.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# 单例
settings = Settings()
