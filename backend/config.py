import os
from pydantic_settings import BaseSettings
from pydantic import Field
import platformdirs

APP_NAME = "LiveLink"
APP_AUTHOR = "LiveLinkDev"

class Settings(BaseSettings):
    # App Info
    APP_NAME: str = APP_NAME
    APP_AUTHOR: str = APP_AUTHOR
    ENV: str = "prod"

    # Paths
    # 環境変数 DB_PATH があればそれを優先する
    USER_DATA_DIR: str = Field(default_factory=lambda: platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    DB_PATH: str | None = None

    # Network
    LIVELINK_PORT: int = 8002
    FRONTEND_PORT: int = 5173
    API_BASE_URL: str | None = None
    GATEWAY_TIMEOUT: float = 10.0

    # Band scope (auth/band context is handled outside this service)
    DEFAULT_BAND_ID: str = "550e8400-e29b-41d4-a716-446655440000"
    DEFAULT_BAND_NAME: str = "My Band"

    # Public sharing
    SHARE_SLUG_LENGTH: int = 8
    SHARE_SLUG_MAX_ATTEMPTS: int = 10
    SHARE_CACHE_MAX_AGE: int = 300
    PUBLIC_BASE_URL: str = "https://livelink.app"

    # Logging
    LIVELINK_LOG_DIR: str | None = None
    LIVELINK_LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def model_post_init(self, __context):
        if not self.DB_PATH:
            self.DB_PATH = os.path.join(self.USER_DATA_DIR, "livelink.sqlite3")

        if not self.LIVELINK_LOG_DIR:
            self.LIVELINK_LOG_DIR = os.path.join(self.USER_DATA_DIR, "logs")

        if not self.API_BASE_URL:
            self.API_BASE_URL = f"http://127.0.0.1:{self.LIVELINK_PORT}"

    def setup_environment(self):
        """ロガーが参照する環境変数を設定する"""
        if self.LIVELINK_LOG_DIR:
            os.environ["LIVELINK_LOG_DIR"] = self.LIVELINK_LOG_DIR
        os.environ.setdefault("LIVELINK_LOG_LEVEL", self.LIVELINK_LOG_LEVEL)

settings = Settings()
