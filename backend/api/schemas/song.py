from pydantic import BaseModel, field_validator, model_validator
from typing import Optional

from api.schemas.common import require_text, optional_url, reject_explicit_nulls

class SongFormData(BaseModel):
    """
    楽曲作成/編集フォームのデータ。
    id, band_id, タイムスタンプなどDB管理のフィールドは含まない。
    """
    title: str
    artist: str
    youtube_url: Optional[str] = None
    spotify_url: Optional[str] = None

    @field_validator("title", "artist")
    @classmethod
    def check_text(cls, value: str) -> str:
        return require_text(value)

    @field_validator("youtube_url", "spotify_url")
    @classmethod
    def check_urls(cls, value: Optional[str]) -> Optional[str]:
        return optional_url(value)

class SongUpdate(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    youtube_url: Optional[str] = None
    spotify_url: Optional[str] = None

    @field_validator("title", "artist")
    @classmethod
    def check_text(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else require_text(value)

    @field_validator("youtube_url", "spotify_url")
    @classmethod
    def check_urls(cls, value: Optional[str]) -> Optional[str]:
        return optional_url(value)

    @model_validator(mode="after")
    def check_required_not_null(self):
        reject_explicit_nulls(self, ("title", "artist"))
        return self
