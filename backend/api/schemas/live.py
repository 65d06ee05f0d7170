from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import datetime

from api.schemas.common import require_text, optional_url, optional_slug, reject_explicit_nulls

class LiveFormData(BaseModel):
    """ライブ作成/編集フォームのデータ"""
    title: str
    date: datetime
    venue: str
    description: Optional[str] = None
    ticket_url: Optional[str] = None
    is_upcoming: bool = True
    share_slug: Optional[str] = None

    @field_validator("title", "venue")
    @classmethod
    def check_text(cls, value: str) -> str:
        return require_text(value)

    @field_validator("ticket_url")
    @classmethod
    def check_url(cls, value: Optional[str]) -> Optional[str]:
        return optional_url(value)

    @field_validator("share_slug")
    @classmethod
    def check_slug(cls, value: Optional[str]) -> Optional[str]:
        return optional_slug(value)

class LiveUpdate(BaseModel):
    title: Optional[str] = None
    date: Optional[datetime] = None
    venue: Optional[str] = None
    description: Optional[str] = None
    ticket_url: Optional[str] = None
    is_upcoming: Optional[bool] = None
    share_slug: Optional[str] = None

    @field_validator("title", "venue")
    @classmethod
    def check_text(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else require_text(value)

    @field_validator("ticket_url")
    @classmethod
    def check_url(cls, value: Optional[str]) -> Optional[str]:
        return optional_url(value)

    @field_validator("share_slug")
    @classmethod
    def check_slug(cls, value: Optional[str]) -> Optional[str]:
        return optional_slug(value)

    @model_validator(mode="after")
    def check_required_not_null(self):
        reject_explicit_nulls(self, ("title", "date", "venue", "is_upcoming"))
        return self
