from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from domain.models.ids import new_id

class LiveBase(SQLModel):
    band_id: str = Field(foreign_key="bands.id")
    title: str
    venue: str
    date: datetime
    description: Optional[str] = None
    ticket_url: Optional[str] = None
    is_upcoming: bool = True
    # 公開用スラッグ (設定されている場合のみ共有ページから参照可能)
    share_slug: Optional[str] = Field(default=None, unique=True)

class Live(LiveBase, table=True):
    __tablename__ = "lives"
    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

class LiveRead(LiveBase):
    id: str
    created_at: datetime
    updated_at: datetime
