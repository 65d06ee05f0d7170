from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from domain.models.ids import new_id
from domain.models.song import SongRead

class SetlistItemBase(SQLModel):
    live_id: str = Field(foreign_key="lives.id")
    song_id: str = Field(foreign_key="songs.id")
    # (live_id, order_index) はDB側で一意。表示順は昇順
    order_index: int

class SetlistItem(SetlistItemBase, table=True):
    __tablename__ = "setlist_items"
    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

class SetlistItemRead(SetlistItemBase):
    id: str
    created_at: datetime
    updated_at: datetime
    # 表示用の非正規化データ。識別には使わない
    song: Optional[SongRead] = None
