from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel

from domain.models.ids import new_id

class SongBase(SQLModel):
    band_id: str = Field(foreign_key="bands.id")
    title: str
    artist: str
    youtube_url: Optional[str] = None
    spotify_url: Optional[str] = None

class Song(SongBase, table=True):
    __tablename__ = "songs"
    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

class SongRead(SongBase):
    id: str
    created_at: datetime
    updated_at: datetime
