from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from config import settings

class SlugRequest(BaseModel):
    checkUniqueness: bool = False
    excludeSlug: Optional[str] = None
    length: int = Field(default_factory=lambda: settings.SHARE_SLUG_LENGTH, ge=4, le=64)

class SlugResponse(BaseModel):
    slug: str
    isUnique: Optional[bool] = None
    fallbackMode: Optional[bool] = None

class ShareRequest(BaseModel):
    share_slug: Optional[str] = None
    includeMetadata: bool = False
    includeMetrics: bool = False

class ShareLive(BaseModel):
    id: str
    title: str
    date: datetime
    venue: str
    is_upcoming: bool
    share_slug: str

class ShareBand(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None

class ShareSong(BaseModel):
    id: str
    title: str
    artist: str
    youtube_url: Optional[str] = None
    spotify_url: Optional[str] = None

class ShareSetlistEntry(BaseModel):
    id: str
    order_index: int
    song: ShareSong

class ShareMetadata(BaseModel):
    title: str
    description: str
    socialImage: str

class ShareMetrics(BaseModel):
    queryTime: float
    songCount: int

class ShareResponse(BaseModel):
    live: ShareLive
    band: ShareBand
    setlist: List[ShareSetlistEntry]
    metadata: Optional[ShareMetadata] = None
    metrics: Optional[ShareMetrics] = None
