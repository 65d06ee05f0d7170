"""
Query Gateway contract consumed by the stores.

Every operation answers with an ``ApiResponse``: ``error`` is ``None`` on success,
otherwise a human readable message. Implementations never raise for backend
failures; turning an error response into an exception is the caller's job.
"""
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel

from domain.models.song import SongRead
from domain.models.live import LiveRead
from domain.models.setlist import SetlistItemRead
from api.schemas.song import SongFormData, SongUpdate
from api.schemas.live import LiveFormData, LiveUpdate
from api.schemas.share import SlugResponse, ShareResponse

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

class SongQueries(ABC):
    @abstractmethod
    async def get_all(self, band_id: str) -> ApiResponse[List[SongRead]]: ...

    @abstractmethod
    async def search(self, band_id: str, query: str) -> ApiResponse[List[SongRead]]: ...

    @abstractmethod
    async def create(self, band_id: str, form: SongFormData) -> ApiResponse[SongRead]: ...

    @abstractmethod
    async def update(self, song_id: str, updates: SongUpdate) -> ApiResponse[SongRead]: ...

    @abstractmethod
    async def delete(self, song_id: str) -> ApiResponse[None]: ...

class LiveQueries(ABC):
    @abstractmethod
    async def get_all(self, band_id: str) -> ApiResponse[List[LiveRead]]: ...

    @abstractmethod
    async def get_upcoming(self, band_id: str) -> ApiResponse[List[LiveRead]]: ...

    @abstractmethod
    async def get_by_share_slug(self, share_slug: str) -> ApiResponse[LiveRead]: ...

    @abstractmethod
    async def create(self, band_id: str, form: LiveFormData) -> ApiResponse[LiveRead]: ...

    @abstractmethod
    async def update(self, live_id: str, updates: LiveUpdate) -> ApiResponse[LiveRead]: ...

    @abstractmethod
    async def delete(self, live_id: str) -> ApiResponse[None]: ...

class SetlistQueries(ABC):
    @abstractmethod
    async def get_by_live_id(self, live_id: str) -> ApiResponse[List[SetlistItemRead]]: ...

    @abstractmethod
    async def add_song(self, live_id: str, song_id: str, order_index: int) -> ApiResponse[SetlistItemRead]: ...

    @abstractmethod
    async def update_order(self, item_id: str, order_index: int) -> ApiResponse[SetlistItemRead]: ...

    @abstractmethod
    async def remove_song(self, item_id: str) -> ApiResponse[None]: ...

    @abstractmethod
    async def clear_setlist(self, live_id: str) -> ApiResponse[None]: ...

class ShareQueries(ABC):
    @abstractmethod
    async def generate_slug(
        self,
        check_uniqueness: bool = False,
        exclude_slug: Optional[str] = None,
        length: Optional[int] = None,
    ) -> ApiResponse[SlugResponse]: ...

    @abstractmethod
    async def get_shared_setlist(
        self,
        share_slug: str,
        include_metadata: bool = False,
        include_metrics: bool = False,
    ) -> ApiResponse[ShareResponse]: ...

class QueryGateway:
    songs: SongQueries
    lives: LiveQueries
    setlists: SetlistQueries
    share: ShareQueries
