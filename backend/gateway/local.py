"""In-process gateway: runs the application services against a SQLModel session."""
import asyncio
from typing import Callable, List, Optional, TypeVar
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from domain.exceptions import ConflictError
from domain.models.song import SongRead
from domain.models.live import LiveRead
from domain.models.setlist import SetlistItemRead
from api.schemas.song import SongFormData, SongUpdate
from api.schemas.live import LiveFormData, LiveUpdate
from api.schemas.share import SlugRequest, SlugResponse, ShareResponse
from app.services.song_app_service import SongAppService
from app.services.live_app_service import LiveAppService
from app.services.setlist_app_service import SetlistAppService
from app.services.share_app_service import ShareAppService
from infra.database.connection import session_factory as default_session_factory
from gateway.base import (
    ApiResponse,
    QueryGateway,
    SongQueries,
    LiveQueries,
    SetlistQueries,
    ShareQueries,
)
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

def _require(value: Optional[T], message: str) -> T:
    if value is None or value is False:
        raise LookupError(message)
    return value

class LocalGateway(QueryGateway):
    def __init__(self, session_factory: Callable[[], Session] = default_session_factory):
        self.session_factory = session_factory
        self.songs = LocalSongQueries(self)
        self.lives = LocalLiveQueries(self)
        self.setlists = LocalSetlistQueries(self)
        self.share = LocalShareQueries(self)

    async def call(self, operation: str, work: Callable[[Session], T]) -> ApiResponse[T]:
        """work をワーカースレッドで実行し、失敗はエラーメッセージとして返す"""
        def run() -> T:
            with self.session_factory() as session:
                return work(session)

        try:
            data = await asyncio.to_thread(run)
        except (ConflictError, LookupError) as e:
            logger.warning(f"{operation} failed: {e}")
            return ApiResponse(error=str(e))
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed with database error: {e}")
            return ApiResponse(error=str(e))
        return ApiResponse(data=data)

class LocalSongQueries(SongQueries):
    def __init__(self, gateway: LocalGateway):
        self.gateway = gateway

    async def get_all(self, band_id: str) -> ApiResponse[List[SongRead]]:
        return await self.gateway.call("songs.get_all", lambda s: SongAppService(s).get_songs(band_id))

    async def search(self, band_id: str, query: str) -> ApiResponse[List[SongRead]]:
        return await self.gateway.call("songs.search", lambda s: SongAppService(s).get_songs(band_id, query))

    async def create(self, band_id: str, form: SongFormData) -> ApiResponse[SongRead]:
        return await self.gateway.call("songs.create", lambda s: SongAppService(s).create_song(band_id, form))

    async def update(self, song_id: str, updates: SongUpdate) -> ApiResponse[SongRead]:
        changes = updates.model_dump(exclude_unset=True)
        return await self.gateway.call(
            "songs.update",
            lambda s: _require(SongAppService(s).update_song(song_id, changes), "Song not found"),
        )

    async def delete(self, song_id: str) -> ApiResponse[None]:
        def work(session: Session) -> None:
            _require(SongAppService(session).delete_song(song_id), "Song not found")

        return await self.gateway.call("songs.delete", work)

class LocalLiveQueries(LiveQueries):
    def __init__(self, gateway: LocalGateway):
        self.gateway = gateway

    async def get_all(self, band_id: str) -> ApiResponse[List[LiveRead]]:
        return await self.gateway.call("lives.get_all", lambda s: LiveAppService(s).get_lives(band_id))

    async def get_upcoming(self, band_id: str) -> ApiResponse[List[LiveRead]]:
        return await self.gateway.call("lives.get_upcoming", lambda s: LiveAppService(s).get_upcoming(band_id))

    async def get_by_share_slug(self, share_slug: str) -> ApiResponse[LiveRead]:
        return await self.gateway.call(
            "lives.get_by_share_slug",
            lambda s: _require(LiveAppService(s).get_by_share_slug(share_slug), "Live not found"),
        )

    async def create(self, band_id: str, form: LiveFormData) -> ApiResponse[LiveRead]:
        return await self.gateway.call("lives.create", lambda s: LiveAppService(s).create_live(band_id, form))

    async def update(self, live_id: str, updates: LiveUpdate) -> ApiResponse[LiveRead]:
        changes = updates.model_dump(exclude_unset=True)
        return await self.gateway.call(
            "lives.update",
            lambda s: _require(LiveAppService(s).update_live(live_id, changes), "Live not found"),
        )

    async def delete(self, live_id: str) -> ApiResponse[None]:
        def work(session: Session) -> None:
            _require(LiveAppService(session).delete_live(live_id), "Live not found")

        return await self.gateway.call("lives.delete", work)

class LocalSetlistQueries(SetlistQueries):
    def __init__(self, gateway: LocalGateway):
        self.gateway = gateway

    async def get_by_live_id(self, live_id: str) -> ApiResponse[List[SetlistItemRead]]:
        return await self.gateway.call("setlists.get_by_live_id", lambda s: SetlistAppService(s).get_setlist(live_id))

    async def add_song(self, live_id: str, song_id: str, order_index: int) -> ApiResponse[SetlistItemRead]:
        return await self.gateway.call(
            "setlists.add_song",
            lambda s: _require(SetlistAppService(s).add_song(live_id, song_id, order_index), "Live not found"),
        )

    async def update_order(self, item_id: str, order_index: int) -> ApiResponse[SetlistItemRead]:
        return await self.gateway.call(
            "setlists.update_order",
            lambda s: _require(SetlistAppService(s).update_order(item_id, order_index), "Setlist item not found"),
        )

    async def remove_song(self, item_id: str) -> ApiResponse[None]:
        def work(session: Session) -> None:
            _require(SetlistAppService(session).remove_song(item_id), "Setlist item not found")

        return await self.gateway.call("setlists.remove_song", work)

    async def clear_setlist(self, live_id: str) -> ApiResponse[None]:
        def work(session: Session) -> None:
            _require(SetlistAppService(session).clear_setlist(live_id), "Live not found")

        return await self.gateway.call("setlists.clear_setlist", work)

class LocalShareQueries(ShareQueries):
    def __init__(self, gateway: LocalGateway):
        self.gateway = gateway

    async def generate_slug(
        self,
        check_uniqueness: bool = False,
        exclude_slug: Optional[str] = None,
        length: Optional[int] = None,
    ) -> ApiResponse[SlugResponse]:
        request = SlugRequest(
            checkUniqueness=check_uniqueness,
            excludeSlug=exclude_slug,
            length=length or settings.SHARE_SLUG_LENGTH,
        )
        return await self.gateway.call("share.generate_slug", lambda s: ShareAppService(s).generate_slug(request))

    async def get_shared_setlist(
        self,
        share_slug: str,
        include_metadata: bool = False,
        include_metrics: bool = False,
    ) -> ApiResponse[ShareResponse]:
        return await self.gateway.call(
            "share.get_shared_setlist",
            lambda s: _require(
                ShareAppService(s).get_snapshot(share_slug, include_metadata, include_metrics),
                "Setlist not found or not publicly shared",
            ),
        )
