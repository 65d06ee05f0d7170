import time
from typing import Optional
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from domain.services.share_slug import generate_random_slug
from infra.repositories.band_repository import BandRepository
from infra.repositories.live_repository import LiveRepository
from infra.repositories.setlist_repository import SetlistRepository
from api.schemas.share import (
    SlugRequest,
    SlugResponse,
    ShareResponse,
    ShareLive,
    ShareBand,
    ShareSong,
    ShareSetlistEntry,
    ShareMetadata,
    ShareMetrics,
)
from utils.logger import get_logger

logger = get_logger(__name__)

class ShareAppService:
    """公開共有ページ用のスラッグ生成とセットリストのスナップショット取得"""

    def __init__(self, session: Session):
        self.session = session
        self.band_repository = BandRepository(session)
        self.live_repository = LiveRepository(session)
        self.setlist_repository = SetlistRepository(session)

    def generate_slug(self, request: SlugRequest) -> SlugResponse:
        if not request.checkUniqueness:
            return SlugResponse(slug=generate_random_slug(request.length))
        return self.generate_unique_slug(request.length, request.excludeSlug)

    def generate_unique_slug(
        self,
        length: int,
        exclude_slug: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ) -> SlugResponse:
        max_attempts = max_attempts or settings.SHARE_SLUG_MAX_ATTEMPTS

        for attempt in range(max_attempts):
            slug = generate_random_slug(length)
            if exclude_slug and slug == exclude_slug:
                continue

            try:
                taken = self.live_repository.slug_exists(slug)
            except SQLAlchemyError as e:
                # 重複チェック自体が失敗した場合は未検証のスラッグを返す
                logger.warning(f"Slug uniqueness check failed, falling back: {e}")
                self.session.rollback()
                return SlugResponse(slug=slug, isUnique=True, fallbackMode=True)

            if not taken:
                return SlugResponse(slug=slug, isUnique=True, fallbackMode=False)

        logger.warning(f"No unique slug found after {max_attempts} attempts")
        return SlugResponse(slug=generate_random_slug(length), isUnique=False, fallbackMode=True)

    def get_snapshot(
        self,
        share_slug: str,
        include_metadata: bool = False,
        include_metrics: bool = False,
    ) -> Optional[ShareResponse]:
        """
        share_slug に対応するライブとセットリストを返す。
        見つからない場合は None (呼び出し側で 404 として表示する)。
        """
        started = time.perf_counter()

        live = self.live_repository.get_by_share_slug(share_slug)
        if not live:
            return None
        band = self.band_repository.get_by_id(live.band_id)
        if not band:
            return None

        setlist = [
            ShareSetlistEntry(
                id=item.id,
                order_index=item.order_index,
                song=ShareSong(
                    id=song.id,
                    title=song.title,
                    artist=song.artist,
                    youtube_url=song.youtube_url,
                    spotify_url=song.spotify_url,
                ),
            )
            for item, song in self.setlist_repository.get_items(live.id)
        ]

        response = ShareResponse(
            live=ShareLive(
                id=live.id,
                title=live.title,
                date=live.date,
                venue=live.venue,
                is_upcoming=live.is_upcoming,
                share_slug=live.share_slug,
            ),
            band=ShareBand(
                id=band.id,
                name=band.name,
                description=band.description,
                avatar_url=band.avatar_url,
            ),
            setlist=setlist,
        )

        if include_metadata:
            response.metadata = self.build_metadata(response)

        if include_metrics:
            response.metrics = ShareMetrics(
                queryTime=round((time.perf_counter() - started) * 1000, 2),
                songCount=len(setlist),
            )

        return response

    def build_metadata(self, snapshot: ShareResponse) -> ShareMetadata:
        song_count = len(snapshot.setlist)
        song_list = ", ".join(entry.song.title for entry in snapshot.setlist[:3])
        more_text = f" and {song_count - 3} more" if song_count > 3 else ""

        return ShareMetadata(
            title=f"{snapshot.band.name} - {snapshot.live.title} Setlist",
            description=(
                f"Live at {snapshot.live.venue} on {snapshot.live.date:%Y-%m-%d}. "
                f"{song_count} songs: {song_list}{more_text}"
            ),
            socialImage=f"{settings.PUBLIC_BASE_URL}/api/social-image/{snapshot.live.share_slug}",
        )
