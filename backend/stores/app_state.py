"""
The three stores side by side, with the values that need more than one of
them: the current live, combined loading and error flags, and actions that
record a per-domain error message instead of raising.
"""
from typing import Any, Awaitable, Dict, List, Optional
import asyncio

from domain.exceptions import LiveLinkError
from domain.models.live import LiveRead
from domain.models.song import SongRead
from gateway.base import QueryGateway
from api.schemas.song import SongFormData
from api.schemas.live import LiveFormData
from stores.base import ResourceStore
from stores.lives_store import LivesStore
from stores.setlist_store import SetlistStore
from stores.songs_store import SongsStore
from utils.logger import get_logger

logger = get_logger(__name__)

# error_messages の接頭辞
DOMAIN_LABELS = {
    "songs": "楽曲",
    "lives": "ライブ",
    "setlist": "セットリスト",
}

class AppState:
    def __init__(self, gateway: QueryGateway, band_id: Optional[str] = None):
        self.songs = SongsStore(gateway, band_id)
        self.lives = LivesStore(gateway, band_id)
        self.setlist = SetlistStore(gateway, band_id)
        # アクション失敗時に記録したメッセージ (ドメイン名 -> メッセージ)
        self.errors: Dict[str, str] = {}

    @property
    def stores(self) -> Dict[str, ResourceStore]:
        return {"songs": self.songs, "lives": self.lives, "setlist": self.setlist}

    # --- 統合された計算値 ---

    @property
    def current_live(self) -> Optional[LiveRead]:
        """セットリストで選択中のライブ。ライブ一覧に無ければ None"""
        live_id = self.setlist.current_live_id
        if not live_id:
            return None
        return next((l for l in self.lives.state.items if l.id == live_id), None)

    def available_songs(self) -> List[SongRead]:
        return self.setlist.available_songs(self.songs.state.items)

    @property
    def is_loading(self) -> bool:
        return any(store.state.loading for store in self.stores.values())

    @property
    def has_error(self) -> bool:
        return any(store.state.error is not None for store in self.stores.values())

    @property
    def error_messages(self) -> List[str]:
        messages = []
        for domain, store in self.stores.items():
            error = store.state.error
            if error is not None:
                messages.append(f"{DOMAIN_LABELS[domain]}: {error}")
        return messages

    # --- ドメイン別のエラー記録 ---

    def add_error(self, domain: str, message: str):
        self.errors[domain] = message

    def clear_error(self, domain: str):
        self.errors.pop(domain, None)

    def clear_all_errors(self):
        self.errors.clear()

    def get_error(self, domain: str) -> Optional[str]:
        return self.errors.get(domain)

    def has_recorded_error(self, domain: Optional[str] = None) -> bool:
        if domain:
            return domain in self.errors
        return bool(self.errors)

    # --- エラーハンドリング付きアクション ---

    async def run(self, domain: str, action: Awaitable[Any], fallback_message: str) -> Any:
        """
        action を実行し、LiveLinkError はドメインのエラーとして記録して False を返す。
        それ以外の例外はそのまま送出する。
        """
        self.clear_error(domain)
        try:
            return await action
        except LiveLinkError as e:
            message = str(e) or fallback_message
            logger.warning(f"{domain}: {message}")
            self.add_error(domain, message)
            return False

    async def create_song(self, form: SongFormData):
        return await self.run("songs", self.songs.create_song(form), "楽曲の作成に失敗しました")

    async def create_live(self, form: LiveFormData):
        return await self.run("lives", self.lives.create_live(form), "ライブの作成に失敗しました")

    async def add_song_to_setlist(self, live_id: str, song_id: str):
        return await self.run(
            "setlist",
            self.setlist.add_song(live_id, song_id),
            "セットリストへの追加に失敗しました",
        )

    async def refresh_all(self) -> bool:
        """3つのストアを同時に再取得する。失敗したドメインはエラーとして記録する"""
        domains = list(self.stores)
        results = await asyncio.gather(
            *(store.refresh() for store in self.stores.values()),
            return_exceptions=True,
        )
        ok = True
        for domain, result in zip(domains, results):
            if isinstance(result, Exception):
                ok = False
                logger.error(f"{domain}: refresh failed: {result}")
                self.add_error(domain, str(result) or f"{DOMAIN_LABELS[domain]}の再取得に失敗しました")
            elif isinstance(result, BaseException):
                raise result
            else:
                self.clear_error(domain)
        return ok
