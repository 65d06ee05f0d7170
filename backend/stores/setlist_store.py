from datetime import datetime
from typing import Iterable, List, Optional

from config import settings
from domain.models.ids import new_temp_id
from domain.models.setlist import SetlistItemRead
from domain.models.song import SongRead
from domain.services.setlist_ordering import (
    apply_order_change,
    find_item,
    has_unique_order,
    neighbor,
    next_order_index,
    restore_item,
    sort_by_order,
)
from gateway.base import QueryGateway
from stores.base import ResourceStore
from utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_TITLE = "Adding song..."

class SetlistStore(ResourceStore[SetlistItemRead]):
    """
    The ordered setlist of the currently selected live.

    Only one live is cached at a time; selecting another live id drops the
    list and refetches. ``order_index`` values are unique per live (the
    backend enforces it) and the list is always kept in ascending order.
    """

    name = "setlist"
    clear_on_key_change = True

    def __init__(self, gateway: QueryGateway, band_id: Optional[str] = None):
        super().__init__(gateway)
        self.band_id = band_id or settings.DEFAULT_BAND_ID

    @property
    def current_live_id(self) -> Optional[str]:
        return self._key

    async def set_current_live_id(self, live_id: Optional[str]) -> List[SetlistItemRead]:
        return await self._set_key(live_id)

    def _sorted(self, items):
        return sort_by_order(items)

    async def _fetch(self, live_id: Optional[str]) -> List[SetlistItemRead]:
        if not live_id:
            return []
        response = await self.gateway.setlists.get_by_live_id(live_id)
        items = self._unwrap_list(response)
        if not has_unique_order(items):
            logger.warning(f"setlist: duplicate order_index in live {live_id}")
        return items

    def _provisional_item(self, live_id: str, song_id: str, order_index: int) -> SetlistItemRead:
        now = datetime.now()
        return SetlistItemRead(
            id=new_temp_id(),
            live_id=live_id,
            song_id=song_id,
            order_index=order_index,
            created_at=now,
            updated_at=now,
            song=SongRead(
                id=song_id,
                band_id=self.band_id,
                title=PLACEHOLDER_TITLE,
                artist="",
                created_at=now,
                updated_at=now,
            ),
        )

    async def add_song(self, live_id: str, song_id: str) -> bool:
        """
        Append song_id at max(order_index) + 1.

        For the current live a provisional row is shown at once and replaced by
        the backend's row on success. Colliding appends are not retried: the
        loser is rolled back and its BackendError raised.
        """
        is_current = live_id == self.current_live_id
        if is_current:
            base = self._items
        else:
            base = await self._fetch(live_id)
        order_index = next_order_index(base)

        provisional = self._provisional_item(live_id, song_id, order_index) if is_current else None

        def undo(items):
            return [i for i in items if provisional is None or i.id != provisional.id]

        mutation = self._begin("add_song")
        with self._guard(mutation, undo):
            self._apply(mutation, [*self._items, provisional] if provisional else self._items)
            response = await self.gateway.setlists.add_song(live_id, song_id, order_index)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        if provisional is not None and find_item(self._items, provisional.id):
            self._set_items(sort_by_order(
                response.data if i.id == provisional.id else i for i in self._items
            ))
        if live_id == self.current_live_id:
            await self._reconcile()
        return True

    async def remove_song(self, setlist_item_id: str) -> bool:
        removed = find_item(self._items, setlist_item_id)

        def undo(items):
            # 応答待ちの間に別のライブへ切り替わっていたら戻さない
            if removed is None or removed.live_id != self.current_live_id:
                return items
            return restore_item(items, removed)

        mutation = self._begin("remove_song")
        with self._guard(mutation, undo):
            self._apply(mutation, [i for i in self._items if i.id != setlist_item_id])
            response = await self.gateway.setlists.remove_song(setlist_item_id)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        return True

    async def update_order(self, setlist_item_id: str, new_order_index: int) -> bool:
        """
        Move one item. Success or failure, the list is refetched afterwards:
        after an ordering conflict a local guess cannot be trusted.
        """
        mutation = self._begin("update_order")
        touched = [setlist_item_id, *(i.id for i in self._items if i.order_index == new_order_index)]
        with self._guard(mutation, self._revert(mutation, touched)):
            self._apply(mutation, apply_order_change(self._items, setlist_item_id, new_order_index))
            response = await self.gateway.setlists.update_order(setlist_item_id, new_order_index)
            if response.error:
                error = self._rollback(mutation, response.error)
                await self._reconcile()
                raise error

        self._commit(mutation)
        await self._reconcile()
        return True

    async def clear_setlist(self, live_id: str) -> bool:
        is_current = live_id == self.current_live_id

        mutation = self._begin("clear_setlist")
        snapshot = list(mutation.snapshot)

        def undo(items):
            return snapshot if is_current and live_id == self.current_live_id else items

        with self._guard(mutation, undo):
            self._apply(mutation, [] if is_current else self._items)
            response = await self.gateway.setlists.clear_setlist(live_id)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        return True

    async def move_up(self, setlist_item_id: str) -> bool:
        return await self._move(setlist_item_id, -1)

    async def move_down(self, setlist_item_id: str) -> bool:
        return await self._move(setlist_item_id, 1)

    async def _move(self, setlist_item_id: str, offset: int) -> bool:
        # 先頭の上移動, 末尾の下移動は何もしない
        other = neighbor(self._items, setlist_item_id, offset)
        if other is None:
            return False
        return await self.update_order(setlist_item_id, other.order_index)

    def available_songs(self, songs: Iterable[SongRead]) -> List[SongRead]:
        """まだセットリストに入っていない曲"""
        used = {item.song_id for item in self._items}
        return [song for song in songs if song.id not in used]
