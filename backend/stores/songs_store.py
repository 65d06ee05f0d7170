from datetime import datetime
from typing import List, Optional

from config import settings
from domain.models.ids import new_temp_id
from domain.models.song import SongRead
from api.schemas.song import SongFormData, SongUpdate
from gateway.base import QueryGateway
from stores.base import ResourceStore

class SongsStore(ResourceStore[SongRead]):
    """Band songs, newest first, keyed by the current search query."""

    name = "songs"

    def __init__(self, gateway: QueryGateway, band_id: Optional[str] = None):
        super().__init__(gateway, key="")
        self.band_id = band_id or settings.DEFAULT_BAND_ID

    @property
    def search_query(self) -> str:
        return self._key

    async def set_search_query(self, query: str) -> List[SongRead]:
        return await self._set_key(query or "")

    async def load(self) -> List[SongRead]:
        return await self._load()

    def _sorted(self, items):
        return sorted(items, key=lambda s: s.created_at, reverse=True)

    async def _fetch(self, query: str) -> List[SongRead]:
        if query and query.strip():
            response = await self.gateway.songs.search(self.band_id, query)
        else:
            response = await self.gateway.songs.get_all(self.band_id)
        return self._unwrap_list(response)

    async def create_song(self, form: SongFormData) -> bool:
        now = datetime.now()
        provisional = SongRead(
            id=new_temp_id(),
            band_id=self.band_id,
            created_at=now,
            updated_at=now,
            **form.model_dump(),
        )

        def undo(items):
            return [s for s in items if s.id != provisional.id]

        mutation = self._begin("create_song")
        with self._guard(mutation, undo):
            self._apply(mutation, [provisional, *self._items])
            response = await self.gateway.songs.create(self.band_id, form)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        await self._reconcile()
        return True

    async def update_song(self, song_id: str, updates: SongUpdate) -> bool:
        changes = updates.model_dump(exclude_unset=True)

        mutation = self._begin("update_song")
        with self._guard(mutation, self._revert(mutation, [song_id])):
            self._apply(mutation, [
                s.model_copy(update=changes) if s.id == song_id else s for s in self._items
            ])
            response = await self.gateway.songs.update(song_id, updates)
            if response.error:
                error = self._rollback(mutation, response.error)
                await self._reconcile()
                raise error

        self._commit(mutation)
        await self._reconcile()
        return True

    async def delete_song(self, song_id: str) -> bool:
        removed = next((s for s in self._items if s.id == song_id), None)
        query = self._key

        def undo(items):
            # 検索条件が変わっていたら、その結果に混ぜ込まない
            if removed is None or self._key != query:
                return items
            return self._sorted([*items, removed])

        mutation = self._begin("delete_song")
        with self._guard(mutation, undo):
            self._apply(mutation, [s for s in self._items if s.id != song_id])
            response = await self.gateway.songs.delete(song_id)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        return True
