from datetime import datetime
from typing import List, Optional

from config import settings
from domain.exceptions import BackendError
from domain.models.ids import new_temp_id
from domain.models.live import LiveRead
from api.schemas.live import LiveFormData, LiveUpdate
from gateway.base import QueryGateway
from stores.base import ResourceStore
from utils.logger import get_logger

logger = get_logger(__name__)

class LivesStore(ResourceStore[LiveRead]):
    """
    All lives of one band, ordered by date descending.

    The key is the band id and does not change during a session.
    """

    name = "lives"

    def __init__(self, gateway: QueryGateway, band_id: Optional[str] = None):
        super().__init__(gateway, key=band_id or settings.DEFAULT_BAND_ID)

    @property
    def band_id(self) -> str:
        return self._key

    async def load(self) -> List[LiveRead]:
        return await self._load()

    def _sorted(self, items):
        return sorted(items, key=lambda l: l.date, reverse=True)

    async def _fetch(self, band_id: str) -> List[LiveRead]:
        response = await self.gateway.lives.get_all(band_id)
        return self._unwrap_list(response)

    def upcoming(self) -> List[LiveRead]:
        """読み込み済みの一覧から今後のライブを日付昇順で返す"""
        return sorted((l for l in self._items if l.is_upcoming), key=lambda l: l.date)

    def find_by_share_slug(self, share_slug: str) -> Optional[LiveRead]:
        return next((l for l in self._items if l.share_slug == share_slug), None)

    async def create_live(self, form: LiveFormData) -> bool:
        now = datetime.now()
        provisional = LiveRead(
            id=new_temp_id(),
            band_id=self.band_id,
            created_at=now,
            updated_at=now,
            **form.model_dump(),
        )

        def undo(items):
            return [l for l in items if l.id != provisional.id]

        mutation = self._begin("create_live")
        with self._guard(mutation, undo):
            self._apply(mutation, self._sorted([provisional, *self._items]))
            response = await self.gateway.lives.create(self.band_id, form)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        await self._reconcile()
        return True

    async def update_live(self, live_id: str, updates: LiveUpdate) -> bool:
        changes = updates.model_dump(exclude_unset=True)

        mutation = self._begin("update_live")
        with self._guard(mutation, self._revert(mutation, [live_id])):
            self._apply(mutation, self._sorted(
                l.model_copy(update=changes) if l.id == live_id else l for l in self._items
            ))
            response = await self.gateway.lives.update(live_id, updates)
            if response.error:
                error = self._rollback(mutation, response.error)
                await self._reconcile()
                raise error

        self._commit(mutation)
        await self._reconcile()
        return True

    async def delete_live(self, live_id: str) -> bool:
        removed = next((l for l in self._items if l.id == live_id), None)

        def undo(items):
            return self._sorted([*items, removed]) if removed else items

        mutation = self._begin("delete_live")
        with self._guard(mutation, undo):
            self._apply(mutation, [l for l in self._items if l.id != live_id])
            response = await self.gateway.lives.delete(live_id)
            if response.error:
                raise self._rollback(mutation, response.error, undo)

        self._commit(mutation)
        return True

    async def publish(self, live_id: str) -> str:
        """
        Give the live a fresh share slug and return it.

        The slug is checked for uniqueness server side, excluding the live's
        current slug so that republishing always yields a new one.
        """
        live = next((l for l in self._items if l.id == live_id), None)
        current = live.share_slug if live else None

        response = await self.gateway.share.generate_slug(
            check_uniqueness=True, exclude_slug=current
        )
        if response.error:
            logger.error(f"lives: slug generation for {live_id} failed: {response.error}")
            raise BackendError(response.error, "lives.publish")
        if response.data.isUnique is False:
            logger.warning(f"lives: slug for {live_id} could not be verified as unique")

        await self.update_live(live_id, LiveUpdate(share_slug=response.data.slug))
        return response.data.slug
