from typing import List, Optional
from sqlmodel import Session

from domain.models.setlist import SetlistItem, SetlistItemRead
from domain.models.song import SongRead
from infra.repositories.setlist_repository import SetlistRepository
from infra.repositories.live_repository import LiveRepository
from app.services.common import integrity_guard
from utils.logger import get_logger

logger = get_logger(__name__)

class SetlistAppService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = SetlistRepository(session)
        self.live_repository = LiveRepository(session)

    def live_exists(self, live_id: str) -> bool:
        return self.live_repository.get_by_id(live_id) is not None

    def get_setlist(self, live_id: str) -> List[SetlistItemRead]:
        items = []
        for item, song in self.repository.get_items(live_id):
            read = SetlistItemRead.model_validate(item)
            read.song = SongRead.model_validate(song)
            items.append(read)
        return items

    def add_song(self, live_id: str, song_id: str, order_index: int) -> Optional[SetlistItemRead]:
        if not self.live_exists(live_id):
            return None

        item = SetlistItem(live_id=live_id, song_id=song_id, order_index=order_index)
        with integrity_guard(self.session, f"add song at position {order_index}"):
            item = self.repository.add_item(item)
        logger.info(f"Added song {song_id} to live {live_id} at {order_index}")
        return SetlistItemRead.model_validate(item)

    def update_order(self, item_id: str, order_index: int) -> Optional[SetlistItemRead]:
        item = self.repository.get_by_id(item_id)
        if not item:
            return None
        with integrity_guard(self.session, f"move setlist item to position {order_index}"):
            item = self.repository.move_item(item, order_index)
        return SetlistItemRead.model_validate(item)

    def remove_song(self, item_id: str) -> bool:
        item = self.repository.get_by_id(item_id)
        if not item:
            return False
        self.repository.delete_item(item)
        return True

    def clear_setlist(self, live_id: str) -> Optional[int]:
        if not self.live_exists(live_id):
            return None
        removed = self.repository.clear_items(live_id)
        logger.info(f"Cleared {removed} setlist items from live {live_id}")
        return removed
