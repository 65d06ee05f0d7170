from typing import List, Optional, Tuple
from sqlmodel import Session, select
from sqlalchemy import delete
from datetime import datetime

from domain.models.setlist import SetlistItem
from domain.models.song import Song

class SetlistRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_items(self, live_id: str) -> List[Tuple[SetlistItem, Song]]:
        query = (
            select(SetlistItem, Song)
            .join(Song, SetlistItem.song_id == Song.id)
            .where(SetlistItem.live_id == live_id)
            .order_by(SetlistItem.order_index)
        )
        return self.session.exec(query).all()

    def get_by_id(self, item_id: str) -> Optional[SetlistItem]:
        return self.session.get(SetlistItem, item_id)

    def find_by_order(self, live_id: str, order_index: int) -> Optional[SetlistItem]:
        query = (
            select(SetlistItem)
            .where(SetlistItem.live_id == live_id)
            .where(SetlistItem.order_index == order_index)
        )
        return self.session.exec(query).first()

    def add_item(self, item: SetlistItem) -> SetlistItem:
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def move_item(self, item: SetlistItem, order_index: int) -> SetlistItem:
        """
        order_index を変更する。同じライブ内で既にその位置を持つ行があれば入れ替える。
        一意制約を満たすため、一時的に負の値を経由して1トランザクションで更新する。
        """
        if item.order_index == order_index:
            return item

        now = datetime.now()
        previous_index = item.order_index
        displaced = self.find_by_order(item.live_id, order_index)

        if displaced is not None:
            item.order_index = -previous_index
            self.session.add(item)
            self.session.flush()

            displaced.order_index = previous_index
            displaced.updated_at = now
            self.session.add(displaced)
            self.session.flush()

        item.order_index = order_index
        item.updated_at = now
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def delete_item(self, item: SetlistItem):
        self.session.delete(item)
        self.session.commit()

    def clear_items(self, live_id: str) -> int:
        result = self.session.execute(delete(SetlistItem).where(SetlistItem.live_id == live_id))
        self.session.commit()
        return result.rowcount
